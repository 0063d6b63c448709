"""
Shared fixtures: an in-memory SQLite store and a fake store for error injection.
"""

from typing import Generator

import pytest
from sqlmodel import Session

from dashboard.infrastructure.db.connection import DatabaseManager
from dashboard.infrastructure.db.repositories.upload_data_repository import SQLUploadDataRepository
from tests.helpers import InMemoryUploadStore


@pytest.fixture
def db_manager() -> Generator[DatabaseManager, None, None]:
    manager = DatabaseManager("sqlite://", echo=False)
    manager.create_tables()
    yield manager
    manager.disconnect()


@pytest.fixture
def session(db_manager: DatabaseManager) -> Generator[Session, None, None]:
    with Session(db_manager.get_engine()) as session:
        yield session


@pytest.fixture
def sql_store(session: Session) -> SQLUploadDataRepository:
    return SQLUploadDataRepository(session)


@pytest.fixture
def memory_store() -> InMemoryUploadStore:
    return InMemoryUploadStore()
