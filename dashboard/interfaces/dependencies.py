from fastapi import Depends
from sqlmodel import Session

from dashboard.core.config import get_settings
from dashboard.domain.repositories.upload_data_repo import UploadDataStore
from dashboard.infrastructure.db.connection import get_session_dependency
from dashboard.infrastructure.db.repositories.upload_data_repository import SQLUploadDataRepository
from dashboard.services.ingestion_service import IngestionService
from dashboard.services.upload_data_service import UploadDataService


def get_upload_store(db: Session = Depends(get_session_dependency)) -> UploadDataStore:
    """Upload data store bound to the request's database session"""
    return SQLUploadDataRepository(db)


def get_ingestion_service(store: UploadDataStore = Depends(get_upload_store)) -> IngestionService:
    settings = get_settings()
    return IngestionService(
        store,
        batch_size=settings.ingestion.batch_size,
        processor_options={"sample_size": settings.ingestion.encoding_sample_size},
    )


def get_upload_data_service(store: UploadDataStore = Depends(get_upload_store)) -> UploadDataService:
    return UploadDataService(store)
