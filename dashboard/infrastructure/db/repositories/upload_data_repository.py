import logging
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Set, Tuple

from sqlmodel import Session, select, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .base import BaseRepository
from ..models.upload_data import UploadData
from ....core.exceptions import BatchWriteError, DatabaseError
from ....domain.repositories.upload_data_repo import (
    BulkInsertResult,
    InsertOutcome,
    RecordQuery,
    UploadDataStore,
)

logger = logging.getLogger(__name__)

# Keeps IN (...) lists under SQLite's bound-parameter limit
KEY_LOOKUP_CHUNK = 900


def _is_unique_violation(error: IntegrityError) -> bool:
    orig = getattr(error, "orig", None)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(orig or error).lower()


class SQLUploadDataRepository(BaseRepository[UploadData], UploadDataStore):
    """
    UploadDataStore backed by the ``upload_data`` table.

    Each document of a bulk insert gets its own SAVEPOINT so that a unique
    violation rolls back that row only; the batch is committed at the end.
    """

    def __init__(self, session: Session):
        super().__init__(UploadData, session)

    async def find_existing_keys(self, keys: Iterable[str]) -> Set[str]:
        wanted = sorted({key for key in keys if key})
        existing: Set[str] = set()
        if not wanted:
            return existing

        try:
            for start in range(0, len(wanted), KEY_LOOKUP_CHUNK):
                chunk = wanted[start:start + KEY_LOOKUP_CHUNK]
                statement = select(UploadData.ticket_ref_id).where(UploadData.ticket_ref_id.in_(chunk))
                existing.update(self.session.exec(statement).all())

        except SQLAlchemyError as e:
            logger.error(f"Failed to look up existing business keys: {e}")
            raise DatabaseError(f"Failed to look up existing keys: {str(e)}", operation="find_existing_keys")

        return existing

    async def bulk_insert_unordered(self, documents: Sequence[Dict[str, Any]]) -> BulkInsertResult:
        result = BulkInsertResult()

        for index, document in enumerate(documents):
            try:
                with self.session.begin_nested():
                    self.session.add(UploadData(**document))
                    self.session.flush()
                result.outcomes.append(InsertOutcome(index=index, inserted=True))

            except IntegrityError as e:
                duplicate = _is_unique_violation(e)
                logger.debug(f"Row {index} rejected ({'duplicate key' if duplicate else 'integrity error'}): {e.orig}")
                result.outcomes.append(
                    InsertOutcome(index=index, inserted=False, error=str(e.orig), duplicate=duplicate)
                )

            except SQLAlchemyError as e:
                logger.warning(f"Row {index} rejected: {e}")
                result.outcomes.append(InsertOutcome(index=index, inserted=False, error=str(e)))

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BatchWriteError(f"Commit of bulk insert failed: {str(e)}", inserted_count=0) from e

        result.inserted_count = sum(1 for outcome in result.outcomes if outcome.inserted)
        return result

    def _build_conditions(self, query: RecordQuery) -> List[Any]:
        conditions = []
        if query.category:
            conditions.append(UploadData.category == query.category)
        if query.status:
            conditions.append(UploadData.status == query.status)
        if query.created_from:
            conditions.append(UploadData.created_at >= query.created_from)
        if query.created_to:
            conditions.append(UploadData.created_at <= query.created_to)
        if query.search:
            conditions.append(
                or_(
                    UploadData.ticket_ref_id.icontains(query.search, autoescape=True),
                    UploadData.payload["description"].as_string().icontains(query.search, autoescape=True),
                )
            )
        return conditions

    def _select(self, query: RecordQuery):
        statement = select(UploadData)
        for condition in self._build_conditions(query):
            statement = statement.where(condition)
        return statement.order_by(UploadData.inserted_at, UploadData.id)

    async def find(self, query: RecordQuery, skip: int = 0, limit: int = 50) -> Tuple[List[Dict[str, Any]], int]:
        try:
            statement = self._select(query).offset(skip).limit(limit)
            items = [record.model_dump() for record in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch upload data: {e}")
            raise DatabaseError(f"Failed to fetch upload data: {str(e)}", operation="find")

        total = await self.count(self._build_conditions(query))
        return items, total

    def iter_matching(self, query: RecordQuery, chunk_size: int = 500) -> Iterator[Dict[str, Any]]:
        statement = self._select(query).execution_options(yield_per=chunk_size)
        for record in self.session.exec(statement):
            yield record.model_dump()
