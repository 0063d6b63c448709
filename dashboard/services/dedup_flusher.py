"""
Writes one batch of canonical records to the store, skipping business keys
that are already present.
"""

from dataclasses import dataclass
from typing import List, Sequence, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError

from dashboard.core.enums import FlushPhase
from dashboard.core.exceptions import BatchWriteError, DatabaseError
from dashboard.domain.entities.upload_entity import CanonicalRecord
from dashboard.domain.repositories.upload_data_repo import UploadDataStore
from dashboard.utils.logger import get_logger

logger = get_logger(__name__)

STORE_ERRORS = (BatchWriteError, DatabaseError, SQLAlchemyError)


@dataclass
class FlushResult:
    batch_size: int = 0
    inserted: int = 0
    skipped_duplicates: int = 0
    failed: int = 0

    def __int__(self) -> int:
        return self.inserted


class DedupFlusher:
    """
    Best-effort deduplicating writer.

    Keys already in the store are filtered out with one lookup before the
    insert. Between that lookup and the insert another writer may store the
    same key; the store's unique index rejects those rows and they are simply
    not counted. Write errors never propagate: the flush reports what the
    store confirmed.
    """

    def __init__(self, store: UploadDataStore):
        self.store = store

    async def flush(self, batch: Sequence[CanonicalRecord]) -> FlushResult:
        result = FlushResult(batch_size=len(batch))
        if not batch:
            return result

        with_key, without_key = self._partition(batch)

        if with_key:
            fresh = await self._drop_known_keys(with_key, result)
            result.inserted += await self._insert(fresh, FlushPhase.WITH_KEY, result)

        if without_key:
            result.inserted += await self._insert(without_key, FlushPhase.WITHOUT_KEY, result)

        logger.info(
            f"Flushed batch of {result.batch_size}: inserted={result.inserted} "
            f"duplicates={result.skipped_duplicates} failed={result.failed}"
        )
        return result

    @staticmethod
    def _partition(batch: Sequence[CanonicalRecord]) -> Tuple[List[CanonicalRecord], List[CanonicalRecord]]:
        with_key, without_key = [], []
        for record in batch:
            (with_key if record.has_business_key else without_key).append(record)
        return with_key, without_key

    async def _drop_known_keys(self, records: List[CanonicalRecord], result: FlushResult) -> List[CanonicalRecord]:
        """Remove records whose key is stored already or repeats earlier in the batch."""
        keys = {record.ticket_ref_id for record in records}
        try:
            seen: Set[str] = set(await self.store.find_existing_keys(keys))
        except STORE_ERRORS as e:
            # The unique index still rejects duplicates on insert
            logger.warning(f"Existing-key lookup failed, relying on unique index: {str(e)}")
            seen = set()

        fresh = []
        for record in records:
            if record.ticket_ref_id in seen:
                result.skipped_duplicates += 1
                continue
            seen.add(record.ticket_ref_id)
            fresh.append(record)

        if len(fresh) < len(records):
            logger.debug(f"Skipped {len(records) - len(fresh)} records with known business keys")
        return fresh

    async def _insert(self, records: List[CanonicalRecord], phase: FlushPhase, result: FlushResult) -> int:
        if not records:
            return 0

        try:
            outcome = await self.store.bulk_insert_unordered([record.to_document() for record in records])

        except BatchWriteError as e:
            confirmed = e.inserted_count
            result.failed += len(records) - confirmed
            logger.error(
                f"Bulk insert failed ({phase.value}): {e.message}; confirmed {confirmed} of {len(records)}"
            )
            return confirmed

        except (DatabaseError, SQLAlchemyError) as e:
            result.failed += len(records)
            logger.error(f"Bulk insert failed ({phase.value}): {str(e)}")
            return 0

        duplicates = outcome.duplicates
        result.skipped_duplicates += duplicates
        result.failed += len(outcome.failed) - duplicates

        if outcome.failed:
            logger.warning(
                f"Bulk insert ({phase.value}) rejected {len(outcome.failed)} of {len(records)} records "
                f"({duplicates} duplicate keys)"
            )
            for failure in outcome.failed:
                logger.debug(f"Rejected record {failure.index} ({phase.value}): {failure.error}")

        return outcome.inserted_count
