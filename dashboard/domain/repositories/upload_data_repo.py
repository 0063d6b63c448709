from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple


@dataclass
class InsertOutcome:
    """Result of one document inside an unordered bulk insert."""
    index: int
    inserted: bool
    error: Optional[str] = None
    duplicate: bool = False


@dataclass
class BulkInsertResult:
    inserted_count: int = 0
    outcomes: List[InsertOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[InsertOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.inserted]

    @property
    def duplicates(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.duplicate)


@dataclass
class RecordQuery:
    """Store-agnostic filter for upload data; all conditions are ANDed."""
    category: Optional[str] = None
    status: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    search: Optional[str] = None


class UploadDataStore(ABC):
    """
    Persistence contract used by the ingestion pipeline and the export layer.

    Implementations must enforce a sparse unique constraint on the business
    key: at most one stored record per non-empty key, records without a key
    never conflict.
    """

    @abstractmethod
    async def find_existing_keys(self, keys: Iterable[str]) -> Set[str]:
        """Return the subset of ``keys`` already stored."""
        pass

    @abstractmethod
    async def bulk_insert_unordered(self, documents: Sequence[Dict[str, Any]]) -> BulkInsertResult:
        """Insert documents independently; one rejected document must not block the others."""
        pass

    @abstractmethod
    async def find(self, query: RecordQuery, skip: int = 0, limit: int = 50) -> Tuple[List[Dict[str, Any]], int]:
        """Return one page of matching records and the total match count."""
        pass

    @abstractmethod
    def iter_matching(self, query: RecordQuery, chunk_size: int = 500) -> Iterator[Dict[str, Any]]:
        """Iterate every matching record in store order."""
        pass
