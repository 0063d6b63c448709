"""
Shared test doubles for the upload pipeline.
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from dashboard.domain.repositories.upload_data_repo import (
    BulkInsertResult,
    InsertOutcome,
    RecordQuery,
    UploadDataStore,
)


class InMemoryUploadStore(UploadDataStore):
    """
    Dict-backed store with the same sparse unique rule as the SQL table.

    ``events`` records every call in order so tests can check how reads and
    writes interleave. Set ``lookup_error`` / ``insert_error`` to make the
    next call raise.
    """

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []
        self.events: List[Tuple[str, Any]] = []
        self.lookup_error: Optional[Exception] = None
        self.insert_error: Optional[Exception] = None
        self.on_insert: Optional[Callable[[Sequence[Dict[str, Any]]], None]] = None

    @property
    def keys(self) -> Set[str]:
        return {doc["ticket_ref_id"] for doc in self.documents if doc.get("ticket_ref_id")}

    async def find_existing_keys(self, keys: Iterable[str]) -> Set[str]:
        keys = set(keys)
        self.events.append(("lookup", len(keys)))
        if self.lookup_error is not None:
            raise self.lookup_error
        return keys & self.keys

    async def bulk_insert_unordered(self, documents: Sequence[Dict[str, Any]]) -> BulkInsertResult:
        self.events.append(("insert", len(documents)))
        if self.on_insert is not None:
            self.on_insert(documents)
        if self.insert_error is not None:
            raise self.insert_error

        result = BulkInsertResult()
        for index, document in enumerate(documents):
            key = document.get("ticket_ref_id")
            if key and key in self.keys:
                result.outcomes.append(
                    InsertOutcome(index=index, inserted=False, error="duplicate key", duplicate=True)
                )
                continue
            self.documents.append(dict(document))
            result.outcomes.append(InsertOutcome(index=index, inserted=True))

        result.inserted_count = sum(1 for outcome in result.outcomes if outcome.inserted)
        return result

    def _matches(self, query: RecordQuery, doc: Dict[str, Any]) -> bool:
        if query.category and doc.get("category") != query.category:
            return False
        if query.status and doc.get("status") != query.status:
            return False
        created_at = doc.get("created_at")
        if query.created_from and (created_at is None or created_at < query.created_from):
            return False
        if query.created_to and (created_at is None or created_at > query.created_to):
            return False
        if query.search:
            needle = query.search.lower()
            haystack = [doc.get("ticket_ref_id") or "", str(doc["payload"].get("description") or "")]
            if not any(needle in value.lower() for value in haystack):
                return False
        return True

    async def find(self, query: RecordQuery, skip: int = 0, limit: int = 50):
        matches = [doc for doc in self.documents if self._matches(query, doc)]
        return matches[skip:skip + limit], len(matches)

    def iter_matching(self, query: RecordQuery, chunk_size: int = 500) -> Iterator[Dict[str, Any]]:
        for doc in self.documents:
            if self._matches(query, doc):
                yield doc


def csv_bytes(*lines: str, encoding: str = "utf-8") -> bytes:
    return ("\n".join(lines) + "\n").encode(encoding)
