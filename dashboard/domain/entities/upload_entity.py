from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

# One source row: header name -> raw cell value, in column order.
RawRecord = Dict[str, Any]

BUSINESS_KEY_FIELD = "ticketRefId"


@dataclass
class CanonicalRecord:
    """
    A source row after normalization.

    ``payload`` keeps every original column. The derived fields are
    additions read from well-known column aliases; only the business key
    is also written back into ``payload`` under ``BUSINESS_KEY_FIELD``.
    """

    payload: RawRecord = field(default_factory=dict)
    category: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    ticket_ref_id: Optional[str] = None

    @property
    def has_business_key(self) -> bool:
        return bool(self.ticket_ref_id)

    def to_document(self) -> Dict[str, Any]:
        """Field mapping handed to the store."""
        return {
            "payload": self.payload,
            "category": self.category,
            "status": self.status,
            "created_at": self.created_at,
            "ticket_ref_id": self.ticket_ref_id,
        }
