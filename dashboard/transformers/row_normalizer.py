# ==============================================
# dashboard/transformers/row_normalizer.py
# ==============================================
from typing import Any, Optional, Tuple

from dashboard.domain.entities.upload_entity import BUSINESS_KEY_FIELD, CanonicalRecord, RawRecord
from dashboard.utils.date_utils import parse_datetime

# Column aliases are case-sensitive and checked in order; first non-empty value wins.
CATEGORY_ALIASES: Tuple[str, ...] = ("category", "Category", "category_name")
STATUS_ALIASES: Tuple[str, ...] = ("status", "Status")
CREATED_AT_ALIASES: Tuple[str, ...] = ("createdAt", "created_at", "Created Date", "created")
BUSINESS_KEY_ALIASES: Tuple[str, ...] = (
    BUSINESS_KEY_FIELD,
    "ticket_ref_id",
    "Ticket Ref ID",
    "Ticket Ref Id",
    "TicketRefId",
    "ticketRef",
    "Ticket Ref",
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def first_present(row: RawRecord, aliases: Tuple[str, ...]) -> Any:
    """Return the value of the first alias present in ``row`` with a non-empty value."""
    for alias in aliases:
        value = row.get(alias)
        if not _is_blank(value):
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def resolve_category(row: RawRecord) -> Optional[str]:
    return _as_text(first_present(row, CATEGORY_ALIASES))


def resolve_status(row: RawRecord) -> Optional[str]:
    return _as_text(first_present(row, STATUS_ALIASES))


def resolve_business_key(row: RawRecord) -> Optional[str]:
    return _as_text(first_present(row, BUSINESS_KEY_ALIASES))


def resolve_created_at(row: RawRecord):
    return parse_datetime(first_present(row, CREATED_AT_ALIASES))


def normalize_row(row: RawRecord) -> CanonicalRecord:
    """
    Map a raw source row to a canonical record.

    Pure and idempotent: normalizing the resulting payload again yields an
    equal record, because the only field written into the payload is the
    business key under the highest-priority alias.
    """
    payload = dict(row)
    ticket_ref_id = resolve_business_key(row)
    if ticket_ref_id:
        payload[BUSINESS_KEY_FIELD] = ticket_ref_id

    return CanonicalRecord(
        payload=payload,
        category=resolve_category(row),
        status=resolve_status(row),
        created_at=resolve_created_at(row),
        ticket_ref_id=ticket_ref_id,
    )
