# ==============================================
# dashboard/transformers/__init__.py
# ==============================================
from .row_normalizer import (
    BUSINESS_KEY_ALIASES,
    CATEGORY_ALIASES,
    CREATED_AT_ALIASES,
    STATUS_ALIASES,
    first_present,
    normalize_row,
)

__all__ = [
    "BUSINESS_KEY_ALIASES",
    "CATEGORY_ALIASES",
    "CREATED_AT_ALIASES",
    "STATUS_ALIASES",
    "first_present",
    "normalize_row",
]
