from datetime import datetime
from typing import Optional, Dict, Any
from sqlmodel import Field, Column, JSON
from sqlalchemy import DateTime, Index

from .base import BaseModelWithTimestamp


class UploadData(BaseModelWithTimestamp, table=True):
    """
    One ingested spreadsheet/CSV row.

    ``ticket_ref_id`` carries a unique index; SQL unique indexes ignore
    NULLs, so rows without a business key never conflict with each other.
    """
    __tablename__ = "upload_data"
    __table_args__ = (
        Index("ix_upload_data_category_status", "category", "status"),
    )

    payload: Dict[str, Any] = Field(
        sa_column=Column(JSON, nullable=False),
        description="Original row, column name to cell value"
    )

    ticket_ref_id: Optional[str] = Field(
        default=None,
        max_length=255,
        unique=True,
        index=True,
        description="Business key, unique when present"
    )

    category: Optional[str] = Field(
        default=None,
        max_length=255,
        index=True,
        description="Derived from category column aliases"
    )

    status: Optional[str] = Field(
        default=None,
        max_length=100,
        index=True,
        description="Derived from status column aliases"
    )

    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, index=True, nullable=True),
        description="Derived from created-date column aliases"
    )
