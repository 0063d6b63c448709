from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from .base import BaseResponse


class UploadDataFilter(BaseModel):
    """Filters accepted by the listing and export endpoints."""
    model_config = ConfigDict(populate_by_name=True)

    category: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate", description="Inclusive lower bound on createdAt")
    end_date: Optional[str] = Field(default=None, alias="endDate", description="Day included up to its last millisecond")
    q: Optional[str] = Field(default=None, description="Case-insensitive search on ticketRefId and description")


class UploadDataRead(BaseModel):
    """One stored upload row."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payload: Dict[str, Any]
    ticket_ref_id: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    inserted_at: Optional[datetime] = None


class UploadDataPage(BaseModel):
    """Page of upload rows with the total match count."""
    items: List[UploadDataRead]
    total: int
    page: int = Field(ge=1, description="Current page number")
    limit: int = Field(ge=1, description="Number of items per page")


class UploadResponse(BaseResponse):
    """Result of ingesting one uploaded file."""
    status: str = "success"
    inserted: int = 0
    rows_read: int = 0
    skipped_duplicates: int = 0
    failed: int = 0
