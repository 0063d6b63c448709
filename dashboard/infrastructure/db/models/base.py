from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, func


class BaseModel(SQLModel):
    """
    Base model with common fields for all database models.
    """

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        index=True,
        nullable=False,
        description="Unique identifier"
    )


class TimestampMixin(SQLModel):
    """
    Mixin for models that record when the store accepted them.
    """

    inserted_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(
            DateTime,
            server_default=func.now(),
            nullable=False
        ),
        description="Record insertion timestamp"
    )


class BaseModelWithTimestamp(BaseModel, TimestampMixin):
    """
    Base model with ID and insertion timestamp.
    """
    pass
