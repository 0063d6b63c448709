from datetime import datetime
from pydantic import BaseModel, Field


class BaseResponse(BaseModel):
    """Base response schema for all API responses."""
    success: bool = True
    message: str = "Operation completed successfully"
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class HealthCheckSchema(BaseModel):
    """Schema for health check response."""
    status: str = Field(description="Health status: healthy, unhealthy")
    version: str
    database: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
