from .base import BaseResponse, HealthCheckSchema
from .upload import UploadDataFilter, UploadDataRead, UploadDataPage, UploadResponse

__all__ = [
    # Base schemas
    "BaseResponse", "HealthCheckSchema",

    # Upload schemas
    "UploadDataFilter", "UploadDataRead", "UploadDataPage", "UploadResponse",
]
