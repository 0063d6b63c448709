"""
Base service class providing common functionality for all services.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from dashboard.domain.repositories.upload_data_repo import UploadDataStore
from dashboard.utils.logger import get_logger


class BaseService(ABC):
    """Base class for services working against the upload data store."""

    def __init__(self, store: UploadDataStore):
        self.store = store
        self.logger = get_logger(self.__class__.__name__)

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log service operation."""
        log_msg = f"Service operation: {operation}"
        if details:
            log_msg += f" - Details: {details}"
        self.logger.info(log_msg)

    @abstractmethod
    def get_service_name(self) -> str:
        """Return the service name."""
        pass
