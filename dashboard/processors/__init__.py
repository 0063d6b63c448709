# ==============================================
# dashboard/processors/__init__.py
# ==============================================
from typing import Optional

from dashboard.core.enums import FileFormat
from dashboard.core.exceptions import UnsupportedFormatError
from .base_processor import BaseProcessor
from .csv_processor import CSVProcessor
from .excel_processor import ExcelProcessor

# Processor registry keyed by lower-case file extension
PROCESSOR_REGISTRY = {
    '.csv': CSVProcessor,

    '.xlsx': ExcelProcessor,
    '.xlsm': ExcelProcessor,
    '.xls': ExcelProcessor,
}


def _normalize_extension(extension: Optional[str]) -> str:
    extension = (extension or '').strip().lower()
    if extension and not extension.startswith('.'):
        extension = f'.{extension}'
    return extension


def get_processor(extension: Optional[str], **kwargs) -> BaseProcessor:
    """
    Factory function to get the reader for a file extension

    Args:
        extension: File extension, with or without the leading dot
        **kwargs: Additional arguments to pass to processor

    Returns:
        Processor instance

    Raises:
        UnsupportedFormatError: If the extension is not supported
    """
    processor_class = PROCESSOR_REGISTRY.get(_normalize_extension(extension))

    if not processor_class:
        raise UnsupportedFormatError(extension, supported=get_supported_types())

    return processor_class(**kwargs)


def detect_format(extension: Optional[str]) -> FileFormat:
    """Map an extension to its declared format"""
    return get_processor(extension).file_format


def get_supported_types():
    """Get list of all supported file extensions"""
    return list(PROCESSOR_REGISTRY.keys())


__all__ = [
    "BaseProcessor",
    "CSVProcessor",
    "ExcelProcessor",
    "get_processor",
    "detect_format",
    "get_supported_types",
    "PROCESSOR_REGISTRY"
]
