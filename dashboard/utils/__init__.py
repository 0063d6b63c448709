"""
Utilities module for the upload backend.
Contains common utility functions and helpers.
"""

from .logger import get_logger
from .file_utils import (
    get_file_extension,
    generate_upload_filename,
    save_upload_stream,
    remove_file,
)
from .date_utils import (
    parse_datetime,
    end_of_day,
    format_iso,
    to_naive_utc,
)

__all__ = [
    # Logging
    "get_logger",

    # File utilities
    "get_file_extension",
    "generate_upload_filename",
    "save_upload_stream",
    "remove_file",

    # Date utilities
    "parse_datetime",
    "end_of_day",
    "format_iso",
    "to_naive_utc",
]
