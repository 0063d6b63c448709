"""
File utilities for upload handling.
Provides functions for saving uploads to disk and removing them afterwards.
"""

import time
from pathlib import Path
from typing import BinaryIO, Optional, Union
from uuid import uuid4

from dashboard.core.exceptions import FileStorageError, ValidationException
from dashboard.utils.logger import get_logger

logger = get_logger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


def get_file_extension(filename: Optional[str]) -> str:
    """
    Get file extension from filename.

    Args:
        filename: Name of the file

    Returns:
        Lower-case file extension (including the dot), empty if none
    """
    if not filename:
        return ""
    return Path(filename).suffix.lower()


def generate_upload_filename(original_name: str) -> str:
    """Millisecond timestamp, a random suffix and the original extension, e.g. ``1718000000000_<32 hex>.csv``."""
    return f"{int(time.time() * 1000)}_{uuid4().hex}{get_file_extension(original_name)}"


def save_upload_stream(
    source: BinaryIO,
    directory: Union[str, Path],
    original_name: str,
    max_size: Optional[int] = None,
) -> Path:
    """
    Copy an uploaded stream into ``directory`` chunk by chunk.

    Args:
        source: Readable binary stream of the upload
        directory: Target directory, created if missing
        original_name: Client-supplied filename, used for its extension
        max_size: Maximum allowed size in bytes

    Returns:
        Path of the stored file

    Raises:
        ValidationException: If the upload exceeds ``max_size``
        FileStorageError: If the file cannot be written
    """
    target_dir = Path(directory)
    file_path = target_dir / generate_upload_filename(original_name)

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        written = 0
        with open(file_path, "wb") as target:
            while True:
                chunk = source.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if max_size is not None and written > max_size:
                    raise ValidationException(
                        f"File too large (>{max_size} bytes)",
                        field="file",
                        details={"max_size": max_size},
                    )
                target.write(chunk)

    except ValidationException:
        remove_file(file_path)
        raise

    except OSError as e:
        remove_file(file_path)
        raise FileStorageError(f"Failed to store upload: {str(e)}", operation="save", file_path=str(file_path))

    logger.info(f"Stored upload '{original_name}' at {file_path} ({written} bytes)")
    return file_path


def remove_file(file_path: Union[str, Path]) -> bool:
    """
    Delete a file; failures are logged, never raised.

    Returns:
        True if the file is gone afterwards
    """
    try:
        Path(file_path).unlink(missing_ok=True)
        logger.debug(f"Removed file: {file_path}")
        return True
    except OSError as e:
        logger.warning(f"Could not delete uploaded file {file_path}: {str(e)}")
        return False
