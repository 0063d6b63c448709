from enum import Enum


class FileFormat(str, Enum):
    """Readable upload formats"""
    CSV = "csv"
    SPREADSHEET = "spreadsheet"


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


class FlushPhase(str, Enum):
    """Bulk write phase inside a flush"""
    WITH_KEY = "with_key"
    WITHOUT_KEY = "without_key"
