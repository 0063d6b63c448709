from tempfile import SpooledTemporaryFile
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from dashboard.core.config import get_settings
from dashboard.core.enums import ExportFormat
from dashboard.interfaces.dependencies import get_ingestion_service, get_upload_data_service
from dashboard.schemas.upload import UploadDataFilter, UploadDataPage, UploadResponse
from dashboard.services.ingestion_service import IngestionService
from dashboard.services.upload_data_service import UploadDataService
from dashboard.utils.file_utils import get_file_extension, save_upload_stream
from dashboard.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

EXPORT_MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
EXPORT_SPOOL_SIZE = 8 * 1024 * 1024
STREAM_CHUNK_SIZE = 64 * 1024


def _filters(
    category: Optional[str] = Query(None, description="Exact category"),
    status: Optional[str] = Query(None, description="Exact status"),
    start_date: Optional[str] = Query(None, alias="startDate", description="createdAt lower bound"),
    end_date: Optional[str] = Query(None, alias="endDate", description="createdAt upper bound, whole day included"),
    q: Optional[str] = Query(None, description="Search on ticketRefId and description"),
) -> UploadDataFilter:
    return UploadDataFilter(category=category, status=status, start_date=start_date, end_date=end_date, q=q)


@router.post("/file", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(...),
    ingestion: IngestionService = Depends(get_ingestion_service),
) -> UploadResponse:
    """Upload a CSV or spreadsheet and store its rows"""
    settings = get_settings()
    extension = get_file_extension(file.filename)

    if extension not in settings.ingestion.allowed_extensions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type {extension or 'unknown'} not supported. "
                   f"Allowed types: {', '.join(settings.ingestion.allowed_extensions)}"
        )

    stored_path = save_upload_stream(
        file.file,
        settings.ingestion.upload_dir,
        file.filename,
        max_size=settings.ingestion.max_upload_size,
    )
    result = await ingestion.ingest(stored_path, extension=extension)

    return UploadResponse(
        message=result.message,
        inserted=result.inserted_count,
        rows_read=result.rows_read,
        skipped_duplicates=result.skipped_duplicates,
        failed=result.failed,
    )


@router.get("/", response_model=UploadDataPage)
async def list_upload_data(
    filters: UploadDataFilter = Depends(_filters),
    page: int = Query(1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(None, description="Number of records per page"),
    service: UploadDataService = Depends(get_upload_data_service),
) -> UploadDataPage:
    """List stored upload rows with filters and pagination"""
    return UploadDataPage(**await service.fetch(filters, page=page, limit=limit))


@router.get("/export")
async def export_upload_data(
    format: str = Query("csv", description="Export format: csv or xlsx"),
    filters: UploadDataFilter = Depends(_filters),
    service: UploadDataService = Depends(get_upload_data_service),
) -> StreamingResponse:
    """Download matching rows as a CSV or XLSX attachment"""
    buffer = SpooledTemporaryFile(max_size=EXPORT_SPOOL_SIZE, mode="w+b")
    try:
        written = await service.stream_export(format, filters, buffer)
    except Exception:
        buffer.close()
        raise

    export_format = ExportFormat(format.lower())
    buffer.seek(0)
    logger.debug(f"Streaming {written} exported rows as {export_format.value}")

    def iter_buffer() -> Iterator[bytes]:
        with buffer:
            while True:
                chunk = buffer.read(STREAM_CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    return StreamingResponse(
        iter_buffer(),
        media_type=EXPORT_MEDIA_TYPES[export_format],
        headers={"Content-Disposition": f'attachment; filename="export.{export_format.value}"'},
    )
