import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from cvscanner.models.schemas import CSVExportRequest, ParseCVResponse
from cvscanner.models.settings import Settings, get_settings
from cvscanner.services.clients import ExtractionClient
from cvscanner.services.export import content_disposition, csv_filename_for, rows_to_csv
from cvscanner.services.matching import parse_extracted_fields
from cvscanner.utils.exceptions import InvalidUploadError, MissingCredentialError
from cvscanner.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def get_extraction_client(settings: Settings = Depends(get_settings)) -> ExtractionClient:
    return ExtractionClient(settings)


def _is_pdf(upload: UploadFile) -> bool:
    if upload.content_type == PDF_CONTENT_TYPE:
        return True
    return (upload.filename or "").lower().endswith(".pdf")


@router.post("/parse-cv", response_model=ParseCVResponse)
async def parse_cv(
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    client: ExtractionClient = Depends(get_extraction_client),
):
    """Extract section/field/value rows from an uploaded PDF CV"""
    if file is None:
        raise InvalidUploadError("No file provided")
    if not _is_pdf(file):
        raise InvalidUploadError("Only PDF files are supported.", filename=file.filename)

    content = await file.read()
    max_bytes = settings.scanner_settings.max_upload_bytes
    if len(content) > max_bytes:
        raise InvalidUploadError(
            f"File too large. Maximum size is {settings.scanner_settings.max_upload_mb}MB.",
            filename=file.filename,
            details={"size": len(content), "max_size": max_bytes},
        )
    if not content:
        raise InvalidUploadError("Uploaded file is empty", filename=file.filename)

    if not settings.api_key:
        raise MissingCredentialError()

    raw = await asyncio.to_thread(client.extract, settings.api_key, content)
    rows = parse_extracted_fields(raw)
    logger.info(f"Extracted {len(rows)} rows from {file.filename}")
    return ParseCVResponse(data=rows)


@router.post("/parse-cv/csv")
async def export_csv(body: CSVExportRequest):
    """Download extracted rows as CSV (UTF-8 with BOM so spreadsheet apps detect the encoding)"""
    filename = csv_filename_for(body.filename)
    content = "\ufeff" + rows_to_csv(body.data)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": content_disposition(filename)},
    )
