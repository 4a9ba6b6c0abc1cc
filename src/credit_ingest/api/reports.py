"""FastAPI router exposing report upload, status, and report read endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile, status

from credit_ingest.api.auth import require_token
from credit_ingest.services.factories import build_ingestion_service
from credit_ingest.services.ingestion import IngestionStatus, ReportIngestionService, ReportNotReadyError
from credit_ingest.settings import get_settings

router = APIRouter(tags=["reports"])


def get_service() -> ReportIngestionService:
    return build_ingestion_service()


def _too_large(limit: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail=f"File exceeds the {limit} byte limit",
    )


def _read_upload(file: UploadFile) -> bytes:
    """Check the MIME type, then read at most one byte past the size limit."""

    ingestion = get_settings().ingestion
    if (file.content_type or "").lower() not in {mime.lower() for mime in ingestion.allowed_mime_types}:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be XML format")
    limit = ingestion.max_upload_bytes
    if file.size is not None and file.size > limit:
        raise _too_large(limit)
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise _too_large(limit)
    return data


@router.post("/upload/xml", summary="Upload a bureau XML report", status_code=202)
def upload_xml(
    background_tasks: BackgroundTasks,
    file: Optional[UploadFile] = File(None, description="Credit bureau XML report"),
    user=Depends(require_token),
    service: ReportIngestionService = Depends(get_service),
):
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No XML file uploaded")

    data = _read_upload(file)

    owner_id = user["username"]
    report_id = service.create_ingestion(owner_id, file.filename or "upload.xml", len(data), file.content_type, data)
    background_tasks.add_task(service.begin_processing, data, report_id, owner_id)

    current = service.get_status(report_id, owner_id)
    return {
        "report_id": report_id,
        "upload_id": current.upload_id if current else None,
        "status": current.status.value if current else "uploaded",
        "message": "File uploaded successfully. Processing started.",
    }


@router.get("/upload/status/{report_id}", summary="Poll ingestion status", response_model=IngestionStatus)
def get_upload_status(
    report_id: str,
    user=Depends(require_token),
    service: ReportIngestionService = Depends(get_service),
):
    current = service.get_status(report_id, user["username"])
    if current is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return current


@router.get("/reports/{report_id}", summary="Fetch a processed report")
def get_report(
    report_id: str,
    user=Depends(require_token),
    service: ReportIngestionService = Depends(get_service),
):
    record = service.get_report(report_id, user["username"])
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return record


def _section(service: ReportIngestionService, report_id: str, owner_id: str, section: str) -> dict:
    try:
        payload = service.get_report_section(report_id, owner_id, section)
    except ReportNotReadyError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Report is {exc.status.value}; extracted data is not available",
        ) from exc
    if payload is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return payload


@router.get("/reports/{report_id}/basic-details", summary="Fetch identity details of a processed report")
def get_report_basic_details(
    report_id: str,
    user=Depends(require_token),
    service: ReportIngestionService = Depends(get_service),
):
    return _section(service, report_id, user["username"], "basic_details")


@router.get("/reports/{report_id}/summary", summary="Fetch account and enquiry counters of a processed report")
def get_report_summary(
    report_id: str,
    user=Depends(require_token),
    service: ReportIngestionService = Depends(get_service),
):
    return _section(service, report_id, user["username"], "report_summary")


@router.get("/reports/{report_id}/credit-accounts", summary="Fetch the tradelines of a processed report")
def get_credit_accounts(
    report_id: str,
    user=Depends(require_token),
    service: ReportIngestionService = Depends(get_service),
):
    return _section(service, report_id, user["username"], "credit_accounts")


__all__ = ["router"]
