# routes/upload.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from schemas.requests import UploadJobRequest
from schemas.responses import PageUploadResult, UploadJobErrorResponse, UploadJobResponse
from services.audit_log import AuditLogger, build_audit_logger
from services.errors import PipelineError
from services.sequence_allocator import SequenceAllocator, build_sequence_allocator
from services.sftp_session import open_session
from services.upload_orchestrator import run_upload_job
from utils.request_id import get_request_id

router = APIRouter()
logger = logging.getLogger("api.upload")


def get_allocator() -> SequenceAllocator:
    return build_sequence_allocator()


def get_audit_logger() -> AuditLogger:
    return build_audit_logger()


def get_session_factory():
    return open_session


def _error_response(exc: PipelineError, request_id: str | None) -> JSONResponse:
    body = UploadJobErrorResponse(
        error=exc.message,
        details=exc.details or None,
        error_code=exc.error_code,
        request_id=request_id,
    )
    return JSONResponse(status_code=exc.http_status, content=body.model_dump(by_alias=True, exclude_none=True))


@router.post("/sftp-upload")
def sftp_upload(
    payload: UploadJobRequest,
    allocator: SequenceAllocator = Depends(get_allocator),
    audit_logger: AuditLogger = Depends(get_audit_logger),
    session_factory=Depends(get_session_factory),
):
    request_id = get_request_id()
    try:
        result = run_upload_job(
            payload,
            allocator=allocator,
            audit_logger=audit_logger,
            session_factory=session_factory,
            request_id=request_id or "",
        )
    except PipelineError as exc:
        logger.warning("upload_rejected error_code=%s details=%s", exc.error_code, exc.details)
        return _error_response(exc, request_id)

    if not result.success:
        return _error_response(result.error, request_id)

    response = UploadJobResponse(
        page_count=result.page_count,
        results=[PageUploadResult(**o.to_result()) for o in result.outcomes],
        first_page_identifier=result.first_page_identifier,
        request_id=request_id,
    )
    return response.model_dump(by_alias=True)
