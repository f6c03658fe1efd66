# User value: This file runs one upload job end to end so every page lands on the server with its own identifier.
# services/upload_orchestrator.py
import base64
import binascii
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from schemas.job_contract import (
    AUDIT_STATUS_FAILED,
    AUDIT_STATUS_SUCCESS,
    PAYLOAD_FORMATS,
    PDF_EXTENSION,
    STAGE_CONNECTING,
    STAGE_DISCONNECTING,
    STAGE_DONE,
    STAGE_ENSURING_DIRECTORIES,
    STAGE_FAILED,
    STAGE_LOGGING_OUTCOME,
    STAGE_UPLOADING_PAGE,
    STAGE_VALIDATING,
    payload_extension,
)
from schemas.requests import UploadJobRequest
from services.audit_log import AuditLogEntry, AuditLogger
from services.errors import AllocationError, PipelineError, ValidationError
from services.page_extractor import PageArtifact, PageExtractor
from services.payload_renderer import render_payload
from services.sequence_allocator import SequenceAllocator, allocate_page_identifier
from services.sftp_session import open_session, remote_path
from utils.metrics import incr, observe_ms
from utils.request_id import new_job_id
from utils.stage_logging import log_stage
from utils.status_machine import JobStateTracker

logger = logging.getLogger("api.upload")

_DATA_URI_PREFIX = "base64,"


@dataclass
class UploadOutcome:
    page: int
    identifier: int
    filename: str
    data_path: str
    pdf_path: str
    identifier_source: str

    def to_result(self) -> dict:
        return {
            "page": self.page,
            "identifier": self.identifier,
            "filename": self.filename,
            "paths": {"data": self.data_path, "pdf": self.pdf_path},
        }


@dataclass
class UploadJobResult:
    job_id: str
    success: bool
    page_count: int
    outcomes: list = field(default_factory=list)
    error: Optional[PipelineError] = None
    stages: list = field(default_factory=list)

    @property
    def first_page_identifier(self) -> Optional[int]:
        return self.outcomes[0].identifier if self.outcomes else None


@dataclass
class ValidatedJob:
    pdf_bytes: bytes
    payload_format: str
    payload_dir: str
    pdf_dir: str
    secondary_dir: Optional[str]

    @property
    def directories(self) -> list:
        return [d for d in (self.payload_dir, self.pdf_dir, self.secondary_dir) if d]


def _blank(value) -> bool:
    return value is None or not str(value).strip()


# User value: normalizes data so the PDF the caller sent is exactly what gets split.
def decode_pdf_base64(raw: str) -> bytes:
    text = raw.strip()
    if text.startswith("data:") and _DATA_URI_PREFIX in text:
        text = text.split(_DATA_URI_PREFIX, 1)[1]
    text = "".join(text.split())
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(f"pdfBase64 is not valid base64: {exc}", message="Invalid request") from exc
    if not data:
        raise ValidationError("pdfBase64 decodes to an empty document", message="Invalid request")
    return data


# User value: keeps both files of a page under one predictable name.
def build_filename_stem(base_filename: str, identifier: int) -> str:
    return f"{base_filename}_{identifier}"


# User value: fails fast on incomplete requests before any connection is made.
def validate_request(request: UploadJobRequest) -> ValidatedJob:
    missing = []
    target = request.target
    if target is None:
        missing.append("target")
    else:
        if _blank(target.host):
            missing.append("target.host")
        if _blank(target.username):
            missing.append("target.username")
        if target.password is None:
            missing.append("target.password")
        if _blank(request.path_override):
            if _blank(target.payload_dir):
                missing.append("target.payloadDir")
            if _blank(target.pdf_dir):
                missing.append("target.pdfDir")
    if request.payload is None or request.payload == "":
        missing.append("payload")
    if _blank(request.pdf_base64):
        missing.append("pdfBase64")
    if _blank(request.base_filename):
        missing.append("baseFilename")
    if missing:
        raise ValidationError(", ".join(missing))

    payload_format = (request.payload_format or "").strip().lower() or "xml"
    if payload_format not in PAYLOAD_FORMATS:
        raise ValidationError(
            f"payloadFormat must be one of {', '.join(PAYLOAD_FORMATS)}, got {request.payload_format}",
            message="Invalid request",
        )

    if "/" in request.base_filename or "\\" in request.base_filename:
        raise ValidationError("baseFilename must not contain path separators", message="Invalid request")

    override = request.reuse_identifier_for_first_page
    if override is not None and override <= 0:
        raise ValidationError("reuseIdentifierForFirstPage must be a positive integer", message="Invalid request")

    pdf_bytes = decode_pdf_base64(request.pdf_base64)

    if not _blank(request.path_override):
        override_dir = request.path_override.strip()
        return ValidatedJob(pdf_bytes, payload_format, override_dir, override_dir, None)

    return ValidatedJob(
        pdf_bytes=pdf_bytes,
        payload_format=payload_format,
        payload_dir=target.payload_dir.strip(),
        pdf_dir=target.pdf_dir.strip(),
        secondary_dir=(target.secondary_dir or "").strip() or None,
    )


def _upload_page(
    *,
    job_id: str,
    request: UploadJobRequest,
    job: ValidatedJob,
    page: PageArtifact,
    allocator: SequenceAllocator,
    session,
    used_identifiers: set,
) -> tuple[UploadOutcome, str]:
    identifier, source = allocate_page_identifier(
        allocator,
        page_index=page.index,
        override=request.reuse_identifier_for_first_page,
    )
    if identifier in used_identifiers:
        raise AllocationError(f"Identifier {identifier} was already used by an earlier page of this job")
    used_identifiers.add(identifier)

    rendered = render_payload(request.payload, job.payload_format, request.field_path_for_id, identifier)

    stem = build_filename_stem(request.base_filename.strip(), identifier)
    data_path = remote_path(job.payload_dir, f"{stem}.{payload_extension(job.payload_format)}")
    pdf_path = remote_path(job.pdf_dir, f"{stem}.{PDF_EXTENSION}")

    session.upload(rendered.encode("utf-8"), data_path)
    session.upload(page.data, pdf_path)

    log_stage(
        job_id=job_id,
        stage=STAGE_UPLOADING_PAGE,
        event="COMPLETED",
        user=request.user_ref,
        page=page.index,
        identifier=identifier,
        identifier_source=source,
        data_path=data_path,
        pdf_path=pdf_path,
    )
    incr("upload_pages_total", payload_format=job.payload_format)
    return UploadOutcome(page.index, identifier, f"{stem}.{PDF_EXTENSION}", data_path, pdf_path, source), rendered


def _disconnect(session, tracker: JobStateTracker, request: UploadJobRequest) -> None:
    tracker.advance(STAGE_DISCONNECTING)
    try:
        session.close()
    except Exception as exc:
        # outcome is already decided; a failed close is only reported
        log_stage(
            job_id=tracker.job_id,
            stage=STAGE_DISCONNECTING,
            event="FAILED",
            user=request.user_ref,
            error=f"{exc.__class__.__name__}: {exc}",
        )
        return
    log_stage(job_id=tracker.job_id, stage=STAGE_DISCONNECTING, event="COMPLETED", user=request.user_ref)


# User value: submits one document and its data safely, page by page, to the customer's server.
def run_upload_job(
    request: UploadJobRequest,
    *,
    allocator: SequenceAllocator,
    audit_logger: AuditLogger,
    session_factory: Callable = open_session,
    request_id: str = "",
    job_id: Optional[str] = None,
) -> UploadJobResult:
    job_id = job_id or new_job_id()
    tracker = JobStateTracker(job_id, request_id)
    started = time.perf_counter()

    tracker.advance(STAGE_VALIDATING)
    log_stage(
        job_id=job_id,
        stage=STAGE_VALIDATING,
        event="STARTED",
        user=request.user_ref,
        base_filename=request.base_filename,
        payload_format=request.payload_format,
        request_id=request_id,
    )
    try:
        job = validate_request(request)
    except ValidationError as exc:
        incr("upload_jobs_total", status="rejected")
        log_stage(job_id=job_id, stage=STAGE_VALIDATING, event="FAILED", user=request.user_ref, error=str(exc))
        tracker.advance(STAGE_FAILED)
        raise

    outcomes: list = []
    error: Optional[PipelineError] = None
    unexpected: Optional[Exception] = None
    payload_snapshot: Optional[str] = None
    page_count = 0
    session = None

    try:
        extractor = PageExtractor(job.pdf_bytes)
        page_count = extractor.page_count
        log_stage(job_id=job_id, stage=STAGE_VALIDATING, event="COMPLETED", user=request.user_ref, page_count=page_count)

        tracker.advance(STAGE_CONNECTING)
        log_stage(job_id=job_id, stage=STAGE_CONNECTING, event="STARTED", host=request.target.host, port=request.target.port)
        session = session_factory(request.target)
        log_stage(job_id=job_id, stage=STAGE_CONNECTING, event="COMPLETED", host=request.target.host)

        tracker.advance(STAGE_ENSURING_DIRECTORIES)
        session.ensure_directories(job.directories)
        log_stage(
            job_id=job_id,
            stage=STAGE_ENSURING_DIRECTORIES,
            event="COMPLETED",
            directories="|".join(job.directories),
        )

        used_identifiers: set = set()
        for page in extractor.iter_pages():
            tracker.advance(STAGE_UPLOADING_PAGE)
            outcome, rendered = _upload_page(
                job_id=job_id,
                request=request,
                job=job,
                page=page,
                allocator=allocator,
                session=session,
                used_identifiers=used_identifiers,
            )
            if payload_snapshot is None:
                payload_snapshot = rendered
            outcomes.append(outcome)
    except PipelineError as exc:
        error = exc
    except Exception as exc:
        logger.exception("upload_job_unexpected_error job_id=%s", job_id)
        error = PipelineError(f"{exc.__class__.__name__}: {exc}")
        unexpected = exc
    finally:
        if session is not None:
            _disconnect(session, tracker, request)

    if error is not None:
        log_stage(
            job_id=job_id,
            stage=tracker.current,
            event="FAILED",
            user=request.user_ref,
            error=f"{error.__class__.__name__}: {error}",
            pages_uploaded=len(outcomes),
            page_count=page_count,
        )

    tracker.advance(STAGE_LOGGING_OUTCOME)
    success = error is None
    audit_logger.record(
        AuditLogEntry(
            status=AUDIT_STATUS_SUCCESS if success else AUDIT_STATUS_FAILED,
            page_count=page_count,
            user_ref=request.user_ref,
            classification_ref=request.classification_ref,
            original_filename=request.original_filename,
            error_message=None if success else str(error),
            payload_snapshot=payload_snapshot if payload_snapshot is not None else request.payload,
            first_page_identifier=outcomes[0].identifier if outcomes else None,
            job_id=job_id,
            request_id=request_id or None,
        )
    )
    tracker.advance(STAGE_DONE if success else STAGE_FAILED)

    duration_ms = (time.perf_counter() - started) * 1000.0
    status = "success" if success else "failed"
    incr("upload_jobs_total", status=status)
    observe_ms("upload_job_latency_ms", duration_ms, status=status)
    log_stage(
        job_id=job_id,
        stage=tracker.current,
        event="COMPLETED" if success else "FAILED",
        user=request.user_ref,
        error=None if success else str(error),
        page_count=page_count,
        pages_uploaded=len(outcomes),
        duration_ms=round(duration_ms, 1),
    )

    if unexpected is not None:
        raise unexpected

    return UploadJobResult(
        job_id=job_id,
        success=success,
        page_count=page_count,
        outcomes=outcomes,
        error=error,
        stages=list(tracker.history),
    )
