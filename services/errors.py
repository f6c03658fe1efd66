# User value: This file gives every pipeline failure a clear code so callers can tell what went wrong.
from typing import Optional


class PipelineError(Exception):
    error_code = "PIPELINE_ERROR"
    http_status = 500
    message = "SFTP upload failed"

    def __init__(self, details: str = "", *, message: Optional[str] = None):
        super().__init__(details or message or self.message)
        self.details = details
        if message:
            self.message = message

    def to_body(self) -> dict:
        body = {
            "success": False,
            "error": self.message,
            "errorCode": self.error_code,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PipelineError):
    error_code = "VALIDATION_ERROR"
    http_status = 400
    message = "Missing required fields"


class MalformedDocumentError(PipelineError):
    error_code = "MALFORMED_DOCUMENT"
    http_status = 422
    message = "PDF document could not be read"


class AllocationError(PipelineError):
    error_code = "ALLOCATION_FAILED"
    http_status = 502
    message = "Failed to allocate sequence identifier"


class TemplateError(PipelineError):
    error_code = "TEMPLATE_ERROR"
    http_status = 422
    message = "Payload could not be rendered"


class TransferError(PipelineError):
    error_code = "TRANSFER_FAILED"
    http_status = 502
    message = "SFTP upload failed"

    def __init__(self, details: str = "", *, stage: str = "", message: Optional[str] = None):
        super().__init__(details, message=message)
        self.stage = stage


class AuditWriteError(PipelineError):
    # Never leaves services.audit_log.
    error_code = "AUDIT_WRITE_FAILED"
    message = "Audit entry could not be written"
