# User value: This file keeps the upload contract stable so callers know exactly what lands on the remote server.
CONTRACT_VERSION = "2026-10-19-sftp-pages-01"

PAYLOAD_FORMAT_XML = "xml"
PAYLOAD_FORMAT_JSON = "json"
PAYLOAD_FORMATS = (PAYLOAD_FORMAT_XML, PAYLOAD_FORMAT_JSON)
DEFAULT_PAYLOAD_FORMAT = PAYLOAD_FORMAT_XML

PLACEHOLDER_TOKEN = "{{PARSEIT_ID_PLACEHOLDER}}"
LEGACY_PLACEHOLDER_TOKEN = "{{PARSE_IT_ID_PLACEHOLDER}}"
PLACEHOLDER_TOKENS = (PLACEHOLDER_TOKEN, LEGACY_PLACEHOLDER_TOKEN)

PDF_EXTENSION = "pdf"

STAGE_VALIDATING = "VALIDATING"
STAGE_CONNECTING = "CONNECTING"
STAGE_ENSURING_DIRECTORIES = "ENSURING_DIRECTORIES"
STAGE_UPLOADING_PAGE = "UPLOADING_PAGE"
STAGE_DISCONNECTING = "DISCONNECTING"
STAGE_LOGGING_OUTCOME = "LOGGING_OUTCOME"
STAGE_DONE = "DONE"
STAGE_FAILED = "FAILED"

JOB_STAGES = (
    STAGE_VALIDATING,
    STAGE_CONNECTING,
    STAGE_ENSURING_DIRECTORIES,
    STAGE_UPLOADING_PAGE,
    STAGE_DISCONNECTING,
    STAGE_LOGGING_OUTCOME,
    STAGE_DONE,
    STAGE_FAILED,
)

TERMINAL_STAGES = (STAGE_DONE, STAGE_FAILED)

AUDIT_STATUS_SUCCESS = "success"
AUDIT_STATUS_FAILED = "failed"
AUDIT_STATUSES = (AUDIT_STATUS_SUCCESS, AUDIT_STATUS_FAILED)

IDENTIFIER_SOURCE_ALLOCATOR = "allocator"
IDENTIFIER_SOURCE_OVERRIDE = "override"

ERROR_CODES = (
    "VALIDATION_ERROR",
    "MALFORMED_DOCUMENT",
    "ALLOCATION_FAILED",
    "TEMPLATE_ERROR",
    "TRANSFER_FAILED",
    "INTERNAL_SERVER_ERROR",
)

RESULT_FIELDS = (
    "page",
    "identifier",
    "filename",
    "paths",
)


def payload_extension(payload_format: str) -> str:
    return PAYLOAD_FORMAT_JSON if payload_format == PAYLOAD_FORMAT_JSON else PAYLOAD_FORMAT_XML
