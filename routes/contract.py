# User value: This file lets callers discover the upload contract instead of guessing it.
from fastapi import APIRouter

import config
from schemas.job_contract import (
    CONTRACT_VERSION,
    DEFAULT_PAYLOAD_FORMAT,
    ERROR_CODES,
    JOB_STAGES,
    PAYLOAD_FORMATS,
    PLACEHOLDER_TOKENS,
    RESULT_FIELDS,
    TERMINAL_STAGES,
)
from services.feature_flags import is_audit_log_enabled, is_single_page_passthrough_enabled
from utils.metrics import snapshot

router = APIRouter()


@router.get("/contract/upload-job")
# User value: keeps request/response fields consistent across every caller.
def upload_job_contract():
    return {
        "contract_version": CONTRACT_VERSION,
        "payload_formats": list(PAYLOAD_FORMATS),
        "default_payload_format": DEFAULT_PAYLOAD_FORMAT,
        "placeholder_tokens": list(PLACEHOLDER_TOKENS),
        "job_stages": list(JOB_STAGES),
        "terminal_stages": list(TERMINAL_STAGES),
        "error_codes": list(ERROR_CODES),
        "result_fields": list(RESULT_FIELDS),
        "filename_pattern": "{baseFilename}_{identifier}.{ext}",
        "result_filename": "{baseFilename}_{identifier}.pdf",
        "capabilities": {
            "audit_log_enabled": is_audit_log_enabled(),
            "single_page_passthrough_enabled": is_single_page_passthrough_enabled(),
            "sequence_backend": config.SEQUENCE_BACKEND,
            "audit_backend": config.AUDIT_BACKEND,
        },
    }


@router.get("/contract/metrics")
# User value: shows job and page counters so operators can see throughput without a metrics stack.
def metrics_snapshot():
    return snapshot()
