# User value: This file lets operators switch pipeline behavior safely without code changes.
import os


# User value: supports _flag so rollout switches read the same way everywhere.
def _flag(name: str, default: bool = False) -> bool:
    raw = str(os.getenv(name, "1" if default else "0")).strip().lower()
    return raw in {"1", "true", "yes", "on"}


FEATURE_AUDIT_LOG = _flag("FEATURE_AUDIT_LOG", True)
FEATURE_SINGLE_PAGE_PASSTHROUGH = _flag("FEATURE_SINGLE_PAGE_PASSTHROUGH", True)


# User value: keeps job outcomes traceable in the metadata store unless explicitly disabled.
def is_audit_log_enabled() -> bool:
    return FEATURE_AUDIT_LOG


# User value: ships one-page sources untouched so the remote copy matches what the user sent.
def is_single_page_passthrough_enabled() -> bool:
    return FEATURE_SINGLE_PAGE_PASSTHROUGH
