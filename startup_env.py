import logging
import os
from typing import List

logger = logging.getLogger("api.startup")

_BOOL_VALUES = {"1", "0", "true", "false", "yes", "no", "on", "off"}

BOOL_FLAG_KEYS = (
    "FEATURE_AUDIT_LOG",
    "FEATURE_SINGLE_PAGE_PASSTHROUGH",
)

TIMEOUT_KEYS = (
    "SFTP_CONNECT_TIMEOUT_SEC",
    "SFTP_IO_TIMEOUT_SEC",
    "ALLOCATOR_TIMEOUT_SEC",
    "AUDIT_TIMEOUT_SEC",
)


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _validate_redis_url(value: str | None, key: str, errors: List[str]) -> None:
    if _is_blank(value):
        errors.append(f"{key} is required")
        return
    if not (value.startswith("redis://") or value.startswith("rediss://")):
        errors.append(f"{key} must start with redis:// or rediss://")


def _validate_http_url(value: str | None, key: str, errors: List[str]) -> None:
    if _is_blank(value):
        errors.append(f"{key} is required")
        return
    if not (value.startswith("http://") or value.startswith("https://")):
        errors.append(f"{key} must start with http:// or https://")


def _validate_bool_flag_env(key: str, errors: List[str]) -> None:
    raw = os.getenv(key)
    if _is_blank(raw):
        return
    if str(raw).strip().lower() not in _BOOL_VALUES:
        errors.append(f"{key} must be one of {sorted(_BOOL_VALUES)}")


def _validate_timeout_env(key: str, errors: List[str]) -> None:
    raw = os.getenv(key)
    if _is_blank(raw):
        return
    try:
        value = float(raw)
    except ValueError:
        errors.append(f"{key} must be a number of seconds")
        return
    if value < 0:
        errors.append(f"{key} must not be negative")


def _validate_cors_allow_origins(value: str | None, errors: List[str], warnings: List[str]) -> None:
    if _is_blank(value):
        warnings.append("CORS_ALLOW_ORIGINS is not set; browser callers will be rejected")
        return

    origins = [x.strip() for x in str(value).split(",") if x.strip()]
    for origin in origins:
        if origin == "*":
            errors.append("CORS_ALLOW_ORIGINS must not contain '*' in strict allowlist mode")
            continue
        if not (origin.startswith("http://") or origin.startswith("https://")):
            errors.append(f"CORS origin must start with http:// or https://: {origin}")


def validate_startup_env() -> None:
    errors: List[str] = []
    warnings: List[str] = []

    sequence_backend = (os.getenv("SEQUENCE_BACKEND") or "redis").strip().lower()
    audit_backend = (os.getenv("AUDIT_BACKEND") or "redis").strip().lower()

    if sequence_backend not in ("redis", "rpc"):
        errors.append(f"SEQUENCE_BACKEND must be redis or rpc, got {sequence_backend}")
    if audit_backend not in ("redis", "rest", "none"):
        errors.append(f"AUDIT_BACKEND must be redis, rest or none, got {audit_backend}")

    if "redis" in (sequence_backend, audit_backend):
        _validate_redis_url(os.getenv("REDIS_URL", "redis://localhost:6379/0"), "REDIS_URL", errors)

    if sequence_backend == "rpc":
        _validate_http_url(os.getenv("SEQUENCE_RPC_URL"), "SEQUENCE_RPC_URL", errors)

    if audit_backend == "rest":
        _validate_http_url(os.getenv("METADATA_STORE_URL"), "METADATA_STORE_URL", errors)

    # the rpc allocator and the rest audit store share one service key
    if (sequence_backend == "rpc" or audit_backend == "rest") and _is_blank(os.getenv("METADATA_STORE_KEY")):
        errors.append("METADATA_STORE_KEY is required for rpc/rest backends")

    for key in BOOL_FLAG_KEYS:
        _validate_bool_flag_env(key, errors)
    for key in TIMEOUT_KEYS:
        _validate_timeout_env(key, errors)

    _validate_cors_allow_origins(os.getenv("CORS_ALLOW_ORIGINS"), errors, warnings)

    if audit_backend == "none":
        warnings.append("AUDIT_BACKEND=none; job outcomes are only visible in process logs")

    if errors:
        for err in errors:
            logger.error("startup_env_invalid %s", err)
        raise RuntimeError("Startup env validation failed: " + "; ".join(errors))

    for warning in warnings:
        logger.warning("startup_env_warning %s", warning)

    logger.info(
        "startup_env_validated sequence_backend=%s audit_backend=%s",
        sequence_backend,
        audit_backend,
    )
