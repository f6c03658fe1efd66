from fastapi import APIRouter, HTTPException

import config
from services import redis_client

router = APIRouter(prefix="/health", tags=["health"])


def _uses_redis() -> bool:
    return "redis" in (config.SEQUENCE_BACKEND, config.AUDIT_BACKEND)


@router.get("")
def health():
    if not _uses_redis():
        return {"status": "OK", "redis": "not_configured"}
    try:
        latency_ms = redis_client.ping()
    except Exception as exc:
        raise HTTPException(
            status_code=503,
            detail={"error_code": "REDIS_UNAVAILABLE", "error_message": f"{exc.__class__.__name__}: {exc}"},
        ) from exc
    return {
        "status": "OK",
        "redis": "connected",
        "redis_latency_ms": latency_ms,
    }
