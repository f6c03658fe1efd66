# User value: This file leaves a trace of every upload job so support can see what happened to a document.
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

import redis
import requests

import config
from services.errors import AuditWriteError
from services.feature_flags import is_audit_log_enabled
from services.http_client import get_http_session
from utils.metrics import incr

logger = logging.getLogger("api.audit")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AuditLogEntry:
    status: str
    page_count: int
    user_ref: Optional[str] = None
    classification_ref: Optional[str] = None
    original_filename: Optional[str] = None
    error_message: Optional[str] = None
    payload_snapshot: Optional[str] = None
    first_page_identifier: Optional[int] = None
    job_id: Optional[str] = None
    request_id: Optional[str] = None
    created_at: str = field(default_factory=_utc_now)

    def to_record(self) -> dict:
        return asdict(self)


class AuditStore(Protocol):
    def insert(self, record: dict) -> None:
        ...


class NullAuditStore:
    def insert(self, record: dict) -> None:
        logger.debug("audit_store_disabled job_id=%s", record.get("job_id"))


class RedisAuditStore:
    """Append-only list of JSON documents."""

    def __init__(self, client: redis.Redis, key: str):
        self.client = client
        self.key = key

    def insert(self, record: dict) -> None:
        try:
            self.client.rpush(self.key, json.dumps(record, ensure_ascii=False))
        except redis.RedisError as exc:
            raise AuditWriteError(f"{exc.__class__.__name__}: {exc}") from exc


class RestAuditStore:
    """Inserts one row through a PostgREST-style endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.api_key = api_key
        self.timeout = timeout or None
        self.session = session or get_http_session()

    def insert(self, record: dict) -> None:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }
        try:
            resp = self.session.post(self.url, headers=headers, json=record, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise AuditWriteError(f"{exc.__class__.__name__}: {exc}") from exc


class AuditLogger:
    def __init__(self, store: AuditStore):
        self.store = store

    def record(self, entry: AuditLogEntry) -> None:
        """Write ``entry``; failures are logged and swallowed."""
        try:
            self.store.insert(entry.to_record())
        except Exception as exc:
            incr("audit_writes_total", outcome="error")
            logger.warning(
                "audit_write_failed job_id=%s status=%s error=%s: %s",
                entry.job_id,
                entry.status,
                exc.__class__.__name__,
                exc,
            )
            return
        incr("audit_writes_total", outcome="ok")
        logger.info("audit_written job_id=%s status=%s", entry.job_id, entry.status)


def build_audit_logger() -> AuditLogger:
    if not is_audit_log_enabled() or config.AUDIT_BACKEND == "none":
        return AuditLogger(NullAuditStore())
    if config.AUDIT_BACKEND == "rest":
        return AuditLogger(
            RestAuditStore(
                config.METADATA_STORE_URL,
                config.METADATA_STORE_KEY,
                config.AUDIT_TABLE,
                timeout=config.AUDIT_TIMEOUT_SEC,
            )
        )

    from services.redis_client import get_redis_client

    return AuditLogger(RedisAuditStore(get_redis_client(), config.AUDIT_REDIS_KEY))
