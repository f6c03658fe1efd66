# User value: This file gives every uploaded page its own identifier so downstream systems never mix pages up.
import logging
import time
from typing import Any, Optional, Protocol

import redis
import requests

import config
from schemas.job_contract import IDENTIFIER_SOURCE_ALLOCATOR, IDENTIFIER_SOURCE_OVERRIDE
from services.errors import AllocationError
from services.http_client import get_http_session
from utils.metrics import incr, observe_ms

logger = logging.getLogger("api.sequence")


class SequenceAllocator(Protocol):
    def allocate(self) -> int:
        ...


# User value: rejects anything that is not a usable positive identifier.
def coerce_identifier(value: Any) -> int:
    if isinstance(value, bool):
        raise AllocationError(f"Allocator returned a boolean: {value!r}")
    if isinstance(value, int):
        ident = value
    elif isinstance(value, str) and value.strip().isdecimal():
        ident = int(value.strip())
    else:
        raise AllocationError(f"Allocator returned a non-integer value: {value!r}")
    if ident <= 0:
        raise AllocationError(f"Allocator returned a non-positive value: {ident}")
    return ident


class RedisSequenceAllocator:
    """Atomic counter backed by Redis INCR; one round trip per identifier."""

    def __init__(self, client: redis.Redis, key: str):
        self.client = client
        self.key = key

    def allocate(self) -> int:
        started = time.perf_counter()
        try:
            value = self.client.incr(self.key)
        except redis.RedisError as exc:
            incr("sequence_allocations_total", backend="redis", outcome="error")
            raise AllocationError(f"Redis INCR failed: {exc.__class__.__name__}: {exc}") from exc
        ident = coerce_identifier(value)
        observe_ms("sequence_allocation_latency_ms", (time.perf_counter() - started) * 1000.0, backend="redis")
        incr("sequence_allocations_total", backend="redis", outcome="ok")
        return ident


class RpcSequenceAllocator:
    """Calls a remote procedure that takes no input and returns the next integer."""

    def __init__(self, url: str, api_key: str = "", timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout or None
        self.session = session or get_http_session()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    def allocate(self) -> int:
        started = time.perf_counter()
        try:
            resp = self.session.post(self.url, headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            value = resp.json()
        except requests.RequestException as exc:
            incr("sequence_allocations_total", backend="rpc", outcome="error")
            raise AllocationError(f"Allocator RPC failed: {exc.__class__.__name__}: {exc}") from exc
        except ValueError as exc:
            incr("sequence_allocations_total", backend="rpc", outcome="error")
            raise AllocationError(f"Allocator RPC returned invalid JSON: {exc}") from exc
        ident = coerce_identifier(value)
        observe_ms("sequence_allocation_latency_ms", (time.perf_counter() - started) * 1000.0, backend="rpc")
        incr("sequence_allocations_total", backend="rpc", outcome="ok")
        return ident


# User value: lets an upstream step reserve page one's identifier without minting a second one.
def allocate_page_identifier(
    allocator: SequenceAllocator,
    *,
    page_index: int,
    override: Optional[int] = None,
) -> tuple[int, str]:
    if page_index == 0 and override is not None:
        logger.info("sequence_override_used page=%s identifier=%s", page_index, override)
        return override, IDENTIFIER_SOURCE_OVERRIDE
    ident = allocator.allocate()
    logger.info("sequence_allocated page=%s identifier=%s", page_index, ident)
    return ident, IDENTIFIER_SOURCE_ALLOCATOR


def build_sequence_allocator() -> SequenceAllocator:
    if config.SEQUENCE_BACKEND == "rpc":
        return RpcSequenceAllocator(
            config.SEQUENCE_RPC_URL,
            api_key=config.METADATA_STORE_KEY,
            timeout=config.ALLOCATOR_TIMEOUT_SEC,
        )

    from services.redis_client import get_redis_client

    return RedisSequenceAllocator(get_redis_client(), config.SEQUENCE_REDIS_KEY)
