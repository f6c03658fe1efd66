import logging
import time

import redis

import config

# ---------------------------------------------------------
# LOGGING
# ---------------------------------------------------------
logger = logging.getLogger("api.redis")

# ---------------------------------------------------------
# LAZY CLIENT
# ---------------------------------------------------------
_client = None


def get_redis_client() -> redis.Redis:
    global _client
    if _client is not None:
        return _client

    logger.info("[REDIS] Initializing Redis client")
    _client = redis.Redis.from_url(
        config.REDIS_URL,
        decode_responses=True,
        socket_keepalive=True,
        socket_connect_timeout=config.ALLOCATOR_TIMEOUT_SEC or None,
        socket_timeout=config.ALLOCATOR_TIMEOUT_SEC or None,
    )
    return _client


# ---------------------------------------------------------
# CONNECTION DIAGNOSTICS
# ---------------------------------------------------------
def ping() -> int:
    """Ping Redis and return the round trip in milliseconds."""
    t0 = time.time()
    get_redis_client().ping()
    ms = int((time.time() - t0) * 1000)
    logger.info(f"[REDIS] ping ok latency={ms}ms")
    return ms
