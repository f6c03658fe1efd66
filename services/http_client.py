import logging

import requests

# ---------------------------------------------------------
# LOGGING
# ---------------------------------------------------------
logger = logging.getLogger("api.http")

# ---------------------------------------------------------
# LAZY SESSION
# ---------------------------------------------------------
_session = None


def get_http_session() -> requests.Session:
    """One pooled session shared by the allocator RPC and the audit store."""
    global _session
    if _session is not None:
        return _session

    logger.info("[HTTP] Initializing shared requests session")
    _session = requests.Session()
    return _session


def close_http_session() -> None:
    global _session
    if _session is None:
        return
    _session.close()
    _session = None
