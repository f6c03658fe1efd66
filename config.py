import os
from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: str) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return float(default)


REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

SEQUENCE_BACKEND = os.environ.get("SEQUENCE_BACKEND", "redis").strip().lower()
SEQUENCE_REDIS_KEY = os.environ.get("SEQUENCE_REDIS_KEY", "sequence:parseit_id")
SEQUENCE_RPC_URL = os.environ.get("SEQUENCE_RPC_URL", "")

METADATA_STORE_URL = os.environ.get("METADATA_STORE_URL", "")
METADATA_STORE_KEY = os.environ.get("METADATA_STORE_KEY", "")

AUDIT_BACKEND = os.environ.get("AUDIT_BACKEND", "redis").strip().lower()
AUDIT_TABLE = os.environ.get("AUDIT_TABLE", "upload_audit_log")
AUDIT_REDIS_KEY = os.environ.get("AUDIT_REDIS_KEY", "upload_audit_log")

SFTP_CONNECT_TIMEOUT_SEC = _float_env("SFTP_CONNECT_TIMEOUT_SEC", "30")
SFTP_IO_TIMEOUT_SEC = _float_env("SFTP_IO_TIMEOUT_SEC", "0")
ALLOCATOR_TIMEOUT_SEC = _float_env("ALLOCATOR_TIMEOUT_SEC", "10")
AUDIT_TIMEOUT_SEC = _float_env("AUDIT_TIMEOUT_SEC", "5")

SEQUENCE_BACKENDS = ("redis", "rpc")
AUDIT_BACKENDS = ("redis", "rest", "none")
