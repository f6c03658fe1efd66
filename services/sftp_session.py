# -*- coding: utf-8 -*-

import io
import logging
import posixpath
import socket
from typing import Iterable, Optional

import paramiko

import config
from services.errors import TransferError

logger = logging.getLogger("api.sftp")

_TRANSPORT_ERRORS = (paramiko.SSHException, socket.error, EOFError, OSError)


def remote_path(directory: str, filename: str) -> str:
    return posixpath.join(directory or "/", filename)


def _intermediate_paths(path: str) -> list[str]:
    """'/a/b/c' -> ['/a', '/a/b', '/a/b/c']; relative paths stay relative."""
    normalized = posixpath.normpath(path.strip())
    absolute = normalized.startswith("/")
    parts = [p for p in normalized.split("/") if p and p != "."]
    out = []
    current = "/" if absolute else ""
    for part in parts:
        current = posixpath.join(current, part) if current else part
        out.append(current)
    return out


class SftpSession:
    """One authenticated SFTP connection, owned by a single job."""

    def __init__(self, ssh: paramiko.SSHClient, sftp: paramiko.SFTPClient, host: str):
        self._ssh = ssh
        self._sftp = sftp
        self.host = host
        self.closed = False

    # =========================================================
    # CONNECT
    # =========================================================
    @classmethod
    def open(
        cls,
        *,
        host: str,
        port: int,
        username: str,
        password: Optional[str],
        connect_timeout: float = 30.0,
        io_timeout: float = 0.0,
    ) -> "SftpSession":
        ssh = paramiko.SSHClient()
        ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        timeout = connect_timeout or None
        try:
            ssh.connect(
                hostname=host,
                port=int(port or 22),
                username=username,
                password=password,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
                look_for_keys=False,
                allow_agent=False,
            )
            sftp = ssh.open_sftp()
            if io_timeout:
                sftp.get_channel().settimeout(io_timeout)
        except paramiko.AuthenticationException as exc:
            ssh.close()
            raise TransferError(f"Authentication rejected by {host}: {exc}", stage="connect") from exc
        except _TRANSPORT_ERRORS as exc:
            ssh.close()
            raise TransferError(f"Connection to {host}:{port} failed: {exc}", stage="connect") from exc

        logger.info("sftp_connected host=%s port=%s", host, port)
        return cls(ssh, sftp, host)

    # =========================================================
    # DIRECTORIES (IDEMPOTENT, RECURSIVE)
    # =========================================================
    def _exists(self, path: str) -> bool:
        try:
            self._sftp.stat(path)
            return True
        except FileNotFoundError:
            return False
        except IOError as exc:
            if getattr(exc, "errno", None) == 2:
                return False
            raise

    def ensure_directory(self, path: str) -> None:
        for segment in _intermediate_paths(path):
            if segment == "/":
                continue
            try:
                if self._exists(segment):
                    continue
                self._sftp.mkdir(segment)
            except IOError as exc:
                # another job may have created it between stat and mkdir
                try:
                    if self._exists(segment):
                        continue
                except _TRANSPORT_ERRORS:
                    pass
                raise TransferError(f"Could not create directory {segment}: {exc}", stage="mkdir") from exc
            except _TRANSPORT_ERRORS as exc:
                raise TransferError(f"Could not create directory {segment}: {exc}", stage="mkdir") from exc

    def ensure_directories(self, paths: Iterable[str]) -> None:
        seen = set()
        for path in paths:
            if not path or path in seen:
                continue
            seen.add(path)
            self.ensure_directory(path)
        logger.info("sftp_directories_verified count=%s", len(seen))

    # =========================================================
    # UPLOAD (OVERWRITES)
    # =========================================================
    def upload(self, data: bytes, path: str) -> str:
        try:
            self._sftp.putfo(io.BytesIO(data), path)
        except _TRANSPORT_ERRORS as exc:
            raise TransferError(f"Upload to {path} failed: {exc}", stage="upload") from exc
        logger.info("sftp_uploaded path=%s size_bytes=%s", path, len(data))
        return path

    # =========================================================
    # CLOSE
    # =========================================================
    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        errors = []
        for name, closer in (("sftp", self._sftp.close), ("ssh", self._ssh.close)):
            try:
                closer()
            except Exception as exc:
                errors.append(f"{name}: {exc}")
        if errors:
            raise TransferError("Close failed: " + "; ".join(errors), stage="close")
        logger.info("sftp_closed host=%s", self.host)


def open_session(target) -> SftpSession:
    return SftpSession.open(
        host=target.host,
        port=target.port,
        username=target.username,
        password=target.password,
        connect_timeout=config.SFTP_CONNECT_TIMEOUT_SEC,
        io_timeout=config.SFTP_IO_TIMEOUT_SEC,
    )
