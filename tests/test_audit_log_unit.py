# User value: This test checks that audit writes never break an upload, even when the store is down.
import json
import unittest
from unittest.mock import MagicMock, patch

import redis
import requests

from services.audit_log import (
    AuditLogEntry,
    AuditLogger,
    NullAuditStore,
    RedisAuditStore,
    RestAuditStore,
    build_audit_logger,
)
from services.errors import AuditWriteError
from services.http_client import get_http_session


def _entry(**overrides):
    values = dict(status="success", page_count=2, user_ref="u-1", first_page_identifier=10, job_id="job-1")
    values.update(overrides)
    return AuditLogEntry(**values)


class AuditLoggerUnitTests(unittest.TestCase):
    def test_record_passes_full_record_to_store(self):
        store = MagicMock()
        AuditLogger(store).record(_entry(error_message=None))
        record = store.insert.call_args.args[0]
        for key in (
            "user_ref",
            "classification_ref",
            "original_filename",
            "page_count",
            "status",
            "error_message",
            "payload_snapshot",
            "first_page_identifier",
            "created_at",
        ):
            self.assertIn(key, record)
        self.assertEqual(record["first_page_identifier"], 10)

    def test_store_failure_is_swallowed(self):
        store = MagicMock()
        store.insert.side_effect = AuditWriteError("store down")
        AuditLogger(store).record(_entry())

    def test_unexpected_store_exception_is_swallowed(self):
        store = MagicMock()
        store.insert.side_effect = RuntimeError("boom")
        AuditLogger(store).record(_entry(status="failed", error_message="x"))


class RedisAuditStoreUnitTests(unittest.TestCase):
    def test_insert_appends_json_document(self):
        client = MagicMock()
        RedisAuditStore(client, "audit").insert(_entry().to_record())
        key, raw = client.rpush.call_args.args
        self.assertEqual(key, "audit")
        self.assertEqual(json.loads(raw)["status"], "success")

    def test_redis_error_becomes_audit_write_error(self):
        client = MagicMock()
        client.rpush.side_effect = redis.ConnectionError("down")
        with self.assertRaises(AuditWriteError):
            RedisAuditStore(client, "audit").insert({})


class RestAuditStoreUnitTests(unittest.TestCase):
    def test_insert_posts_row_to_table(self):
        session = MagicMock()
        store = RestAuditStore("https://store.example/", "key", "upload_audit_log", timeout=2, session=session)
        store.insert({"status": "failed"})
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://store.example/rest/v1/upload_audit_log")
        self.assertEqual(kwargs["json"], {"status": "failed"})
        self.assertEqual(kwargs["headers"]["apikey"], "key")

    def test_http_error_becomes_audit_write_error(self):
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("401")
        store = RestAuditStore("https://store.example", "key", "t", session=session)
        with self.assertRaises(AuditWriteError):
            store.insert({})


class BuildAuditLoggerUnitTests(unittest.TestCase):
    def test_disabled_backend_uses_null_store(self):
        with patch("services.audit_log.config.AUDIT_BACKEND", "none"):
            audit_logger = build_audit_logger()
        self.assertIsInstance(audit_logger.store, NullAuditStore)

    def test_feature_flag_off_uses_null_store(self):
        with patch("services.audit_log.is_audit_log_enabled", return_value=False):
            audit_logger = build_audit_logger()
        self.assertIsInstance(audit_logger.store, NullAuditStore)

    def test_rest_backend(self):
        with patch("services.audit_log.config.AUDIT_BACKEND", "rest"), patch(
            "services.audit_log.config.METADATA_STORE_URL", "https://store.example"
        ):
            audit_logger = build_audit_logger()
        self.assertIsInstance(audit_logger.store, RestAuditStore)

    def test_rest_backend_reuses_shared_http_session_across_jobs(self):
        with patch("services.audit_log.config.AUDIT_BACKEND", "rest"), patch(
            "services.audit_log.config.METADATA_STORE_URL", "https://store.example"
        ):
            first = build_audit_logger()
            second = build_audit_logger()
        self.assertIs(first.store.session, second.store.session)
        self.assertIs(first.store.session, get_http_session())


if __name__ == "__main__":
    unittest.main()
