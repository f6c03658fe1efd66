# User value: This test checks identifier allocation so no two pages ever share an identifier.
import unittest
from unittest.mock import MagicMock, patch

import redis
import requests

from schemas.job_contract import IDENTIFIER_SOURCE_ALLOCATOR, IDENTIFIER_SOURCE_OVERRIDE
from services.errors import AllocationError
from services.sequence_allocator import (
    RedisSequenceAllocator,
    RpcSequenceAllocator,
    allocate_page_identifier,
    build_sequence_allocator,
    coerce_identifier,
)
from services.http_client import close_http_session, get_http_session


def _rpc_with_response(value=None, *, status_error=None, post_error=None):
    session = MagicMock()
    if post_error is not None:
        session.post.side_effect = post_error
    resp = MagicMock()
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    resp.json.return_value = value
    session.post.return_value = resp
    return RpcSequenceAllocator("https://store.example/rest/v1/rpc/get_next_id", api_key="k", timeout=3, session=session), session


class CoerceIdentifierUnitTests(unittest.TestCase):
    def test_accepts_positive_int_and_digit_string(self):
        self.assertEqual(coerce_identifier(42), 42)
        self.assertEqual(coerce_identifier(" 17 "), 17)

    def test_rejects_invalid_values(self):
        for bad in (0, -3, 3.5, None, "abc", "\u00b2", "12a", True, {"id": 1}):
            with self.subTest(value=bad):
                with self.assertRaises(AllocationError):
                    coerce_identifier(bad)


class RedisSequenceAllocatorUnitTests(unittest.TestCase):
    def test_allocate_uses_incr_on_key(self):
        client = MagicMock()
        client.incr.side_effect = [100, 101]
        allocator = RedisSequenceAllocator(client, "seq")
        self.assertEqual(allocator.allocate(), 100)
        self.assertEqual(allocator.allocate(), 101)
        client.incr.assert_called_with("seq")
        self.assertEqual(client.incr.call_count, 2)

    def test_redis_error_becomes_allocation_error(self):
        client = MagicMock()
        client.incr.side_effect = redis.ConnectionError("down")
        with self.assertRaises(AllocationError) as ctx:
            RedisSequenceAllocator(client, "seq").allocate()
        self.assertIn("down", str(ctx.exception))

    def test_non_positive_value_is_rejected(self):
        client = MagicMock()
        client.incr.return_value = 0
        with self.assertRaises(AllocationError):
            RedisSequenceAllocator(client, "seq").allocate()


class RpcSequenceAllocatorUnitTests(unittest.TestCase):
    def test_allocate_posts_without_body_and_returns_integer(self):
        allocator, session = _rpc_with_response(12)
        self.assertEqual(allocator.allocate(), 12)
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://store.example/rest/v1/rpc/get_next_id")
        self.assertEqual(kwargs["headers"]["apikey"], "k")
        self.assertEqual(kwargs["timeout"], 3)
        self.assertNotIn("json", kwargs)

    def test_http_error_becomes_allocation_error(self):
        allocator, _ = _rpc_with_response(status_error=requests.HTTPError("500 Server Error"))
        with self.assertRaises(AllocationError):
            allocator.allocate()

    def test_timeout_becomes_allocation_error(self):
        allocator, _ = _rpc_with_response(post_error=requests.Timeout("slow"))
        with self.assertRaises(AllocationError):
            allocator.allocate()

    def test_invalid_json_becomes_allocation_error(self):
        allocator, session = _rpc_with_response()
        session.post.return_value.json.side_effect = ValueError("Expecting value")
        with self.assertRaises(AllocationError):
            allocator.allocate()

    def test_non_integer_payload_is_rejected(self):
        allocator, _ = _rpc_with_response({"next": 5})
        with self.assertRaises(AllocationError):
            allocator.allocate()

    def test_superscript_digit_payload_is_rejected(self):
        allocator, _ = _rpc_with_response("\u00b2")
        with self.assertRaises(AllocationError):
            allocator.allocate()


class BuildSequenceAllocatorUnitTests(unittest.TestCase):
    def test_rpc_backend_reuses_shared_http_session(self):
        with patch("services.sequence_allocator.config.SEQUENCE_BACKEND", "rpc"), patch(
            "services.sequence_allocator.config.SEQUENCE_RPC_URL", "https://store.example/rest/v1/rpc/get_next_id"
        ):
            first = build_sequence_allocator()
            second = build_sequence_allocator()
        self.assertIsInstance(first, RpcSequenceAllocator)
        self.assertIs(first.session, second.session)
        self.assertIs(first.session, get_http_session())

    def test_closing_shared_session_starts_a_fresh_one(self):
        before = get_http_session()
        close_http_session()
        after = get_http_session()
        self.assertIsNot(before, after)
        self.assertIs(after, get_http_session())


class AllocatePageIdentifierUnitTests(unittest.TestCase):
    def test_override_used_for_first_page_without_remote_call(self):
        allocator = MagicMock()
        ident, source = allocate_page_identifier(allocator, page_index=0, override=777)
        self.assertEqual((ident, source), (777, IDENTIFIER_SOURCE_OVERRIDE))
        allocator.allocate.assert_not_called()

    def test_override_ignored_for_later_pages(self):
        allocator = MagicMock()
        allocator.allocate.return_value = 900
        ident, source = allocate_page_identifier(allocator, page_index=1, override=777)
        self.assertEqual((ident, source), (900, IDENTIFIER_SOURCE_ALLOCATOR))
        allocator.allocate.assert_called_once_with()

    def test_first_page_allocates_when_no_override(self):
        allocator = MagicMock()
        allocator.allocate.return_value = 5
        self.assertEqual(allocate_page_identifier(allocator, page_index=0)[0], 5)


if __name__ == "__main__":
    unittest.main()
