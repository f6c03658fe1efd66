# User value: This file verifies feature-flag and startup checks so a bad deploy fails loudly instead of uploading wrongly.
import importlib
import os
import unittest
from unittest.mock import patch

import startup_env


class FeatureFlagsUnitTests(unittest.TestCase):
    def setUp(self):
        self._old = os.environ.get("FEATURE_AUDIT_LOG")

    def tearDown(self):
        if self._old is None:
            os.environ.pop("FEATURE_AUDIT_LOG", None)
        else:
            os.environ["FEATURE_AUDIT_LOG"] = self._old
        import services.feature_flags as ff

        importlib.reload(ff)

    def test_audit_flag_enabled_by_default(self):
        os.environ.pop("FEATURE_AUDIT_LOG", None)
        import services.feature_flags as ff

        ff = importlib.reload(ff)
        self.assertTrue(ff.is_audit_log_enabled())

    def test_audit_flag_disabled(self):
        os.environ["FEATURE_AUDIT_LOG"] = "0"
        import services.feature_flags as ff

        ff = importlib.reload(ff)
        self.assertFalse(ff.is_audit_log_enabled())

    def test_validate_bool_flag_env_rejects_invalid(self):
        errors = []
        os.environ["FEATURE_AUDIT_LOG"] = "maybe"
        startup_env._validate_bool_flag_env("FEATURE_AUDIT_LOG", errors)
        self.assertTrue(errors)
        self.assertIn("FEATURE_AUDIT_LOG must be one of", errors[0])


class StartupEnvUnitTests(unittest.TestCase):
    def test_defaults_are_valid(self):
        with patch.dict(os.environ, {}, clear=True):
            startup_env.validate_startup_env()

    def test_rpc_backend_requires_url_and_key(self):
        with patch.dict(os.environ, {"SEQUENCE_BACKEND": "rpc"}, clear=True):
            with self.assertRaises(RuntimeError) as ctx:
                startup_env.validate_startup_env()
        self.assertIn("SEQUENCE_RPC_URL is required", str(ctx.exception))
        self.assertIn("METADATA_STORE_KEY is required", str(ctx.exception))

    def test_rest_audit_backend_valid_config(self):
        env = {
            "AUDIT_BACKEND": "rest",
            "METADATA_STORE_URL": "https://store.example",
            "METADATA_STORE_KEY": "k",
        }
        with patch.dict(os.environ, env, clear=True):
            startup_env.validate_startup_env()

    def test_unknown_backend_and_bad_timeout_are_reported(self):
        env = {"AUDIT_BACKEND": "kafka", "SFTP_CONNECT_TIMEOUT_SEC": "soon"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(RuntimeError) as ctx:
                startup_env.validate_startup_env()
        message = str(ctx.exception)
        self.assertIn("AUDIT_BACKEND", message)
        self.assertIn("SFTP_CONNECT_TIMEOUT_SEC", message)

    def test_wildcard_cors_is_rejected(self):
        with patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": "*"}, clear=True):
            with self.assertRaises(RuntimeError):
                startup_env.validate_startup_env()


if __name__ == "__main__":
    unittest.main()
