"""
test_logging_config.py — Tests for app/logging_config.py

Verifies Loguru setup driven by settings, stdlib interception, request
context binding and masking of sensitive values. Uses loguru sink capture for
assertions.

Called by: pytest
Depends on: app/logging_config.py
"""

import logging
from unittest.mock import patch

import pytest
from loguru import logger

from app.config import settings
from app.logging_config import redact, setup_logging


@pytest.fixture(autouse=True)
def _clean_loguru():
    """Remove all handlers before/after each test for isolation."""
    logger.remove()
    yield
    logger.remove()


def test_setup_logging_adds_handler():
    assert len(logger._core.handlers) == 0
    setup_logging(json_logs=False)
    assert len(logger._core.handlers) > 0


def test_stdlib_logging_intercepted():
    """After setup, stdlib logging.getLogger() messages go through Loguru."""
    setup_logging()

    # Add test sink AFTER setup (setup calls logger.remove() internally)
    messages = []
    logger.add(lambda m: messages.append(str(m)), format="{message}")

    logging.getLogger("test.intercept").warning("intercepted message")

    assert any("intercepted message" in m for m in messages)


def test_log_level_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "log_level", "warning")
    setup_logging()

    messages = []
    logger.add(lambda m: messages.append(str(m)), level="WARNING", format="{message}")

    logger.debug("should be filtered")
    logger.warning("should appear")

    assert any("should appear" in m for m in messages)
    assert not any("should be filtered" in m for m in messages)


def test_request_id_defaults_to_dash():
    setup_logging()
    records = []
    logger.add(lambda m: records.append(m.record), format="{message}")
    logger.info("no request")
    assert records[-1]["extra"]["request_id"] == "-"


def test_context_binding():
    """logger.contextualize() adds fields to log records."""
    records = []
    logger.add(lambda m: records.append(m.record), format="{message}")

    with logger.contextualize(request_id="abc12345"):
        logger.info("request log")

    assert records[-1]["extra"].get("request_id") == "abc12345"


def test_context_not_leaked():
    records = []
    logger.add(lambda m: records.append(m.record), format="{message}")

    with logger.contextualize(request_id="abc12345"):
        logger.info("inside")
    logger.info("outside")

    assert records[-1]["extra"].get("request_id") != "abc12345"


def test_production_mode_uses_serialize(monkeypatch):
    """environment=production switches to JSON lines."""
    monkeypatch.setattr(settings, "environment", "production")
    with patch("loguru.logger.add") as mock_add:
        setup_logging()
    assert mock_add.call_args.kwargs.get("serialize") is True


def test_bound_secrets_are_masked():
    setup_logging()
    records = []
    logger.add(lambda m: records.append(m.record), format="{message}")
    logger.bind(email="a@b.org", password="hunter2").info("sign-in attempt")
    assert records[-1]["extra"]["password"] == "[REDACTED]"
    assert records[-1]["extra"]["email"] == "a@b.org"


class TestRedact:
    def test_masks_sensitive_keys(self):
        out = redact({"email": "a@b.org", "password": "pw", "resetToken": "t", "Authorization": "Bearer x"})
        assert out == {
            "email": "a@b.org",
            "password": "[REDACTED]",
            "resetToken": "[REDACTED]",
            "Authorization": "[REDACTED]",
        }

    def test_nested(self):
        out = redact({"user": {"name": "Kofi", "session_cookie": "abc"}, "items": [{"client_secret": "s"}]})
        assert out["user"] == {"name": "Kofi", "session_cookie": "[REDACTED]"}
        assert out["items"] == [{"client_secret": "[REDACTED]"}]

    def test_scalars_untouched(self):
        assert redact("plain") == "plain"
        assert redact(None) is None

    def test_does_not_mutate_input(self):
        payload = {"password": "pw"}
        redact(payload)
        assert payload == {"password": "pw"}
