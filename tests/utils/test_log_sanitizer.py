"""Tests for log sanitization filter.

Tests verify that emails, admin secrets and provider keys are redacted
from log messages.
"""

import logging
from io import StringIO

import pytest

from challenge_tracker.utils.log_sanitizer import (
    LogSanitizationFilter,
    install_log_sanitizer,
    sanitize_string,
)


class TestLogSanitizationFilter:
    """Test cases for LogSanitizationFilter."""

    @pytest.fixture
    def sanitizer(self) -> LogSanitizationFilter:
        return LogSanitizationFilter()

    def test_redacts_brevo_key(self, sanitizer: LogSanitizationFilter) -> None:
        text = "Using key xkeysib-" + "a1b2c3d4" * 4
        result = sanitizer._sanitize(text)
        assert "xkeysib-a1b2" not in result
        assert "[REDACTED_BREVO_KEY]" in result

    def test_redacts_bearer_token(self, sanitizer: LogSanitizationFilter) -> None:
        result = sanitizer._sanitize("Authorization: Bearer s3cr3t-admin-token")
        assert "s3cr3t-admin-token" not in result

    def test_redacts_password_field(self, sanitizer: LogSanitizationFilter) -> None:
        result = sanitizer._sanitize("login attempt password=hunter2")
        assert "hunter2" not in result
        assert "password=[REDACTED]" in result

    def test_redacts_token_field(self, sanitizer: LogSanitizationFilter) -> None:
        result = sanitizer._sanitize("admin_token: abc123def")
        assert "abc123def" not in result

    def test_redacts_email(self, sanitizer: LogSanitizationFilter) -> None:
        result = sanitizer._sanitize("Sent created email to jane.doe@example.com")
        assert "jane.doe@example.com" not in result
        assert "[REDACTED_EMAIL]" in result

    def test_leaves_plain_messages_alone(self, sanitizer: LogSanitizationFilter) -> None:
        text = "Logged 25 Push-ups for challenge 1234 on 2025-01-15"
        assert sanitizer._sanitize(text) == text

    def test_sanitizes_format_args(self, sanitizer: LogSanitizationFilter) -> None:
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname=__file__, lineno=1,
            msg="email %s count %d", args=("bob@example.com", 3), exc_info=None,
        )
        assert sanitizer.filter(record) is True
        assert record.args == ("[REDACTED_EMAIL]", 3)

    def test_sanitize_string_helper(self) -> None:
        assert "[REDACTED_EMAIL]" in sanitize_string("to a@b.io")


class TestInstallLogSanitizer:

    def test_installs_on_named_logger(self) -> None:
        logger = logging.getLogger("challenge_tracker.tests.sanitizer")
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
        try:
            install_log_sanitizer("challenge_tracker.tests.sanitizer")
            logger.info("Sending link to someone@example.org")
        finally:
            logger.removeHandler(handler)
            logger.filters.clear()

        output = stream.getvalue()
        assert "someone@example.org" not in output
        assert "[REDACTED_EMAIL]" in output
