"""Tests for application logging setup."""

import logging

import pytest

from challenge_tracker import main
from challenge_tracker.utils.log_sanitizer import LogSanitizationFilter


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    yield root
    for target in [root, *root.handlers]:
        for f in list(target.filters):
            if isinstance(f, LogSanitizationFilter):
                target.removeFilter(f)


class TestConfigureLogging:

    def test_redacts_records_from_child_loggers(self, root_logger, caplog):
        caplog.set_level(logging.INFO)
        main.configure_logging("INFO")

        logging.getLogger("challenge_tracker.services.notifier").info(
            "Sent created email for challenge abc to alice@example.com"
        )

        assert "alice@example.com" not in caplog.text
        assert "[REDACTED_EMAIL]" in caplog.text

    def test_repeated_setup_installs_one_filter(self, root_logger, caplog):
        main.configure_logging("INFO")
        main.configure_logging("DEBUG")

        for target in [root_logger, *root_logger.handlers]:
            installed = [f for f in target.filters if isinstance(f, LogSanitizationFilter)]
            assert len(installed) == 1
