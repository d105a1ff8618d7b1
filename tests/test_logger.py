"""Tests for the logging setup module."""

import logging

from docverify.utils.logger import (
    HANDLER_NAME,
    SecretRedactingFilter,
    get_logger,
    redact,
    setup_logging,
)


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("DEBUG")
        assert len(root.handlers) >= 1
        assert root.level == logging.DEBUG

        root.handlers.clear()

    def test_setup_idempotent(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("INFO")
        count = len(root.handlers)
        setup_logging("INFO")
        assert len(root.handlers) == count

        root.handlers.clear()

    def test_setup_invalid_level_defaults_to_info(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("NONEXISTENT")
        assert root.level == logging.INFO

        root.handlers.clear()

    def test_http_client_loggers_capped(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("DEBUG")
        assert logging.getLogger("urllib3").level == logging.WARNING

        root.handlers.clear()

    def test_second_call_applies_new_level(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("INFO")
        setup_logging("DEBUG")
        assert root.level == logging.DEBUG
        assert [h.get_name() for h in root.handlers] == [HANDLER_NAME]

        root.handlers.clear()

    def test_handler_redacts_secrets(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("INFO")
        (handler,) = root.handlers
        assert any(isinstance(f, SecretRedactingFilter) for f in handler.filters)

        root.handlers.clear()


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        assert get_logger("test.same") is get_logger("test.same")


class TestRedaction:
    """Tests for credential scrubbing."""

    def test_query_key(self) -> None:
        url = "https://x.test/models/m:generateContent?key=AIzaSecret123&alt=json"
        assert redact(url) == (
            "https://x.test/models/m:generateContent?key=[REDACTED]&alt=json"
        )

    def test_bearer_token(self) -> None:
        assert redact("Authorization: Bearer ya29.a0Af-xyz") == (
            "Authorization: Bearer [REDACTED]"
        )

    def test_assertion(self) -> None:
        body = "grant_type=urn%3Ajwt-bearer&assertion=eyJhbGciOi.eyJpc3Mi.sig"
        assert redact(body).endswith("assertion=[REDACTED]")

    def test_plain_text_untouched(self) -> None:
        assert redact("Extracting document (application/pdf)") == (
            "Extracting document (application/pdf)"
        )

    def test_filter_rewrites_formatted_record(self) -> None:
        record = logging.LogRecord(
            "urllib3", logging.DEBUG, __file__, 1, "GET %s", ("/v1?key=abc",), None
        )
        assert SecretRedactingFilter().filter(record) is True
        assert record.getMessage() == "GET /v1?key=[REDACTED]"

    def test_filter_leaves_clean_record(self) -> None:
        record = logging.LogRecord(
            "docverify", logging.INFO, __file__, 1, "Scanned %s", ("sec",), None
        )
        SecretRedactingFilter().filter(record)
        assert record.args == ("sec",)
