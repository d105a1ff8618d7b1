"""Centralized logging setup for the verification service.

All modules log through named loggers under one stdout handler on the
root logger. Vendor credentials travel in URLs and headers, so the
handler scrubs API keys and bearer tokens from every record it emits.
Chatty HTTP client loggers are capped at WARNING.
"""

import logging
import re
import sys

HANDLER_NAME = "docverify"
REDACTED = "[REDACTED]"

_NOISY_LOGGERS = ("urllib3", "httpx", "multipart")

_SECRET_PATTERNS = (
    re.compile(r"([?&]key=)[^&\s'\"]+"),
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"(assertion=)[^&\s'\"]+"),
)


def redact(text: str) -> str:
    """Mask API keys, bearer tokens and JWT assertions in ``text``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(rf"\g<1>{REDACTED}", text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Rewrite records so credentials never reach the log output."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        scrubbed = redact(message)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = None
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a standard format.

    The handler is installed only when the root logger has none yet.
    The level is applied on every call, so a config loaded after start-up
    still takes effect.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handler.addFilter(SecretRedactingFilter())
        root.addHandler(handler)

    root.setLevel(numeric_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)
