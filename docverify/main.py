"""Application entry point for the Document Verification API server."""

import uvicorn

from docverify.api.app import app
from docverify.utils.config import AppConfig, load_config, load_secrets
from docverify.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _warn_missing_secrets(config: AppConfig) -> None:
    secrets = load_secrets(config)
    if secrets.service_account_key is None:
        logger.warning(
            "%s is not set: document verification and onboarding OCR will fail",
            config.auth.credential_env,
        )
    if secrets.gemini_api_key is None:
        logger.warning(
            "%s is not set: verification uses pattern extraction and scans "
            "are disabled",
            config.gemini.api_key_env,
        )


def main() -> None:
    """Start the API server with bind address and log level from config."""
    config = load_config()
    setup_logging(config.log_level)
    _warn_missing_secrets(config)

    logger.info("Starting API server on %s:%d", config.server.host, config.server.port)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
