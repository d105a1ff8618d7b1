"""Configuration management for the document verification service.

Vendor endpoints, model names, timeouts and decision thresholds are
loaded from YAML with defaults; secrets come from the environment and
are handed to components at construction time.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "DOCVERIFY_CONFIG"
DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class AuthConfig(BaseModel):
    """Service-account token exchange settings."""

    token_uri: str = "https://oauth2.googleapis.com/token"
    scope: str = "https://www.googleapis.com/auth/cloud-platform"
    token_lifetime_s: int = 3600
    credential_env: str = "GOOGLE_SERVICE_ACCOUNT_KEY"
    timeout_s: float = 15.0
    retry_attempts: int = 3


class DocumentAIConfig(BaseModel):
    """Document AI (OCR vendor) endpoint settings."""

    endpoint: str = "https://us-documentai.googleapis.com/v1"
    form_processor: str = (
        "projects/155785088759/locations/us/processors/ee9a8694c07404ef"
    )
    ocr_processor: str = (
        "projects/155785088759/locations/us/processors/e5a9a8c6bb7762ca"
    )
    timeout_s: float = 60.0
    retry_attempts: int = 3


class GeminiConfig(BaseModel):
    """Generative-AI endpoint settings."""

    endpoint: str = "https://generativelanguage.googleapis.com/v1beta"
    verification_model: str = "gemini-2.5-pro"
    vision_model: str = "gemini-2.5-flash"
    temperature: float = 0.1
    max_output_tokens: int = 1024
    classification_max_tokens: int = 512
    api_key_env: str = "GOOGLE_GENERATIVE_AI_API_KEY"
    timeout_s: float = 60.0


class AutoVerifyConfig(BaseModel):
    """Thresholds for letting an onboarding document skip manual review."""

    min_confidence: float = 0.85
    min_field_ratio: float = 0.5


class BatchConfig(BaseModel):
    """Multi-document verification settings."""

    max_workers: int = 1


class ServerConfig(BaseModel):
    """API server bind settings."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    auth: AuthConfig = Field(default_factory=AuthConfig)
    document_ai: DocumentAIConfig = Field(default_factory=DocumentAIConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    auto_verify: AutoVerifyConfig = Field(default_factory=AutoVerifyConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


class Secrets(BaseModel):
    """Credentials resolved from the environment."""

    service_account_key: str | None = None
    gemini_api_key: str | None = None


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file. Defaults to the
            path in ``DOCVERIFY_CONFIG``, then configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path(os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()


def load_secrets(config: AppConfig, environ: dict | None = None) -> Secrets:
    """Read vendor credentials from the environment.

    Empty values are treated as absent.

    Args:
        config: Application configuration naming the variables.
        environ: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        Resolved secrets.
    """
    env = os.environ if environ is None else environ
    return Secrets(
        service_account_key=env.get(config.auth.credential_env) or None,
        gemini_api_key=env.get(config.gemini.api_key_env) or None,
    )
