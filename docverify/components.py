"""Wiring of vendor clients and engines from configuration."""

from dataclasses import dataclass

import requests

from docverify.extraction.gemini_client import GeminiClient
from docverify.ocr.document_ai import DocumentAIClient
from docverify.ocr.token_provider import AccessTokenProvider
from docverify.onboarding.processor import OnboardingProcessor
from docverify.utils.config import AppConfig, Secrets, load_config, load_secrets
from docverify.validation.cross_reference import CrossReferenceEngine
from docverify.validation.verifier import DocumentVerifier


@dataclass
class Components:
    """Ready-to-use processing components sharing one HTTP session."""

    config: AppConfig
    verifier: DocumentVerifier
    cross_reference: CrossReferenceEngine
    onboarding: OnboardingProcessor


def build_components(
    config: AppConfig | None = None,
    secrets: Secrets | None = None,
    session: requests.Session | None = None,
) -> Components:
    """Construct every component from config and environment secrets.

    Args:
        config: Application config. Loaded from YAML if omitted.
        secrets: Vendor credentials. Read from the environment if omitted.
        session: HTTP session shared by all vendor clients.

    Returns:
        Wired components.
    """
    config = config or load_config()
    secrets = secrets or load_secrets(config)
    session = session or requests.Session()

    token_provider = AccessTokenProvider(
        secrets.service_account_key, config.auth, session
    )
    extractor = DocumentAIClient(token_provider, config.document_ai, session)
    gemini = GeminiClient(secrets.gemini_api_key, config.gemini, session)
    verifier = DocumentVerifier(extractor, gemini)

    return Components(
        config=config,
        verifier=verifier,
        cross_reference=CrossReferenceEngine(verifier, config.batch.max_workers),
        onboarding=OnboardingProcessor(gemini, config.auto_verify),
    )
