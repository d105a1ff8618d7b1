"""Thin client for the Gemini ``generateContent`` endpoint."""

import re
from dataclasses import dataclass

import requests

from docverify.utils.config import GeminiConfig
from docverify.utils.exceptions import ConfigurationError, VendorError
from docverify.utils.http import error_message, post_with_retry
from docverify.utils.logger import get_logger

logger = get_logger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


@dataclass
class InlineData:
    """Base64 payload sent alongside the prompt (e.g. an image)."""

    mime_type: str
    data: str


def strip_data_url(image_base64: str) -> str:
    """Drop a ``data:image/...;base64,`` prefix if present."""
    return _DATA_URL_PREFIX.sub("", image_base64)


class GeminiClient:
    """Sends prompts (and optional inline files) to a Gemini model.

    Args:
        api_key: Generative-AI API key, passed as the ``key`` query
            parameter.
        config: Endpoint, model and generation defaults.
        session: HTTP session; a new one is created if omitted.
    """

    def __init__(
        self,
        api_key: str | None,
        config: GeminiConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.config = config or GeminiConfig()
        self.session = session or requests.Session()

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def generate(
        self,
        prompt: str,
        inline_data: InlineData | None = None,
        model: str | None = None,
        max_output_tokens: int | None = None,
        temperature: float | None = None,
        response_mime_type: str | None = None,
    ) -> str:
        """Run one generation and return the first candidate's text.

        Args:
            prompt: Prompt text.
            inline_data: Optional Base64 file sent as a second part.
            model: Model name. Defaults to the verification model.
            max_output_tokens: Output token budget.
            temperature: Sampling temperature.
            response_mime_type: Reply format to request, e.g.
                ``"application/json"``.

        Returns:
            Text of the first part of the first candidate, or ``""``.

        Raises:
            ConfigurationError: If no API key is configured.
            VendorError: On a non-2xx reply.
        """
        if not self.api_key:
            raise ConfigurationError(
                f"{self.config.api_key_env} environment variable not set"
            )

        parts: list[dict] = [{"text": prompt}]
        if inline_data is not None:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": inline_data.mime_type,
                        "data": inline_data.data,
                    }
                }
            )

        model_name = model or self.config.verification_model
        body = {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": (
                    self.config.temperature if temperature is None else temperature
                ),
                "maxOutputTokens": max_output_tokens or self.config.max_output_tokens,
            },
        }
        if response_mime_type:
            body["generationConfig"]["responseMimeType"] = response_mime_type

        response = post_with_retry(
            self.session,
            f"{self.config.endpoint}/models/{model_name}:generateContent",
            vendor="Gemini",
            timeout=self.config.timeout_s,
            attempts=1,
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            json=body,
        )

        if not response.ok:
            message = error_message(response)
            logger.error(
                "Gemini %s returned %d: %s", model_name, response.status_code, message
            )
            raise VendorError(
                f"Gemini error: {message}",
                status_code=response.status_code,
                vendor="Gemini",
            )

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Gemini %s returned a non-JSON body", model_name)
            return ""
        return _first_text(payload)


def _first_text(payload: dict) -> str:
    try:
        return payload["candidates"][0]["content"]["parts"][0].get("text") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""
