"""Structured extraction through the Document AI form parser.

Sends a document to the vendor's synchronous ``:process`` endpoint and
flattens the reply into raw text, page count, form fields and entities.
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Literal

import requests

from docverify.utils.config import DocumentAIConfig
from docverify.utils.exceptions import VendorError
from docverify.utils.http import error_message, post_with_retry
from docverify.utils.logger import get_logger

from .token_provider import AccessTokenProvider

logger = get_logger(__name__)

ProcessorType = Literal["form", "ocr"]


@dataclass
class FormField:
    """A key/value pair detected by the form parser."""

    field_name: str
    field_value: str
    confidence: float = 0.0


@dataclass
class Entity:
    """A typed entity mention reported by the vendor."""

    type: str
    mention_text: str
    confidence: float = 0.0


@dataclass
class ExtractionResult:
    """Flattened OCR output for one document."""

    text: str
    page_count: int
    entities: list[Entity] = field(default_factory=list)
    form_fields: list[FormField] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize fields and entities for ``raw_data`` payloads."""
        return {
            "formFields": [
                {
                    "fieldName": f.field_name,
                    "fieldValue": f.field_value,
                    "confidence": f.confidence,
                }
                for f in self.form_fields
            ],
            "entities": [
                {
                    "type": e.type,
                    "mentionText": e.mention_text,
                    "confidence": e.confidence,
                }
                for e in self.entities
            ],
        }


def resolve_text_anchor(full_text: str, anchor: dict | None) -> str:
    """Concatenate the slices of ``full_text`` referenced by a text anchor.

    Offsets may arrive as strings; a missing ``startIndex`` means 0.

    Args:
        full_text: Complete document text from the vendor.
        anchor: ``textAnchor`` object with ``textSegments``.

    Returns:
        The referenced text, or an empty string when there are no segments.
    """
    segments = (anchor or {}).get("textSegments") or []
    parts: list[str] = []
    for seg in segments:
        start = int(seg.get("startIndex") or 0)
        end = int(seg.get("endIndex") or 0)
        parts.append(full_text[start:end])
    return "".join(parts)


def _layout_text(full_text: str, layout: dict | None) -> str:
    """Return inline anchor content if present, else resolve the offsets."""
    anchor = (layout or {}).get("textAnchor") or {}
    content = anchor.get("content")
    if content:
        return content
    return resolve_text_anchor(full_text, anchor)


def parse_document(document: dict) -> ExtractionResult:
    """Flatten a vendor ``document`` object into an ExtractionResult.

    Args:
        document: The ``document`` member of a process response.

    Returns:
        Normalized extraction result.
    """
    text = document.get("text") or ""
    pages = document.get("pages") or []

    form_fields: list[FormField] = []
    for page in pages:
        for raw_field in page.get("formFields") or []:
            name = _layout_text(text, raw_field.get("fieldName"))
            value = _layout_text(text, raw_field.get("fieldValue"))
            if name or value:
                form_fields.append(
                    FormField(
                        field_name=name.strip(),
                        field_value=value.strip(),
                        confidence=float(
                            (raw_field.get("fieldValue") or {}).get("confidence") or 0
                        ),
                    )
                )

    entities = [
        Entity(
            type=e.get("type") or "",
            mention_text=e.get("mentionText") or "",
            confidence=float(e.get("confidence") or 0),
        )
        for e in document.get("entities") or []
    ]

    return ExtractionResult(
        text=text,
        page_count=len(pages),
        entities=entities,
        form_fields=form_fields,
    )


class DocumentAIClient:
    """Client for the Document AI ``process`` endpoint.

    Args:
        token_provider: Source of bearer tokens; asked once per call.
        config: Endpoint and processor settings.
        session: HTTP session; a new one is created if omitted.
    """

    def __init__(
        self,
        token_provider: AccessTokenProvider,
        config: DocumentAIConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.token_provider = token_provider
        self.config = config or DocumentAIConfig()
        self.session = session or requests.Session()

    def processor_url(self, processor: ProcessorType) -> str:
        """Build the ``:process`` URL for the selected processor."""
        name = (
            self.config.form_processor
            if processor == "form"
            else self.config.ocr_processor
        )
        return f"{self.config.endpoint}/{name}:process"

    def extract(
        self,
        content: bytes | str,
        mime_type: str = "application/pdf",
        processor: ProcessorType = "form",
    ) -> ExtractionResult:
        """Run a document through the vendor and normalize the reply.

        Args:
            content: Raw document bytes, or a string already Base64-encoded.
            mime_type: MIME type of the document.
            processor: ``"form"`` for the form parser, ``"ocr"`` for plain OCR.

        Returns:
            Extraction result with text, pages, fields and entities.

        Raises:
            ConfigurationError: If no service-account credential is set.
            AuthError: If no access token could be obtained.
            VendorError: If the vendor replies with a non-2xx status.
        """
        token = self.token_provider.get_token()
        encoded = (
            content
            if isinstance(content, str)
            else base64.b64encode(content).decode("ascii")
        )

        response = post_with_retry(
            self.session,
            self.processor_url(processor),
            vendor="Document AI",
            timeout=self.config.timeout_s,
            attempts=self.config.retry_attempts,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            json={"rawDocument": {"content": encoded, "mimeType": mime_type}},
        )

        if not response.ok:
            message = error_message(response)
            logger.error(
                "Document AI returned %d: %s", response.status_code, message
            )
            raise VendorError(
                f"Document AI error: {message}",
                status_code=response.status_code,
                vendor="Document AI",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Document AI returned a non-JSON body: %s", exc)
            raise VendorError(
                "Document AI error: response was not JSON",
                status_code=response.status_code,
                vendor="Document AI",
            ) from exc
        if not isinstance(payload, dict):
            payload = {}

        result = parse_document(payload.get("document") or {})
        logger.info(
            "Extracted %d chars, %d pages, %d form fields",
            len(result.text),
            result.page_count,
            len(result.form_fields),
        )
        return result
