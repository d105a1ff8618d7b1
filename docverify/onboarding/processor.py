"""Onboarding document classification, extraction and auto-decision.

Uses Gemini vision to decide what kind of document an uploaded image
is, then extracts that category's fields and decides whether the
document can skip manual review.
"""

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from docverify.extraction.gemini_client import GeminiClient, InlineData, strip_data_url
from docverify.extraction.json_reply import parse_embedded_json
from docverify.utils.config import AutoVerifyConfig
from docverify.utils.exceptions import VendorError
from docverify.utils.logger import get_logger

from .document_types import DOCUMENT_CLASSIFICATION_PROMPT, get_doc_config

logger = get_logger(__name__)

EXTRACTED_FIELD_CONFIDENCE = 0.9
UNKNOWN_TYPE = "unknown"


class AutoAction(StrEnum):
    """What happens to an onboarding document after processing."""

    AUTO_APPROVED = "auto_approved"
    FLAGGED = "flagged"
    PENDING_REVIEW = "pending_review"


@dataclass
class ClassificationResult:
    """Detected category of a document image."""

    document_type: str
    confidence: float
    detected_text: str | None = None


@dataclass
class FieldExtractionResult:
    """Fields extracted for one category."""

    success: bool
    document_type: str
    extracted_data: dict[str, Any] = field(default_factory=dict)
    confidence_scores: dict[str, float] = field(default_factory=dict)
    error: str | None = None


@dataclass
class AutoVerifyDecision:
    """Outcome of the auto-verification gate."""

    can_auto_verify: bool
    reason: str


@dataclass
class ProcessedDocument:
    """Full onboarding processing outcome for one image."""

    classification: ClassificationResult
    extraction: FieldExtractionResult
    points: int
    decision: AutoVerifyDecision
    action: AutoAction


def _is_filled(value: Any) -> bool:
    return value is not None


def can_auto_verify(
    extraction: FieldExtractionResult,
    classification: ClassificationResult,
    config: AutoVerifyConfig | None = None,
) -> AutoVerifyDecision:
    """Decide whether a document may skip manual review.

    Requires classification confidence of at least ``min_confidence``,
    a successful extraction of a known category, and at least
    ``ceil(expected * min_field_ratio)`` of the category's fields filled.
    Both thresholds are inclusive.
    """
    config = config or AutoVerifyConfig()

    if classification.confidence < config.min_confidence:
        return AutoVerifyDecision(False, "Low classification confidence")

    if not extraction.success:
        return AutoVerifyDecision(False, "Extraction failed")

    doc_config = get_doc_config(classification.document_type)
    if doc_config is None:
        return AutoVerifyDecision(False, "Unknown document type")

    expected = len(doc_config.extractable_fields)
    filled = sum(
        1
        for name in doc_config.extractable_fields
        if _is_filled(extraction.extracted_data.get(name))
    )
    # 10 * 0.7 == 7.000000000000001
    required = math.ceil(round(expected * config.min_field_ratio, 9))
    if filled < required:
        return AutoVerifyDecision(False, "Too few fields extracted")

    return AutoVerifyDecision(True, "All checks passed")


def choose_action(
    decision: AutoVerifyDecision, extraction: FieldExtractionResult
) -> AutoAction:
    """Map the gate outcome to what happens next."""
    if decision.can_auto_verify:
        return AutoAction.AUTO_APPROVED
    if decision.reason in ("Extraction failed", "Unknown document type"):
        return AutoAction.FLAGGED
    if not extraction.success:
        return AutoAction.FLAGGED
    return AutoAction.PENDING_REVIEW


def _coerce_confidence(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return max(0.0, min(1.0, number))


class OnboardingProcessor:
    """Classifies and extracts onboarding documents with Gemini vision.

    Args:
        gemini: Gemini client (API key required).
        auto_verify: Thresholds for the auto-verification gate.
    """

    def __init__(
        self, gemini: GeminiClient, auto_verify: AutoVerifyConfig | None = None
    ) -> None:
        self.gemini = gemini
        self.auto_verify = auto_verify or AutoVerifyConfig()

    def _vision_call(self, prompt: str, image_base64: str, max_tokens: int) -> str:
        return self.gemini.generate(
            prompt,
            inline_data=InlineData("image/jpeg", strip_data_url(image_base64)),
            model=self.gemini.config.vision_model,
            max_output_tokens=max_tokens,
        )

    def classify(self, image_base64: str) -> ClassificationResult:
        """Classify an image into a document category.

        Returns the ``("unknown", 0.0)`` sentinel when the reply holds no
        parseable JSON object.

        Raises:
            ConfigurationError: If no Gemini key is configured.
            VendorError: If the classification call fails.
        """
        reply = self._vision_call(
            DOCUMENT_CLASSIFICATION_PROMPT,
            image_base64,
            self.gemini.config.classification_max_tokens,
        )
        parsed = parse_embedded_json(reply)
        if not parsed.ok:
            logger.warning("Classification reply unparseable: %s", parsed.error)
            return ClassificationResult(UNKNOWN_TYPE, 0.0)

        data = parsed.data
        detected = data.get("detected_text")
        result = ClassificationResult(
            document_type=str(data.get("document_type") or UNKNOWN_TYPE),
            confidence=_coerce_confidence(data.get("confidence")),
            detected_text=str(detected) if detected else None,
        )
        logger.info(
            "Classified document as %s (%.2f)", result.document_type, result.confidence
        )
        return result

    def extract_fields(
        self, image_base64: str, document_type: str
    ) -> FieldExtractionResult:
        """Extract a category's fields from an image.

        Failures are reported in the result rather than raised, except a
        missing API key.
        """
        doc_config = get_doc_config(document_type)
        if doc_config is None:
            return FieldExtractionResult(
                success=False,
                document_type=document_type,
                error=f"Unknown document type: {document_type}",
            )

        try:
            reply = self._vision_call(
                doc_config.ai_prompt,
                image_base64,
                self.gemini.config.max_output_tokens,
            )
        except VendorError as exc:
            logger.error("Gemini extraction error: %s", exc)
            return FieldExtractionResult(
                success=False,
                document_type=document_type,
                error="Failed to extract data from document",
            )

        parsed = parse_embedded_json(reply)
        if not parsed.ok:
            error = (
                "Could not extract data from document"
                if parsed.error == "No JSON object in reply"
                else "Invalid data format from AI"
            )
            return FieldExtractionResult(
                success=False, document_type=document_type, error=error
            )

        extracted = parsed.data
        scores = {
            name: EXTRACTED_FIELD_CONFIDENCE
            for name in doc_config.extractable_fields
            if _is_filled(extracted.get(name))
        }
        return FieldExtractionResult(
            success=True,
            document_type=document_type,
            extracted_data=extracted,
            confidence_scores=scores,
        )

    def process(
        self, image_base64: str, hint_type: str | None = None
    ) -> ProcessedDocument:
        """Classify (unless a valid hint is given), extract and decide.

        Args:
            image_base64: Base64 image, optionally as a data URL.
            hint_type: Category the uploader claims; trusted with
                confidence 1.0 when it is a known key.

        Returns:
            Classification, extraction, points and the auto decision.
        """
        if hint_type and get_doc_config(hint_type) is not None:
            classification = ClassificationResult(hint_type, 1.0)
        else:
            classification = self.classify(image_base64)

        extraction = self.extract_fields(image_base64, classification.document_type)
        doc_config = get_doc_config(classification.document_type)
        points = doc_config.points if doc_config else 0

        decision = can_auto_verify(extraction, classification, self.auto_verify)
        action = choose_action(decision, extraction)
        logger.info(
            "Processed %s document: %s (%s)",
            classification.document_type,
            action.value,
            decision.reason,
        )
        return ProcessedDocument(
            classification=classification,
            extraction=extraction,
            points=points,
            decision=decision,
            action=action,
        )
