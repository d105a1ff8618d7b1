"""Business-document verification.

Runs a document through Document AI, then asks Gemini to interpret the
extracted text into identity fields and a judgement (valid, suspicious
or unreadable). Degrades to a regex fallback when no Gemini key is set,
and to a low-confidence result when the Gemini call fails.

Also offers a quick scan that identifies a document straight from the
file, using OCR text as extra context when Document AI succeeds.
"""

import base64
import json
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from docverify.extraction.gemini_client import GeminiClient, InlineData
from docverify.extraction.json_reply import parse_fenced_json
from docverify.extraction.pattern_extractor import PatternExtractor
from docverify.ocr.document_ai import DocumentAIClient, ExtractionResult
from docverify.utils.exceptions import (
    ConfigurationError,
    DocverifyError,
    VendorError,
)
from docverify.utils.logger import get_logger

logger = get_logger(__name__)

MAX_PROMPT_TEXT_CHARS = 4000
MAX_PROMPT_FIELDS_CHARS = 2000
DEFAULT_CONFIDENCE = 0.5
DEGRADED_CONFIDENCE = 0.6
AI_UNAVAILABLE_ISSUE = "AI analysis unavailable — manual review recommended"
MAX_SCAN_TEXT_CHARS = 3000
MAX_SCAN_FIELDS_CHARS = 1000


class DocumentStatus(StrEnum):
    """Per-document verdict."""

    VALID = "valid"
    SUSPICIOUS = "suspicious"
    UNREADABLE = "unreadable"


BUSINESS_DOCUMENT_TYPES: tuple[str, ...] = (
    "SEC Certificate",
    "BIR Certificate (Form 2303)",
    "DTI Registration",
    "Business Permit",
    "Authority to Operate",
    "NBI Clearance",
    "other",
)


@dataclass(frozen=True)
class VerificationResult:
    """Verification outcome for one submitted document."""

    document_type: str
    extracted_text: str
    confidence: float
    status: DocumentStatus
    company_name: str | None = None
    registration_number: str | None = None
    tin_number: str | None = None
    date_issued: str | None = None
    expiry_date: str | None = None
    issuing_authority: str | None = None
    issues: tuple[str, ...] = ()
    raw_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def unreadable(cls, document_type: str, reason: str) -> "VerificationResult":
        """Build the placeholder result for a document that failed outright."""
        return cls(
            document_type=document_type,
            extracted_text="",
            confidence=0.0,
            status=DocumentStatus.UNREADABLE,
            issues=(f"Failed to process: {reason}",),
        )


def build_verification_prompt(
    extraction: ExtractionResult,
    expected_type: str | None = None,
    agency_name: str | None = None,
) -> str:
    """Assemble the verification prompt for one extracted document.

    Args:
        extraction: OCR output for the document.
        expected_type: Document type the caller expects, if known.
        agency_name: Company name the document should belong to.

    Returns:
        Prompt text.
    """
    fields_text = "\n".join(
        f"{f.field_name}: {f.field_value}" for f in extraction.form_fields
    )[:MAX_PROMPT_FIELDS_CHARS]
    type_enum = " | ".join(f'"{t}"' for t in BUSINESS_DOCUMENT_TYPES)
    expected_name = f"EXPECTED COMPANY NAME: {agency_name}" if agency_name else ""
    expected_kind = (
        f"EXPECTED DOCUMENT TYPE: {expected_type}" if expected_type else ""
    )

    return f"""You are a document verification specialist for Philippine business documents. Analyze this extracted text from a scanned document and return a JSON object.

EXTRACTED TEXT:
{extraction.text[:MAX_PROMPT_TEXT_CHARS]}

FORM FIELDS DETECTED:
{fields_text}

{expected_name}
{expected_kind}

Return ONLY a valid JSON object (no markdown, no code blocks):
{{
  "documentType": {type_enum},
  "companyName": "extracted company name or null",
  "registrationNumber": "extracted registration/certificate number or null",
  "tinNumber": "extracted TIN number or null",
  "dateIssued": "YYYY-MM-DD or null",
  "expiryDate": "YYYY-MM-DD or null",
  "issuingAuthority": "issuing government body or null",
  "confidence": 0.0 to 1.0,
  "status": "valid" | "suspicious" | "unreadable",
  "issues": ["list of any concerns, e.g. 'company name mismatch', 'document appears expired'"],
  "keyFindings": "brief summary of what was found in the document"
}}"""


def _optional_str(value: Any) -> str | None:
    if value is None or value == "" or value is False:
        return None
    return str(value).strip() or None


def _confidence(value: Any) -> float:
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(number) or number <= 0:
        return DEFAULT_CONFIDENCE
    return min(number, 1.0)


def _status(value: Any) -> DocumentStatus:
    try:
        return DocumentStatus(str(value).lower()) if value else DocumentStatus.VALID
    except ValueError:
        logger.warning("Unrecognized status %r from model, treating as valid", value)
        return DocumentStatus.VALID


def _issues(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(issue) for issue in value if issue)


def result_from_analysis(
    analysis: dict[str, Any],
    extraction: ExtractionResult,
    expected_type: str | None = None,
) -> VerificationResult:
    """Map a (possibly partial) model analysis onto a VerificationResult.

    Every missing or falsy field falls back to its default; the function
    never raises on model output.
    """
    raw_data = extraction.to_dict()
    raw_data["geminiAnalysis"] = analysis
    return VerificationResult(
        document_type=(
            _optional_str(analysis.get("documentType")) or expected_type or "unknown"
        ),
        company_name=_optional_str(analysis.get("companyName")),
        registration_number=_optional_str(analysis.get("registrationNumber")),
        tin_number=_optional_str(analysis.get("tinNumber")),
        date_issued=_optional_str(analysis.get("dateIssued")),
        expiry_date=_optional_str(analysis.get("expiryDate")),
        issuing_authority=_optional_str(analysis.get("issuingAuthority")),
        extracted_text=extraction.text,
        confidence=_confidence(analysis.get("confidence")),
        status=_status(analysis.get("status")),
        issues=_issues(analysis.get("issues")),
        raw_data=raw_data,
    )


SCAN_DOCUMENT_TYPES: tuple[str, ...] = (
    "sec",
    "bir",
    "business_permit",
    "nbi",
    "dti",
    "peza",
)


class ScanMethod(StrEnum):
    """How a quick scan obtained its input."""

    DOCUMENT_AI_GEMINI = "document_ai+gemini"
    GEMINI_ONLY = "gemini_only"


@dataclass(frozen=True)
class DocumentScan:
    """Quick identification of an uploaded business document."""

    document_type: str
    method: ScanMethod
    label: str | None = None
    company_name: str | None = None
    registration_number: str | None = None
    tin_number: str | None = None
    is_valid: bool = False
    summary: str | None = None
    text_length: int = 0
    form_field_count: int = 0
    raw_data: dict[str, Any] = field(default_factory=dict)


def build_scan_prompt(extraction: ExtractionResult | None = None) -> str:
    """Assemble the quick-scan prompt, with OCR context when available."""
    context = ""
    if extraction is not None and extraction.text:
        fields_text = "\n".join(
            f"{f.field_name}: {f.field_value}" for f in extraction.form_fields
        )[:MAX_SCAN_FIELDS_CHARS]
        context = (
            "\n\nPRE-EXTRACTED TEXT (Google Document AI OCR - high accuracy):\n"
            f"{extraction.text[:MAX_SCAN_TEXT_CHARS]}\n\nFORM FIELDS:\n{fields_text}"
        )
    type_enum = " | ".join(f'"{t}"' for t in (*SCAN_DOCUMENT_TYPES, "unknown"))

    return f"""Quickly identify this Philippine business document. Return JSON:
{{
  "documentType": {type_enum},
  "label": "Human-readable document name (e.g. 'SEC Certificate of Incorporation', 'BIR Form 2303', 'Mayor's Business Permit')",
  "companyName": "Company name if visible, or null",
  "registrationNumber": "Main registration/reference number, or null",
  "tinNumber": "TIN if visible, or null",
  "isValid": true if this appears to be a real Philippine business/government document,
  "summary": "One-line description of what you see"
}}

Document type mappings:
- SEC Certificate / Certificate of Incorporation -> "sec"
- BIR COR / Form 2303 / Certificate of Registration -> "bir"
- Business Permit / Mayor's Permit -> "business_permit"
- NBI Clearance -> "nbi"
- DTI Registration / Certificate -> "dti"
- PEZA Certificate -> "peza"
- Anything else -> "unknown"{context}"""


def scan_from_analysis(
    analysis: dict[str, Any], extraction: ExtractionResult | None = None
) -> DocumentScan:
    """Map a quick-scan reply onto a DocumentScan.

    Document types outside the scan vocabulary become ``"unknown"`` and
    ``isValid`` counts only when it is literally ``true``.
    """
    document_type = str(analysis.get("documentType") or "").strip().lower()
    if document_type not in SCAN_DOCUMENT_TYPES:
        document_type = "unknown"
    text = extraction.text if extraction is not None else ""
    return DocumentScan(
        document_type=document_type,
        method=ScanMethod.DOCUMENT_AI_GEMINI if text else ScanMethod.GEMINI_ONLY,
        label=_optional_str(analysis.get("label")),
        company_name=_optional_str(analysis.get("companyName")),
        registration_number=_optional_str(analysis.get("registrationNumber")),
        tin_number=_optional_str(analysis.get("tinNumber")),
        is_valid=analysis.get("isValid") is True,
        summary=_optional_str(analysis.get("summary")),
        text_length=len(text),
        form_field_count=len(extraction.form_fields) if text else 0,
        raw_data=analysis,
    )


class DocumentVerifier:
    """Extracts and verifies single business documents.

    Args:
        extractor: Document AI client used for OCR.
        gemini: Gemini client; without an API key the regex fallback runs.
        pattern_extractor: Regex fallback extractor.
    """

    def __init__(
        self,
        extractor: DocumentAIClient,
        gemini: GeminiClient,
        pattern_extractor: PatternExtractor | None = None,
    ) -> None:
        self.extractor = extractor
        self.gemini = gemini
        self.pattern_extractor = pattern_extractor or PatternExtractor()

    def verify(
        self,
        content: bytes | str,
        mime_type: str = "application/pdf",
        expected_type: str | None = None,
        agency_name: str | None = None,
    ) -> VerificationResult:
        """Extract a document with Document AI, then analyze it.

        Raises:
            ConfigurationError: If the OCR credential is missing.
            AuthError: If no access token could be obtained.
            VendorError: If the OCR call fails.
        """
        logger.info("Extracting document (%s)", mime_type)
        extraction = self.extractor.extract(content, mime_type, "form")
        return self.analyze(extraction, expected_type, agency_name)

    def scan(
        self, content: bytes | str, mime_type: str = "application/pdf"
    ) -> DocumentScan:
        """Quickly identify a document from the file plus best-effort OCR.

        Document AI failures of any kind are logged and the scan goes on
        with the file alone.

        Args:
            content: Raw file bytes, or their Base64 encoding.
            mime_type: MIME type of the file.

        Raises:
            ConfigurationError: If no Gemini key is configured.
            VendorError: If the Gemini call fails.
            ParseError: If the reply holds no JSON object.
        """
        if not self.gemini.available:
            raise ConfigurationError(
                f"AI service not configured: {self.gemini.config.api_key_env} "
                "environment variable not set"
            )
        data = (
            content
            if isinstance(content, str)
            else base64.b64encode(content).decode("ascii")
        )

        extraction: ExtractionResult | None
        try:
            extraction = self.extractor.extract(data, mime_type, "form")
        except DocverifyError as exc:
            logger.warning(
                "Document AI extraction failed, scanning with Gemini only: %s", exc
            )
            extraction = None

        reply = self.gemini.generate(
            build_scan_prompt(extraction),
            inline_data=InlineData(mime_type, data),
            response_mime_type="application/json",
        )
        scan = scan_from_analysis(
            parse_fenced_json(reply, first_of_array=True).unwrap(), extraction
        )
        logger.info(
            "Scanned %s document via %s (%d chars of OCR text)",
            scan.document_type,
            scan.method,
            scan.text_length,
        )
        return scan

    def analyze(
        self,
        extraction: ExtractionResult,
        expected_type: str | None = None,
        agency_name: str | None = None,
    ) -> VerificationResult:
        """Interpret extracted text into a verification result.

        Never raises for vendor or parse problems: a missing key uses the
        regex fallback, a failed call yields a degraded result, and an
        unparseable reply is treated as an empty analysis.
        """
        if not self.gemini.available:
            return self._pattern_result(extraction, expected_type)

        prompt = build_verification_prompt(extraction, expected_type, agency_name)
        try:
            reply = self.gemini.generate(prompt)
        except VendorError as exc:
            logger.error(
                "Gemini analysis failed, returning extraction-only result: %s", exc
            )
            return self._degraded_result(extraction, expected_type)

        parsed = parse_fenced_json(reply)
        if not parsed.ok:
            logger.error(
                "Failed to parse Gemini response (%s): %s", parsed.error, reply[:200]
            )
        return result_from_analysis(parsed.data, extraction, expected_type)

    def _pattern_result(
        self, extraction: ExtractionResult, expected_type: str | None
    ) -> VerificationResult:
        fields = self.pattern_extractor.extract(extraction.text)
        raw_data = extraction.to_dict()
        raw_data["analysisMethod"] = "pattern"
        logger.info("No Gemini key configured, using pattern fallback")
        return VerificationResult(
            document_type=expected_type or "unknown",
            company_name=fields.company_name,
            registration_number=fields.registration_number,
            tin_number=fields.tin_number,
            extracted_text=extraction.text,
            confidence=fields.confidence,
            status=DocumentStatus.VALID,
            raw_data=raw_data,
        )

    def _degraded_result(
        self, extraction: ExtractionResult, expected_type: str | None
    ) -> VerificationResult:
        return VerificationResult(
            document_type=expected_type or "unknown",
            extracted_text=extraction.text,
            confidence=DEGRADED_CONFIDENCE,
            status=DocumentStatus.VALID,
            issues=(AI_UNAVAILABLE_ISSUE,),
            raw_data=extraction.to_dict(),
        )


def result_to_dict(result: VerificationResult) -> dict[str, Any]:
    """Serialize a result for JSON output (CLI and logs)."""
    return {
        "document_type": result.document_type,
        "company_name": result.company_name,
        "registration_number": result.registration_number,
        "tin_number": result.tin_number,
        "date_issued": result.date_issued,
        "expiry_date": result.expiry_date,
        "issuing_authority": result.issuing_authority,
        "extracted_text": result.extracted_text,
        "confidence": result.confidence,
        "status": result.status.value,
        "issues": list(result.issues),
        "raw_data": json.loads(json.dumps(result.raw_data, default=str)),
    }


def scan_to_dict(scan: DocumentScan) -> dict[str, Any]:
    """Serialize a quick scan for JSON output."""
    return {
        "scan": {
            "document_type": scan.document_type,
            "label": scan.label,
            "company_name": scan.company_name,
            "registration_number": scan.registration_number,
            "tin_number": scan.tin_number,
            "is_valid": scan.is_valid,
            "summary": scan.summary,
        },
        "extraction": {
            "text_length": scan.text_length,
            "form_field_count": scan.form_field_count,
            "method": scan.method.value,
        },
    }
