"""Pydantic request/response schemas for the FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from docverify.onboarding.processor import ProcessedDocument
from docverify.validation.cross_reference import AggregateVerification
from docverify.validation.verifier import DocumentScan, VerificationResult


class VerificationResponse(BaseModel):
    """Verification result for a single business document."""

    document_type: str
    company_name: str | None = None
    registration_number: str | None = None
    tin_number: str | None = None
    date_issued: str | None = None
    expiry_date: str | None = None
    issuing_authority: str | None = None
    extracted_text: str
    confidence: float
    status: str
    issues: list[str]
    raw_data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerificationResponse":
        return cls(
            document_type=result.document_type,
            company_name=result.company_name,
            registration_number=result.registration_number,
            tin_number=result.tin_number,
            date_issued=result.date_issued,
            expiry_date=result.expiry_date,
            issuing_authority=result.issuing_authority,
            extracted_text=result.extracted_text,
            confidence=result.confidence,
            status=result.status.value,
            issues=list(result.issues),
            raw_data=result.raw_data,
        )


class ScanInfo(BaseModel):
    document_type: str
    label: str | None = None
    company_name: str | None = None
    registration_number: str | None = None
    tin_number: str | None = None
    is_valid: bool
    summary: str | None = None


class ScanExtractionInfo(BaseModel):
    text_length: int
    form_field_count: int
    method: str


class ScanResponse(BaseModel):
    """Quick identification of an uploaded business document."""

    success: bool = True
    scan: ScanInfo
    extraction: ScanExtractionInfo

    @classmethod
    def from_scan(cls, scan: DocumentScan) -> "ScanResponse":
        return cls(
            scan=ScanInfo(
                document_type=scan.document_type,
                label=scan.label,
                company_name=scan.company_name,
                registration_number=scan.registration_number,
                tin_number=scan.tin_number,
                is_valid=scan.is_valid,
                summary=scan.summary,
            ),
            extraction=ScanExtractionInfo(
                text_length=scan.text_length,
                form_field_count=scan.form_field_count,
                method=scan.method.value,
            ),
        )


class AgencyVerificationResponse(BaseModel):
    """Aggregate verification across an agency's documents."""

    overall_status: str
    documents: list[VerificationResponse]
    cross_reference_issues: list[str]
    summary: str

    @classmethod
    def from_aggregate(
        cls, aggregate: AggregateVerification
    ) -> "AgencyVerificationResponse":
        return cls(
            overall_status=aggregate.overall_status.value,
            documents=[
                VerificationResponse.from_result(d) for d in aggregate.documents
            ],
            cross_reference_issues=aggregate.cross_reference_issues,
            summary=aggregate.summary,
        )


class ClassificationResponse(BaseModel):
    document_type: str
    confidence: float
    detected_text: str | None = None


class FieldExtractionResponse(BaseModel):
    success: bool
    document_type: str
    extracted_data: dict[str, Any]
    confidence_scores: dict[str, float]
    error: str | None = None


class OnboardingDocumentResponse(BaseModel):
    """Outcome of processing one onboarding document."""

    classification: ClassificationResponse
    extraction: FieldExtractionResponse
    points: int
    can_auto_verify: bool
    reason: str
    action: str

    @classmethod
    def from_processed(cls, doc: ProcessedDocument) -> "OnboardingDocumentResponse":
        return cls(
            classification=ClassificationResponse(
                document_type=doc.classification.document_type,
                confidence=doc.classification.confidence,
                detected_text=doc.classification.detected_text,
            ),
            extraction=FieldExtractionResponse(
                success=doc.extraction.success,
                document_type=doc.extraction.document_type,
                extracted_data=doc.extraction.extracted_data,
                confidence_scores=doc.extraction.confidence_scores,
                error=doc.extraction.error,
            ),
            points=doc.points,
            can_auto_verify=doc.decision.can_auto_verify,
            reason=doc.decision.reason,
            action=doc.action.value,
        )


class DocumentTypeInfo(BaseModel):
    """Information about a supported onboarding document category."""

    type: str
    label: str
    fields: list[str]
    points: int


class DocumentTypesResponse(BaseModel):
    document_types: list[DocumentTypeInfo]


class ExtractedDocument(BaseModel):
    """Previously extracted onboarding document for cross-validation."""

    type: str
    extracted: dict[str, Any]


class CrossValidationRequest(BaseModel):
    documents: list[ExtractedDocument]


class CrossValidationResponse(BaseModel):
    is_valid: bool
    warnings: list[str]
    matched_fields: dict[str, str]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    document_ai_configured: bool
    gemini_configured: bool
