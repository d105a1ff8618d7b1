"""FastAPI application for the document verification service.

Provides REST endpoints for business-document verification and quick
scans, agency cross-referencing, onboarding document processing and
health checks.
"""

import base64
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from docverify.components import Components, build_components
from docverify.onboarding.consistency import cross_validate_onboarding
from docverify.onboarding.document_types import DOCUMENT_TYPES
from docverify.utils.config import load_config, load_secrets
from docverify.utils.exceptions import (
    AuthError,
    ConfigurationError,
    DocverifyError,
    VendorError,
)
from docverify.utils.logger import get_logger
from docverify.validation.cross_reference import AgencyDocument

from .schemas import (
    AgencyVerificationResponse,
    CrossValidationRequest,
    CrossValidationResponse,
    DocumentTypeInfo,
    DocumentTypesResponse,
    HealthResponse,
    OnboardingDocumentResponse,
    ScanResponse,
    VerificationResponse,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Document Verification API",
    description="Verify and cross-reference business and onboarding documents",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_components() -> Components:
    """Initialize and return shared processing components."""
    return build_components()


_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/webp",
    "application/pdf",
    "application/octet-stream",
}


def _check_content_type(file: UploadFile) -> None:
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )


def _mime_type(file: UploadFile) -> str:
    if not file.content_type or file.content_type == "application/octet-stream":
        return "application/pdf"
    return file.content_type


def _http_error(exc: DocverifyError) -> HTTPException:
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=500, detail=exc.message)
    if isinstance(exc, (VendorError, AuthError)):
        return HTTPException(status_code=502, detail=exc.message)
    return HTTPException(status_code=500, detail=str(exc))


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health and which vendors are configured."""
    secrets = load_secrets(load_config())
    return HealthResponse(
        status="healthy",
        version=VERSION,
        document_ai_configured=secrets.service_account_key is not None,
        gemini_configured=secrets.gemini_api_key is not None,
    )


@app.post("/documents/verify", response_model=VerificationResponse)
async def verify_document(
    file: Annotated[UploadFile, File(...)],
    expected_type: Annotated[str | None, Query()] = None,
    agency_name: Annotated[str | None, Query()] = None,
) -> VerificationResponse:
    """Extract and verify a single business document.

    Args:
        file: Uploaded document (PDF or image).
        expected_type: Document type the uploader claims.
        agency_name: Company name the document should belong to.

    Returns:
        Verification result for the document.
    """
    _check_content_type(file)
    try:
        components = _get_components()
        content = await file.read()
        result = components.verifier.verify(
            content, _mime_type(file), expected_type, agency_name
        )
    except DocverifyError as exc:
        logger.error("Verification failed: %s", exc)
        raise _http_error(exc) from exc
    except Exception as exc:
        logger.error("Verification failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return VerificationResponse.from_result(result)


@app.post("/documents/scan", response_model=ScanResponse)
async def scan_document(file: Annotated[UploadFile, File(...)]) -> ScanResponse:
    """Quickly identify an uploaded business document.

    Document AI text is used as extra context when available; the scan
    still runs from the file alone if OCR fails.
    """
    _check_content_type(file)
    try:
        components = _get_components()
        content = await file.read()
        scan = components.verifier.scan(content, _mime_type(file))
    except DocverifyError as exc:
        logger.error("Document scan failed: %s", exc)
        raise _http_error(exc) from exc
    except Exception as exc:
        logger.error("Document scan failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ScanResponse.from_scan(scan)


@app.post("/agencies/verify", response_model=AgencyVerificationResponse)
async def verify_agency(
    files: Annotated[list[UploadFile], File(...)],
    agency_name: Annotated[str, Query()],
    types: Annotated[list[str] | None, Query()] = None,
) -> AgencyVerificationResponse:
    """Verify an agency's documents and cross-reference them.

    Args:
        files: Uploaded documents.
        agency_name: Name the agency registered under.
        types: Declared document type per file, in upload order.

    Returns:
        Aggregate verification with per-document results.
    """
    if types is not None and len(types) != len(files):
        raise HTTPException(
            status_code=400,
            detail=f"Got {len(types)} types for {len(files)} files",
        )
    for file in files:
        _check_content_type(file)

    documents = [
        AgencyDocument(
            content=await file.read(),
            mime_type=_mime_type(file),
            type=types[i] if types else "unknown",
        )
        for i, file in enumerate(files)
    ]

    try:
        components = _get_components()
        aggregate = components.cross_reference.verify_agency_documents(
            documents, agency_name
        )
    except ConfigurationError as exc:
        logger.error("Agency verification aborted: %s", exc)
        raise _http_error(exc) from exc

    return AgencyVerificationResponse.from_aggregate(aggregate)


@app.post("/onboarding/documents", response_model=OnboardingDocumentResponse)
async def process_onboarding_document(
    file: Annotated[UploadFile, File(...)],
    doc_type: Annotated[str | None, Query()] = None,
) -> OnboardingDocumentResponse:
    """Classify, extract and auto-decide an onboarding document image."""
    _check_content_type(file)
    try:
        components = _get_components()
        image_base64 = base64.b64encode(await file.read()).decode("ascii")
        processed = components.onboarding.process(image_base64, doc_type)
    except DocverifyError as exc:
        logger.error("Onboarding processing failed: %s", exc)
        raise _http_error(exc) from exc
    except Exception as exc:
        logger.error("Onboarding processing failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return OnboardingDocumentResponse.from_processed(processed)


@app.get("/onboarding/document-types", response_model=DocumentTypesResponse)
async def list_document_types() -> DocumentTypesResponse:
    """List supported document categories with their fields and points."""
    return DocumentTypesResponse(
        document_types=[
            DocumentTypeInfo(
                type=category.value,
                label=config.label,
                fields=list(config.extractable_fields),
                points=config.points,
            )
            for category, config in DOCUMENT_TYPES.items()
        ]
    )


@app.post("/onboarding/cross-validate", response_model=CrossValidationResponse)
async def cross_validate(request: CrossValidationRequest) -> CrossValidationResponse:
    """Check identity fields for consistency across extracted documents."""
    result = cross_validate_onboarding(
        [doc.model_dump() for doc in request.documents]
    )
    return CrossValidationResponse(
        is_valid=result.is_valid,
        warnings=result.warnings,
        matched_fields=result.matched_fields,
    )
