"""Cross-document consistency checks for agency verification.

Verifies each document an agency submitted, then compares the identity
attributes they report (company name, TIN) against each other and
against the agency's declared name.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum

from docverify.utils.exceptions import ConfigurationError
from docverify.utils.logger import get_logger

from .verifier import DocumentStatus, DocumentVerifier, VerificationResult

logger = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NON_DIGIT = re.compile(r"[^0-9]")


class OverallStatus(StrEnum):
    """Aggregate verdict for an agency's document set.

    ``REJECTED`` is reserved; no rule currently assigns it.
    """

    VERIFIED = "verified"
    NEEDS_REVIEW = "needs_review"
    REJECTED = "rejected"


@dataclass
class AgencyDocument:
    """One document submitted for an agency."""

    content: bytes | str
    mime_type: str
    type: str


@dataclass
class AggregateVerification:
    """Combined verification outcome for a set of documents."""

    overall_status: OverallStatus
    documents: list[VerificationResult]
    cross_reference_issues: list[str] = field(default_factory=list)
    summary: str = ""


def normalize_name(name: str) -> str:
    """Lower-case a name and drop everything but letters and digits."""
    return _NON_ALNUM.sub("", name.lower())


def normalize_tin(tin: str) -> str:
    """Keep only the digits of a tax identification number."""
    return _NON_DIGIT.sub("", tin)


def cross_reference(
    results: list[VerificationResult], agency_name: str | None
) -> list[str]:
    """Compare identity attributes across verified documents.

    Args:
        results: Per-document verification results.
        agency_name: Name the agency registered under.

    Returns:
        Human-readable issues; empty when everything is consistent.
    """
    issues: list[str] = []
    company_names = [r.company_name for r in results if r.company_name]

    if len(company_names) > 1:
        if len({normalize_name(n) for n in company_names}) > 1:
            issues.append(
                "Company names differ across documents: "
                + ", ".join(company_names)
            )

    if agency_name and company_names:
        agency_norm = normalize_name(agency_name)
        any_match = any(
            agency_norm in normalize_name(n) or normalize_name(n) in agency_norm
            for n in company_names
        )
        if not any_match:
            issues.append(
                f'Agency name "{agency_name}" doesn\'t match document company '
                f"names: {', '.join(company_names)}"
            )

    tins = [r.tin_number for r in results if r.tin_number]
    if len(tins) > 1 and len({normalize_tin(t) for t in tins}) > 1:
        issues.append(f"Different TIN numbers found: {', '.join(tins)}")

    return issues


def determine_overall_status(
    results: list[VerificationResult], issues: list[str]
) -> OverallStatus:
    """Any non-valid document or cross-reference issue means review."""
    if issues or any(r.status != DocumentStatus.VALID for r in results):
        return OverallStatus.NEEDS_REVIEW
    return OverallStatus.VERIFIED


def build_summary(
    results: list[VerificationResult], issues: list[str], agency_name: str | None
) -> str:
    """One-line summary of counts and cross-reference findings."""
    counts = {status: 0 for status in DocumentStatus}
    for r in results:
        counts[r.status] += 1

    tail = (
        f"Cross-reference issues: {'; '.join(issues)}"
        if issues
        else "No cross-reference issues."
    )
    return (
        f'Processed {len(results)} documents for "{agency_name or ""}". '
        f"{counts[DocumentStatus.VALID]} valid, "
        f"{counts[DocumentStatus.SUSPICIOUS]} suspicious, "
        f"{counts[DocumentStatus.UNREADABLE]} unreadable. " + tail
    )


class CrossReferenceEngine:
    """Verifies an agency's documents and cross-checks them.

    Args:
        verifier: Single-document verifier.
        max_workers: Documents verified concurrently. ``1`` processes
            them strictly one after another.
    """

    def __init__(self, verifier: DocumentVerifier, max_workers: int = 1) -> None:
        self.verifier = verifier
        self.max_workers = max(1, max_workers)

    def verify_agency_documents(
        self, documents: list[AgencyDocument], agency_name: str | None
    ) -> AggregateVerification:
        """Verify every document and aggregate the outcome.

        A failing document becomes an ``unreadable`` result and never
        aborts the batch; only a missing credential does.

        Args:
            documents: Submitted documents, in display order.
            agency_name: Name the agency registered under.

        Returns:
            Aggregate result with documents in input order.

        Raises:
            ConfigurationError: If a vendor credential is missing.
        """
        logger.info(
            "Verifying %d documents for agency %r", len(documents), agency_name
        )
        if self.max_workers == 1 or len(documents) < 2:
            results = [self._verify_one(doc, agency_name) for doc in documents]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(
                    pool.map(lambda doc: self._verify_one(doc, agency_name), documents)
                )

        issues = cross_reference(results, agency_name)
        status = determine_overall_status(results, issues)
        summary = build_summary(results, issues, agency_name)
        logger.info("Agency verification finished: %s", status.value)

        return AggregateVerification(
            overall_status=status,
            documents=results,
            cross_reference_issues=issues,
            summary=summary,
        )

    def _verify_one(
        self, doc: AgencyDocument, agency_name: str | None
    ) -> VerificationResult:
        try:
            return self.verifier.verify(
                doc.content, doc.mime_type, doc.type, agency_name
            )
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.error("Failed to process %s document: %s", doc.type, exc)
            return VerificationResult.unreadable(doc.type, str(exc))
