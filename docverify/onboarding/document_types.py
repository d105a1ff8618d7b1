"""Static configuration for onboarding document categories.

Each category maps to the fields worth extracting, the points it adds to
a candidate's onboarding score, and the vision prompt used to extract
them. The table is read-only.
"""

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType


class DocumentCategory(StrEnum):
    """Closed set of document categories the classifier may return."""

    GOV_ID = "gov_id"
    VALID_ID = "valid_id"
    EDUCATION = "education"
    MEDICAL = "medical"
    SEC = "sec"
    BIR = "bir"
    BUSINESS_PERMIT = "business_permit"
    DTI = "dti"
    NBI = "nbi"
    PEZA = "peza"


@dataclass(frozen=True)
class DocTypeConfig:
    """Extraction settings for one document category."""

    label: str
    extractable_fields: tuple[str, ...]
    points: int
    ai_prompt: str


_JSON_ONLY = "Return ONLY a JSON object with these fields (use null if not found):"

_BUSINESS_FIELDS = (
    "company_name",
    "registration_number",
    "tin_number",
    "date_issued",
    "expiry_date",
    "issuing_authority",
)


def _business_prompt(label: str) -> str:
    return f"""Extract business registration details from this {label}.

{_JSON_ONLY}
{{"company_name": "...", "registration_number": "...", "tin_number": "...", "date_issued": "YYYY-MM-DD", "expiry_date": "YYYY-MM-DD", "issuing_authority": "..."}}"""


DOCUMENT_TYPES: MappingProxyType[DocumentCategory, DocTypeConfig] = MappingProxyType(
    {
        DocumentCategory.GOV_ID: DocTypeConfig(
            label="Government ID numbers",
            extractable_fields=("sss", "tin", "philhealth_no", "pagibig_no"),
            points=20,
            ai_prompt=f"""Extract government ID information from this document image.
Look for any of these ID numbers:
- SSS Number (Social Security System) - format: XX-XXXXXXX-X
- TIN (Tax Identification Number) - format: XXX-XXX-XXX or XXX-XXX-XXX-XXX
- PhilHealth Number - format: XX-XXXXXXXXX-X
- Pag-IBIG/HDMF Number - format: XXXX-XXXX-XXXX

{_JSON_ONLY}
{{"sss": "...", "tin": "...", "philhealth_no": "...", "pagibig_no": "...", "id_type": "...", "full_name": "..."}}""",
        ),
        DocumentCategory.VALID_ID: DocTypeConfig(
            label="Valid ID",
            extractable_fields=(
                "full_name",
                "date_of_birth",
                "address",
                "id_type",
                "id_number",
            ),
            points=25,
            ai_prompt=f"""Extract personal information from this valid ID (passport, driver's license, national ID, etc).

{_JSON_ONLY}
{{"full_name": "...", "date_of_birth": "YYYY-MM-DD", "address": "...", "id_type": "...", "id_number": "...", "gender": "male/female"}}""",
        ),
        DocumentCategory.EDUCATION: DocTypeConfig(
            label="Education credential",
            extractable_fields=(
                "education_level",
                "school_name",
                "degree",
                "year_graduated",
            ),
            points=15,
            ai_prompt=f"""Extract education information from this document (diploma, transcript, certificate).

{_JSON_ONLY}
{{"education_level": "high_school/vocational/bachelors/masters/doctorate", "school_name": "...", "degree": "...", "field_of_study": "...", "year_graduated": "YYYY"}}""",
        ),
        DocumentCategory.MEDICAL: DocTypeConfig(
            label="Medical certificate",
            extractable_fields=(
                "medical_cert_valid",
                "clinic_name",
                "doctor_name",
                "issue_date",
                "findings",
            ),
            points=15,
            ai_prompt=f"""Extract information from this medical certificate.

{_JSON_ONLY}
{{"medical_cert_valid": true/false, "clinic_name": "...", "doctor_name": "...", "issue_date": "YYYY-MM-DD", "findings": "fit to work/with conditions/...", "license_no": "..."}}""",
        ),
        DocumentCategory.SEC: DocTypeConfig(
            label="SEC Certificate of Incorporation",
            extractable_fields=_BUSINESS_FIELDS,
            points=30,
            ai_prompt=_business_prompt("SEC Certificate of Incorporation"),
        ),
        DocumentCategory.BIR: DocTypeConfig(
            label="BIR Certificate of Registration (Form 2303)",
            extractable_fields=_BUSINESS_FIELDS,
            points=30,
            ai_prompt=_business_prompt("BIR Certificate of Registration (Form 2303)"),
        ),
        DocumentCategory.BUSINESS_PERMIT: DocTypeConfig(
            label="Mayor's Business Permit",
            extractable_fields=_BUSINESS_FIELDS,
            points=20,
            ai_prompt=_business_prompt("Mayor's Business Permit"),
        ),
        DocumentCategory.DTI: DocTypeConfig(
            label="DTI Business Name Registration",
            extractable_fields=_BUSINESS_FIELDS,
            points=20,
            ai_prompt=_business_prompt("DTI Business Name Registration"),
        ),
        DocumentCategory.NBI: DocTypeConfig(
            label="NBI Clearance",
            extractable_fields=("full_name", "clearance_number", "date_issued", "remarks"),
            points=15,
            ai_prompt=f"""Extract information from this NBI Clearance.

{_JSON_ONLY}
{{"full_name": "...", "clearance_number": "...", "date_issued": "YYYY-MM-DD", "remarks": "no record/with record"}}""",
        ),
        DocumentCategory.PEZA: DocTypeConfig(
            label="PEZA Certificate of Registration",
            extractable_fields=_BUSINESS_FIELDS,
            points=15,
            ai_prompt=_business_prompt("PEZA Certificate of Registration"),
        ),
    }
)


def get_doc_config(document_type: str) -> DocTypeConfig | None:
    """Look up a category by key; unknown keys return ``None``."""
    try:
        return DOCUMENT_TYPES[DocumentCategory(document_type)]
    except ValueError:
        return None


def _category_lines() -> str:
    return "\n".join(
        f'- {config.label} → "{category.value}"'
        for category, config in DOCUMENT_TYPES.items()
    )


DOCUMENT_CLASSIFICATION_PROMPT = f"""Classify this document image into exactly one category.

Categories:
{_category_lines()}
- Anything else → "unknown"

Return ONLY a JSON object:
{{"document_type": "<category>", "confidence": 0.0 to 1.0, "detected_text": "short excerpt of the most identifying text"}}"""
