"""Regex fallback for business-document fields.

Used only when no generative-AI key is configured. Pulls company name,
registration number and TIN straight out of the OCR text; values found
this way carry a fixed, lower confidence.
"""

import re
from dataclasses import dataclass

from docverify.utils.logger import get_logger

logger = get_logger(__name__)

PATTERN_CONFIDENCE = 0.7

COMPANY_NAME_PATTERN = re.compile(
    r"(?:name|company|corporation)[:\s]+([A-Z][A-Za-z\s.]+(?:INC|CORP|LLC|CO)?\.?)",
    re.IGNORECASE,
)
REGISTRATION_NUMBER_PATTERN = re.compile(
    r"(?:reg|registration|certificate)\s*(?:no|number|#)?[.:\s]+([A-Z0-9-]+)",
    re.IGNORECASE,
)
TIN_PATTERN = re.compile(
    r"(?:TIN|tax.*identification)[:\s]+([0-9-]+)",
    re.IGNORECASE,
)


@dataclass
class PatternFields:
    """Identity fields recovered by the regex fallback."""

    company_name: str | None
    registration_number: str | None
    tin_number: str | None
    confidence: float = PATTERN_CONFIDENCE


def extract_pattern(text: str, pattern: re.Pattern | str) -> str | None:
    """Return the first match's first group, trimmed.

    Args:
        text: Text to search.
        pattern: Compiled or string regex with one capture group.

    Returns:
        The captured text, or ``None`` if nothing (or only whitespace)
        was captured.
    """
    match = re.search(pattern, text)
    if not match or match.group(1) is None:
        return None
    return match.group(1).strip() or None


class PatternExtractor:
    """Applies the fixed identity patterns to OCR text."""

    def extract(self, text: str) -> PatternFields:
        """Extract company name, registration number and TIN.

        Args:
            text: Raw OCR text.

        Returns:
            Recovered fields; missing ones are ``None``.
        """
        fields = PatternFields(
            company_name=extract_pattern(text, COMPANY_NAME_PATTERN),
            registration_number=extract_pattern(text, REGISTRATION_NUMBER_PATTERN),
            tin_number=extract_pattern(text, TIN_PATTERN),
        )
        logger.debug(
            "Pattern fallback found company=%s registration=%s tin=%s",
            fields.company_name,
            fields.registration_number,
            fields.tin_number,
        )
        return fields
