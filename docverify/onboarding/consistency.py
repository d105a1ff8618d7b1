"""Consistency checks across a candidate's onboarding documents."""

import re
from dataclasses import dataclass, field
from typing import Any

_NON_DIGIT = re.compile(r"\D")


@dataclass
class OnboardingCrossValidation:
    """Result of comparing identity fields across documents."""

    is_valid: bool
    warnings: list[str] = field(default_factory=list)
    matched_fields: dict[str, str] = field(default_factory=dict)


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def cross_validate_onboarding(
    documents: list[dict[str, Any]],
) -> OnboardingCrossValidation:
    """Compare name, birth date, SSS and TIN across extracted documents.

    Names are compared upper-cased; they only count as a mismatch when a
    name does not contain the first token of the first name seen, which
    tolerates suffixes and married names. SSS and TIN compare digits only.

    Args:
        documents: Items with ``type`` and ``extracted`` (field map).

    Returns:
        Warnings plus the first value seen for each compared field.
    """
    warnings: list[str] = []
    matched: dict[str, str] = {}

    names: list[str] = []
    dobs: list[str] = []
    sss_numbers: list[str] = []
    tin_numbers: list[str] = []

    for doc in documents:
        extracted = doc.get("extracted") or {}
        if extracted.get("full_name"):
            names.append(str(extracted["full_name"]).upper().strip())
        if extracted.get("date_of_birth"):
            dobs.append(str(extracted["date_of_birth"]))
        if extracted.get("sss_number"):
            sss_numbers.append(_NON_DIGIT.sub("", str(extracted["sss_number"])))
        if extracted.get("tin_number"):
            tin_numbers.append(_NON_DIGIT.sub("", str(extracted["tin_number"])))

    if len(names) > 1:
        unique_names = _unique(names)
        if len(unique_names) > 1:
            first_token = unique_names[0].split(" ")[0]
            if any(first_token not in n for n in unique_names):
                warnings.append(
                    "Name mismatch detected across documents: "
                    + " vs ".join(unique_names)
                )
        matched["full_name"] = names[0]

    if len(dobs) > 1:
        unique_dobs = _unique(dobs)
        if len(unique_dobs) > 1:
            warnings.append(f"Date of birth mismatch: {' vs '.join(unique_dobs)}")
        matched["date_of_birth"] = dobs[0]

    if len(sss_numbers) > 1:
        if len(set(sss_numbers)) > 1:
            warnings.append(f"SSS number mismatch: {' vs '.join(sss_numbers)}")
        matched["sss_number"] = sss_numbers[0]

    if len(tin_numbers) > 1:
        if len(set(tin_numbers)) > 1:
            warnings.append(f"TIN number mismatch: {' vs '.join(tin_numbers)}")
        matched["tin_number"] = tin_numbers[0]

    return OnboardingCrossValidation(
        is_valid=not warnings, warnings=warnings, matched_fields=matched
    )
