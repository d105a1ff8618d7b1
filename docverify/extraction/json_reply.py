"""Best-effort JSON parsing of free-text model replies.

Models are asked for a bare JSON object but often wrap it in Markdown
fences or surround it with prose. The parsers here never raise; they
return a :class:`ParsedReply` carrying either the object or an error.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from docverify.utils.exceptions import ParseError

_FENCE_JSON = re.compile(r"```json\n?")
_FENCE = re.compile(r"```\n?")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


@dataclass
class ParsedReply:
    """Outcome of parsing a model reply."""

    ok: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def unwrap(self) -> dict[str, Any]:
        """Return the parsed object or raise :class:`ParseError`."""
        if not self.ok:
            raise ParseError(self.error or "Unparseable model reply")
        return self.data


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences (```json and ```) from a reply."""
    return _FENCE.sub("", _FENCE_JSON.sub("", text)).strip()


def _non_finite(_constant: str) -> None:
    return None


def _load_object(candidate: str, first_of_array: bool = False) -> ParsedReply:
    # NaN and Infinity literals load as None
    try:
        value = json.loads(candidate, parse_constant=_non_finite)
    except ValueError as exc:
        return ParsedReply(ok=False, error=f"Invalid JSON: {exc}")
    if first_of_array and isinstance(value, list) and value:
        value = value[0]
    if not isinstance(value, dict):
        return ParsedReply(ok=False, error="Reply is not a JSON object")
    return ParsedReply(ok=True, data=value)


def parse_fenced_json(text: str, first_of_array: bool = False) -> ParsedReply:
    """Parse a reply that should be one JSON object, possibly fenced.

    With ``first_of_array`` a reply that is a JSON array yields its first
    element.
    """
    return _load_object(strip_code_fences(text), first_of_array)


def parse_embedded_json(text: str) -> ParsedReply:
    """Parse the outermost ``{...}`` span found anywhere in a reply."""
    match = _OBJECT_SPAN.search(text)
    if not match:
        return ParsedReply(ok=False, error="No JSON object in reply")
    return _load_object(match.group(0))
