"""Builds Finding objects from the raw job payload and checks their offsets."""

from typing import Any

from docshield.processor.exceptions import FindingsValidationError
from docshield.processor.models import Finding


def parse_findings(raw: Any) -> list[Finding]:
    """Validate the ``findingsData`` payload and build Finding objects.

    Accepts both ``startOffset``/``endOffset`` and the ``start``/``end``
    aliases used by the analysis step.

    Raises:
        FindingsValidationError: on any malformed entry.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise FindingsValidationError("'findingsData' must be a list")
    return [_build_finding(item, i) for i, item in enumerate(raw)]


def check_offsets(findings: list[Finding], text: str) -> None:
    """Ensure every finding's span lies inside *text*.

    Raises:
        FindingsValidationError: if a span is empty or out of range.
    """
    length = len(text)
    for finding in findings:
        if not 0 <= finding.start_offset < finding.end_offset <= length:
            raise FindingsValidationError(
                f"Finding {finding.entity_type} [{finding.start_offset}, "
                f"{finding.end_offset}) is outside the source text (length {length})"
            )


def _build_finding(raw: Any, index: int) -> Finding:
    if not isinstance(raw, dict):
        raise FindingsValidationError(f"Finding at index {index} must be an object")
    entity_type = raw.get("entityType")
    if not entity_type or not isinstance(entity_type, str):
        raise FindingsValidationError(
            f"Finding at index {index}: 'entityType' must be a non-empty string"
        )
    start = _first_int(raw, ("startOffset", "start"), index)
    end = _first_int(raw, ("endOffset", "end"), index)
    confidence = raw.get("confidence", 0.0)
    if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
        raise FindingsValidationError(
            f"Finding at index {index}: 'confidence' must be a number"
        )
    text = raw.get("text") or ""
    if not isinstance(text, str):
        raise FindingsValidationError(f"Finding at index {index}: 'text' must be a string")
    line_number = raw.get("lineNumber")
    return Finding(
        entity_type=entity_type,
        text=text,
        start_offset=start,
        end_offset=end,
        confidence=float(confidence),
        line_number=line_number if isinstance(line_number, int) else None,
        context=raw.get("context"),
        action=raw.get("action"),
        replacement=raw.get("replacement"),
    )


def _first_int(raw: dict[str, Any], keys: tuple[str, ...], index: int) -> int:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    raise FindingsValidationError(
        f"Finding at index {index}: one of {list(keys)} must be an integer"
    )
