"""Deterministic per-entity masking and replacement rules.

Pure functions, no I/O. Used for operator defaults, for the DOCX path, and
by the in-process anonymization backend.
"""

import re
from typing import Final

REDACTED: Final = "[REDACTED]"

_MASK_LENGTHS: Final[dict[str, int]] = {
    "EMAIL_ADDRESS": 6,
    "PHONE_NUMBER": 4,
    "SSN": 4,
    "CREDIT_CARD": 8,
    "PERSON": 5,
    "LOCATION": 4,
    "ORGANIZATION": 6,
}
_GENERIC_MASK_LENGTH: Final = 4

# Placeholder tokens for the replace operator sent to the anonymization backend.
_OPERATOR_REPLACEMENTS: Final[dict[str, str]] = {
    "EMAIL_ADDRESS": "[EMAIL_REDACTED]",
    "PHONE_NUMBER": "[PHONE_REDACTED]",
    "SSN": "[SSN_REDACTED]",
    "CREDIT_CARD": "[CARD_REDACTED]",
    "PERSON": "[NAME_REDACTED]",
    "LOCATION": "[LOCATION_REDACTED]",
    "ORGANIZATION": "[ORG_REDACTED]",
}

# Realistic stand-ins used when text is substituted inside a document.
_CANNED_VALUES: Final[dict[str, str]] = {
    "EMAIL_ADDRESS": "user@example.com",
    "PHONE_NUMBER": "(555) 000-0000",
    "SSN": "000-00-0000",
    "CREDIT_CARD": "0000-0000-0000-0000",
    "PERSON": "John Doe",
    "LOCATION": "City, State",
    "ORGANIZATION": "Company Inc.",
    "DATE_TIME": "MM/DD/YYYY",
}

_DIGIT_RE: Final = re.compile(r"\d")


def default_mask_length(entity_type: str) -> int:
    """Number of trailing characters the mask operator hides for *entity_type*."""
    return _MASK_LENGTHS.get(entity_type, _GENERIC_MASK_LENGTH)


def default_replacement(entity_type: str) -> str | None:
    """Placeholder token for the replace operator, or None if the type has none."""
    return _OPERATOR_REPLACEMENTS.get(entity_type)


def canned_value(entity_type: str) -> str:
    return _CANNED_VALUES.get(entity_type.upper(), "[REPLACED]")


def mask_text(text: str, entity_type: str, mask_char: str = "*") -> str:
    """Mask *text* while keeping the recognizable shape of *entity_type*.

    Examples:
        ``test@example.com`` (EMAIL_ADDRESS) -> ``tes***@***.com``
        ``123-45-6789`` (SSN) -> ``***-**-****``
        ``4532-1234-5678-9012`` (CREDIT_CARD) -> ``***************9012``
    """
    kind = entity_type.upper()
    length = len(text)
    stars = mask_char * 3

    if kind == "EMAIL_ADDRESS":
        parts = text.split("@")
        if len(parts) == 2:
            local, domain = parts
            return f"{local[:3]}{stars}@{stars}.{domain.split('.')[-1]}"
        return f"{stars}@{stars}.com"

    if kind in ("PHONE_NUMBER", "SSN"):
        return _DIGIT_RE.sub(mask_char, text)

    if kind == "CREDIT_CARD":
        if length >= 4:
            return mask_char * (length - 4) + text[-4:]
        return mask_char * length

    if kind == "PERSON":
        return " ".join(_keep_edges(word, mask_char) for word in text.split(" "))

    if kind == "LOCATION":
        if length <= 2:
            return mask_char * length
        return text[0] + mask_char * (length - 1)

    return _keep_edges(text, mask_char)


def hash_text(text: str) -> str:
    """Short display token derived from *text*. Not a security primitive."""
    value = 0
    for ch in text:
        value = (value * 31 + ord(ch)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return f"[HASH:{abs(value):x}]"


def generate_anonymized_text(original: str, entity_type: str, action: str = "mask") -> str:
    """Render the anonymized form of *original* for the given policy action."""
    if not original:
        return original

    action = action.lower()
    if action == "redact":
        return REDACTED
    if action == "replace":
        return canned_value(entity_type)
    if action == "hash":
        return hash_text(original)
    return mask_text(original, entity_type)


def _keep_edges(word: str, mask_char: str) -> str:
    if len(word) <= 2:
        return mask_char * len(word)
    return word[0] + mask_char * (len(word) - 2) + word[-1]
