import re

from docshield.extraction.models import ExtractionResult

TRUNCATION_MARKER = "\n[TRUNCATED]"

_HORIZONTAL_WS = re.compile(r"[^\S\n]+")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def clean_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    # tabs count as horizontal whitespace and collapse here
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _CONTROL_CHARS.sub("", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def quality_metrics(text: str) -> dict[str, float | int]:
    words = text.split()
    word_count = len(words)
    avg_word_length = sum(len(w) for w in words) / word_count if word_count else 0.0
    alpha_ratio = sum(1 for c in text if c.isalpha()) / len(text) if text else 0.0
    return {
        "word_count": word_count,
        "avg_word_length": round(avg_word_length, 2),
        "alpha_ratio": round(alpha_ratio, 3),
        "processed_length": len(text),
    }


def post_process(result: ExtractionResult, max_text_length: int) -> ExtractionResult:
    """Normalize *result*'s text in place and attach quality metrics."""
    text = clean_text(result.text)

    if len(text) > max_text_length:
        result.metadata["truncated"] = True
        result.metadata["original_length"] = len(text)
        text = text[:max_text_length] + TRUNCATION_MARKER

    result.text = text
    result.metadata.update(quality_metrics(text))
    return result
