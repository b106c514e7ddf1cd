"""
Text normalization utilities shared by the text-layer and OCR extraction paths.

Both paths must clean text identically, otherwise the success threshold would
mean different things depending on where the text came from.
"""

import re
from typing import List


# ============================================================================
# Whitespace cleanup
# ============================================================================

HORIZONTAL_WS_RUN_RE = re.compile(r"[^\S\n]{2,}")
LEADING_WS_AFTER_NEWLINE_RE = re.compile(r"\n[^\S\n]+")
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

BULLET_RE = re.compile(r"^[\s•●▪◦·\-*>+]+")


def clean_extracted_text(text: str) -> str:
    """
    Normalize whitespace in extracted or recognized text.

    Rules, applied in order:
    1. Runs of 2+ whitespace characters (other than newlines) become one space
    2. Whitespace at the start of a line is removed
    3. 3+ consecutive newlines become a single blank line
    4. Leading/trailing whitespace is trimmed

    Examples:
    - "Jane   Doe" -> "Jane Doe"
    - "Skills\\n    Python" -> "Skills\\nPython"
    - "Page 1\\n\\n\\n\\nPage 2" -> "Page 1\\n\\nPage 2"
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = HORIZONTAL_WS_RUN_RE.sub(" ", text)
    text = LEADING_WS_AFTER_NEWLINE_RE.sub("\n", text)
    text = EXCESS_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def normalize_line(line: str) -> str:
    """Strip bullet glyphs and surrounding whitespace from a section body line."""
    if not line:
        return ""
    return BULLET_RE.sub("", line).strip()


def split_lines(text: str) -> List[str]:
    """Split text into trimmed, non-empty lines."""
    if not text:
        return []
    return [ln.strip() for ln in re.split(r"[\r\n]+", text) if ln.strip()]
