from __future__ import annotations

import math
import re
from dataclasses import dataclass

DEFAULT_READING_WPM = 200

_LINE_ENDING_RE = re.compile(r"\r\n?")
_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_EXCESS_NEWLINES_RE = re.compile(r"\n{4,}")


@dataclass(frozen=True, slots=True)
class DocumentStats:
    words: int
    characters: int
    reading_minutes: int


def normalize_text(text: str) -> str:
    """
    Canonicalize whitespace in manuscript text.

    Line endings become ``\\n``, runs of spaces/tabs become a single space,
    four or more newlines shrink to three, and the result is stripped.
    """
    if not text:
        return ""
    text = _LINE_ENDING_RE.sub("\n", text)
    text = _INLINE_SPACE_RE.sub(" ", text)
    text = _EXCESS_NEWLINES_RE.sub("\n\n\n", text)
    return text.strip()


def count_words(text: str) -> int:
    if not text:
        return 0
    return len([word for word in text.strip().split() if word])


def reading_time_minutes(words: int, wpm: int = DEFAULT_READING_WPM) -> int:
    if words <= 0:
        return 0
    if wpm <= 0:
        raise ValueError("Reading speed must be a positive number of words per minute.")
    # Halves round up.
    return max(1, int(math.floor(words / wpm + 0.5)))


def document_stats(text: str, *, wpm: int = DEFAULT_READING_WPM) -> DocumentStats:
    words = count_words(text)
    return DocumentStats(
        words=words,
        characters=len(text) if text else 0,
        reading_minutes=reading_time_minutes(words, wpm),
    )


__all__ = [
    "DEFAULT_READING_WPM",
    "DocumentStats",
    "count_words",
    "document_stats",
    "normalize_text",
    "reading_time_minutes",
]
