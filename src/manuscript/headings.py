from __future__ import annotations

import re

CHAPTER_WORDS = (
    "One",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
    "Ten",
    "Eleven",
    "Twelve",
    "Thirteen",
    "Fourteen",
    "Fifteen",
    "Sixteen",
    "Seventeen",
    "Eighteen",
    "Nineteen",
    "Twenty",
)

# Prefix matches only. The roman rule is a character-class heuristic, not a
# numeral grammar, so "VIIII" or "Idle" also match. Digits are ASCII only.
HEADING_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("chapter", re.compile(r"Chapter\s+[0-9]+", re.IGNORECASE)),
    ("ch", re.compile(r"Ch\.?\s+[0-9]+", re.IGNORECASE)),
    ("numbered", re.compile(r"[0-9]+\.?\s")),
    ("number_word", re.compile("(?:" + "|".join(CHAPTER_WORDS) + ")", re.IGNORECASE)),
    ("roman", re.compile(r"(?:I{1,3}|IV|V|VI{0,3}|IX|X|XI{0,3}|XIV|XV|XVI{0,3}|XIX|XX)")),
    ("divider", re.compile(r"[#*]{3,}")),
    ("scene_break", re.compile(r"\*\*\*+")),
)


def heading_kind(line: str) -> str | None:
    """Return the name of the first heading rule matching the start of ``line``."""
    for name, pattern in HEADING_PATTERNS:
        if pattern.match(line):
            return name
    return None


def is_chapter_heading(line: str) -> bool:
    return heading_kind(line) is not None


__all__ = ["CHAPTER_WORDS", "HEADING_PATTERNS", "heading_kind", "is_chapter_heading"]
