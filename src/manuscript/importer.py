from __future__ import annotations

import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .headings import heading_kind
from .text import count_words, normalize_text

DEFAULT_TITLE = "Untitled Manuscript"
MIN_TEXT_LENGTH = 100
MIN_WORDS = 50
MAX_WORDS = 500_000
MAX_TITLE_LENGTH = 200
MIN_TITLE_CANDIDATE_LENGTH = 3
MAX_TITLE_CANDIDATE_LENGTH = 100
MAX_TITLE_CANDIDATE_WORDS = 15

_DEBUG_LOG = False


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def _debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[manuscript debug] {message}", file=sys.stderr)


class ImportErrorKind(str, Enum):
    EMPTY_DOCUMENT = "empty_document"
    TOO_SHORT = "too_short"
    TOO_FEW_WORDS = "too_few_words"
    TOO_MANY_WORDS = "too_many_words"
    EMPTY_TITLE = "empty_title"
    TEXT_TOO_SHORT = "text_too_short"
    TITLE_TOO_LONG = "title_too_long"
    NO_DOCUMENT_SELECTED = "no_document_selected"
    UNSUPPORTED_FORMAT = "unsupported_format"


class ManuscriptImportError(ValueError):
    """Base class for every failure raised while importing a manuscript."""

    kind: ImportErrorKind
    default_message = "Manuscript import failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class EmptyDocumentError(ManuscriptImportError):
    kind = ImportErrorKind.EMPTY_DOCUMENT
    default_message = "Document appears to be empty"


class TooShortError(ManuscriptImportError):
    kind = ImportErrorKind.TOO_SHORT
    default_message = f"Document too short (minimum {MIN_TEXT_LENGTH} characters)"


class TooFewWordsError(ManuscriptImportError):
    kind = ImportErrorKind.TOO_FEW_WORDS
    default_message = f"Document too short (minimum {MIN_WORDS} words)"


class TooManyWordsError(ManuscriptImportError):
    kind = ImportErrorKind.TOO_MANY_WORDS
    default_message = f"Document too large (maximum {MAX_WORDS:,} words)"


class EmptyTitleError(ManuscriptImportError):
    kind = ImportErrorKind.EMPTY_TITLE
    default_message = "Title cannot be empty"


class TextTooShortError(ManuscriptImportError):
    kind = ImportErrorKind.TEXT_TOO_SHORT
    default_message = "Text content too short"


class TitleTooLongError(ManuscriptImportError):
    kind = ImportErrorKind.TITLE_TOO_LONG
    default_message = f"Title too long (maximum {MAX_TITLE_LENGTH} characters)"


class NoDocumentSelectedError(ManuscriptImportError):
    """Raised when the document picker returns nothing (dialog cancelled)."""

    kind = ImportErrorKind.NO_DOCUMENT_SELECTED
    default_message = "No document selected"


class UnsupportedFormatError(ManuscriptImportError):
    """Raised when a source file cannot be turned into plain text."""

    kind = ImportErrorKind.UNSUPPORTED_FORMAT
    default_message = "Unsupported file type"


def _as_title_tuple(value: Sequence[str] | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class ImportOptions:
    """Caller overrides for one import. ``comp_titles`` is stored as a tuple."""

    title: str | None = None
    genre: str | None = None
    target_audience: str | None = None
    comp_titles: Sequence[str] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "comp_titles", _as_title_tuple(self.comp_titles))


@dataclass(frozen=True)
class ImportMetadata:
    genre: str | None = None
    target_audience: str | None = None
    comp_titles: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "comp_titles", _as_title_tuple(self.comp_titles))

    @classmethod
    def from_options(cls, options: ImportOptions) -> "ImportMetadata":
        return cls(
            genre=options.genre,
            target_audience=options.target_audience,
            comp_titles=options.comp_titles,
        )

    def as_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        if self.genre is not None:
            payload["genre"] = self.genre
        if self.target_audience is not None:
            payload["target_audience"] = self.target_audience
        if self.comp_titles is not None:
            payload["comp_titles"] = list(self.comp_titles)
        return payload

    @classmethod
    def from_payload(cls, payload: object) -> "ImportMetadata":
        if not isinstance(payload, Mapping):
            return cls()
        genre = payload.get("genre")
        audience = payload.get("target_audience")
        comp_titles = payload.get("comp_titles")
        titles: tuple[str, ...] | None = None
        if isinstance(comp_titles, list):
            titles = tuple(item for item in comp_titles if isinstance(item, str))
        return cls(
            genre=genre if isinstance(genre, str) else None,
            target_audience=audience if isinstance(audience, str) else None,
            comp_titles=titles,
        )


@dataclass(frozen=True)
class ImportResult:
    title: str
    text: str
    metadata: ImportMetadata = field(default_factory=ImportMetadata)

    @property
    def word_count(self) -> int:
        return count_words(self.text)

    def as_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "text": self.text,
            "metadata": self.metadata.as_payload(),
        }

    @classmethod
    def from_payload(cls, payload: object) -> "ImportResult":
        if not isinstance(payload, Mapping):
            raise ValueError("Import record must be a JSON object.")
        title = payload.get("title")
        text = payload.get("text")
        if not isinstance(title, str) or not isinstance(text, str):
            raise ValueError("Import record requires string 'title' and 'text' fields.")
        return cls(
            title=title,
            text=text,
            metadata=ImportMetadata.from_payload(payload.get("metadata")),
        )


def extract_title(text: str) -> str | None:
    """
    Guess a title from the first non-blank line of ``text``.

    Only that line is considered. It must look like a short heading (3-100
    characters, no trailing period, no tab, at most 15 words) and must not be
    a chapter heading or divider.
    """
    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return None
    first_line = lines[0]
    if not (MIN_TITLE_CANDIDATE_LENGTH <= len(first_line) <= MAX_TITLE_CANDIDATE_LENGTH):
        return None
    if first_line.endswith("."):
        return None
    if "\t" in first_line:
        return None
    if len(first_line.split(" ")) > MAX_TITLE_CANDIDATE_WORDS:
        return None
    kind = heading_kind(first_line)
    if kind is not None:
        _debug_log(f"First line rejected as title ({kind} heading): {first_line!r}")
        return None
    return first_line


def import_from_text(raw_text: str, options: ImportOptions | None = None) -> ImportResult:
    """
    Normalize ``raw_text`` and build an import record.

    Raises a ``ManuscriptImportError`` subclass when the document is empty,
    shorter than 100 characters, or outside the 50 to 500,000 word range.
    """
    if options is None:
        options = ImportOptions()
    cleaned = normalize_text(raw_text)
    _debug_log(f"Normalized {len(raw_text or '')} chars to {len(cleaned)}")

    if len(cleaned) == 0:
        raise EmptyDocumentError()
    if len(cleaned) < MIN_TEXT_LENGTH:
        raise TooShortError()

    if options.title:
        title = options.title
        _debug_log(f"Using supplied title: {title!r}")
    else:
        extracted = extract_title(cleaned)
        title = extracted or DEFAULT_TITLE
        _debug_log(f"Resolved title: {title!r} (extracted={extracted is not None})")

    word_count = count_words(cleaned)
    _debug_log(f"Word count: {word_count}")
    if word_count < MIN_WORDS:
        raise TooFewWordsError()
    if word_count > MAX_WORDS:
        raise TooManyWordsError()

    return ImportResult(
        title=title,
        text=cleaned,
        metadata=ImportMetadata.from_options(options),
    )


def validate_import(record: ImportResult) -> bool:
    if not record.title or not record.title.strip():
        raise EmptyTitleError()
    if not record.text or len(record.text.strip()) < MIN_TEXT_LENGTH:
        raise TextTooShortError()
    if len(record.title) > MAX_TITLE_LENGTH:
        raise TitleTooLongError()
    if count_words(record.text) > MAX_WORDS:
        raise TooManyWordsError()
    return True


def import_from_file(
    pick_document: Callable[[], str | None],
    options: ImportOptions | None = None,
) -> ImportResult:
    """Acquire text through ``pick_document`` and run it through ``import_from_text``."""
    text = pick_document()
    if not text:
        raise NoDocumentSelectedError()
    return import_from_text(text, options)


__all__ = [
    "DEFAULT_TITLE",
    "EmptyDocumentError",
    "EmptyTitleError",
    "ImportErrorKind",
    "ImportMetadata",
    "ImportOptions",
    "ImportResult",
    "MAX_TITLE_LENGTH",
    "MAX_WORDS",
    "MIN_TEXT_LENGTH",
    "MIN_WORDS",
    "ManuscriptImportError",
    "NoDocumentSelectedError",
    "TextTooShortError",
    "TitleTooLongError",
    "TooFewWordsError",
    "TooManyWordsError",
    "TooShortError",
    "UnsupportedFormatError",
    "extract_title",
    "import_from_file",
    "import_from_text",
    "set_debug_logging",
    "validate_import",
]
