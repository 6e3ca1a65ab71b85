from .headings import is_chapter_heading
from .importer import (
    DEFAULT_TITLE,
    EmptyDocumentError,
    EmptyTitleError,
    ImportErrorKind,
    ImportMetadata,
    ImportOptions,
    ImportResult,
    ManuscriptImportError,
    NoDocumentSelectedError,
    TextTooShortError,
    TitleTooLongError,
    TooFewWordsError,
    TooManyWordsError,
    TooShortError,
    UnsupportedFormatError,
    extract_title,
    import_from_file,
    import_from_text,
    validate_import,
)
from .sources import document_picker, read_document
from .text import count_words, normalize_text

__all__ = [
    "DEFAULT_TITLE",
    "ImportOptions",
    "ImportMetadata",
    "ImportResult",
    "ImportErrorKind",
    "ManuscriptImportError",
    "EmptyDocumentError",
    "TooShortError",
    "TooFewWordsError",
    "TooManyWordsError",
    "EmptyTitleError",
    "TextTooShortError",
    "TitleTooLongError",
    "NoDocumentSelectedError",
    "UnsupportedFormatError",
    "normalize_text",
    "count_words",
    "is_chapter_heading",
    "extract_title",
    "import_from_text",
    "import_from_file",
    "validate_import",
    "read_document",
    "document_picker",
]
