from __future__ import annotations

import pytest

from manuscript.importer import (
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
    set_debug_logging,
    validate_import,
)
from manuscript.text import normalize_text

BODY = (
    "This is the beginning of a classic story that has a clear, concise title on the first line. "
    "The title should be properly extracted and used as the manuscript title during the import process. "
    "It keeps going for a while so the document easily clears the minimum size and word count gates "
    "that every import has to pass before a record is produced."
)

GREAT_ADVENTURE = (
    "The Great Adventure\n\nThis is a story about a great adventure that took place many years ago. "
    "The adventure involved many characters and spanned multiple chapters with exciting scenes and "
    "dramatic moments that kept readers engaged throughout."
)


def _words(count: int, word: str = "word") -> str:
    return " ".join([word] * count)


def test_import_uses_supplied_title_and_metadata() -> None:
    options = ImportOptions(title="Test Manuscript", genre="literary", target_audience="adult")
    result = import_from_text(BODY, options)
    assert result.title == "Test Manuscript"
    assert result.text.startswith("This is the beginning")
    assert result.metadata == ImportMetadata(genre="literary", target_audience="adult")


def test_import_extracts_title_from_first_line() -> None:
    result = import_from_text(f"A Tale of Two Cities\n\n      {BODY}")
    assert result.title == "A Tale of Two Cities"
    assert result.text.startswith("A Tale of Two Cities\n\n")


def test_great_adventure_title_is_detected() -> None:
    padded = GREAT_ADVENTURE + " " + BODY
    result = import_from_text(padded)
    assert result.title == "The Great Adventure"
    assert result.text == normalize_text(padded)
    assert extract_title(normalize_text(GREAT_ADVENTURE)) == "The Great Adventure"


def test_short_great_adventure_sample_fails_word_gate() -> None:
    # 37 words: long enough in characters, too few words.
    with pytest.raises(TooFewWordsError):
        import_from_text(GREAT_ADVENTURE)


def test_chapter_heading_first_line_falls_back_to_default_title() -> None:
    result = import_from_text(f"Chapter 1\n\n      {BODY}")
    assert result.title == DEFAULT_TITLE == "Untitled Manuscript"


def test_sentence_first_line_is_not_a_title() -> None:
    text = f"This is clearly a sentence and not a title.\n\n{BODY}"
    assert import_from_text(text).title == DEFAULT_TITLE


def test_long_first_line_is_not_a_title() -> None:
    first_line = (
        "This is a long first line that goes on and on with many words and should not be a title"
    )
    assert len(first_line.split(" ")) > 15
    assert len(first_line) <= 100
    assert import_from_text(f"{first_line}\n\n{BODY}").title == DEFAULT_TITLE


def test_body_without_title_line_uses_default_title() -> None:
    assert import_from_text(BODY).title == DEFAULT_TITLE


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", None),
        ("\n\n  \n", None),
        ("Hi\nbody", None),
        ("Abc\nbody", "Abc"),
        ("   \n  The Title  \nbody", "The Title"),
        ("A" * 100, "A" * 100),
        ("A" * 101, None),
        ("Ends with a period.", None),
        ("Has\ta tab", None),
        (_words(15, "Word"), _words(15, "Word")),
        (_words(16, "Word"), None),
        ("*** Break", None),
        ("Ch. 9", None),
    ],
)
def test_extract_title_rules(text: str, expected: str | None) -> None:
    assert extract_title(text) == expected


def test_only_first_line_is_considered() -> None:
    assert extract_title("Chapter 1\nA Real Title\nbody") is None


def test_empty_document_is_rejected() -> None:
    with pytest.raises(EmptyDocumentError, match="Document appears to be empty"):
        import_from_text("")
    with pytest.raises(EmptyDocumentError):
        import_from_text(" \r\n\t ")


def test_short_document_is_rejected() -> None:
    with pytest.raises(TooShortError, match="Document too short"):
        import_from_text("Too short")
    with pytest.raises(TooShortError):
        import_from_text("a" * 99)


def test_length_boundary_proceeds_to_word_gate() -> None:
    hundred_chars_49_words = " ".join(["a"] * 48 + ["abcd"])
    assert len(hundred_chars_49_words) == 100
    with pytest.raises(TooFewWordsError):
        import_from_text(hundred_chars_49_words)

    hundred_chars_50_words = " ".join(["a"] * 49 + ["bb"])
    assert len(hundred_chars_50_words) == 100
    result = import_from_text(hundred_chars_50_words)
    assert result.text == hundred_chars_50_words


def test_word_count_boundary() -> None:
    with pytest.raises(TooFewWordsError, match=r"minimum 50 words"):
        import_from_text(_words(49))
    result = import_from_text(_words(50))
    assert result.word_count == 50
    assert result.title == DEFAULT_TITLE


def test_too_many_words_is_rejected() -> None:
    with pytest.raises(TooManyWordsError, match="Document too large"):
        import_from_text(_words(500_001, "w"))


def test_messy_text_is_cleaned_before_import() -> None:
    messy = (
        "   Title   \r\n\r\nThis    text   has\textra\r\n\r\n\r\n\r\nspaces   and   weird   line\tendings   "
        "that   need   to   be   cleaned   up   properly   for   processing.   \t  \n\n\n\n\n"
        f"It   should   be   normalized.   {BODY}"
    )
    result = import_from_text(messy)
    assert "\r" not in result.text
    assert "\t" not in result.text
    assert "\n\n\n\n" not in result.text
    assert "  " not in result.text
    assert result.text == result.text.strip()
    assert result.title == "Title"


def test_metadata_passthrough_excludes_title() -> None:
    options = ImportOptions(
        title="Given",
        genre="thriller",
        target_audience="ya",
        comp_titles=["X", "Y"],
    )
    result = import_from_text(BODY, options)
    assert result.metadata.genre == "thriller"
    assert result.metadata.target_audience == "ya"
    assert result.metadata.comp_titles == ("X", "Y")
    assert not hasattr(result.metadata, "title")
    assert "title" not in result.metadata.as_payload()
    assert options.comp_titles == ("X", "Y")


def test_import_is_deterministic() -> None:
    options = ImportOptions(genre="mystery")
    assert import_from_text(BODY, options) == import_from_text(BODY, options)


@pytest.mark.parametrize("genre", ["literary", "thriller", "romance", "mystery", "fantasy", "scifi"])
def test_genres_are_carried_through(genre: str) -> None:
    assert import_from_text(BODY, ImportOptions(genre=genre)).metadata.genre == genre


def test_validate_import_accepts_valid_record() -> None:
    record = ImportResult(title="Test Manuscript", text=BODY, metadata=ImportMetadata(genre="literary"))
    assert validate_import(record) is True


def test_validate_import_rejects_blank_title() -> None:
    with pytest.raises(EmptyTitleError, match="Title cannot be empty"):
        validate_import(ImportResult(title="", text=BODY))
    with pytest.raises(EmptyTitleError):
        validate_import(ImportResult(title="   ", text=BODY))


def test_validate_import_rejects_short_text() -> None:
    with pytest.raises(TextTooShortError, match="Text content too short"):
        validate_import(ImportResult(title="Valid Title", text="Short text"))
    padded = "  " + "x" * 99 + "  "
    with pytest.raises(TextTooShortError):
        validate_import(ImportResult(title="Valid Title", text=padded))


def test_validate_import_title_length_boundary() -> None:
    assert validate_import(ImportResult(title="A" * 200, text=BODY))
    with pytest.raises(TitleTooLongError, match="Title too long"):
        validate_import(ImportResult(title="A" * 201, text=BODY))


def test_validate_import_rejects_huge_documents() -> None:
    record = ImportResult(title="Valid Title", text="word " * 500_001)
    with pytest.raises(TooManyWordsError, match="Document too large"):
        validate_import(record)


def test_import_from_file_passes_picked_text_through() -> None:
    result = import_from_file(lambda: f"A Tale of Two Cities\n{BODY}", ImportOptions(genre="literary"))
    assert result.title == "A Tale of Two Cities"
    assert result.metadata.genre == "literary"


@pytest.mark.parametrize("picked", [None, ""])
def test_import_from_file_without_selection(picked: str | None) -> None:
    with pytest.raises(NoDocumentSelectedError, match="No document selected"):
        import_from_file(lambda: picked)


def test_import_from_file_propagates_picker_errors() -> None:
    def _picker() -> str | None:
        raise UnsupportedFormatError("Unsupported file type: .docx")

    with pytest.raises(UnsupportedFormatError, match=".docx"):
        import_from_file(_picker)


@pytest.mark.parametrize(
    ("error_cls", "kind"),
    [
        (EmptyDocumentError, ImportErrorKind.EMPTY_DOCUMENT),
        (TooShortError, ImportErrorKind.TOO_SHORT),
        (TooFewWordsError, ImportErrorKind.TOO_FEW_WORDS),
        (TooManyWordsError, ImportErrorKind.TOO_MANY_WORDS),
        (EmptyTitleError, ImportErrorKind.EMPTY_TITLE),
        (TextTooShortError, ImportErrorKind.TEXT_TOO_SHORT),
        (TitleTooLongError, ImportErrorKind.TITLE_TOO_LONG),
        (NoDocumentSelectedError, ImportErrorKind.NO_DOCUMENT_SELECTED),
        (UnsupportedFormatError, ImportErrorKind.UNSUPPORTED_FORMAT),
    ],
)
def test_errors_carry_kind_and_default_message(error_cls: type[ManuscriptImportError], kind: ImportErrorKind) -> None:
    error = error_cls()
    assert error.kind is kind
    assert str(error) == error_cls.default_message
    assert isinstance(error, ValueError)
    assert str(error_cls("custom")) == "custom"


def test_too_many_words_message_mentions_limit() -> None:
    assert str(TooManyWordsError()) == "Document too large (maximum 500,000 words)"


def test_record_payload_roundtrip() -> None:
    record = import_from_text(
        BODY, ImportOptions(genre="romance", target_audience="adult", comp_titles=["Persuasion"])
    )
    payload = record.as_payload()
    assert payload["metadata"] == {
        "genre": "romance",
        "target_audience": "adult",
        "comp_titles": ["Persuasion"],
    }
    assert ImportResult.from_payload(payload) == record


def test_record_from_payload_requires_strings() -> None:
    with pytest.raises(ValueError):
        ImportResult.from_payload({"title": 3, "text": BODY})
    with pytest.raises(ValueError):
        ImportResult.from_payload(["not", "a", "record"])
    record = ImportResult.from_payload({"title": "T", "text": "x", "metadata": {"genre": 5}})
    assert record.metadata == ImportMetadata()


def test_debug_logging_prints_title_decision(capsys) -> None:
    set_debug_logging(True)
    try:
        import_from_text(f"Chapter 1\n{BODY}")
    finally:
        set_debug_logging(False)
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[manuscript debug]" in captured.err
    assert "chapter heading" in captured.err
