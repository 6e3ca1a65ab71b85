from __future__ import annotations

import re
import warnings
import xml.etree.ElementTree as ET
import zipfile
from collections.abc import Callable
from pathlib import Path, PurePosixPath

from bs4 import (
    BeautifulSoup,
    Doctype,
    FeatureNotFound,
    NavigableString,
    XMLParsedAsHTMLWarning,
)  # type: ignore

from .importer import UnsupportedFormatError, _debug_log
from .text import normalize_text

PLAIN_TEXT_SUFFIXES = (".txt", ".text", ".md", ".markdown")
HTML_SUFFIXES = (".xhtml", ".html", ".htm")
EPUB_SUFFIXES = (".epub",)
SUPPORTED_SUFFIXES = PLAIN_TEXT_SUFFIXES + HTML_SUFFIXES + EPUB_SUFFIXES

_MEDIA_TYPE_FORMATS = {
    "text/plain": "text",
    "text/markdown": "text",
    "text/x-markdown": "text",
    "text/html": "html",
    "application/xhtml+xml": "html",
    "application/epub+zip": "epub",
}

# Blocks start on a new line; headings, paragraphs, list items and rows break
# even when nested inside another block.
FORCE_BREAK_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "dt", "dd", "tr"})
BLOCK_LEVEL_TAGS = FORCE_BREAK_TAGS | frozenset(
    {
        "address", "article", "aside", "blockquote", "div", "dl", "figcaption", "figure",
        "footer", "form", "header", "hgroup", "hr", "main", "nav", "ol", "pre", "section",
        "table", "ul",
    }
)


def _source_format(path: Path, media_type: str | None) -> str | None:
    if media_type:
        fmt = _MEDIA_TYPE_FORMATS.get(media_type.split(";", 1)[0].strip().lower())
        if fmt is not None:
            return fmt
    suffix = path.suffix.lower()
    if suffix in PLAIN_TEXT_SUFFIXES:
        return "text"
    if suffix in HTML_SUFFIXES:
        return "html"
    if suffix in EPUB_SUFFIXES:
        return "epub"
    return None


def _decode_bytes(data: bytes, label: str) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise UnsupportedFormatError(f"Could not decode {label} as UTF-8 text") from exc


def _soup_from_html(html: str) -> BeautifulSoup:
    stripped = html.lstrip()
    lower_head = stripped[:200].lower()
    xmlish = stripped.startswith("<?xml") or (
        "<html" in lower_head and "xmlns" in lower_head
    )

    if xmlish:
        for parser in ("lxml-xml", "xml"):
            try:
                return BeautifulSoup(html, parser)
            except FeatureNotFound:
                continue

    for parser in ("lxml", "html.parser"):
        try:
            with warnings.catch_warnings():
                warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)
                return BeautifulSoup(html, parser)
        except FeatureNotFound:
            continue

    return BeautifulSoup(html, "html.parser")


def html_to_text(html: str) -> str:
    """Collapse an HTML/XHTML document to plain text, one block per line."""
    soup = _soup_from_html(html)
    for node in list(soup.contents):
        if isinstance(node, Doctype):
            node.extract()
        elif isinstance(node, NavigableString):
            stripped = str(node).strip()
            if stripped and stripped.upper().startswith("HTML PUBLIC"):
                node.extract()
    for tag in soup.find_all(["script", "style", "title"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(BLOCK_LEVEL_TAGS):
        if tag.name in FORCE_BREAK_TAGS or not tag.find_parent(BLOCK_LEVEL_TAGS):
            tag.insert_before("\n")
    txt = soup.get_text(separator="")
    txt = re.sub(r"[ \t]+\n", "\n", txt)
    txt = re.sub(r"\n{3,}", "\n\n", txt)
    return txt.strip()


def _find_opf_path(zf: zipfile.ZipFile) -> str:
    try:
        container = ET.fromstring(zf.read("META-INF/container.xml"))
    except (KeyError, ET.ParseError):
        container = None
    if container is not None:
        rootfile = container.find(".//{*}rootfile[@full-path]")
        if rootfile is not None:
            return rootfile.attrib["full-path"]
    opf_names = [name for name in zf.namelist() if name.lower().endswith(".opf")]
    if not opf_names:
        raise UnsupportedFormatError("EPUB package document (OPF) not found")
    return opf_names[0]


def _spine_items(zf: zipfile.ZipFile) -> list[str]:
    """Archive paths of the EPUB's reading-order documents."""
    opf_path = _find_opf_path(zf)
    try:
        package = ET.fromstring(zf.read(opf_path))
    except (KeyError, ET.ParseError) as exc:
        raise UnsupportedFormatError(f"Unreadable EPUB package document: {opf_path}") from exc
    hrefs = {
        item.get("id"): item.get("href")
        for item in package.iterfind(".//{*}manifest/{*}item")
        if item.get("id") and item.get("href")
    }
    opf_dir = PurePosixPath(opf_path).parent
    spine = [
        (opf_dir / hrefs[ref.get("idref")]).as_posix()
        for ref in package.iterfind(".//{*}spine/{*}itemref")
        if ref.get("idref") in hrefs
    ]
    return spine or [name for name in zf.namelist() if name.lower().endswith(HTML_SUFFIXES)]


def epub_to_text(path: Path) -> str:
    try:
        with zipfile.ZipFile(path, "r") as zf:
            sections: list[str] = []
            for name in _spine_items(zf):
                try:
                    raw = zf.read(name)
                except KeyError:
                    _debug_log(f"Spine item missing from archive: {name}")
                    continue
                section = html_to_text(_decode_bytes(raw, name))
                if section:
                    sections.append(section)
    except zipfile.BadZipFile as exc:
        raise UnsupportedFormatError(f"Not a valid EPUB archive: {path.name}") from exc
    return "\n\n".join(sections)


def read_document(path: Path | str, media_type: str | None = None) -> str:
    """
    Read a manuscript file and return its normalized plain text.

    The format is taken from ``media_type`` when it is recognised, otherwise
    from the file suffix. Word-processor formats are rejected with
    ``UnsupportedFormatError``.
    """
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"Document not found: {source}")
    fmt = _source_format(source, media_type)
    _debug_log(f"Reading {source.name} as {fmt or 'unknown'}")
    if fmt is None:
        raise UnsupportedFormatError(
            f"Unsupported file type: {media_type or source.suffix or 'unknown'}"
        )
    if fmt == "epub":
        return normalize_text(epub_to_text(source))
    content = _decode_bytes(source.read_bytes(), source.name)
    if fmt == "html":
        content = html_to_text(content)
    return normalize_text(content)


def document_picker(
    path: Path | str | None, media_type: str | None = None
) -> Callable[[], str | None]:
    """Return a zero-argument picker for ``import_from_file``; ``None`` selects nothing."""

    def _pick() -> str | None:
        if path is None:
            return None
        return read_document(path, media_type)

    return _pick


def iter_documents(root: Path) -> list[Path]:
    if root.is_file():
        return [root]
    return sorted(
        p for p in root.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
    )


__all__ = [
    "SUPPORTED_SUFFIXES",
    "document_picker",
    "epub_to_text",
    "html_to_text",
    "iter_documents",
    "read_document",
]
