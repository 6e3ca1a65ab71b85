from __future__ import annotations

import argparse
import json
import os
import sys
from importlib import metadata
from pathlib import Path

import tomllib
from rich.console import Console
from rich.markup import escape

from .importer import (
    ImportOptions,
    ImportResult,
    ManuscriptImportError,
    import_from_file,
    set_debug_logging,
    validate_import,
)
from .sources import SUPPORTED_SUFFIXES, document_picker, iter_documents, read_document
from .text import DEFAULT_READING_WPM, document_stats, reading_time_minutes

_READING_WPM_ENV = "MANUSCRIPT_READING_WPM"


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("manuscript")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"manuscript {__version__}",
    )


def _reading_wpm() -> int:
    env_value = os.getenv(_READING_WPM_ENV)
    if env_value:
        try:
            parsed = int(env_value)
        except ValueError:
            return DEFAULT_READING_WPM
        if parsed > 0:
            return parsed
    return DEFAULT_READING_WPM


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="manuscript",
        description=(
            "Import manuscript files into normalized records. "
            "Use `manuscript check` to re-validate saved records."
        ),
    )
    _add_version_flag(ap)
    ap.add_argument(
        "command",
        nargs="?",
        choices=["import", "check", "stats"],
        help="Subcommand to run.",
    )
    return ap


def build_import_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="manuscript import",
        description="Normalize and validate manuscript files (.txt, .md, .html, .epub).",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "paths",
        nargs="+",
        help="Manuscript files, or directories containing them.",
    )
    ap.add_argument("--title", help="Title to use instead of detecting one (single file only).")
    ap.add_argument("--genre", help="Genre stored in the record metadata.")
    ap.add_argument(
        "--audience",
        dest="target_audience",
        help="Target audience stored in the record metadata (e.g. adult, ya, mg).",
    )
    ap.add_argument(
        "--comp-title",
        dest="comp_titles",
        action="append",
        default=None,
        help="Comparable title; repeat for several.",
    )
    ap.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        help="Write one <name>.json record per imported file into this directory.",
    )
    ap.add_argument(
        "--json",
        action="store_true",
        help="Print the imported records as a JSON list instead of a summary.",
    )
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging (normalization, title detection).",
    )
    return ap


def build_check_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="manuscript check",
        description="Validate saved import records (JSON) before they are stored.",
    )
    _add_version_flag(ap)
    ap.add_argument("records", nargs="+", type=Path, help="Record files written by `manuscript import -o`.")
    return ap


def build_stats_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="manuscript stats",
        description="Show word count, character count and reading time of a document.",
    )
    _add_version_flag(ap)
    ap.add_argument("path", type=Path, help="Manuscript file.")
    return ap


def _collect_paths(raw_paths: list[str]) -> list[Path]:
    collected: list[Path] = []
    for raw in raw_paths:
        path = Path(raw)
        if not path.exists():
            raise FileNotFoundError(f"Input path not found: {path}")
        if path.is_dir():
            documents = iter_documents(path)
            if not documents:
                suffixes = ", ".join(SUPPORTED_SUFFIXES)
                raise FileNotFoundError(f"No manuscript files ({suffixes}) found in directory: {path}")
            collected.extend(documents)
        else:
            collected.append(path)
    return collected


def _record_basename(source: Path, used_names: set[str]) -> str:
    candidates = [source.stem, source.name]
    for candidate in candidates:
        if candidate not in used_names:
            used_names.add(candidate)
            return candidate
    fallback = source.name
    suffix = 1
    candidate = fallback
    while candidate in used_names:
        suffix += 1
        candidate = f"{fallback}_{suffix}"
    used_names.add(candidate)
    return candidate


def _write_record(
    output_dir: Path, source: Path, record: ImportResult, used_names: set[str]
) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / f"{_record_basename(source, used_names)}.json"
    target.write_text(
        json.dumps(record.as_payload(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return target


def _run_import(args: argparse.Namespace, console: Console) -> int:
    set_debug_logging(bool(getattr(args, "debug", False)))
    paths = _collect_paths(args.paths)
    if args.title and len(paths) > 1:
        raise ValueError("--title can only be used when importing a single file.")
    options = ImportOptions(
        title=args.title,
        genre=args.genre,
        target_audience=args.target_audience,
        comp_titles=args.comp_titles,
    )
    wpm = _reading_wpm()
    payloads: list[dict[str, object]] = []
    used_names: set[str] = set()
    failures = 0
    total = len(paths)
    for index, path in enumerate(paths, start=1):
        label = f"[{index}/{total}] {escape(path.name)}"
        try:
            record = import_from_file(document_picker(path), options)
        except (ManuscriptImportError, FileNotFoundError, ValueError) as exc:
            failures += 1
            if not args.json:
                console.print(f"{label}: [red]FAILED[/red] {exc.__class__.__name__}: {escape(str(exc))}")
            continue
        payloads.append({"file": path.name, **record.as_payload()})
        words = record.word_count
        if args.output_dir is not None:
            _write_record(args.output_dir, path, record, used_names)
        if not args.json:
            minutes = reading_time_minutes(words, wpm)
            console.print(
                f"{label}: [green]OK[/green] {escape(record.title)} · {words:,} words · {minutes} min read"
            )
    if args.json:
        print(json.dumps(payloads, ensure_ascii=False, indent=2))
    elif total > 1:
        console.print(f"Imported {total - failures} of {total} files.")
    return 0 if failures == 0 else 1


def _run_check(args: argparse.Namespace, console: Console) -> int:
    failures = 0
    for path in args.records:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            record = ImportResult.from_payload(payload)
            validate_import(record)
        except (OSError, json.JSONDecodeError, ValueError) as exc:
            failures += 1
            console.print(f"{escape(path.name)}: [red]INVALID[/red] {escape(str(exc))}")
            continue
        console.print(f"{escape(path.name)}: [green]OK[/green] {escape(record.title)}")
    return 0 if failures == 0 else 1


def _run_stats(args: argparse.Namespace, console: Console) -> int:
    try:
        text = read_document(args.path)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc
    stats = document_stats(text, wpm=_reading_wpm())
    console.print(f"Words: {stats.words:,}")
    console.print(f"Characters: {stats.characters:,}")
    console.print(f"Reading time: {stats.reading_minutes} min")
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    console = Console(highlight=False, soft_wrap=True)

    if argv and argv[0] == "import":
        import_args = build_import_parser().parse_args(argv[1:])
        return _run_import(import_args, console)
    if argv and argv[0] == "check":
        check_args = build_check_parser().parse_args(argv[1:])
        return _run_check(check_args, console)
    if argv and argv[0] == "stats":
        stats_args = build_stats_parser().parse_args(argv[1:])
        return _run_stats(stats_args, console)

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    parser.parse_args(argv)
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
