from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from work_import.config.loader import ConfigError, ImportConfig, load_config
from work_import.db.store import ImportStore, InMemoryStore
from work_import.errors import InputFormatError, OcrExtractionError
from work_import.logging.init import log_summary, set_level, setup_logging
from work_import.models.results import PreviewResult
from work_import.services.engine import ImportEngine, ImportMode, ImportSource
from work_import.services.progress import ProgressTracker
from work_import.services.summary import render_summary_line
from work_import.sources.ocr import IMAGE_EXTENSIONS, extract_product_codes, extract_text, parse_invoice_text
from work_import.sources.tesseract import TesseractExtractor

"""CLI entrypoint.

    python -m work_import.cli preview --kind attendance presenze.xlsx
    python -m work_import.cli commit --kind materials listino.csv
    python -m work_import.cli ocr-codes fattura.txt
    python -m work_import.cli ocr-codes fattura.png   (needs the ocr extra)

Master data comes from PostgreSQL (DATABASE_URL / PG* from .env or the
environment, then the ``database`` config section), or from a YAML file given
with ``--master-data`` (in-memory store: commit writes are not saved back).

Exit codes: 0 all rows valid / imported, 2 some rows errored, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/import.yml")


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so DB connection variables take precedence over the config file."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="work-import", description="Spreadsheet / invoice import with preview and commit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("--master-data", type=Path, default=None, help="YAML master data instead of the database")
    sub = p.add_subparsers(dest="command", required=True)

    for name, help_text in (("preview", "Classify rows without writing anything"), ("commit", "Import valid rows")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--kind", required=True, choices=["attendance", "materials"])
        cmd.add_argument("file", type=Path)

    ocr = sub.add_parser("ocr-codes", help="Product codes and invoice lines in an invoice image or its extracted text")
    ocr.add_argument("file", type=Path)
    return p.parse_args(argv)


def _load_cli_config(path: Path | None) -> ImportConfig:
    if path is None:
        # Default file is optional; an explicit --config must exist
        if not DEFAULT_CONFIG_PATH.exists():
            return ImportConfig()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def _open_store(args: argparse.Namespace, cfg: ImportConfig) -> ImportStore:
    if args.master_data is not None:
        data = yaml.safe_load(args.master_data.read_text(encoding="utf-8")) or {}
        return InMemoryStore.from_mapping(data)
    from work_import.db.postgres import PostgresStore, connect

    return PostgresStore(connect(cfg.database))


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _ocr_codes(path: Path, cfg: ImportConfig) -> int:
    if path.suffix.lower() in IMAGE_EXTENSIONS:
        extractor = TesseractExtractor(cfg.ocr_language)
        text = asyncio.run(extract_text(path.read_bytes(), extractor, cfg.ocr_timeout_seconds))
    else:
        text = path.read_text(encoding="utf-8")
    _print_json(
        {
            "codes": extract_product_codes(text),
            "candidates": [r.fields for r in parse_invoice_text(text, source=path.name)],
        }
    )
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] from tests must not pick up pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_cli_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "ocr-codes":
        try:
            return _ocr_codes(args.file, cfg)
        except OcrExtractionError as e:
            logger.error(f"{args.file.name}: {e.render(cfg.locale)}")
            return EXIT_FATAL
        except OSError as e:
            logger.error(f"ocr-codes: {e}")
            return EXIT_FATAL

    if not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL

    try:
        store = _open_store(args, cfg)
    except Exception as e:
        logger.error(f"master data: {e}")
        return EXIT_FATAL

    engine = ImportEngine(store, cfg, progress_factory=lambda total: ProgressTracker(total))
    source = ImportSource.from_path(args.file)
    mode = ImportMode.COMMIT if args.command == "commit" else ImportMode.DRY_RUN
    logger.info(f"{args.command} {source.name} kind={args.kind}")

    try:
        result = engine.run(source, args.kind, mode)
    except InputFormatError as e:
        message = e.render(cfg.locale)
        logger.error(f"{source.name}: {message}")
        engine.log_batch_error(source.name, e.kind, message)
        return EXIT_FATAL

    _print_json(result.to_dict())
    summary_line = render_summary_line(args.command, args.kind, result)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(summary_line[len("SUMMARY "):])

    failed = result.stats.error_count if isinstance(result, PreviewResult) else len(result.errors)
    return EXIT_PARTIAL_FAILURE if failed else EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
