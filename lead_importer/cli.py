"""Command line interface for running a bulk lead import."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import ConfigurationError, ImportSettings, iter_roster_users, load_configuration
from .ingestion import HeaderValidationError, UnsupportedFileTypeError, load_raw_leads, template_csv, write_reports
from .orchestrator import BulkImportOrchestrator, ImportInputError
from .store import InMemoryLeadStore


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Validate, normalize, and import a batch of student leads",
    )
    parser.add_argument("input", nargs="?", help="Path to the lead upload (CSV, TSV or XLSX)")
    parser.add_argument(
        "--output-dir",
        default="import_reports",
        help="Directory where the validation log, payload and summary are written",
    )
    parser.add_argument(
        "--config",
        help="Path to the importer configuration file (YAML or JSON) with roster and run options",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and normalize only, without persisting leads",
    )
    parser.add_argument("--chunk-size", type=int, default=None, help="Rows per chunk (overrides the config)")
    parser.add_argument(
        "--mode",
        choices=["sequential", "concurrent"],
        default=None,
        help="Whether to process chunks sequentially or concurrently",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Maximum number of workers to use in concurrent mode",
    )
    parser.add_argument(
        "--strict-headers",
        action="store_true",
        help="Reject uploads whose columns do not match the template exactly",
    )
    parser.add_argument("--excel", action="store_true", help="Also write the validation log as XLSX")
    parser.add_argument("--template", metavar="PATH", help="Write the upload template CSV to PATH and exit")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    if args.template:
        Path(args.template).write_text(template_csv(), encoding="utf-8")
        logging.info("Upload template written to %s", Path(args.template).resolve())
        return 0

    if not args.input:
        parser.error("the following arguments are required: input")

    try:
        config = load_configuration(args.config) if args.config else {}
        settings = ImportSettings.from_config(config)
        users = list(iter_roster_users(config))
        raw_leads = load_raw_leads(args.input, strict_headers=args.strict_headers)
        orchestrator = BulkImportOrchestrator(
            InMemoryLeadStore(users),
            chunk_size=args.chunk_size if args.chunk_size is not None else settings.chunk_size,
            concurrent=(args.mode or settings.mode) == "concurrent",
            max_workers=args.max_workers or settings.max_workers,
            manager_marker=settings.manager_marker,
            default_counselor_marker=settings.default_counselor_marker,
        )
    except (ConfigurationError, HeaderValidationError, UnsupportedFileTypeError, ImportInputError, OSError) as exc:
        logging.error("%s", exc)
        return 2

    result = orchestrator.run(raw_leads, dry_run=args.dry_run)
    written = write_reports(result, args.output_dir, excel=args.excel)

    summary = result.batch_summary
    print(
        f"{summary.total_rows} rows: {summary.imported} imported, "
        f"{summary.imported_with_issues} with issues, {summary.failed} failed"
    )
    logging.info("Reports written to %s", Path(args.output_dir).resolve())
    for name, path in written.items():
        logging.debug("  %s -> %s", name, path)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
