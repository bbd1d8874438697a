from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from rowloader.adapters.csv_source import CsvSource
from rowloader.app import generate_template, import_model, load_file, run_setup
from rowloader.config import ConfigurationError, configure_logging
from rowloader.domain.errors import MappingError, PipelineFatalError
from rowloader.domain.operators import OperatorKind
from rowloader.domain.options import ImportOptions

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from rowloader.domain.report import ImportReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load tabular data into mapped models")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level name (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    load = subparsers.add_parser("load", help="Import a CSV file into a model")
    load.add_argument("model", help="Target class as 'package.module:Class'")
    load.add_argument("file", type=Path, help="CSV file with a header row")
    load.add_argument(
        "--setup",
        type=str,
        help="Zero-argument hook 'module:callable' run before loading (e.g. mapper setup)",
    )
    load.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI)",
    )
    load.add_argument(
        "--encoding",
        type=str,
        default="utf-8",
        help="Text encoding of FILE (default: %(default)s)",
    )
    load.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables for the model's metadata before loading",
    )
    load.add_argument(
        "--dummy",
        action="store_true",
        help="Process every row, then roll back instead of committing",
    )
    load.add_argument(
        "--mandatory",
        action="append",
        default=[],
        metavar="COLUMN",
        help="Column that must be present in the header (repeatable)",
    )
    load.add_argument(
        "--force",
        action="append",
        default=[],
        metavar="COLUMN",
        help="Unmatched column to bind as a plain assignment anyway (repeatable)",
    )
    load.add_argument(
        "--include-all",
        action="store_true",
        help="Bind every unmatched column as a plain assignment",
    )
    load.add_argument(
        "--strict",
        action="store_true",
        help="Fail when a column cannot be mapped",
    )
    load.add_argument(
        "--default",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Value for an operator when a row does not supply one (repeatable)",
    )
    load.add_argument(
        "--verbose",
        action="store_true",
        help="Echo failed rows to stderr",
    )
    load.add_argument(
        "--json",
        action="store_true",
        help="Print the import summary as JSON",
    )

    template = subparsers.add_parser("template", help="Write a header-only CSV template")
    template.add_argument("model", help="Target class as 'package.module:Class'")
    template.add_argument("output", type=Path, help="Path of the CSV file to write")
    template.add_argument(
        "--setup",
        type=str,
        help="Zero-argument hook 'module:callable' run before introspection",
    )
    template.add_argument(
        "--with-associations",
        action="store_true",
        help="Include relationship columns",
    )
    template.add_argument(
        "--exclude",
        action="append",
        default=[],
        choices=[kind.value for kind in OperatorKind if kind.is_association],
        help="Association kind to leave out (repeatable)",
    )
    template.add_argument(
        "--remove",
        action="append",
        default=[],
        metavar="NAME",
        help="Operator to leave out (repeatable)",
    )
    template.add_argument(
        "--remove-system",
        action="store_true",
        help="Leave out id, created_at and updated_at",
    )

    return parser.parse_args(list(argv))


def _parse_defaults(values: Sequence[str]) -> dict[str, str]:
    defaults: dict[str, str] = {}
    for value in values:
        name, sep, default = value.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid --default {value!r}, expected NAME=VALUE")
        defaults[name.strip()] = default
    return defaults


def _build_options(args: argparse.Namespace) -> ImportOptions:
    return ImportOptions(
        dummy_run=args.dummy,
        mandatory=args.mandatory,
        force_inclusion=args.force,
        include_all=args.include_all,
        strict=args.strict,
        verbose=args.verbose,
        defaults=_parse_defaults(args.default),
    )


def _print_summary(report: ImportReport, *, as_json: bool) -> None:
    summary = report.render()
    print(summary.model_dump_json(indent=2) if as_json else summary.to_text())  # noqa: T201


def _run_load(args: argparse.Namespace) -> int:
    options = _build_options(args)
    if args.setup:
        run_setup(args.setup)
    model = import_model(args.model)
    report = load_file(
        model,
        args.file,
        options,
        source=CsvSource(encoding=args.encoding),
        database_uri=args.database_uri,
        create_missing_tables=args.create_tables,
    )
    _print_summary(report, as_json=args.json)
    return 1 if report.failed else 0


def _run_template(args: argparse.Namespace) -> int:
    if args.setup:
        run_setup(args.setup)
    model = import_model(args.model)
    path = generate_template(
        model,
        args.output,
        with_associations=args.with_associations,
        exclude=tuple(args.exclude),
        remove=tuple(args.remove),
        remove_system=args.remove_system,
    )
    log.info("Template written to %s", path)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        configure_logging(level=parsed_args.log_level)
        if parsed_args.command == "load":
            code = _run_load(parsed_args)
        elif parsed_args.command == "template":
            code = _run_template(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ValueError, ConfigurationError, MappingError):
        log.exception("CLI validation error")
        sys.exit(2)
    except PipelineFatalError as exc:
        log.exception("Import aborted")
        if exc.report is not None:
            _print_summary(exc.report, as_json=getattr(parsed_args, "json", False))
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)

    if code:
        sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
