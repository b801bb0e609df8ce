"""CLI module for MongoDB index drift auditing.

Provides commands to audit (and optionally repair) index drift between a
source and a target database, and to list configured profiles.

Usage:
    mongo-drift audit --source-uri mongodb://a:27017 --source-db app \\
                      --target-uri mongodb://b:27017 --target-db app
    mongo-drift audit --source-profile prod --target-profile staging --hide-matching
    mongo-drift audit --source-profile prod --target-profile staging --force-create-index
    mongo-drift profiles

Commands:
    audit     - Compare document counts and indexes, optionally repair the target
    profiles  - List available profiles
"""

import argparse
import logging
import sys
import tomllib
from pathlib import Path

import pymongo
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from mongo_drift.config.loader import default_config_path, load_drift_config
from mongo_drift.config.models import DriftConfig
from mongo_drift.errors import (
    ConnectionFailedError,
    DeadlineExceededError,
    DriverError,
    FilterParseError,
    ProfileNotFoundError,
)
from mongo_drift.factory import Endpoint, get_profile, open_drivers, resolve_endpoint
from mongo_drift.schema.audit import AuditOptions, run_audit
from mongo_drift.schema.models import AuditResult, CollectionReport

console = Console(highlight=False)

logger = logging.getLogger(__name__)


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(verbosity: int) -> None:
    """Send log records to stderr through rich.

    WARNING by default, INFO with ``-v``, DEBUG with ``-vv``.
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # pymongo's own DEBUG logging is a firehose
    logging.getLogger("pymongo").setLevel(max(level, logging.INFO))


def _positive_float(value: str) -> float:
    """argparse type for ``--timeout``."""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return seconds


def _load_config(args: argparse.Namespace, required: bool) -> DriftConfig:
    """Load the config file.

    A missing default config file yields an empty config unless
    ``required``.  An explicit ``--config`` path must exist.

    Raises:
        FileNotFoundError: If a required or explicit config file is missing.
    """
    explicit = getattr(args, "config", None)
    config_path = Path(explicit) if explicit else default_config_path()
    if not explicit and not required and not config_path.exists():
        return DriftConfig()
    return load_drift_config(config_path)


def _print_error(message: str) -> None:
    console.print(f"[bold red]x[/bold red] {escape(message)}")


def _print_header(source: Endpoint, target: Endpoint) -> None:
    console.print(
        f"Fetching collections from source database [bold]{escape(source.database)}[/bold] "
        f"and target database [bold]{escape(target.database)}[/bold]...",
        style="dim",
    )
    console.print()
    console.print("[bold]--- Comparison Details ---[/bold]")
    console.print(
        f"Source DB: {source.database} (Filter: {source.filter_text}) | "
        f"Target DB: {target.database} (Filter: {target.filter_text})",
        markup=False,
    )


def _print_report(report: CollectionReport, hide_matching: bool) -> None:
    console.print()
    for line in report.format_lines(hide_matching=hide_matching):
        if line.startswith("Collection:"):
            style = "bold"
        elif "Mismatch" in line:
            style = "yellow"
        elif "Failed" in line:
            style = "red"
        else:
            style = None
        console.print(line, style=style, markup=False)


def _print_summary(result: AuditResult) -> None:
    console.print()
    total = len(result.collections)
    if result.has_drift:
        console.print(
            f"[bold yellow]![/bold yellow] Audited {total} collection(s): drift found"
        )
    else:
        console.print(
            f"[bold green]v[/bold green] Audited {total} collection(s): no drift"
        )
    if result.warning_count:
        console.print(
            f"  Warnings: [yellow]{result.warning_count}[/yellow] "
            f"[dim](see log output)[/dim]"
        )


# ============================================================================
# Command implementations
# ============================================================================


def cmd_audit(args: argparse.Namespace) -> int:
    """Audit index drift between source and target.

    Per-collection and per-index problems are logged as warnings and do not
    change the exit status; drift is a finding, not a failure.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 when the run completes, 1 on configuration, connection, listing
        or deadline errors.
    """
    needs_profiles = bool(args.source_profile or args.target_profile)

    try:
        config = _load_config(args, required=needs_profiles)
        source_profile = (
            get_profile(config, args.source_profile) if args.source_profile else None
        )
        target_profile = (
            get_profile(config, args.target_profile) if args.target_profile else None
        )
        source = resolve_endpoint(
            "source",
            uri=args.source_uri,
            database=args.source_db,
            filter_text=args.source_filter,
            profile=source_profile,
        )
        target = resolve_endpoint(
            "target",
            uri=args.target_uri,
            database=args.target_db,
            filter_text=args.target_filter,
            profile=target_profile,
        )
    except (
        FileNotFoundError,
        tomllib.TOMLDecodeError,
        ValidationError,
        ProfileNotFoundError,
        FilterParseError,
    ) as e:
        _print_error(str(e))
        return 1

    hide_matching = args.hide_matching or config.audit.hide_matching
    timeout = args.timeout if args.timeout is not None else config.audit.timeout
    options = AuditOptions(
        source_filter=source.filter,
        target_filter=target.filter,
        compare_counts=config.audit.compare_counts and not args.skip_counts,
        force_create_index=args.force_create_index,
    )
    logger.debug(
        f"Audit options: compare_counts={options.compare_counts}, "
        f"force_create_index={options.force_create_index}, timeout={timeout:g}s"
    )

    try:
        with pymongo.timeout(timeout):
            with open_drivers(source, target) as (source_driver, target_driver):
                _print_header(source, target)
                result = run_audit(
                    source_driver,
                    target_driver,
                    options,
                    on_report=lambda report: _print_report(report, hide_matching),
                )
    except ConnectionFailedError as e:
        _print_error(str(e))
        return 1
    except DeadlineExceededError as e:
        _print_error(f"Run deadline of {timeout:g}s exceeded: {e}")
        return 1
    except DriverError as e:
        _print_error(f"Failed to list collections: {e}")
        return 1

    _print_summary(result)
    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from the config file.

    Reads only the local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if the config file is missing or invalid.
    """
    try:
        config = _load_config(args, required=True)
    except (FileNotFoundError, tomllib.TOMLDecodeError, ValidationError) as e:
        _print_error(str(e))
        return 1

    table = Table(
        title="Audit Profiles", show_header=True, header_style="bold"
    )
    table.add_column("Profile")
    table.add_column("Database")
    table.add_column("Filter")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(
            escape(name),
            escape(profile.database),
            escape(profile.filter),
            escape(profile.description),
        )

    console.print(table)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the ``mongo-drift`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="mongo-drift",
        description="Audit and repair index drift between two MongoDB databases",
    )

    # Global options
    parser.add_argument(
        "--config",
        default=None,
        help="Path to mongo-drift.toml (default: $MONGO_DRIFT_CONFIG or ./mongo-drift.toml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # audit command
    p_audit = subparsers.add_parser(
        "audit",
        help="Compare document counts and indexes, optionally repair the target",
    )
    for side in ("source", "target"):
        p_audit.add_argument(
            f"--{side}-uri",
            default=None,
            help=f"{side.capitalize()} MongoDB connection URI (default: mongodb://localhost:27017)",
        )
        p_audit.add_argument(
            f"--{side}-db",
            default=None,
            help=f"{side.capitalize()} database name (default: {side}-db)",
        )
        p_audit.add_argument(
            f"--{side}-filter",
            default=None,
            help=f'{side.capitalize()} document count filter as Extended JSON (default: "{{}}")',
        )
        p_audit.add_argument(
            f"--{side}-profile",
            default=None,
            help=f"Profile from the config file supplying {side} uri, db and filter",
        )
    p_audit.add_argument(
        "--hide-matching",
        action="store_true",
        help="Hide matching indexes and counts from the output",
    )
    p_audit.add_argument(
        "--force-create-index",
        action="store_true",
        help="Repair the target: drop mismatched or extra indexes and create missing ones",
    )
    p_audit.add_argument(
        "--skip-counts",
        action="store_true",
        help="Skip document count comparison",
    )
    p_audit.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        help="Deadline in seconds for the whole run (default: 60)",
    )
    p_audit.set_defaults(func=cmd_audit)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
