"""Command-line interface for the finance importer."""

import argparse
import os
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from finance_ingest import __version__
from finance_ingest.config import ConfigError, IngestConfig, load_config
from finance_ingest.models.summary import ImportResult, SourceInput
from finance_ingest.models.transaction import SourceKind
from finance_ingest.processing.orchestrator import ImportFailedError, ImportOrchestrator
from finance_ingest.storage.csv_store import CSVMetricStore
from finance_ingest.utils.decimal_utils import format_currency
from finance_ingest.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)

OWNER_ENV_VAR = "FINANCE_INGEST_OWNER"
DEFAULT_STORE_PATH = Path("data/metrics.csv")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ALL_SOURCES_FAILED = 2


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="finance-ingest",
        description=(
            "Import bank statements, crypto holdings and manual expense logs "
            "into a deduplicated, categorized record store"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --bank statement.csv --owner alice
  %(prog)s --bank monzo.csv --bank hdfc.csv --crypto portfolio.txt
  %(prog)s --manual expenses.txt --reference-year 2025 --dry-run
  %(prog)s --validate-only --config-dir ./config
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    inputs = parser.add_argument_group("Inputs")
    inputs.add_argument(
        "--bank",
        type=Path,
        action="append",
        default=[],
        metavar="FILE",
        help="Bank statement CSV (repeatable)",
    )
    inputs.add_argument(
        "--crypto",
        type=Path,
        default=None,
        metavar="FILE",
        help="Crypto portfolio text dump",
    )
    inputs.add_argument(
        "--manual",
        type=Path,
        default=None,
        metavar="FILE",
        help="Manual expense log",
    )

    parser.add_argument(
        "--owner",
        default=None,
        help=f"Owner of the imported records (default: ${OWNER_ENV_VAR} or import.owner_id)",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=DEFAULT_STORE_PATH,
        metavar="PATH",
        help=f"CSV record store (default: {DEFAULT_STORE_PATH})",
    )
    parser.add_argument(
        "--reference-year",
        type=int,
        default=None,
        metavar="YEAR",
        help="Year for manual entries written without one (required with --manual)",
    )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Configuration directory (default: ./config)",
    )
    config_group.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: <config-dir>/settings.yaml)",
    )
    config_group.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="Classification rules file (default: packaged rules)",
    )
    config_group.add_argument(
        "--large-transfer-threshold",
        default=None,
        metavar="AMOUNT",
        help="Treat amounts above this as internal transfers; 'none' disables the rule",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and classify without writing to the store",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Only validate configuration files",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for info, -vv for debug)",
    )

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def parse_threshold(value: str) -> Optional[Decimal]:
    """Parse a --large-transfer-threshold value.

    Raises:
        ValueError: If the value is neither a non-negative number nor "none".
    """
    if value.strip().lower() in ("none", "off"):
        return None
    try:
        threshold = Decimal(value.strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid threshold: {value!r}") from e
    if threshold < 0:
        raise ValueError(f"Threshold must not be negative: {value!r}")
    return threshold


def validate_config(args: argparse.Namespace) -> int:
    """Validate configuration files.

    Args:
        args: Parsed command-line arguments.

    Returns:
        0 if valid, 1 if errors found.
    """
    console.print("[bold]Validating configuration files...[/bold]\n")

    warnings = []
    config_dir = args.config_dir
    if not config_dir.exists():
        warnings.append(f"Config directory not found: {config_dir}")

    settings_path = args.config or (config_dir / "settings.yaml")
    if settings_path.exists():
        console.print(f"[green]✓[/green] Settings: {settings_path}")
    else:
        warnings.append(f"Settings file not found: {settings_path}")

    try:
        config = load_config(settings_path=args.config, rules_path=args.rules, config_dir=config_dir)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"\n[red]Errors:[/red]\n  - Failed to load configuration: {e}")
        return EXIT_FAILURE

    rules_source = config.classification.rules_file or "packaged defaults"
    console.print(f"[green]✓[/green] Rules: {rules_source}")
    console.print("\n[green]✓[/green] Configuration loaded successfully")
    console.print(f"  - {len(config.rule_set)} rules (version {config.rule_set.version})")
    console.print(f"  - {len(config.rule_set.categories())} categories")
    console.print(f"  - {len(config.transfers.phrases)} transfer phrases")
    threshold = config.transfers.large_transfer_threshold
    console.print(f"  - large-transfer threshold: {threshold if threshold is not None else 'disabled'}")

    if warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for w in warnings:
            console.print(f"  - {w}")

    console.print("\n[green]Configuration is valid.[/green]")
    return EXIT_OK


def collect_inputs(args: argparse.Namespace) -> list[SourceInput]:
    """Read every input file named on the command line.

    Raises:
        FileNotFoundError: If an input file doesn't exist.
    """
    named: list[tuple[SourceKind, Path]] = [(SourceKind.BANK, p) for p in args.bank]
    if args.crypto is not None:
        named.append((SourceKind.CRYPTO, args.crypto))
    if args.manual is not None:
        named.append((SourceKind.MANUAL, args.manual))

    inputs = []
    for kind, path in named:
        if not path.is_file():
            raise FileNotFoundError(f"Input file not found: {path}")
        text = path.read_text(encoding="utf-8", errors="replace")
        inputs.append(SourceInput(kind=kind, text=text, name=path.name))
    return inputs


def display_summary(result: ImportResult) -> None:
    """Display the import summary.

    Args:
        result: Result of the import run.
    """
    s = result.summary
    title = "Import Summary (dry run)" if result.dry_run else "Import Summary"
    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Rows processed", str(s.processed))
    table.add_row("Transactions imported", str(s.imported))
    table.add_row("Crypto holdings", str(s.holdings_imported))
    table.add_row("Transfers filtered", str(s.transfers_filtered))
    table.add_row("Duplicates skipped", str(s.duplicates_skipped))
    table.add_row("Malformed skipped", str(s.malformed_skipped))
    table.add_row("Zero amounts dropped", str(s.zero_amount_dropped))
    if s.date_range is not None:
        start, end = s.date_range
        table.add_row("Date range", f"{start.isoformat()} to {end.isoformat()}")
    for currency, amount in sorted(s.expense_totals.items()):
        table.add_row(f"Expenses ({currency})", format_currency(amount, currency))
    console.print(table)

    if result.committed_sources:
        label = "Processed" if result.dry_run else "Committed"
        console.print(f"\n{label} sources: {', '.join(result.committed_sources)}")

    if s.failed_sources:
        console.print(f"\n[red]Failed sources ({len(s.failed_sources)}):[/red]")
        for name, reason in s.failed_sources.items():
            console.print(f"  - {name}: {reason}")

    if s.warnings:
        console.print(f"\n[yellow]Warnings ({len(s.warnings)}):[/yellow]")
        for w in s.warnings[:10]:
            console.print(f"  - {w}")
        if len(s.warnings) > 10:
            console.print(f"  ... and {len(s.warnings) - 10} more")

    console.print(f"\n{result.message()}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Argument list (default: sys.argv[1:]).

    Returns:
        Exit code: 0 on success, 1 on fatal failure or bad arguments,
        2 if every source failed.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = get_log_level(args.verbose)
    setup_logging(level=log_level, log_file="", console_output=args.verbose > 0)

    if args.validate_only:
        return validate_config(args)

    try:
        config: IngestConfig = load_config(
            settings_path=args.config,
            rules_path=args.rules,
            config_dir=args.config_dir,
        )
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("Run with --validate-only to check configuration files.")
        return EXIT_FAILURE

    setup_logging(
        level=log_level if args.verbose else config.logging.level,
        log_file=config.logging.file,
        console_output=args.verbose > 0,
    )

    if args.large_transfer_threshold is not None:
        try:
            config.transfers.large_transfer_threshold = parse_threshold(args.large_transfer_threshold)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            return EXIT_FAILURE

    owner_id = args.owner or os.environ.get(OWNER_ENV_VAR) or config.import_settings.owner_id
    if not owner_id:
        console.print(f"[red]Error: --owner is required (or set {OWNER_ENV_VAR})[/red]")
        parser.print_usage()
        return EXIT_FAILURE

    if args.manual is not None and args.reference_year is None:
        console.print("[red]Error: --reference-year is required with --manual[/red]")
        parser.print_usage()
        return EXIT_FAILURE

    try:
        inputs = collect_inputs(args)
    except (FileNotFoundError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FAILURE
    if not inputs:
        console.print("[red]Error: at least one of --bank, --crypto or --manual is required[/red]")
        parser.print_usage()
        return EXIT_FAILURE

    console.print(f"[bold]Finance Ingest v{__version__}[/bold]\n")
    console.print(f"Store: {args.store}{' (dry run)' if args.dry_run else ''}")
    console.print(f"Sources: {', '.join(s.name for s in inputs)}\n")

    orchestrator = ImportOrchestrator(CSVMetricStore(args.store), owner_id, config=config)
    try:
        result = orchestrator.run_inputs(inputs, reference_year=args.reference_year, dry_run=args.dry_run)
    except ImportFailedError as e:
        console.print(f"[red]Error: {e}: {e.__cause__}[/red]")
        display_summary(e.result)
        return EXIT_FAILURE

    display_summary(result)
    if result.all_sources_failed:
        return EXIT_ALL_SOURCES_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
