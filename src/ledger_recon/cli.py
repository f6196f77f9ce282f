"""
Command-line interface for the ledger / statement reconciliation tool.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from pydantic import ValidationError

from . import __version__
from .config import load_config, generate_default_config, AutoMatchSettings, ReconConfig
from .matching.candidates import CandidateScorer
from .matching.engine import ReconciliationEngine
from .models.reconciliation import ReconciliationCandidate, ReconciliationSummary
from .models.transaction import Transaction
from .parsers.csv_parser import TransactionCsvParser
from .reports.excel_generator import ExcelReportGenerator, default_report_path
from .reports.formatting import format_amount, format_reasons
from .utils.exceptions import ConfigurationError, ReconciliationError
from .utils.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """Ledger to Bank Statement Reconciliation Tool."""
    pass


@main.command()
@click.argument("internal_file", type=click.Path(exists=True, path_type=Path))
@click.argument("external_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option("--date-margin", type=int, default=None, help="Override date margin in days")
@click.option(
    "--amount-tolerance",
    type=str,
    default=None,
    help="Override amount tolerance (e.g. 0.05)",
)
@click.option(
    "--max-combination-size",
    type=int,
    default=None,
    help="Override the largest many-to-one combination",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Parse files and show summary without generating report"
)
def reconcile(
    internal_file: Path,
    external_file: Path,
    config: Optional[Path],
    output: Optional[Path],
    date_margin: Optional[int],
    amount_tolerance: Optional[str],
    max_combination_size: Optional[int],
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile a ledger export with a bank statement.

    INTERNAL_FILE: Path to the ledger CSV

    EXTERNAL_FILE: Path to the bank statement CSV
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    try:
        recon_config = load_config(config)
        _configure_logging(recon_config, verbose)
        _apply_overrides(recon_config, date_margin, amount_tolerance, max_combination_size)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Parsing ledger file...", total=None)
            internal_txns = TransactionCsvParser(recon_config, id_prefix="INT").parse_file(
                internal_file
            )
            progress.update(task, completed=True)

            task = progress.add_task("Parsing statement file...", total=None)
            external_txns = TransactionCsvParser(recon_config, id_prefix="EXT").parse_file(
                external_file
            )
            progress.update(task, completed=True)

            task = progress.add_task("Running reconciliation...", total=None)
            start_time = datetime.now()

            engine = ReconciliationEngine(recon_config.matching)
            result = engine.reconcile(internal_txns, external_txns)

            processing_time = (datetime.now() - start_time).total_seconds()
            progress.update(task, completed=True)

            summary = engine.generate_summary(
                internal_txns,
                external_txns,
                result,
                internal_source=internal_file.name,
                external_source=external_file.name,
                processing_time=processing_time,
                config_file_used=recon_config.config_file_path,
            )

        _display_summary(summary)

        if dry_run:
            console.print("\n[yellow]Dry run - no report generated[/yellow]")
            return

        if output is None:
            output = default_report_path(recon_config)

        report_path = ExcelReportGenerator(recon_config).generate_report(
            summary=summary,
            result=result,
            internal_transactions=internal_txns,
            external_transactions=external_txns,
            output_path=output,
        )

        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command()
@click.argument("internal_file", type=click.Path(exists=True, path_type=Path))
@click.argument("external_file", type=click.Path(exists=True, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
@click.option("--external-id", help="Only rank candidates for this statement transaction")
@click.option("--top", type=int, default=5, show_default=True, help="Candidates shown per transaction")
def candidates(
    internal_file: Path,
    external_file: Path,
    config: Optional[Path],
    external_id: Optional[str],
    top: int,
):
    """
    Rank ledger transactions as possible matches for statement transactions.

    INTERNAL_FILE: Path to the ledger CSV

    EXTERNAL_FILE: Path to the bank statement CSV
    """
    try:
        recon_config = load_config(config)
        _configure_logging(recon_config, verbose=False)
        internal_txns = TransactionCsvParser(recon_config, id_prefix="INT").parse_file(
            internal_file
        )
        external_txns = TransactionCsvParser(recon_config, id_prefix="EXT").parse_file(
            external_file
        )
    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    targets = external_txns
    if external_id is not None:
        targets = [t for t in external_txns if t.id == external_id]
        if not targets:
            console.print(f"[red]No statement transaction with id {external_id}[/red]")
            sys.exit(1)

    scorer = CandidateScorer(recon_config.candidates)
    batch = scorer.find_batch_candidates(targets, internal_txns)

    for target in targets:
        _display_candidates(target, batch.get(target.id, [])[:top])


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _display_summary(summary: ReconciliationSummary) -> None:
    """Display reconciliation summary in console."""
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Internal Transactions", str(summary.total_internal_transactions))
    table.add_row("External Transactions", str(summary.total_external_transactions))
    table.add_row("Matches", str(summary.match_count))
    table.add_row("Unmatched Internal", str(summary.unmatched_internal_count))
    table.add_row("Unmatched External", str(summary.unmatched_external_count))
    table.add_row("Matches With Difference", str(summary.difference_count))
    table.add_row("Internal Match Rate", f"{summary.match_rate_internal:.1f}%")
    table.add_row("External Match Rate", f"{summary.match_rate_external:.1f}%")
    for rule, count in summary.matches_by_rule.items():
        table.add_row(f"  {rule}", str(count))
    table.add_row("Processing Time", f"{summary.processing_time_seconds:.2f}s")

    console.print(table)


def _display_candidates(target: Transaction, ranked: list[ReconciliationCandidate]) -> None:
    if not ranked:
        console.print(f"[yellow]No candidates for {target.id}[/yellow]")
        return

    table = Table(
        title=(
            f"{target.id} {target.date} {format_amount(target.signed_amount)} "
            f"{target.description[:40]}"
        )
    )
    table.add_column("Score", justify="right", style="cyan")
    table.add_column("ID")
    table.add_column("Date")
    table.add_column("Amount", justify="right")
    table.add_column("Reasons")

    for candidate in ranked:
        txn = candidate.transaction
        table.add_row(
            str(candidate.score),
            txn.id,
            str(txn.date),
            format_amount(txn.signed_amount),
            format_reasons(candidate.reasons),
        )

    console.print(table)


def _configure_logging(config: ReconConfig, verbose: bool) -> None:
    """Re-apply logging from the loaded configuration; --verbose forces DEBUG."""
    setup_logging(
        logging.DEBUG if verbose else config.logging.level,
        log_file=Path(config.logging.file) if config.logging.file else None,
        log_format=config.logging.format,
    )


def _apply_overrides(
    config: ReconConfig,
    date_margin: Optional[int],
    amount_tolerance: Optional[str],
    max_combination_size: Optional[int],
) -> None:
    """Apply command-line overrides to the automatic matching settings."""
    updates: dict = {}
    if date_margin is not None:
        updates["date_margin_days"] = date_margin
    if amount_tolerance is not None:
        try:
            updates["amount_tolerance"] = Decimal(amount_tolerance)
        except InvalidOperation as e:
            raise ConfigurationError(f"Invalid amount tolerance: {amount_tolerance}") from e
    if max_combination_size is not None:
        updates["max_combination_size"] = max_combination_size

    if not updates:
        return

    try:
        config.matching = AutoMatchSettings(**{**config.matching.model_dump(), **updates})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid matching override: {e}") from e


if __name__ == "__main__":
    main()
