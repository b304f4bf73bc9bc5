"""CLI entry point for the BNC metadata normalizer.

Provides commands:
  - ingest: Normalize corpus documents into the SQLite store (one transaction)
  - check: Run the same pipeline without a store and report diagnostics
  - status: Display row counts of the normalized tables
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bncmeta.config import IngestConfig, load_config
from bncmeta.database import Database
from bncmeta.errors import FormatError
from bncmeta.scanner import CorpusScanner, IngestReport

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="BNC metadata - normalize spoken-corpus headers and transcripts into SQLite",
    rich_markup_mode="rich",
)
console = Console()

USAGE = "usage: bncmeta ingest BNC-DIRECTORY ..."


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )


def _build_config(paths: list[Path] | None, config_path: Path | None) -> IngestConfig:
    """Config from file if given, CLI paths override its corpus_paths."""
    config: IngestConfig
    if config_path is not None:
        if not config_path.exists():
            console.print(f"[red]Error:[/red] Config file not found: {config_path}")
            raise typer.Exit(code=1)
        config = load_config(config_path)
    else:
        config = IngestConfig()

    if paths:
        config.corpus_paths = list(paths)

    if not config.corpus_paths:
        console.print(USAGE)
        raise typer.Exit(code=1)
    return config


def _print_report(report: IngestReport, title: str) -> None:
    table = Table(title=title)
    table.add_column("Category", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Files read", str(report.files))
    table.add_row("Documents emitted", f"[green]{len(report.emitted)}[/green]")
    table.add_row("Documents skipped", f"[dim]{len(report.skipped)}[/dim]")
    table.add_row("Parse failures", f"[red]{len(report.failed)}[/red]")
    table.add_row("Diagnostics", f"[yellow]{len(report.diagnostics)}[/yellow]")
    console.print(table)

    rows = Table(title="Rows by Table")
    rows.add_column("Table", style="bold")
    rows.add_column("Rows", justify="right")
    for name, count in report.row_counts.items():
        rows.add_row(name, str(count))
    console.print(rows)


PathsArgument = Annotated[
    list[Path] | None,
    typer.Argument(help="Corpus directories or XML files", show_default=False),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to ingest config JSON"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log every document processed"),
]


@app.command()
def ingest(
    paths: PathsArgument = None,
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database file"),
    ] = None,
    config_path: ConfigOption = None,
    reset: Annotated[
        bool,
        typer.Option("--reset", help="Delete existing rows before ingesting"),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Normalize corpus documents into SQLite in a single transaction."""
    _configure_logging(verbose)
    config = _build_config(paths, config_path)
    if db_path is not None:
        config.db_path = db_path

    with Database(config.db_path) as db:
        console.print(
            Panel(
                "\n".join(str(p) for p in config.corpus_paths),
                title=f"Ingesting into [bold]{config.db_path}[/bold]",
            )
        )

        try:
            report = CorpusScanner(config, db).ingest(reset=reset)
        except FormatError as e:
            console.print(f"[red]Format error:[/red] {escape(str(e))}")
            console.print("[dim]Batch rolled back; nothing was written.[/dim]")
            raise typer.Exit(code=1)
        except sqlite3.Error as e:
            console.print(f"[red]Storage error:[/red] {escape(str(e))}")
            console.print("[dim]Batch rolled back; nothing was written.[/dim]")
            raise typer.Exit(code=1)

        _print_report(report, "Ingest Results")


@app.command()
def check(
    paths: PathsArgument = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Normalize corpus documents without writing, reporting diagnostics."""
    _configure_logging(verbose)
    config = _build_config(paths, config_path)

    try:
        report = CorpusScanner(config).check()
    except FormatError as e:
        console.print(f"[red]Format error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    _print_report(report, "Check Results")


@app.command()
def status(
    db_path: Annotated[
        Path,
        typer.Option("--db", "-d", help="Path to SQLite database file"),
    ] = Path("data/bnc.db"),
) -> None:
    """Display row counts of the normalized tables."""
    if not db_path.exists():
        console.print(
            f"[yellow]Database not found:[/yellow] {db_path}\n"
            "Run [bold]bncmeta ingest /path/to/Texts[/bold] first."
        )
        raise typer.Exit(code=1)

    with Database(db_path) as db:
        counts = db.get_table_counts()
        skipped = db.get_skipped_documents()

    console.print(Panel(f"Database: [bold]{db_path}[/bold]", title="Corpus Status"))

    table = Table(title="Rows by Table")
    table.add_column("Table", style="bold")
    table.add_column("Rows", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)

    console.print(f"\n[bold]Skipped documents:[/bold] {len(skipped)}")
