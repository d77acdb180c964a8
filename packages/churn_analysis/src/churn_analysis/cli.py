"""Typer CLI for churn_analysis."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from churn_analysis.exceptions import ChurnError
from churn_analysis.formatting import FormatPolicy, format_value
from churn_analysis.pipeline import PipelineResult, export_outputs, run_pipeline
from churn_analysis.settings import Settings

app = typer.Typer(help="Payment method churn and ARR-at-risk analysis.")
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _print_kpis(result: PipelineResult) -> None:
    kpis = result.get("dashboard_kpis").df
    opportunity = result.get("payment_opportunity").df.iloc[0]

    table = Table(title="Dashboard KPIs", show_header=True, header_style="bold")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for _, row in kpis.iterrows():
        policy = FormatPolicy.MILLIONS_1DP if "ARR" in row["metric"] else FormatPolicy.PERCENT_1DP
        table.add_row(row["metric"], format_value(row["value"], policy))
    table.add_row(
        "Check -> Credit Card opportunity",
        format_value(opportunity["annual_arr_opportunity_millions"], FormatPolicy.MILLIONS_2DP),
    )
    console.print(table)


@app.command()
def analyze(
    customers_file: Path = typer.Argument(..., help="Customers CSV/Excel file."),
    invoices_file: Path = typer.Argument(..., help="Invoices CSV/Excel file."),
    subscriptions_file: Path = typer.Argument(..., help="Subscriptions CSV/Excel file."),
    cutoff: str = typer.Option(None, "--cutoff", help="Earliest invoice date (YYYY-MM-DD)"),
    config: Path = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    output_dir: Path = typer.Option(None, "--output-dir", "-o", help="Output directory"),
    report_id: str = typer.Option(None, "--report-id", help="Report identifier"),
    report_name: str = typer.Option(None, "--report-name", help="Report display name"),
    csv: bool = typer.Option(False, "--csv", help="Also write one CSV per result table"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run the full churn analysis pipeline."""
    _setup_logging(verbose)

    overrides = {
        "customers_file": customers_file,
        "invoices_file": invoices_file,
        "subscriptions_file": subscriptions_file,
    }
    if cutoff:
        overrides["cutoff_date"] = cutoff
    if output_dir:
        overrides["output_dir"] = output_dir
    if report_id:
        overrides["report_id"] = report_id
    if report_name:
        overrides["report_name"] = report_name
    if csv:
        overrides["outputs"] = {"csv": True}

    def on_progress(step: int, total: int, msg: str) -> None:
        console.print(f"  [{step + 1}/{total}] {msg}")

    try:
        if config and config.exists():
            settings = Settings.from_yaml(config, **overrides)
        else:
            settings = Settings.from_args(**overrides)

        console.print(f"[bold]Churn Analysis[/bold] -- invoices since {settings.cutoff_date}")
        result = run_pipeline(settings, on_progress=on_progress)

        console.print(f"  {len(result.view):,} unified rows")
        console.print(f"  {len(result.analyses)} analyses completed")
        console.print(f"  {len(result.charts)} charts generated")
        _print_kpis(result)

        files = export_outputs(result)
    except ChurnError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    for f in files:
        console.print(f"  Output: {f}")

    console.print("[bold green]Done.[/bold green]")
