"""Pipeline orchestrator shared by CLI and run_report()."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go

from churn_analysis.analyses import run_all_analyses
from churn_analysis.analyses.base import AnalysisResult
from churn_analysis.data_loader import SourceTables, load_relations
from churn_analysis.exceptions import ExportError
from churn_analysis.settings import Settings
from churn_analysis.unified_view import JoinMode, build_export_dataset, build_unified_view

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Container for all pipeline outputs."""

    settings: Settings
    view: pd.DataFrame
    validation_view: pd.DataFrame
    export_df: pd.DataFrame
    analyses: list[AnalysisResult] = field(default_factory=list)
    charts: dict[str, go.Figure] = field(default_factory=dict)
    chart_pngs: dict[str, bytes] = field(default_factory=dict)

    def get(self, name: str) -> AnalysisResult:
        for analysis in self.analyses:
            if analysis.name == name:
                return analysis
        raise KeyError(name)


PIPELINE_STEPS = (
    "Loading data...",
    "Building unified view...",
    "Running analyses...",
    "Building charts...",
)


def run_pipeline(
    settings: Settings,
    on_progress: Callable[[int, int, str], None] | None = None,
    tables: SourceTables | None = None,
) -> PipelineResult:
    """Load the relations, build the views once, run every analysis, chart.

    *tables* skips loading when the relations are already in memory.
    *on_progress* is called as (step, total, message) before each step.
    Any analysis failure raises AnalysisError; chart failures are only
    logged.
    """

    def step(index: int) -> None:
        if on_progress:
            on_progress(index, len(PIPELINE_STEPS), PIPELINE_STEPS[index])

    step(0)
    if tables is None:
        tables = load_relations(settings)

    step(1)
    views = {
        mode: build_unified_view(
            tables.customers,
            tables.invoices,
            tables.subscriptions,
            settings.cutoff_date,
            mode=mode,
        )
        for mode in JoinMode
    }
    view = views[JoinMode.INNER]

    step(2)
    analyses = run_all_analyses(view, settings, validation_view=views[JoinMode.VALIDATION])

    step(3)
    charts: dict[str, go.Figure] = {}
    try:
        from churn_analysis.charts import create_charts

        charts = create_charts(
            analyses,
            settings.charts,
            report_name=settings.report_name or "",
            cutoff=settings.cutoff_date.isoformat(),
        )
    except Exception as e:
        logger.error("Chart generation failed: %s", e, exc_info=True)

    return PipelineResult(
        settings=settings,
        view=view,
        validation_view=views[JoinMode.VALIDATION],
        export_df=build_export_dataset(view),
        analyses=analyses,
        charts=charts,
    )


def _render_chart_images(result: PipelineResult) -> list[Path]:
    """Write standalone chart PNGs and keep scale-1 bytes for Excel embedding."""
    from churn_analysis.charts import render_chart_png

    config = result.settings.charts
    chart_dir = result.settings.output_dir / "charts"
    written: list[Path] = []
    for name, fig in result.charts.items():
        try:
            result.chart_pngs[name] = fig.to_image(
                format="png", width=config.width, height=config.height, scale=1
            )
            written.append(render_chart_png(fig, chart_dir / f"{name}.png", config))
        except Exception as e:
            logger.warning("PNG render failed for '%s': %s", name, e)
    logger.info("Rendered %d of %d charts", len(written), len(result.charts))
    return written


def excel_report_path(settings: Settings, when: datetime | None = None) -> Path:
    """``<report_id>_Churn_Analysis_<YYYYMMDD>.xlsx`` inside the output directory."""
    stamp = (when or datetime.now()).strftime("%Y%m%d")
    return settings.output_dir / f"{settings.report_id or 'churn'}_Churn_Analysis_{stamp}.xlsx"


def export_outputs(result: PipelineResult) -> list[Path]:
    """Write every enabled output and return the generated paths.

    Chart images are best effort. A workbook or CSV that cannot be written
    raises ExportError; nothing after the failing output is written.
    """
    settings = result.settings
    outputs = settings.outputs
    settings.output_dir.mkdir(parents=True, exist_ok=True)
    generated: list[Path] = []

    if result.charts and outputs.chart_images:
        generated.extend(_render_chart_images(result))

    if outputs.excel:
        from churn_analysis.exports.excel_report import write_excel_report

        path = excel_report_path(settings)
        try:
            write_excel_report(result, path)
        except Exception as e:
            logger.error("Excel report failed: %s", e)
            raise ExportError(path, e) from e
        generated.append(path)

    if outputs.csv:
        from churn_analysis.exports.csv_tables import write_csv_tables, write_export_dataset

        tables_dir = settings.output_dir / "tables"
        dataset_path = settings.output_dir / "export_dataset.csv"
        try:
            generated.extend(write_csv_tables(result.analyses, tables_dir))
            generated.append(write_export_dataset(result.export_df, dataset_path))
        except OSError as e:
            logger.error("CSV export failed: %s", e)
            raise ExportError(getattr(e, "filename", None) or tables_dir, e) from e

    return generated
