"""Chart registry and rendering."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import plotly.graph_objects as go

from churn_analysis.analyses.base import AnalysisResult
from churn_analysis.charts.churn import (
    chart_arr_by_payment_type,
    chart_delay_bucket_churn,
    chart_payment_type_churn,
    chart_regional_payment_mix,
)
from churn_analysis.settings import ChartConfig

logger = logging.getLogger(__name__)

ChartFunc = Callable[[AnalysisResult, ChartConfig], go.Figure]

# Maps analysis name -> chart function.
CHART_REGISTRY: dict[str, ChartFunc] = {
    "payment_type_churn": chart_payment_type_churn,
    "delay_bucket_churn": chart_delay_bucket_churn,
    "regional_payment_mix": chart_regional_payment_mix,
    "arr_by_payment_type": chart_arr_by_payment_type,
}


def create_charts(
    results: list[AnalysisResult],
    config: ChartConfig,
    report_name: str = "",
    cutoff: str = "",
) -> dict[str, go.Figure]:
    """Generate all registered charts from analysis results.

    Returns mapping of chart name -> Plotly Figure.
    """
    from churn_analysis.charts.theme import add_source_footer, ensure_theme

    ensure_theme()

    results_by_name = {r.name: r for r in results}
    charts: dict[str, go.Figure] = {}

    for key, func in CHART_REGISTRY.items():
        result = results_by_name.get(key)
        if result is None or result.df.empty:
            continue
        try:
            fig = func(result, config)
            if fig.data:
                add_source_footer(fig, report_name, cutoff)
                charts[key] = fig
        except Exception as e:
            logger.warning("Chart '%s' failed: %s", key, e)

    logger.info("Built %d charts", len(charts))
    return charts


def render_chart_png(
    fig: go.Figure,
    output_path: Path,
    config: ChartConfig,
    scale: int | None = None,
) -> Path:
    """Write a Plotly figure to PNG using kaleido."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_image(
        str(output_path),
        width=config.width,
        height=config.height,
        scale=scale or config.scale,
        engine="kaleido",
    )
    return output_path
