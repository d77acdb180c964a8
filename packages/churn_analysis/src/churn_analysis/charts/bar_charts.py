"""Horizontal bar builder shared by all churn charts.

Bars above the highlight threshold get the coral color, the rest accent
blue, so the high-churn categories stand out.
"""

from __future__ import annotations

import plotly.graph_objects as go

from churn_analysis.charts.theme import RISK_COLOR, SAFE_COLOR, ensure_theme, insight_title
from churn_analysis.settings import ChartConfig


def _fmt(val: float, fmt_spec: str) -> str:
    """Format a value with support for $ prefix and % suffix in format specs."""
    prefix = suffix = ""
    if fmt_spec.startswith("$"):
        prefix, fmt_spec = "$", fmt_spec[1:]
    if fmt_spec.endswith("%"):
        suffix, fmt_spec = "%", fmt_spec[:-1]
    return f"{prefix}{float(val):{fmt_spec}}{suffix}"


def horizontal_bar(
    labels: list[str],
    values: list[float],
    title: str,
    config: ChartConfig,
    value_format: str = ",.1f%",
    highlight_above: float | None = None,
    subtitle: str = "",
) -> go.Figure:
    """Horizontal bar chart, first label at the top."""
    if not labels:
        return go.Figure()
    ensure_theme()

    labels = list(reversed(labels))
    values = list(reversed(values))
    if highlight_above is None:
        colors = [SAFE_COLOR] * len(values)
    else:
        colors = [RISK_COLOR if v > highlight_above else SAFE_COLOR for v in values]

    fig = go.Figure(
        go.Bar(
            x=values,
            y=labels,
            orientation="h",
            marker_color=colors,
            text=[_fmt(v, value_format) for v in values],
            textposition="outside",
            textfont=dict(size=10, color="#333333"),
            hovertemplate="%{y}: %{text}<extra></extra>",
        )
    )
    fig.update_layout(
        title=insight_title(title, subtitle),
        xaxis=dict(visible=False),
        template=config.theme,
        width=config.width,
        height=max(config.height, len(labels) * 40),
    )
    return fig
