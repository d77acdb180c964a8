"""Plotly styling for churn charts.

Bars are colored by risk: CORAL for segments above the comparison line,
ACCENT otherwise. The 'consultant' template is registered on first use.
"""

from __future__ import annotations

import plotly.graph_objects as go
import plotly.io as pio

NAVY = "#051C2C"
ACCENT = "#005EB8"
CORAL = "#E4573D"
TEAL = "#4ABFBF"
GOLD = "#F3C13A"
WARM_GRAY = "#A2AAAD"
GRID_GRAY = "#E8E8E8"
SUBTLE_TEXT = "#888888"
FOOTER_TEXT = "#AAAAAA"

SAFE_COLOR = ACCENT
RISK_COLOR = CORAL
PALETTE = [ACCENT, CORAL, TEAL, GOLD, WARM_GRAY]

TITLE_FONT = "Georgia, 'Times New Roman', serif"
BODY_FONT = "Arial, Helvetica, sans-serif"

TEMPLATE_NAME = "consultant"

_TITLE_STYLE = {
    "font": {"family": TITLE_FONT, "size": 18, "color": NAVY},
    "x": 0.02,
    "xanchor": "left",
}


def ensure_theme() -> None:
    """Register the template once per process."""
    if TEMPLATE_NAME in pio.templates:
        return
    pio.templates[TEMPLATE_NAME] = go.layout.Template(
        layout=go.Layout(
            font={"family": BODY_FONT, "size": 11, "color": "#555555"},
            title=_TITLE_STYLE,
            plot_bgcolor="white",
            paper_bgcolor="white",
            # Category labels (payment types, regions) sit on the y axis
            xaxis={"showgrid": False, "zeroline": False},
            yaxis={"gridcolor": GRID_GRAY, "gridwidth": 0.5, "zeroline": False},
            margin={"l": 160, "r": 40, "t": 80, "b": 60},
            colorway=PALETTE,
            showlegend=False,
        )
    )


def insight_title(main: str, subtitle: str = "") -> dict:
    """Title whose headline states the finding; the subtitle names the measure."""
    text = main
    if subtitle:
        span_style = f"font-size:12px;color:{SUBTLE_TEXT};font-family:{BODY_FONT}"
        text += f"<br><span style='{span_style}'>{subtitle}</span>"
    return {"text": text, **_TITLE_STYLE}


def add_source_footer(fig: go.Figure, report_name: str = "", cutoff: str = "") -> go.Figure:
    """Annotate the data source under the plot; no-op when nothing is known."""
    details = []
    if report_name:
        details.append(f"{report_name} billing data")
    if cutoff:
        details.append(f"invoices since {cutoff}")
    if not details:
        return fig

    fig.add_annotation(
        text="Source: " + ", ".join(details),
        xref="paper",
        yref="paper",
        x=0,
        y=-0.12,
        showarrow=False,
        xanchor="left",
        font={"family": BODY_FONT, "size": 9, "color": FOOTER_TEXT},
    )
    return fig
