"""Dashboard KPI tiles."""

from __future__ import annotations

import pandas as pd

from churn_analysis.analyses.base import AnalysisResult, churn_rate, undefined_if_empty
from churn_analysis.formatting import FormatPolicy
from churn_analysis.settings import Settings

KPI_PAYMENT_TYPES = [
    ("Credit Card", "Credit Card"),
    ("Wire Churn", "Wire"),
    ("Check Churn", "Check"),
]


def analyze_dashboard_kpis(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Headline churn rates per payment type plus the ARR base in millions."""
    flags: list[str] = []
    rows = []
    for metric, payment_type in KPI_PAYMENT_TYPES:
        group = view.loc[view["payment_type"] == payment_type, "is_churned"]
        value = undefined_if_empty(lambda g=group, m=metric: churn_rate(g, m), metric, flags)
        rows.append({"metric": metric, "value": value})

    acv = view["annual_contract_value"]
    rows.append(
        {
            "metric": "Total ARR Base (Millions)",
            "value": float(acv[acv > 0].sum()) / 1_000_000,
        }
    )

    return AnalysisResult.from_df(
        "dashboard_kpis",
        "Dashboard KPIs",
        pd.DataFrame(rows, columns=["metric", "value"]),
        sheet_name="Dashboard KPIs",
        column_policies={"value": FormatPolicy.DECIMAL_1DP},
        metadata={"empty_groups": flags},
    )
