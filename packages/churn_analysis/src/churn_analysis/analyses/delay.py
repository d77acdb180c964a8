"""Payment delay buckets and churn."""

from __future__ import annotations

import pandas as pd

from churn_analysis.analyses.base import AnalysisResult, churn_summary
from churn_analysis.formatting import FormatPolicy
from churn_analysis.settings import Settings


def analyze_delay_bucket_churn(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Churn rate per delay bucket, ordered by the shortest delay in each bucket."""
    df = view[view["days_to_payment"].notna()]
    result = churn_summary(
        df,
        ["delay_bucket"],
        "total_customers",
        "churned_customers",
        min_days=("days_to_payment", "min"),
    )
    result = (
        result.sort_values(["min_days", "delay_bucket"])
        .drop(columns=["min_days"])
        .reset_index(drop=True)
    )
    return AnalysisResult.from_df(
        "delay_bucket_churn",
        "Churn Rate by Payment Delay",
        result,
        sheet_name="Delay Bucket Churn",
        column_policies={
            "total_customers": FormatPolicy.COUNT,
            "churned_customers": FormatPolicy.COUNT,
            "churn_rate_percent": FormatPolicy.PERCENT_1DP,
        },
    )
