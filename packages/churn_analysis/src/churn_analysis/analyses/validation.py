"""Data validation summary over the left-joined view."""

from __future__ import annotations

import pandas as pd

from churn_analysis.analyses.base import AnalysisResult, churn_rate, undefined_if_empty
from churn_analysis.formatting import FormatPolicy
from churn_analysis.settings import Settings


def analyze_data_validation_summary(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Row and customer counts, average delay, churn rate, missing payment types.

    Reads ``context["validation_view"]`` (the VALIDATION-mode join) when
    present so customers without a subscription are counted; otherwise
    summarises *view*.
    """
    if context is not None and context.get("validation_view") is not None:
        source = context["validation_view"]
        join_mode = "validation"
    else:
        source = view
        join_mode = "inner"

    flags: list[str] = []
    delays = source["days_to_payment"].dropna()
    row = {
        "total_records": len(source),
        "unique_customers": source["customer_id"].nunique(),
        "avg_payment_delay": float(delays.mean()) if len(delays) else None,
        "overall_churn_rate": undefined_if_empty(
            lambda: churn_rate(source["is_churned"], "overall_churn_rate"),
            "overall_churn_rate",
            flags,
        ),
        "missing_payment_types": int(source["payment_type"].isna().sum()),
        "missing_subscriptions": int(source["subscription_status"].isna().sum()),
    }
    if row["avg_payment_delay"] is None:
        flags.append("avg_payment_delay")

    return AnalysisResult.from_df(
        "data_validation_summary",
        "Data Validation Summary",
        pd.DataFrame([row]),
        sheet_name="Data Validation",
        column_policies={
            "total_records": FormatPolicy.COUNT,
            "unique_customers": FormatPolicy.COUNT,
            "avg_payment_delay": FormatPolicy.DECIMAL_1DP,
            "overall_churn_rate": FormatPolicy.PERCENT_2DP,
            "missing_payment_types": FormatPolicy.COUNT,
            "missing_subscriptions": FormatPolicy.COUNT,
        },
        metadata={"join_mode": join_mode, "empty_groups": flags},
    )
