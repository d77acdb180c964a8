"""Payment type as a churn driver."""

from __future__ import annotations

import pandas as pd

from churn_analysis.analyses.base import AnalysisResult, churn_summary
from churn_analysis.categories import PAYMENT_TYPES, DelayBucket
from churn_analysis.formatting import FormatPolicy
from churn_analysis.settings import Settings

_P = FormatPolicy

DISTRIBUTION_COLUMNS: dict[str, DelayBucket] = {
    "pct_0_5_days": DelayBucket.DAYS_0_5,
    "pct_6_15_days": DelayBucket.DAYS_6_15,
    "pct_16_30_days": DelayBucket.DAYS_16_30,
    "pct_30_plus_days": DelayBucket.DAYS_30_PLUS,
}


def analyze_payment_type_churn(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Churn rate and average payment delay per payment type, worst first."""
    df = view[view["payment_type"].notna()]
    result = churn_summary(
        df,
        ["payment_type"],
        "total_customers",
        "churned_customers",
        avg_payment_delay_days=("days_to_payment", "mean"),
    )
    result = result.sort_values(
        ["churn_rate_percent", "payment_type"], ascending=[False, True]
    ).reset_index(drop=True)
    return AnalysisResult.from_df(
        "payment_type_churn",
        "Churn Rate by Payment Type",
        result,
        sheet_name="Payment Type Churn",
        column_policies={
            "total_customers": _P.COUNT,
            "churned_customers": _P.COUNT,
            "churn_rate_percent": _P.PERCENT_1DP,
            "avg_payment_delay_days": _P.DECIMAL_0DP,
        },
    )


def analyze_payment_type_churn_detail(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Per-method sample size, delay spread and contract value, best first."""
    df = view[view["payment_type"].isin(PAYMENT_TYPES)]
    result = churn_summary(
        df,
        ["payment_type"],
        "sample_size",
        "churned_count",
        avg_delay_days=("days_to_payment", "mean"),
        delay_std_dev=("days_to_payment", "std"),
        avg_contract_value=("annual_contract_value", "mean"),
    )
    result = result.sort_values(["churn_rate_percent", "payment_type"]).reset_index(drop=True)
    return AnalysisResult.from_df(
        "payment_type_churn_detail",
        "Payment Type Churn Detail",
        result,
        sheet_name="Payment Type Detail",
        column_policies={
            "sample_size": _P.COUNT,
            "churned_count": _P.COUNT,
            "churn_rate_percent": _P.PERCENT_1DP,
            "avg_delay_days": _P.DECIMAL_1DP,
            "delay_std_dev": _P.DECIMAL_1DP,
            "avg_contract_value": _P.CURRENCY_WHOLE,
        },
    )


def analyze_delay_distribution_by_payment_type(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Share of each payment type's invoices falling in each delay bucket.

    Invoices with an unknown delay stay in the denominator, so a row's
    four shares can sum to less than 100.
    """
    df = view[view["payment_type"].isin(PAYMENT_TYPES)]
    columns = ["payment_type", *DISTRIBUTION_COLUMNS]
    if df.empty:
        result = pd.DataFrame(columns=columns)
    else:
        flags = pd.DataFrame(
            {
                col: (df["delay_bucket"] == bucket.value).astype(float)
                for col, bucket in DISTRIBUTION_COLUMNS.items()
            },
            index=df.index,
        )
        flags["payment_type"] = df["payment_type"]
        result = flags.groupby("payment_type")[list(DISTRIBUTION_COLUMNS)].mean() * 100
        result = result.reset_index()[columns]
    return AnalysisResult.from_df(
        "delay_distribution_by_payment_type",
        "Payment Delay Distribution by Payment Type",
        result,
        sheet_name="Delay Mix by Payment",
        column_policies={col: _P.PERCENT_1DP for col in DISTRIBUTION_COLUMNS},
    )
