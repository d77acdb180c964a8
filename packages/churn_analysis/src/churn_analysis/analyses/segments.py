"""Plan type, region and enterprise segment breakdowns."""

from __future__ import annotations

import pandas as pd

from churn_analysis.analyses.base import AnalysisResult, churn_summary
from churn_analysis.categories import (
    AUTOMATED_PAYMENT_TYPES,
    PLAN_TYPES,
    REGIONS,
    assign_risk_segment,
    is_automated,
    is_enterprise,
    is_manual,
)
from churn_analysis.formatting import FormatPolicy
from churn_analysis.settings import Settings

_P = FormatPolicy


def _positive_acv(df: pd.DataFrame) -> pd.Series:
    """annual_contract_value with non-positive values blanked out."""
    acv = df["annual_contract_value"]
    return acv.where(acv > 0)


def analyze_plan_payment_region_churn(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Enterprise churn by plan, payment type and region, worst first."""
    df = view[is_enterprise(view["plan_type"]) & view["payment_type"].notna()]
    result = churn_summary(
        df,
        ["plan_type", "payment_type", "region"],
        "customer_count",
        "churned_count",
        avg_contract_value=("annual_contract_value", "mean"),
    )
    result = result.sort_values(
        ["churn_rate_percent", "plan_type", "payment_type", "region"],
        ascending=[False, True, True, True],
    ).reset_index(drop=True)
    return AnalysisResult.from_df(
        "plan_payment_region_churn",
        "Enterprise Churn by Plan, Payment Type and Region",
        result,
        sheet_name="Plan x Payment x Region",
        column_policies={
            "customer_count": _P.COUNT,
            "churned_count": _P.COUNT,
            "churn_rate_percent": _P.PERCENT_1DP,
            "avg_contract_value": _P.CURRENCY_WHOLE,
        },
    )


def analyze_regional_payment_mix(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Automated vs manual payment mix and churn per region."""
    df = view[view["region"].notna() & view["payment_type"].notna()]
    columns = [
        "region",
        "total_customers",
        "automated_payments",
        "manual_payments",
        "manual_payment_percent",
        "total_churned",
        "regional_churn_rate_percent",
    ]
    if df.empty:
        result = pd.DataFrame(columns=columns)
    else:
        df = df.assign(
            _automated=is_automated(df["payment_type"]).astype(int),
            _manual=is_manual(df["payment_type"]).astype(int),
        )
        result = (
            df.groupby("region")
            .agg(
                total_customers=("is_churned", "size"),
                automated_payments=("_automated", "sum"),
                manual_payments=("_manual", "sum"),
                total_churned=("is_churned", "sum"),
                regional_churn_rate_percent=("is_churned", "mean"),
            )
            .reset_index()
        )
        result["manual_payment_percent"] = (
            result["manual_payments"] / result["total_customers"] * 100
        )
        result["regional_churn_rate_percent"] = result["regional_churn_rate_percent"] * 100
        result = result[columns].sort_values(
            ["manual_payment_percent", "region"], ascending=[False, True]
        )
        result = result.reset_index(drop=True)
    return AnalysisResult.from_df(
        "regional_payment_mix",
        "Regional Payment Mix and Churn",
        result,
        sheet_name="Regional Payment Mix",
        column_policies={
            "total_customers": _P.COUNT,
            "automated_payments": _P.COUNT,
            "manual_payments": _P.COUNT,
            "manual_payment_percent": _P.PERCENT_0DP,
            "total_churned": _P.COUNT,
            "regional_churn_rate_percent": _P.PERCENT_1DP,
        },
    )


def analyze_enterprise_segment_comparison(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Enterprise customers paying by Wire vs automated methods."""
    df = view[
        is_enterprise(view["plan_type"])
        & view["payment_type"].isin({"Wire", *AUTOMATED_PAYMENT_TYPES})
    ]
    df = df.assign(
        customer_segment=assign_risk_segment(df),
        _positive_acv=_positive_acv(df),
    )
    result = churn_summary(
        df,
        ["customer_segment"],
        "customer_count",
        "churned_count",
        total_contract_value=("_positive_acv", "sum"),
    )
    result = result.sort_values(
        ["churn_rate_percent", "customer_segment"], ascending=[False, True]
    ).reset_index(drop=True)
    return AnalysisResult.from_df(
        "enterprise_segment_comparison",
        "Enterprise Wire vs Automated Payment",
        result,
        sheet_name="Enterprise Segments",
        column_policies={
            "customer_count": _P.COUNT,
            "churned_count": _P.COUNT,
            "churn_rate_percent": _P.PERCENT_1DP,
            "total_contract_value": _P.CURRENCY_WHOLE,
        },
    )


def analyze_regional_heatmap(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Plan type x region churn grid with manual-payment share."""
    df = view[view["plan_type"].isin(PLAN_TYPES) & view["region"].isin(REGIONS)]
    df = df.assign(_manual=is_manual(df["payment_type"]).astype(int))
    result = churn_summary(
        df,
        ["plan_type", "region"],
        "customer_count",
        "churned_count",
        avg_contract_value=("annual_contract_value", "mean"),
        manual_payment_count=("_manual", "sum"),
    )
    if not result.empty:
        result["manual_payment_percent"] = (
            result["manual_payment_count"] / result["customer_count"] * 100
        )
    else:
        result["manual_payment_percent"] = pd.Series(dtype=float)
    result = result.sort_values(["plan_type", "region"]).reset_index(drop=True)
    return AnalysisResult.from_df(
        "regional_heatmap",
        "Regional Churn Heatmap by Plan Type",
        result,
        sheet_name="Regional Heatmap",
        column_policies={
            "customer_count": _P.COUNT,
            "churned_count": _P.COUNT,
            "churn_rate_percent": _P.PERCENT_1DP,
            "avg_contract_value": _P.CURRENCY_WHOLE,
            "manual_payment_count": _P.COUNT,
            "manual_payment_percent": _P.PERCENT_0DP,
        },
    )
