"""ARR impact and financial opportunity sizing.

ARR totals only count positive annual_contract_value. Scalar measures
over an empty group are reported as None and listed in the result's
``empty_groups`` metadata.
"""

from __future__ import annotations

import pandas as pd

from churn_analysis.analyses.base import (
    AnalysisResult,
    churn_rate,
    churn_summary,
    ratio_percent,
    undefined_if_empty,
)
from churn_analysis.categories import (
    AUTOMATED_PAYMENT_TYPES,
    REGIONS,
    is_enterprise,
    is_manual,
)
from churn_analysis.formatting import FormatPolicy
from churn_analysis.settings import Settings

_P = FormatPolicy

MILLION = 1_000_000


def _with_positive_acv(view: pd.DataFrame) -> pd.DataFrame:
    return view[view["annual_contract_value"] > 0]


def _arr(df: pd.DataFrame) -> float:
    acv = df["annual_contract_value"]
    return float(acv[acv > 0].sum())


def _churned_arr(df: pd.DataFrame) -> float:
    return _arr(df[df["is_churned"] == 1])


def _scalar_result(
    name: str,
    title: str,
    row: dict,
    sheet_name: str,
    column_policies: dict[str, FormatPolicy],
    empty_groups: list[str],
    metadata: dict | None = None,
) -> AnalysisResult:
    meta = dict(metadata or {})
    meta["empty_groups"] = empty_groups
    return AnalysisResult.from_df(
        name,
        title,
        pd.DataFrame([row]),
        sheet_name=sheet_name,
        column_policies=column_policies,
        metadata=meta,
    )


def analyze_arr_summary(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Total ARR base, churned ARR and ARR-weighted churn rate."""
    df = _with_positive_acv(view)
    flags: list[str] = []
    total = _arr(df)
    churned = _churned_arr(df)
    row = {
        "total_arr_base": total,
        "churned_arr": churned,
        "arr_churn_rate_percent": undefined_if_empty(
            lambda: ratio_percent(churned, total, "arr_churn_rate_percent"),
            "arr_churn_rate_percent",
            flags,
        ),
    }
    return _scalar_result(
        "arr_summary",
        "ARR Base and Churned ARR",
        row,
        "ARR Summary",
        {
            "total_arr_base": _P.CURRENCY_WHOLE,
            "churned_arr": _P.CURRENCY_WHOLE,
            "arr_churn_rate_percent": _P.PERCENT_1DP,
        },
        flags,
    )


def analyze_arr_by_payment_type(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Total and churned ARR per payment type, worst churn rate first."""
    df = _with_positive_acv(view)
    df = df[df["payment_type"].notna()]
    df = df.assign(_churned_acv=df["annual_contract_value"].where(df["is_churned"] == 1, 0.0))
    result = churn_summary(
        df,
        ["payment_type"],
        "customer_count",
        "_churned",
        total_arr=("annual_contract_value", "sum"),
        churned_arr=("_churned_acv", "sum"),
    )
    result["churned_arr_millions"] = result["churned_arr"] / MILLION
    result = result[
        [
            "payment_type",
            "customer_count",
            "total_arr",
            "churned_arr",
            "churn_rate_percent",
            "churned_arr_millions",
        ]
    ]
    result = result.sort_values(
        ["churn_rate_percent", "payment_type"], ascending=[False, True]
    ).reset_index(drop=True)
    return AnalysisResult.from_df(
        "arr_by_payment_type",
        "ARR Impact by Payment Type",
        result,
        sheet_name="ARR by Payment Type",
        column_policies={
            "customer_count": _P.COUNT,
            "total_arr": _P.CURRENCY_WHOLE,
            "churned_arr": _P.CURRENCY_WHOLE,
            "churn_rate_percent": _P.PERCENT_1DP,
            "churned_arr_millions": _P.MILLIONS_2DP,
        },
    )


def analyze_churn_cost_sensitivity(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """ARR lost for every additional percentage point of churn."""
    df = _with_positive_acv(view)
    flags: list[str] = []
    total = _arr(df)
    row = {
        "total_arr": total,
        "current_churn_rate": undefined_if_empty(
            lambda: churn_rate(df["is_churned"], "current_churn_rate"),
            "current_churn_rate",
            flags,
        ),
        "cost_per_1_percent_churn": total * 0.01,
    }
    return _scalar_result(
        "churn_cost_sensitivity",
        "Cost per 1% Churn Increase",
        row,
        "Churn Cost Sensitivity",
        {
            "total_arr": _P.CURRENCY_WHOLE,
            "current_churn_rate": _P.PERCENT_2DP,
            "cost_per_1_percent_churn": _P.CURRENCY_WHOLE,
        },
        flags,
    )


def analyze_enterprise_arr_at_risk(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Enterprise Wire ARR and its churn gap to automated enterprise payers."""
    enterprise = view[is_enterprise(view["plan_type"])]
    wire = enterprise[enterprise["payment_type"] == "Wire"]
    automated = enterprise[enterprise["payment_type"].isin(AUTOMATED_PAYMENT_TYPES)]

    flags: list[str] = []
    wire_rate = undefined_if_empty(
        lambda: churn_rate(wire["is_churned"], "wire_churn_rate"), "wire_churn_rate", flags
    )
    automated_rate = undefined_if_empty(
        lambda: churn_rate(automated["is_churned"], "automated_churn_rate"),
        "automated_churn_rate",
        flags,
    )
    difference = None
    if wire_rate is not None and automated_rate is not None:
        difference = wire_rate - automated_rate

    row = {
        "scenario": "Enterprise Wire vs Automated",
        "wire_arr": _arr(wire),
        "wire_churn_rate": wire_rate,
        "automated_churn_rate": automated_rate,
        "churn_rate_difference": difference,
    }
    return _scalar_result(
        "enterprise_arr_at_risk",
        "Enterprise Wire ARR at Risk",
        row,
        "Enterprise ARR at Risk",
        {
            "wire_arr": _P.CURRENCY_WHOLE,
            "wire_churn_rate": _P.PERCENT_2DP,
            "automated_churn_rate": _P.PERCENT_2DP,
            "churn_rate_difference": _P.PERCENT_2DP,
        },
        flags,
    )


def analyze_payment_opportunity(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """ARR retained per year if Check payers churned at the Credit Card rate.

    opportunity = (check churn rate - credit card churn rate) x Check ARR
    """
    check = view[view["payment_type"] == "Check"]
    card = view[view["payment_type"] == "Credit Card"]

    flags: list[str] = []
    check_rate = undefined_if_empty(
        lambda: churn_rate(check["is_churned"], "check_churn_percent"),
        "check_churn_percent",
        flags,
    )
    card_rate = undefined_if_empty(
        lambda: churn_rate(card["is_churned"], "credit_card_churn_percent"),
        "credit_card_churn_percent",
        flags,
    )
    check_arr = _arr(check)

    improvement = opportunity = opportunity_millions = None
    if check_rate is not None and card_rate is not None:
        improvement = check_rate - card_rate
        opportunity = improvement / 100 * check_arr
        opportunity_millions = opportunity / MILLION

    row = {
        "check_churn_percent": check_rate,
        "credit_card_churn_percent": card_rate,
        "churn_rate_improvement": improvement,
        "check_customer_arr": check_arr,
        "annual_arr_opportunity": opportunity,
        "annual_arr_opportunity_millions": opportunity_millions,
    }
    return _scalar_result(
        "payment_opportunity",
        "Check to Credit Card Migration Opportunity",
        row,
        "Payment Opportunity",
        {
            "check_churn_percent": _P.PERCENT_2DP,
            "credit_card_churn_percent": _P.PERCENT_2DP,
            "churn_rate_improvement": _P.PERCENT_2DP,
            "check_customer_arr": _P.CURRENCY_WHOLE,
            "annual_arr_opportunity": _P.CURRENCY_WHOLE,
            "annual_arr_opportunity_millions": _P.MILLIONS_2DP,
        },
        flags,
    )


def analyze_regional_automation_opportunity(
    view: pd.DataFrame,
    settings: Settings,
    context: dict | None = None,
) -> AnalysisResult:
    """Share of each region's ARR still paid manually (Wire/Check)."""
    df = _with_positive_acv(view)
    df = df[df["region"].isin(REGIONS)]
    columns = [
        "region",
        "regional_arr",
        "regional_churn_rate",
        "manual_payment_arr",
        "manual_payment_arr_percent",
    ]
    if df.empty:
        result = pd.DataFrame(columns=columns)
    else:
        df = df.assign(
            _manual_acv=df["annual_contract_value"].where(is_manual(df["payment_type"]), 0.0)
        )
        result = (
            df.groupby("region")
            .agg(
                regional_arr=("annual_contract_value", "sum"),
                regional_churn_rate=("is_churned", "mean"),
                manual_payment_arr=("_manual_acv", "sum"),
            )
            .reset_index()
        )
        result["regional_churn_rate"] = result["regional_churn_rate"] * 100
        result["manual_payment_arr_percent"] = result.apply(
            lambda r: ratio_percent(
                r["manual_payment_arr"], r["regional_arr"], "manual_payment_arr_percent"
            ),
            axis=1,
        )
        result = result[columns].sort_values(
            ["manual_payment_arr_percent", "region"], ascending=[False, True]
        )
        result = result.reset_index(drop=True)
    return AnalysisResult.from_df(
        "regional_automation_opportunity",
        "Regional Payment Automation Opportunity",
        result,
        sheet_name="Regional Automation",
        column_policies={
            "regional_arr": _P.CURRENCY_WHOLE,
            "regional_churn_rate": _P.PERCENT_2DP,
            "manual_payment_arr": _P.CURRENCY_WHOLE,
            "manual_payment_arr_percent": _P.PERCENT_0DP,
        },
    )
