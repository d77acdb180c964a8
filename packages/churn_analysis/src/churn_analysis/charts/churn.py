"""Charts for the headline churn and ARR insights."""

from __future__ import annotations

import plotly.graph_objects as go

from churn_analysis.analyses.base import AnalysisResult
from churn_analysis.categories import DelayBucket
from churn_analysis.charts.bar_charts import horizontal_bar
from churn_analysis.settings import ChartConfig


def _spread_title(df, label_col: str, rate_col: str, noun: str) -> str:
    """e.g. 'Check churns at 9.1x the rate of Credit Card'."""
    ranked = df.sort_values(rate_col, ascending=False)
    worst, best = ranked.iloc[0], ranked.iloc[-1]
    if len(ranked) < 2 or best[rate_col] <= 0:
        return f"Churn Rate by {noun}"
    multiple = worst[rate_col] / best[rate_col]
    return f"{worst[label_col]} churns at {multiple:.1f}x the rate of {best[label_col]}"


def _delay_title(df) -> str:
    """Headline comparing the shortest and longest known delay buckets."""
    known = df[df["delay_bucket"] != DelayBucket.UNKNOWN]
    if len(known) < 2:
        return "Churn Rate by Payment Delay"
    first, last = known.iloc[0], known.iloc[-1]
    low, high = first["churn_rate_percent"], last["churn_rate_percent"]
    if high > low:
        return f"Churn rises from {low:.1f}% to {high:.1f}% as payment delay grows"
    if high < low:
        return f"Churn falls from {low:.1f}% to {high:.1f}% as payment delay grows"
    return "Churn Rate by Payment Delay"


def chart_payment_type_churn(result: AnalysisResult, config: ChartConfig) -> go.Figure:
    df = result.df
    if df.empty:
        return go.Figure()
    overall = (df["churned_customers"].sum() / df["total_customers"].sum()) * 100
    return horizontal_bar(
        labels=df["payment_type"].tolist(),
        values=df["churn_rate_percent"].tolist(),
        title=_spread_title(df, "payment_type", "churn_rate_percent", "Payment Type"),
        config=config,
        highlight_above=overall,
        subtitle=f"Churn rate %, portfolio average {overall:.1f}%",
    )


def chart_delay_bucket_churn(result: AnalysisResult, config: ChartConfig) -> go.Figure:
    df = result.df
    if df.empty:
        return go.Figure()
    # Keep the bucket order (shortest delay at the top)
    return horizontal_bar(
        labels=df["delay_bucket"].tolist(),
        values=df["churn_rate_percent"].tolist(),
        title=_delay_title(df),
        config=config,
        subtitle="Churn rate % by days to payment",
    )


def chart_regional_payment_mix(result: AnalysisResult, config: ChartConfig) -> go.Figure:
    df = result.df
    if df.empty:
        return go.Figure()
    return horizontal_bar(
        labels=df["region"].tolist(),
        values=df["manual_payment_percent"].tolist(),
        title="Manual payment share by region",
        config=config,
        value_format=",.0f%",
        highlight_above=50.0,
        subtitle="% of invoices paid by Wire or Check",
    )


def chart_arr_by_payment_type(result: AnalysisResult, config: ChartConfig) -> go.Figure:
    df = result.df
    if df.empty:
        return go.Figure()
    top = df.sort_values("churned_arr", ascending=False).iloc[0]
    return horizontal_bar(
        labels=df["payment_type"].tolist(),
        values=df["churned_arr"].tolist(),
        title=f"{top['payment_type']} accounts for the most churned ARR",
        config=config,
        value_format="$,.0f",
        subtitle="Churned ARR by payment type",
    )
