"""Named rounding and display policies applied at the presentation boundary.

Analyses keep unrounded values; each result declares a policy per
column and ``present()`` produces the rounded table handed to Excel,
CSV and the console. Rounding is half away from zero, matching SQL
``ROUND``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

import numpy as np
import pandas as pd


class FormatPolicy(StrEnum):
    PERCENT_0DP = "percent_0dp"
    PERCENT_1DP = "percent_1dp"
    PERCENT_2DP = "percent_2dp"
    CURRENCY_WHOLE = "currency_whole"
    MILLIONS_1DP = "millions_1dp"
    MILLIONS_2DP = "millions_2dp"
    DECIMAL_0DP = "decimal_0dp"
    DECIMAL_1DP = "decimal_1dp"
    COUNT = "count"
    RAW = "raw"


@dataclass(frozen=True)
class PolicySpec:
    decimals: int | None
    excel_format: str
    is_percent: bool = False
    prefix: str = ""
    suffix: str = ""


POLICIES: dict[FormatPolicy, PolicySpec] = {
    FormatPolicy.PERCENT_0DP: PolicySpec(0, "0%", is_percent=True, suffix="%"),
    FormatPolicy.PERCENT_1DP: PolicySpec(1, "0.0%", is_percent=True, suffix="%"),
    FormatPolicy.PERCENT_2DP: PolicySpec(2, "0.00%", is_percent=True, suffix="%"),
    FormatPolicy.CURRENCY_WHOLE: PolicySpec(0, "$#,##0", prefix="$"),
    FormatPolicy.MILLIONS_1DP: PolicySpec(1, '$#,##0.0"M"', prefix="$", suffix="M"),
    FormatPolicy.MILLIONS_2DP: PolicySpec(2, '$#,##0.00"M"', prefix="$", suffix="M"),
    FormatPolicy.DECIMAL_0DP: PolicySpec(0, "#,##0"),
    FormatPolicy.DECIMAL_1DP: PolicySpec(1, "#,##0.0"),
    FormatPolicy.COUNT: PolicySpec(0, "#,##0"),
    FormatPolicy.RAW: PolicySpec(None, "General"),
}

UNDEFINED = "n/a"


def round_half_up(values: pd.Series, decimals: int) -> pd.Series:
    """Round away from zero at .5; nulls stay null."""
    numeric = pd.to_numeric(values, errors="coerce").astype(float)
    factor = 10.0**decimals
    return np.sign(numeric) * np.floor(np.abs(numeric) * factor + 0.5) / factor


def apply_policy(values: pd.Series, policy: FormatPolicy) -> pd.Series:
    spec = POLICIES[policy]
    if spec.decimals is None:
        return values
    rounded = round_half_up(values, spec.decimals)
    if policy == FormatPolicy.COUNT:
        return rounded.astype("Int64")
    return rounded


def present(result) -> pd.DataFrame:
    """Return a rounded copy of *result.df* according to its column policies."""
    df = result.df.copy()
    for col, policy in result.column_policies.items():
        if col in df.columns:
            df[col] = apply_policy(df[col], policy)
    return df


def format_value(val, policy: FormatPolicy = FormatPolicy.RAW) -> str:
    """Format a single value for console display."""
    if val is None or (isinstance(val, float) and val != val):
        return UNDEFINED
    spec = POLICIES[policy]
    try:
        num = float(val)
    except (ValueError, TypeError):
        return str(val)
    if spec.decimals is None:
        if num == int(num):
            return f"{int(num):,}"
        return f"{num:,.2f}"
    rounded = round_half_up(pd.Series([num]), spec.decimals).iloc[0]
    return f"{spec.prefix}{rounded:,.{spec.decimals}f}{spec.suffix}"


def excel_number_format(policy: FormatPolicy | None) -> str:
    """Return openpyxl number format string for a column policy."""
    if policy is None:
        return "General"
    return POLICIES[policy].excel_format


def is_percentage_policy(policy: FormatPolicy | None) -> bool:
    return policy is not None and POLICIES[policy].is_percent
