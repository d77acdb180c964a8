"""Base types and helpers for all analyses."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import pandas as pd

from churn_analysis.exceptions import EmptyGroupError
from churn_analysis.formatting import FormatPolicy

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of a single analysis function.

    ``df`` holds unrounded values; ``column_policies`` says how each
    column is rounded when presented. Measures that could not be computed
    because their group was empty are listed in ``metadata["empty_groups"]``.
    """

    name: str
    title: str
    df: pd.DataFrame
    sheet_name: str | None = None
    column_policies: dict[str, FormatPolicy] = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    @classmethod
    def from_df(
        cls,
        name: str,
        title: str,
        df: pd.DataFrame,
        *,
        sheet_name: str | None = None,
        column_policies: dict[str, FormatPolicy] | None = None,
        metadata: dict | None = None,
    ) -> AnalysisResult:
        return cls(
            name=name,
            title=title,
            df=df,
            sheet_name=sheet_name or name[:31],
            column_policies=dict(column_policies or {}),
            metadata=dict(metadata or {}),
        )

    @property
    def empty_groups(self) -> list[str]:
        return self.metadata.get("empty_groups", [])


def churn_rate(indicator: pd.Series, measure: str = "churn_rate") -> float:
    """Mean of a 0/1 churn indicator as a percentage (unrounded).

    Raises EmptyGroupError for a zero-row group.
    """
    if len(indicator) == 0:
        raise EmptyGroupError(measure)
    return float(indicator.mean()) * 100


def ratio_percent(part: float, total: float, measure: str) -> float:
    """part / total * 100; raises EmptyGroupError when total is zero."""
    if total == 0 or pd.isna(total):
        raise EmptyGroupError(measure)
    return (part / total) * 100


def undefined_if_empty(
    compute: Callable[[], float],
    measure: str,
    flags: list[str],
) -> float | None:
    """Run *compute*; on EmptyGroupError record *measure* in *flags* and return None."""
    try:
        return compute()
    except EmptyGroupError:
        logger.warning("Empty group for '%s' -- reported as undefined", measure)
        flags.append(measure)
        return None


def churn_summary(
    df: pd.DataFrame,
    keys: list[str],
    count_col: str,
    churned_col: str,
    rate_col: str = "churn_rate_percent",
    **extra_aggs: tuple[str, str],
) -> pd.DataFrame:
    """Group *df* by *keys* and compute row count, churned count and churn rate.

    Extra named aggregations are passed straight to ``DataFrame.agg``.
    Groups produced by ``groupby`` always have at least one row, so the
    rate is always defined. An empty input yields an empty frame with the
    full column set.
    """
    columns = [*keys, count_col, churned_col, rate_col, *extra_aggs]
    if df.empty:
        return pd.DataFrame(columns=columns)

    grouped = (
        df.groupby(keys, dropna=False)
        .agg(
            **{
                count_col: ("is_churned", "size"),
                churned_col: ("is_churned", "sum"),
                rate_col: ("is_churned", "mean"),
            },
            **extra_aggs,
        )
        .reset_index()
    )
    grouped[rate_col] = grouped[rate_col] * 100
    return grouped[columns]
