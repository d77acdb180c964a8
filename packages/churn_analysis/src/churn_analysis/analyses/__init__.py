"""Analysis registry and runner."""

from __future__ import annotations

import logging
from collections.abc import Callable

import pandas as pd

from churn_analysis.analyses.arr import (
    analyze_arr_by_payment_type,
    analyze_arr_summary,
    analyze_churn_cost_sensitivity,
    analyze_enterprise_arr_at_risk,
    analyze_payment_opportunity,
    analyze_regional_automation_opportunity,
)
from churn_analysis.analyses.base import AnalysisResult
from churn_analysis.analyses.delay import analyze_delay_bucket_churn
from churn_analysis.analyses.kpis import analyze_dashboard_kpis
from churn_analysis.analyses.payment import (
    analyze_delay_distribution_by_payment_type,
    analyze_payment_type_churn,
    analyze_payment_type_churn_detail,
)
from churn_analysis.analyses.segments import (
    analyze_enterprise_segment_comparison,
    analyze_plan_payment_region_churn,
    analyze_regional_heatmap,
    analyze_regional_payment_mix,
)
from churn_analysis.analyses.validation import analyze_data_validation_summary
from churn_analysis.exceptions import AnalysisError
from churn_analysis.settings import Settings

logger = logging.getLogger(__name__)

AnalysisFunc = Callable[[pd.DataFrame, Settings, dict | None], AnalysisResult]

# Report order. Every analysis reads the same unified view; none depends on another.
ANALYSIS_REGISTRY: list[tuple[str, AnalysisFunc]] = [
    # Data preparation & validation
    ("data_validation_summary", analyze_data_validation_summary),
    # Payment type as churn driver
    ("payment_type_churn", analyze_payment_type_churn),
    ("payment_type_churn_detail", analyze_payment_type_churn_detail),
    # Payment delay impact
    ("delay_bucket_churn", analyze_delay_bucket_churn),
    ("delay_distribution_by_payment_type", analyze_delay_distribution_by_payment_type),
    # Plan type & regional differences
    ("plan_payment_region_churn", analyze_plan_payment_region_churn),
    ("regional_payment_mix", analyze_regional_payment_mix),
    ("enterprise_segment_comparison", analyze_enterprise_segment_comparison),
    # ARR impact
    ("arr_summary", analyze_arr_summary),
    ("arr_by_payment_type", analyze_arr_by_payment_type),
    ("churn_cost_sensitivity", analyze_churn_cost_sensitivity),
    ("enterprise_arr_at_risk", analyze_enterprise_arr_at_risk),
    # Regional heatmap
    ("regional_heatmap", analyze_regional_heatmap),
    # Financial opportunity
    ("payment_opportunity", analyze_payment_opportunity),
    ("regional_automation_opportunity", analyze_regional_automation_opportunity),
    # Dashboard KPIs
    ("dashboard_kpis", analyze_dashboard_kpis),
]


def run_all_analyses(
    view: pd.DataFrame,
    settings: Settings,
    validation_view: pd.DataFrame | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> list[AnalysisResult]:
    """Execute every registered analysis against one unified view snapshot.

    The run is all-or-nothing: the first failing analysis raises
    AnalysisError and no results are returned.
    """
    context: dict = {"validation_view": validation_view}
    results: list[AnalysisResult] = []

    for name, func in ANALYSIS_REGISTRY:
        if on_progress:
            on_progress(name)
        try:
            result = func(view, settings, context)
        except Exception as e:
            logger.error("Analysis '%s' failed: %s", name, e)
            raise AnalysisError(name, e) from e
        if result.empty_groups:
            logger.warning("%s: undefined measures %s", name, result.empty_groups)
        results.append(result)

    logger.info("%d/%d analyses completed", len(results), len(ANALYSIS_REGISTRY))
    return results


__all__ = ["ANALYSIS_REGISTRY", "AnalysisResult", "run_all_analyses"]
