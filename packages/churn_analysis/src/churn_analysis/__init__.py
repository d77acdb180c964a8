"""Payment method churn and ARR-at-risk analysis for SaaS billing data."""

from __future__ import annotations

from pathlib import Path

__version__ = "1.0.0"


def run_report(
    customers_file: str | Path,
    invoices_file: str | Path,
    subscriptions_file: str | Path,
    output_dir: str | Path = "output/",
    **kwargs,
):
    """Convenience entry-point for Jupyter / REPL usage.

    Usage::

        from churn_analysis import run_report
        result = run_report("customers.csv", "invoices.csv", "subscriptions.csv")
    """
    from churn_analysis.pipeline import export_outputs, run_pipeline
    from churn_analysis.settings import Settings

    settings = Settings.from_args(
        customers_file=Path(customers_file),
        invoices_file=Path(invoices_file),
        subscriptions_file=Path(subscriptions_file),
        output_dir=Path(output_dir),
        **kwargs,
    )
    result = run_pipeline(settings)
    export_outputs(result)
    return result
