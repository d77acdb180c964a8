"""Unified view builder: one row per (customer, invoice) with its subscription.

Every aggregation in ``churn_analysis.analyses`` reads the frame built
here. The pipeline builds it once per run and passes it explicitly.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import StrEnum

import pandas as pd

from churn_analysis.categories import (
    assign_churn_flag,
    assign_delay_bucket,
    assign_payment_category,
    assign_risk_segment,
)
from churn_analysis.column_map import OPTIONAL_COLUMNS, REQUIRED_COLUMNS
from churn_analysis.exceptions import MissingRelationError, SchemaMismatchError

logger = logging.getLogger(__name__)


class JoinMode(StrEnum):
    """How the three relations are joined.

    INNER keeps only customers present in all three relations.
    VALIDATION left-joins from customers so that invoiced customers
    without a subscription stay visible (with is_churned = 0).
    """

    INNER = "inner"
    VALIDATION = "validation"


UNIFIED_COLUMNS = [
    "customer_id",
    "name",
    "region",
    "state",
    "organization_type",
    "plan_type",
    "customer_mrr",
    "invoice_id",
    "payment_type",
    "days_to_payment",
    "invoice_amount",
    "invoice_date",
    "paid_date",
    "expiration_date",
    "subscription_id",
    "annual_contract_value",
    "subscription_status",
    "cancellation_reason",
    "subscription_mrr",
    "is_churned",
    "delay_bucket",
]

EXPORT_COLUMNS = [
    "customer_id",
    "name",
    "region",
    "state",
    "organization_type",
    "plan_type",
    "payment_type",
    "days_to_payment",
    "delay_bucket",
    "is_churned",
    "annual_contract_value",
    "mrr",
    "payment_category",
    "risk_segment",
]

_RENAMES = {
    "customers": {"mrr": "customer_mrr"},
    "invoices": {"amount": "invoice_amount"},
    "subscriptions": {"status": "subscription_status", "mrr": "subscription_mrr"},
}


def _project(df: pd.DataFrame, relation: str) -> pd.DataFrame:
    """Keep only the known columns of *relation*, renamed for the view."""
    known = REQUIRED_COLUMNS[relation] | OPTIONAL_COLUMNS[relation]
    cols = [c for c in df.columns if c in known]
    return df[cols].rename(columns=_RENAMES[relation])


def build_unified_view(
    customers: pd.DataFrame | None,
    invoices: pd.DataFrame | None,
    subscriptions: pd.DataFrame | None,
    cutoff: date,
    mode: JoinMode = JoinMode.INNER,
) -> pd.DataFrame:
    """Join the three relations on customer_id and derive churn/delay columns.

    Invoices dated before *cutoff* are excluded. Rows with a null
    payment_type or annual_contract_value are kept; downstream analyses
    filter them where the measure requires it. An empty join returns an
    empty frame with the full column set.

    Raises MissingRelationError for an absent relation and
    SchemaMismatchError when a relation lacks a required column; only
    optional columns (invoice_id, days_to_payment, ...) are filled with null.
    """
    relations = {
        "customers": customers,
        "invoices": invoices,
        "subscriptions": subscriptions,
    }
    for name, frame in relations.items():
        if frame is None:
            raise MissingRelationError(name)
        missing = REQUIRED_COLUMNS[name] - set(frame.columns)
        if missing:
            raise SchemaMismatchError(name, missing=missing, available=set(frame.columns))

    how = "inner" if mode == JoinMode.INNER else "left"
    view = _project(customers, "customers").merge(
        _project(invoices, "invoices"), on="customer_id", how=how
    )
    view = view.merge(_project(subscriptions, "subscriptions"), on="customer_id", how=how)

    invoice_dates = pd.to_datetime(view["invoice_date"], errors="coerce")
    view = view[invoice_dates >= pd.Timestamp(cutoff)].copy()

    for relation, optional in OPTIONAL_COLUMNS.items():
        for col in sorted(optional):
            col = _RENAMES[relation].get(col, col)
            if col not in view.columns:
                view[col] = None

    view["is_churned"] = assign_churn_flag(view)
    view["delay_bucket"] = assign_delay_bucket(view["days_to_payment"])
    view = view[UNIFIED_COLUMNS].reset_index(drop=True)

    logger.info(
        "Unified view (%s join, invoices >= %s): %d rows, %d customers",
        mode.value,
        cutoff.isoformat(),
        len(view),
        view["customer_id"].nunique(),
    )
    if view.empty:
        logger.warning("Unified view is empty -- no customer matched all relations")
    return view


def build_export_dataset(view: pd.DataFrame) -> pd.DataFrame:
    """Dashboard feed: complete records with payment category and risk segment.

    Keeps rows with a known payment_type and annual_contract_value > 0.
    """
    mask = view["payment_type"].notna() & (view["annual_contract_value"] > 0)
    export = view[mask].copy()
    export["mrr"] = export["subscription_mrr"]
    export["payment_category"] = assign_payment_category(export["payment_type"])
    export["risk_segment"] = assign_risk_segment(export)
    return export[EXPORT_COLUMNS].reset_index(drop=True)
