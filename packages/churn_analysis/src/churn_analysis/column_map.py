"""Per-relation column aliases, required columns, and type checks."""

from __future__ import annotations

import pandas as pd

from churn_analysis.exceptions import SchemaMismatchError

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "customers": {
        "customer_id",
        "name",
        "region",
        "state",
        "organization_type",
        "plan_type",
        "mrr",
    },
    "invoices": {
        "customer_id",
        "payment_type",
        "invoice_date",
        "paid_date",
        "amount",
    },
    "subscriptions": {
        "customer_id",
        "status",
        "cancellation_reason",
        "annual_contract_value",
        "mrr",
    },
}

OPTIONAL_COLUMNS: dict[str, set[str]] = {
    "customers": set(),
    "invoices": {"invoice_id", "days_to_payment", "expiration_date"},
    "subscriptions": {"subscription_id"},
}

NUMERIC_COLUMNS: dict[str, tuple[str, ...]] = {
    "customers": ("mrr",),
    "invoices": ("amount", "days_to_payment"),
    "subscriptions": ("annual_contract_value", "mrr"),
}

DATE_COLUMNS: dict[str, tuple[str, ...]] = {
    "customers": (),
    "invoices": ("invoice_date", "paid_date", "expiration_date"),
    "subscriptions": (),
}

_SHARED_ALIASES: dict[str, str] = {
    "customer_id": "customer_id",
    "customerid": "customer_id",
    "customer id": "customer_id",
    "cust_id": "customer_id",
    "customer": "customer_id",
}

# Maps raw header variations -> canonical name, per relation ("mrr" exists in two).
COLUMN_ALIASES: dict[str, dict[str, str]] = {
    "customers": {
        **_SHARED_ALIASES,
        "name": "name",
        "customer_name": "name",
        "company": "name",
        "region": "region",
        "state": "state",
        "organization_type": "organization_type",
        "organisation_type": "organization_type",
        "org_type": "organization_type",
        "plan_type": "plan_type",
        "plan": "plan_type",
        "plantype": "plan_type",
        "mrr": "mrr",
        "monthly_recurring_revenue": "mrr",
    },
    "invoices": {
        **_SHARED_ALIASES,
        "invoice_id": "invoice_id",
        "invoiceid": "invoice_id",
        "id": "invoice_id",
        "payment_type": "payment_type",
        "payment_method": "payment_type",
        "paymenttype": "payment_type",
        "payment type": "payment_type",
        "invoice_date": "invoice_date",
        "invoicedate": "invoice_date",
        "invoice date": "invoice_date",
        "paid_date": "paid_date",
        "paiddate": "paid_date",
        "payment_date": "paid_date",
        "days_to_payment": "days_to_payment",
        "days_to_pay": "days_to_payment",
        "payment_delay": "days_to_payment",
        "amount": "amount",
        "invoice_amount": "amount",
        "amt": "amount",
        "expiration_date": "expiration_date",
        "expiry_date": "expiration_date",
        "due_date": "expiration_date",
    },
    "subscriptions": {
        **_SHARED_ALIASES,
        "subscription_id": "subscription_id",
        "subscriptionid": "subscription_id",
        "id": "subscription_id",
        "status": "status",
        "subscription_status": "status",
        "cancellation_reason": "cancellation_reason",
        "cancel_reason": "cancellation_reason",
        "churn_reason": "cancellation_reason",
        "annual_contract_value": "annual_contract_value",
        "acv": "annual_contract_value",
        "arr": "annual_contract_value",
        "contract_value": "annual_contract_value",
        "mrr": "mrr",
        "monthly_recurring_revenue": "mrr",
    },
}


def resolve_columns(df: pd.DataFrame, relation: str) -> pd.DataFrame:
    """Rename columns of *relation* to canonical names using COLUMN_ALIASES.

    Raises SchemaMismatchError if required columns are missing after resolution.
    """
    aliases = COLUMN_ALIASES[relation]
    rename_map: dict[str, str] = {}
    for col in df.columns:
        key = str(col).strip().lower().replace("-", "_")
        if key in aliases and aliases[key] not in rename_map.values():
            rename_map[col] = aliases[key]

    result = df.rename(columns=rename_map)

    resolved = set(result.columns)
    missing = REQUIRED_COLUMNS[relation] - resolved
    if missing:
        raise SchemaMismatchError(relation, missing=missing, available=resolved)

    return result


def coerce_types(df: pd.DataFrame, relation: str) -> pd.DataFrame:
    """Convert numeric and date columns, rejecting values that cannot be parsed.

    Nulls stay null. A non-null value that fails conversion is a schema
    mismatch, reported per column.
    """
    df = df.copy()
    wrong: dict[str, str] = {}

    for col in NUMERIC_COLUMNS[relation]:
        if col not in df.columns:
            continue
        converted = pd.to_numeric(df[col], errors="coerce")
        if (converted.isna() & df[col].notna()).any():
            wrong[col] = "numeric"
        df[col] = converted

    for col in DATE_COLUMNS[relation]:
        if col not in df.columns:
            continue
        converted = pd.to_datetime(df[col], errors="coerce")
        if (converted.isna() & df[col].notna()).any():
            wrong[col] = "date"
        df[col] = converted

    if wrong:
        raise SchemaMismatchError(relation, wrong_type=wrong)

    return df
