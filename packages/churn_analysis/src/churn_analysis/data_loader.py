"""Loading and validation of the three source relations.

Each relation is read from CSV or Excel, its headers resolved to
canonical names, and its numeric/date columns type-checked. All of this
happens before any join so that a bad input fails the run up front.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from churn_analysis.column_map import coerce_types, resolve_columns
from churn_analysis.exceptions import DataLoadError, MissingRelationError
from churn_analysis.settings import Settings

logger = logging.getLogger(__name__)

RELATIONS = ("customers", "invoices", "subscriptions")

_TEXT_COLUMNS = {
    "customers": ("customer_id", "name", "region", "state", "organization_type", "plan_type"),
    "invoices": ("customer_id", "payment_type"),
    "subscriptions": ("customer_id", "status"),
}


@dataclass(frozen=True)
class SourceTables:
    """Snapshot of the three input relations for one run."""

    customers: pd.DataFrame
    invoices: pd.DataFrame
    subscriptions: pd.DataFrame


def load_relations(settings: Settings) -> SourceTables:
    """Load, validate, and prepare all three relations.

    Raises MissingRelationError if any input file is not configured.
    """
    frames: dict[str, pd.DataFrame] = {}
    for relation, path in settings.input_files.items():
        if path is None:
            raise MissingRelationError(relation)
        frames[relation] = load_relation(path, relation)

    return SourceTables(**frames)


def load_relation(path: Path, relation: str) -> pd.DataFrame:
    """Read one relation file and return it with canonical, typed columns."""
    df = _read_file(path)
    df = prepare_relation(df, relation)
    logger.info("Loaded %s: %d rows from %s", relation, len(df), path.name)
    return df


def prepare_relation(df: pd.DataFrame, relation: str) -> pd.DataFrame:
    """Resolve, type-check and normalize an in-memory relation."""
    if relation not in RELATIONS:
        raise DataLoadError(f"Unknown relation: {relation}")
    df = resolve_columns(df, relation)
    df = coerce_types(df, relation)
    df = _normalize_text(df, relation)
    if relation == "invoices":
        df = _backfill_days_to_payment(df)
    return df


def _read_file(path: Path) -> pd.DataFrame:
    """Read a CSV or Excel file into a DataFrame."""
    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            return pd.read_csv(path)
        return pd.read_excel(path)
    except Exception as e:
        raise DataLoadError(f"Failed to read {path}: {e}") from e


def _normalize_text(df: pd.DataFrame, relation: str) -> pd.DataFrame:
    """Strip categorical/text columns; blank strings become null.

    customer_id is kept as a string on every relation so joins do not
    depend on how each file's reader inferred the dtype.
    """
    df = df.copy()
    for col in _TEXT_COLUMNS[relation]:
        if col in df.columns:
            df[col] = df[col].map(_clean_text).astype(object)

    null_ids = df["customer_id"].isna().sum()
    if null_ids:
        logger.warning("%s: dropping %d rows with no customer_id", relation, null_ids)
        df = df[df["customer_id"].notna()].reset_index(drop=True)
    return df


def _clean_text(val) -> str | None:
    if val is None or pd.isna(val):
        return None
    if isinstance(val, float) and val.is_integer():
        val = int(val)
    text = str(val).strip()
    return text or None


def _backfill_days_to_payment(df: pd.DataFrame) -> pd.DataFrame:
    """Derive days_to_payment from paid_date - invoice_date where it is null."""
    df = df.copy()
    derived = (df["paid_date"] - df["invoice_date"]).dt.days
    if "days_to_payment" not in df.columns:
        df["days_to_payment"] = derived
        logger.debug("days_to_payment derived from invoice/paid dates")
        return df

    missing = df["days_to_payment"].isna() & derived.notna()
    if missing.any():
        df.loc[missing, "days_to_payment"] = derived[missing]
        logger.debug("days_to_payment backfilled for %d invoices", int(missing.sum()))
    return df
