"""Tests for churn_analysis.unified_view."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from churn_analysis.data_loader import SourceTables
from churn_analysis.exceptions import MissingRelationError, SchemaMismatchError
from churn_analysis.unified_view import (
    EXPORT_COLUMNS,
    UNIFIED_COLUMNS,
    JoinMode,
    build_export_dataset,
    build_unified_view,
)

CUTOFF = date(2024, 1, 1)


class TestInnerJoin:
    def test_shape(self, view: pd.DataFrame):
        assert list(view.columns) == UNIFIED_COLUMNS
        assert len(view) == 7
        assert sorted(view["customer_id"].unique()) == ["C1", "C2", "C3", "C4"]

    def test_customers_missing_a_relation_excluded(self, view: pd.DataFrame):
        assert "C5" not in set(view["customer_id"])
        assert "C6" not in set(view["customer_id"])

    def test_cutoff_excludes_older_invoices(self, view: pd.DataFrame):
        assert "I4" not in set(view["invoice_id"])
        assert (view["invoice_date"] >= pd.Timestamp(CUTOFF)).all()

    def test_churn_flag(self, view: pd.DataFrame):
        churned = view.groupby("customer_id")["is_churned"].max().to_dict()
        assert churned == {"C1": 1, "C2": 0, "C3": 0, "C4": 1}
        assert view["is_churned"].sum() == 4

    def test_delay_buckets(self, view: pd.DataFrame):
        buckets = dict(zip(view["invoice_id"], view["delay_bucket"]))
        assert buckets == {
            "I1": "16-30 days",
            "I2": "30+ days",
            "I3": "0-5 days",
            "I5": "6-15 days",
            "I9": "0-5 days",
            "I6": "30+ days",
            "I7": "Unknown",
        }

    def test_null_payment_type_kept(self, view: pd.DataFrame):
        assert view["payment_type"].isna().sum() == 1

    def test_renamed_columns(self, view: pd.DataFrame):
        c1 = view[view["customer_id"] == "C1"].iloc[0]
        assert c1["customer_mrr"] == 5000
        assert c1["subscription_status"] == "Cancelled"
        assert c1["invoice_amount"] == 5000

    def test_later_cutoff(self, tables: SourceTables):
        later = build_unified_view(
            tables.customers, tables.invoices, tables.subscriptions, date(2024, 6, 1)
        )
        assert sorted(later["invoice_id"]) == ["I6", "I7", "I9"]


class TestValidationJoin:
    def test_keeps_customers_without_subscription(self, validation_view: pd.DataFrame):
        assert len(validation_view) == 8
        c6 = validation_view[validation_view["customer_id"] == "C6"]
        assert len(c6) == 1
        assert c6["subscription_status"].isna().all()
        assert c6["is_churned"].iloc[0] == 0

    def test_customer_without_invoices_dropped_by_cutoff(self, validation_view):
        assert "C5" not in set(validation_view["customer_id"])


class TestEdgeCases:
    def test_missing_relation(self, tables: SourceTables):
        with pytest.raises(MissingRelationError) as exc_info:
            build_unified_view(tables.customers, None, tables.subscriptions, CUTOFF)
        assert exc_info.value.relation == "invoices"

    def test_in_memory_table_missing_join_key(self, tables: SourceTables):
        customers = tables.customers.drop(columns=["customer_id"])
        with pytest.raises(SchemaMismatchError) as exc_info:
            build_unified_view(customers, tables.invoices, tables.subscriptions, CUTOFF)
        assert exc_info.value.relation == "customers"
        assert exc_info.value.missing == {"customer_id"}

    def test_in_memory_table_missing_required_column(self, tables: SourceTables):
        invoices = tables.invoices.drop(columns=["payment_type"])
        with pytest.raises(SchemaMismatchError) as exc_info:
            build_unified_view(tables.customers, invoices, tables.subscriptions, CUTOFF)
        assert exc_info.value.relation == "invoices"
        assert "payment_type" in exc_info.value.missing

    def test_missing_optional_column_filled_with_null(self, tables: SourceTables):
        invoices = tables.invoices.drop(columns=["expiration_date"], errors="ignore")
        view = build_unified_view(tables.customers, invoices, tables.subscriptions, CUTOFF)
        assert list(view.columns) == UNIFIED_COLUMNS
        assert view["expiration_date"].isna().all()

    def test_empty_join(self, tables: SourceTables):
        empty = build_unified_view(
            tables.customers,
            tables.invoices,
            tables.subscriptions,
            date(2030, 1, 1),
            JoinMode.INNER,
        )
        assert empty.empty
        assert list(empty.columns) == UNIFIED_COLUMNS

    def test_deterministic(self, tables: SourceTables):
        a = build_unified_view(tables.customers, tables.invoices, tables.subscriptions, CUTOFF)
        b = build_unified_view(tables.customers, tables.invoices, tables.subscriptions, CUTOFF)
        pd.testing.assert_frame_equal(a, b)


class TestExportDataset:
    def test_filters_incomplete_rows(self, view: pd.DataFrame):
        export = build_export_dataset(view)
        assert list(export.columns) == EXPORT_COLUMNS
        assert len(export) == 6
        assert export["payment_type"].notna().all()
        assert (export["annual_contract_value"] > 0).all()

    def test_categories(self, view: pd.DataFrame):
        export = build_export_dataset(view)
        export = export.drop_duplicates("customer_id").set_index("customer_id")
        assert export.loc["C1", "payment_category"] == "Manual"
        assert export.loc["C1", "risk_segment"] == "Enterprise Wire"
        assert export.loc["C3", "risk_segment"] == "Enterprise Automated"
        assert export.loc["C2", "payment_category"] == "Automated"
        assert export.loc["C2", "risk_segment"] == "Other"
        assert export.loc["C4", "risk_segment"] == "Other"

    def test_mrr_from_subscription(self, view: pd.DataFrame):
        export = build_export_dataset(view)
        c3 = export[export["customer_id"] == "C3"]
        assert c3["mrr"].tolist() == [8000]
