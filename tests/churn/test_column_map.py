"""Tests for churn_analysis.column_map."""

from __future__ import annotations

import pandas as pd
import pytest

from churn_analysis.column_map import REQUIRED_COLUMNS, coerce_types, resolve_columns
from churn_analysis.exceptions import SchemaMismatchError


class TestResolveColumns:
    def test_canonical_names_pass_through(self):
        df = pd.DataFrame(columns=sorted(REQUIRED_COLUMNS["customers"]))
        result = resolve_columns(df, "customers")
        assert set(result.columns) == REQUIRED_COLUMNS["customers"]

    def test_aliases_resolved(self):
        df = pd.DataFrame(
            columns=["Customer ID", "PaymentType", "Invoice Date", "Payment_Date", "Amount"]
        )
        result = resolve_columns(df, "invoices")
        assert list(result.columns) == [
            "customer_id",
            "payment_type",
            "invoice_date",
            "paid_date",
            "amount",
        ]

    def test_same_alias_differs_per_relation(self):
        df = pd.DataFrame(
            columns=["customer_id", "subscription_status", "churn_reason", "ACV", "MRR"]
        )
        result = resolve_columns(df, "subscriptions")
        assert {"status", "cancellation_reason", "annual_contract_value", "mrr"} <= set(
            result.columns
        )

    def test_missing_required_raises(self):
        df = pd.DataFrame(columns=["customer_id", "payment_type"])
        with pytest.raises(SchemaMismatchError) as exc_info:
            resolve_columns(df, "invoices")
        err = exc_info.value
        assert err.relation == "invoices"
        assert err.missing == {"invoice_date", "paid_date", "amount"}
        assert "missing required columns" in str(err)

    def test_first_alias_wins(self):
        df = pd.DataFrame(
            columns=["customer_id", "amount", "invoice_amount", "payment_type", "invoice_date",
                     "paid_date"]
        )
        result = resolve_columns(df, "invoices")
        assert list(result.columns).count("amount") == 1
        assert "invoice_amount" in result.columns


class TestCoerceTypes:
    def test_numeric_and_dates_converted(self):
        df = pd.DataFrame(
            {
                "customer_id": ["C1"],
                "payment_type": ["Wire"],
                "invoice_date": ["2024-02-01"],
                "paid_date": ["2024-02-11"],
                "amount": ["5000"],
            }
        )
        result = coerce_types(df, "invoices")
        assert result["amount"].iloc[0] == 5000
        assert result["invoice_date"].iloc[0] == pd.Timestamp("2024-02-01")

    def test_nulls_are_not_errors(self):
        df = pd.DataFrame({"annual_contract_value": [1000.0, None], "mrr": [None, 50]})
        result = coerce_types(df, "subscriptions")
        assert result["annual_contract_value"].isna().sum() == 1

    def test_bad_numeric_raises(self):
        df = pd.DataFrame({"annual_contract_value": ["60000", "lots"], "mrr": [1, 2]})
        with pytest.raises(SchemaMismatchError) as exc_info:
            coerce_types(df, "subscriptions")
        assert exc_info.value.wrong_type == {"annual_contract_value": "numeric"}

    def test_bad_date_raises(self):
        df = pd.DataFrame(
            {
                "invoice_date": ["2024-01-01", "not a date"],
                "paid_date": [None, None],
                "amount": [1, 2],
            }
        )
        with pytest.raises(SchemaMismatchError, match="wrong column types"):
            coerce_types(df, "invoices")

    def test_does_not_mutate_input(self):
        df = pd.DataFrame({"mrr": ["100"]})
        coerce_types(df, "customers")
        assert df["mrr"].iloc[0] == "100"
