"""Shared fixtures for churn_analysis tests.

The CSV fixtures describe six customers:

  C1  Enterprise, Midwest, two Wire invoices, Cancelled subscription
  C2  Standard, South, one Credit Card invoice in range (one before cutoff)
  C3  Enterprise Multi-Site, East, one ACH and one unknown-method invoice
  C4  Standard, West, two Check invoices (one unpaid), churn reason set
  C5  Enterprise, Midwest, subscription but no invoices
  C6  Standard, South, Credit Card invoice but no subscription

The inner-join view therefore has 7 rows over C1-C4.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from churn_analysis.data_loader import SourceTables, prepare_relation
from churn_analysis.settings import Settings
from churn_analysis.unified_view import JoinMode, build_unified_view

CUSTOMERS_CSV = """customer_id,name,region,state,organization_type,plan_type,mrr
C1,Acme Health,Midwest,IL,Hospital,Enterprise,5000
C2,Beta Clinic,South,TX,Clinic,Standard,1000
C3,Gamma Medical,East,NY,Hospital,Enterprise Multi-Site,8000
C4,Delta Care,West,CA,Clinic,Standard,500
C5,Epsilon Labs,Midwest,OH,Clinic,Enterprise,3000
C6,Zeta Dental,South,GA,Clinic,Standard,700
"""

INVOICES_CSV = """invoice_id,customer_id,payment_type,invoice_date,paid_date,days_to_payment,amount,expiration_date
I1,C1,Wire,2024-02-01,2024-02-21,20,5000,2024-03-01
I2,C1,Wire,2024-03-01,2024-04-05,35,5000,2024-04-01
I3,C2,Credit Card,2024-02-01,2024-02-03,2,1000,2024-03-01
I4,C2,Credit Card,2023-12-01,2023-12-02,1,1000,2024-01-01
I5,C3,ACH,2024-05-01,2024-05-09,8,8000,2024-06-01
I6,C4,Check,2024-06-01,2024-07-15,44,500,2024-07-01
I7,C4,Check,2024-07-01,,,500,2024-08-01
I8,C6,Credit Card,2024-03-01,2024-03-04,3,700,2024-04-01
I9,C3,,2024-06-01,2024-06-06,5,8000,2024-07-01
"""

SUBSCRIPTIONS_CSV = """subscription_id,customer_id,status,cancellation_reason,annual_contract_value,mrr
S1,C1,Cancelled,Payment failure,60000,5000
S2,C2,Active,,12000,1000
S3,C3,Active,,96000,8000
S4,C4,Active,Switched vendor,6000,500
S5,C5,Active,,36000,3000
"""

CUTOFF = date(2024, 1, 1)


@pytest.fixture()
def input_files(tmp_path: Path) -> dict[str, Path]:
    """Write the three fixture CSVs and return their paths by relation."""
    paths = {
        "customers": tmp_path / "customers.csv",
        "invoices": tmp_path / "invoices.csv",
        "subscriptions": tmp_path / "subscriptions.csv",
    }
    paths["customers"].write_text(CUSTOMERS_CSV)
    paths["invoices"].write_text(INVOICES_CSV)
    paths["subscriptions"].write_text(SUBSCRIPTIONS_CSV)
    return paths


@pytest.fixture()
def sample_settings(input_files: dict[str, Path], tmp_path: Path) -> Settings:
    """Settings pointing at the fixture CSVs, no chart images."""
    return Settings(
        customers_file=input_files["customers"],
        invoices_file=input_files["invoices"],
        subscriptions_file=input_files["subscriptions"],
        output_dir=tmp_path / "out",
        outputs={"excel": True, "csv": False, "chart_images": False},
    )


@pytest.fixture()
def tables(input_files: dict[str, Path]) -> SourceTables:
    """Prepared relations read from the fixture CSVs."""
    return SourceTables(
        **{
            relation: prepare_relation(pd.read_csv(path), relation)
            for relation, path in input_files.items()
        }
    )


@pytest.fixture()
def view(tables: SourceTables) -> pd.DataFrame:
    """Inner-join unified view of the fixtures."""
    return build_unified_view(
        tables.customers, tables.invoices, tables.subscriptions, CUTOFF, JoinMode.INNER
    )


@pytest.fixture()
def validation_view(tables: SourceTables) -> pd.DataFrame:
    return build_unified_view(
        tables.customers, tables.invoices, tables.subscriptions, CUTOFF, JoinMode.VALIDATION
    )


def synthetic_view(groups: list[dict]) -> pd.DataFrame:
    """Build a unified-view-shaped frame from group specs.

    Each spec gives ``rows`` and ``churned`` counts plus constant column
    values for the group (payment_type, annual_contract_value, ...).
    """
    defaults = {
        "customer_id": None,
        "plan_type": "Standard",
        "region": "Midwest",
        "payment_type": None,
        "days_to_payment": float("nan"),
        "delay_bucket": "Unknown",
        "annual_contract_value": 0.0,
        "subscription_status": "Active",
    }
    frames = []
    for i, spec in enumerate(groups):
        spec = dict(spec)
        rows = spec.pop("rows")
        churned = spec.pop("churned")
        values = {**defaults, **spec}
        frame = pd.DataFrame({col: [val] * rows for col, val in values.items()})
        frame["customer_id"] = [f"G{i}-{n}" for n in range(rows)]
        frame["is_churned"] = [1] * churned + [0] * (rows - churned)
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)


@pytest.fixture()
def make_view():
    """Factory for synthetic unified views (see synthetic_view)."""
    return synthetic_view
