"""Row-level categorisation: churn flag, delay bucket, payment category, risk segment.

Scalar functions define the rules; the ``assign_*`` helpers apply them
column-wise to a DataFrame.
"""

from __future__ import annotations

from enum import StrEnum

import pandas as pd


class DelayBucket(StrEnum):
    DAYS_0_5 = "0-5 days"
    DAYS_6_15 = "6-15 days"
    DAYS_16_30 = "16-30 days"
    DAYS_30_PLUS = "30+ days"
    UNKNOWN = "Unknown"


class PaymentCategory(StrEnum):
    AUTOMATED = "Automated"
    MANUAL = "Manual"


class RiskSegment(StrEnum):
    ENTERPRISE_WIRE = "Enterprise Wire"
    ENTERPRISE_AUTOMATED = "Enterprise Automated"
    OTHER = "Other"


CANCELLED_STATUS = "Cancelled"

PAYMENT_TYPES = ("Credit Card", "ACH", "Wire", "Check")
AUTOMATED_PAYMENT_TYPES = frozenset({"Credit Card", "ACH"})
MANUAL_PAYMENT_TYPES = frozenset({"Wire", "Check"})

ENTERPRISE_PLANS = ("Enterprise", "Enterprise Multi-Site")
PLAN_TYPES = ("Enterprise", "Enterprise Multi-Site", "Standard")
REGIONS = ("Midwest", "South", "East", "West")

# (inclusive upper bound in days, label), checked in order
DELAY_BUCKET_LIMITS: list[tuple[float, DelayBucket]] = [
    (5, DelayBucket.DAYS_0_5),
    (15, DelayBucket.DAYS_6_15),
    (30, DelayBucket.DAYS_16_30),
    (float("inf"), DelayBucket.DAYS_30_PLUS),
]

DELAY_BUCKET_ORDER = [bucket for _, bucket in DELAY_BUCKET_LIMITS] + [DelayBucket.UNKNOWN]


def _is_null(val) -> bool:
    return val is None or bool(pd.isna(val))


def churn_flag(status, cancellation_reason) -> int:
    """1 if the subscription is Cancelled or carries a cancellation reason."""
    if status == CANCELLED_STATUS:
        return 1
    return 0 if _is_null(cancellation_reason) else 1


def delay_bucket(days) -> DelayBucket:
    """Bucket a days-to-payment value; null or negative is Unknown.

    Integer days map to [0,5], [6,15], [16,30], 31+. Fractional values
    between two buckets belong to the upper one (5.5 -> "6-15 days").
    """
    if _is_null(days):
        return DelayBucket.UNKNOWN
    days = float(days)
    if days < 0:
        return DelayBucket.UNKNOWN
    for upper, label in DELAY_BUCKET_LIMITS:
        if days <= upper:
            return label
    return DelayBucket.UNKNOWN


def payment_category(payment_type) -> PaymentCategory:
    """Credit Card / ACH are automated; everything else is manual."""
    if payment_type in AUTOMATED_PAYMENT_TYPES:
        return PaymentCategory.AUTOMATED
    return PaymentCategory.MANUAL


def risk_segment(plan_type, payment_type) -> RiskSegment:
    if plan_type not in ENTERPRISE_PLANS:
        return RiskSegment.OTHER
    if payment_type == "Wire":
        return RiskSegment.ENTERPRISE_WIRE
    if payment_type in AUTOMATED_PAYMENT_TYPES:
        return RiskSegment.ENTERPRISE_AUTOMATED
    return RiskSegment.OTHER


def is_manual(payment_type: pd.Series) -> pd.Series:
    return payment_type.isin(MANUAL_PAYMENT_TYPES)


def is_automated(payment_type: pd.Series) -> pd.Series:
    return payment_type.isin(AUTOMATED_PAYMENT_TYPES)


def is_enterprise(plan_type: pd.Series) -> pd.Series:
    return plan_type.isin(ENTERPRISE_PLANS)


def assign_churn_flag(df: pd.DataFrame) -> pd.Series:
    """Vectorised churn_flag over subscription_status / cancellation_reason."""
    churned = (df["subscription_status"] == CANCELLED_STATUS) | df["cancellation_reason"].notna()
    return churned.astype(int)


def assign_delay_bucket(days: pd.Series) -> pd.Series:
    """Vectorised delay_bucket; returns plain string labels."""
    return days.map(lambda d: delay_bucket(d).value).astype(object)


def assign_payment_category(payment_type: pd.Series) -> pd.Series:
    return payment_type.map(lambda p: payment_category(p).value)


def assign_risk_segment(df: pd.DataFrame) -> pd.Series:
    return pd.Series(
        [risk_segment(plan, pay).value for plan, pay in zip(df["plan_type"], df["payment_type"])],
        index=df.index,
        dtype=object,
    )
