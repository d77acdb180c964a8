"""Pydantic configuration for churn_analysis."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from churn_analysis.exceptions import ConfigError, InvalidDateFilterError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")
DEFAULT_CUTOFF = date(2024, 1, 1)
SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xls")

BRAND_COLORS = [
    "#005EB8",
    "#E4573D",
    "#4ABFBF",
    "#F3C13A",
    "#0090D4",
    "#A2AAAD",
]


def parse_cutoff(value) -> date:
    """Coerce a date, datetime, or ISO string into a cutoff date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidDateFilterError(value)


class ChartConfig(BaseModel):
    """Chart rendering settings."""

    theme: str = "consultant"
    colors: list[str] = Field(default_factory=lambda: BRAND_COLORS.copy())
    width: int = 900
    height: int = 500
    scale: int = 3


class OutputConfig(BaseModel):
    """Output format toggles."""

    excel: bool = True
    csv: bool = False
    chart_images: bool = True


class Settings(BaseModel):
    """Application configuration -- immutable after creation."""

    model_config = {"frozen": True, "extra": "forbid"}

    customers_file: Path | None = None
    invoices_file: Path | None = None
    subscriptions_file: Path | None = None
    cutoff_date: date = DEFAULT_CUTOFF
    report_id: str | None = None
    report_name: str | None = None
    output_dir: Path = Path("output/")
    outputs: OutputConfig = OutputConfig()
    charts: ChartConfig = ChartConfig()

    @field_validator("customers_file", "invoices_file", "subscriptions_file", mode="before")
    @classmethod
    def expand_and_validate_input(cls, v: str | Path | None) -> Path | None:
        if v is None:
            return None
        p = Path(v).expanduser().resolve()
        if not p.exists():
            raise ValueError(f"Data file not found: {p}")
        if p.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ValueError(f"Unsupported file type: {p.suffix}")
        return p

    @field_validator("cutoff_date", mode="before")
    @classmethod
    def validate_cutoff(cls, v) -> date:
        return parse_cutoff(v)

    @field_validator("output_dir", mode="before")
    @classmethod
    def expand_output_dir(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()

    @model_validator(mode="after")
    def derive_report_fields(self) -> Settings:
        if self.report_id is None and self.customers_file is not None:
            match = re.match(r"^(\d+)", self.customers_file.stem)
            if match:
                object.__setattr__(self, "report_id", match.group(1))
        if self.report_name is None and self.report_id:
            object.__setattr__(self, "report_name", f"Report {self.report_id}")
        return self

    @property
    def input_files(self) -> dict[str, Path | None]:
        return {
            "customers": self.customers_file,
            "invoices": self.invoices_file,
            "subscriptions": self.subscriptions_file,
        }

    @classmethod
    def from_yaml(cls, config_path: Path = DEFAULT_CONFIG_PATH, **cli_overrides) -> Settings:
        """Load from YAML, merge CLI overrides (highest priority)."""
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            data = {}
        for key, value in cli_overrides.items():
            if value is None:
                continue
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return cls._build(data)

    @classmethod
    def from_args(
        cls,
        customers_file: Path,
        invoices_file: Path,
        subscriptions_file: Path,
        **kwargs,
    ) -> Settings:
        """Create settings directly from arguments (no YAML needed)."""
        return cls._build(
            {
                "customers_file": customers_file,
                "invoices_file": invoices_file,
                "subscriptions_file": subscriptions_file,
                **kwargs,
            }
        )

    @classmethod
    def _build(cls, data: dict) -> Settings:
        try:
            return cls(**data)
        except InvalidDateFilterError:
            raise
        except Exception as e:
            raise ConfigError(f"Configuration error: {e}") from e
