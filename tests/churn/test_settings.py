"""Tests for churn_analysis.settings."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import pytest
import yaml

from churn_analysis.exceptions import ConfigError, InvalidDateFilterError
from churn_analysis.settings import (
    BRAND_COLORS,
    DEFAULT_CUTOFF,
    ChartConfig,
    OutputConfig,
    Settings,
    parse_cutoff,
)

# -- ChartConfig / OutputConfig ------------------------------------------------


class TestChartConfig:
    def test_defaults(self):
        cfg = ChartConfig()
        assert cfg.theme == "consultant"
        assert cfg.width == 900
        assert cfg.colors == BRAND_COLORS


class TestOutputConfig:
    def test_defaults(self):
        cfg = OutputConfig()
        assert cfg.excel is True
        assert cfg.csv is False
        assert cfg.chart_images is True


# -- parse_cutoff --------------------------------------------------------------


class TestParseCutoff:
    def test_iso_string(self):
        assert parse_cutoff("2024-03-15") == date(2024, 3, 15)

    def test_date(self):
        assert parse_cutoff(date(2023, 1, 1)) == date(2023, 1, 1)

    def test_datetime(self):
        assert parse_cutoff(datetime(2023, 1, 1, 12, 30)) == date(2023, 1, 1)

    def test_garbage(self):
        with pytest.raises(InvalidDateFilterError):
            parse_cutoff("last tuesday")

    def test_wrong_type(self):
        with pytest.raises(InvalidDateFilterError):
            parse_cutoff(20240101)


# -- Settings ------------------------------------------------------------------


class TestSettings:
    def test_minimal(self, input_files: dict[str, Path], tmp_path: Path):
        s = Settings(customers_file=input_files["customers"], output_dir=tmp_path)
        assert s.customers_file == input_files["customers"].resolve()
        assert s.cutoff_date == DEFAULT_CUTOFF == date(2024, 1, 1)

    def test_frozen(self, sample_settings: Settings):
        with pytest.raises(Exception):
            sample_settings.cutoff_date = date(2020, 1, 1)  # type: ignore[misc]

    def test_extra_forbidden(self, tmp_path: Path):
        with pytest.raises(Exception):
            Settings(output_dir=tmp_path, bogus=1)

    def test_data_file_not_found(self, tmp_path: Path):
        with pytest.raises(Exception, match="Data file not found"):
            Settings(invoices_file=tmp_path / "nope.csv")

    def test_unsupported_extension(self, tmp_path: Path):
        bad = tmp_path / "customers.json"
        bad.write_text("{}")
        with pytest.raises(Exception, match="Unsupported file type"):
            Settings(customers_file=bad)

    def test_bad_cutoff_raises_date_filter_error(self, tmp_path: Path):
        with pytest.raises(InvalidDateFilterError):
            Settings(output_dir=tmp_path, cutoff_date="2024-13-45")

    def test_report_id_derived_from_filename(self, tmp_path: Path):
        csv = tmp_path / "4471_customers.csv"
        csv.write_text("customer_id\n")
        s = Settings(customers_file=csv)
        assert s.report_id == "4471"
        assert s.report_name == "Report 4471"

    def test_report_id_not_derived_without_digits(self, input_files):
        s = Settings(customers_file=input_files["customers"])
        assert s.report_id is None
        assert s.report_name is None

    def test_input_files(self, sample_settings: Settings):
        assert set(sample_settings.input_files) == {"customers", "invoices", "subscriptions"}


class TestFromYaml:
    def test_yaml_merged_with_overrides(self, input_files, tmp_path: Path):
        cfg = tmp_path / "config.yaml"
        cfg.write_text(
            yaml.safe_dump({"cutoff_date": "2024-06-01", "report_name": "From YAML"})
        )
        s = Settings.from_yaml(
            cfg,
            customers_file=input_files["customers"],
            report_name="From CLI",
            output_dir=None,
        )
        assert s.cutoff_date == date(2024, 6, 1)
        assert s.report_name == "From CLI"

    def test_missing_yaml_uses_defaults(self, tmp_path: Path):
        s = Settings.from_yaml(tmp_path / "missing.yaml")
        assert s.cutoff_date == DEFAULT_CUTOFF

    def test_invalid_value_wrapped(self, tmp_path: Path):
        cfg = tmp_path / "config.yaml"
        cfg.write_text(yaml.safe_dump({"outputs": {"excel": "sometimes"}}))
        with pytest.raises(ConfigError, match="Configuration error"):
            Settings.from_yaml(cfg)

    def test_bad_cutoff_not_wrapped(self, tmp_path: Path):
        cfg = tmp_path / "config.yaml"
        cfg.write_text("cutoff_date: not-a-date\n")
        with pytest.raises(InvalidDateFilterError):
            Settings.from_yaml(cfg)


class TestFromArgs:
    def test_builds(self, input_files, tmp_path: Path):
        s = Settings.from_args(
            input_files["customers"],
            input_files["invoices"],
            input_files["subscriptions"],
            output_dir=tmp_path,
            cutoff_date="2024-02-01",
        )
        assert s.cutoff_date == date(2024, 2, 1)

    def test_missing_file_is_config_error(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            Settings.from_args(tmp_path / "a.csv", tmp_path / "b.csv", tmp_path / "c.csv")
