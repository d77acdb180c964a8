"""CSV export: one file per result table plus the dashboard feed."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from churn_analysis.formatting import present

logger = logging.getLogger(__name__)


def write_csv_tables(analyses: list, output_dir: Path) -> list[Path]:
    """Write each analysis as ``<name>.csv`` (rounded for presentation)."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for analysis in analyses:
        path = output_dir / f"{analysis.name}.csv"
        present(analysis).to_csv(path, index=False)
        written.append(path)
    logger.info("Wrote %d CSV tables to %s", len(written), output_dir)
    return written


def write_export_dataset(export_df: pd.DataFrame, path: Path) -> Path:
    """Write the row-level dashboard dataset."""
    path.parent.mkdir(parents=True, exist_ok=True)
    export_df.to_csv(path, index=False)
    logger.info("Export dataset: %d rows -> %s", len(export_df), path)
    return path
