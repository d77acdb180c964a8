"""Excel workbook: cover, contents, and one formatted sheet per result table."""

from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path

import pandas as pd
from openpyxl import Workbook
from openpyxl.drawing.image import Image as XlImage
from openpyxl.styles import Alignment, Border, Font, NamedStyle, PatternFill, Side
from openpyxl.utils import get_column_letter

from churn_analysis.formatting import excel_number_format, is_percentage_policy, present

logger = logging.getLogger(__name__)

REPORT_TITLE = "Payment Method Churn Analysis"

NAVY = "1B365D"
ZEBRA_GRAY = "FAFAFA"
LINK_BLUE = "0563C1"
ALERT_RED = "C00000"
FONT_NAME = "Calibri"
MAX_COLUMN_WIDTH = 30
CHART_ROWS = 30

_EDGE = Side(style="thin", color="D0D0D0")
THIN_BORDER = Border(left=_EDGE, right=_EDGE, top=_EDGE, bottom=_EDGE)

# name -> (bold, font color, fill color)
_STYLE_SPECS: dict[str, tuple[bool, str | None, str | None]] = {
    "churn_header": (True, "FFFFFF", NAVY),
    "churn_row_even": (False, None, None),
    "churn_row_odd": (False, None, ZEBRA_GRAY),
}


def _register_styles(wb: Workbook) -> None:
    for name, (bold, color, fill) in _STYLE_SPECS.items():
        style = NamedStyle(name=name)
        style.font = Font(name=FONT_NAME, size=10, bold=bold, color=color)
        if fill:
            style.fill = PatternFill(start_color=fill, end_color=fill, fill_type="solid")
        style.alignment = Alignment(
            horizontal="center", vertical="center", wrap_text=name == "churn_header"
        )
        style.border = THIN_BORDER
        wb.add_named_style(style)


def _link(cell, target: str, text: str) -> None:
    cell.value = text
    cell.hyperlink = target
    cell.font = Font(name=FONT_NAME, size=10, color=LINK_BLUE, underline="single")


def _cover_details(result) -> list[tuple[str, str]]:
    settings = result.settings
    undefined = sum(len(a.empty_groups) for a in result.analyses)
    return [
        ("Report ID:", settings.report_id or "N/A"),
        ("Report Date:", datetime.now().strftime("%B %d, %Y")),
        ("Invoice Cutoff:", settings.cutoff_date.isoformat()),
        ("Customers File:", _file_name(settings.customers_file)),
        ("Invoices File:", _file_name(settings.invoices_file)),
        ("Subscriptions File:", _file_name(settings.subscriptions_file)),
        ("Unified Rows:", f"{len(result.view):,}"),
        ("Unique Customers:", f"{result.view['customer_id'].nunique():,}"),
        ("Analyses Run:", str(len(result.analyses))),
        ("Undefined Measures:", str(undefined)),
    ]


def _file_name(path: Path | None) -> str:
    return path.name if path is not None else "N/A"


def _write_cover_sheet(wb: Workbook, result) -> None:
    ws = wb.active
    ws.title = "Report Info"
    ws.sheet_properties.showGridLines = False

    ws.merge_cells("A1:D1")
    ws["A1"] = REPORT_TITLE
    ws["A1"].font = Font(name=FONT_NAME, size=24, bold=True, color=NAVY)
    ws.merge_cells("A2:D2")
    ws["A2"] = result.settings.report_name or ""
    ws["A2"].font = Font(name=FONT_NAME, size=16, color="666666")

    for row, (label, value) in enumerate(_cover_details(result), start=4):
        ws.cell(row=row, column=1, value=label).font = Font(name=FONT_NAME, bold=True, size=11)
        ws.cell(row=row, column=2, value=value).font = Font(name=FONT_NAME, size=11)

    ws.column_dimensions["A"].width = 20
    ws.column_dimensions["B"].width = 50


def _write_contents_sheet(wb: Workbook, analyses: list) -> None:
    """Index of result sheets, one row per analysis in report order."""
    ws = wb.create_sheet("Contents", 1)
    ws.sheet_properties.showGridLines = False
    ws["A1"] = "Contents"
    ws["A1"].font = Font(name=FONT_NAME, size=18, bold=True, color=NAVY)

    for col, heading in enumerate(["#", "Analysis", "Sheet", "Undefined"], start=1):
        ws.cell(row=3, column=col, value=heading).font = Font(name=FONT_NAME, bold=True, size=11)

    row = 4
    for number, analysis in enumerate(analyses, start=1):
        ws.cell(row=row, column=1, value=number)
        ws.cell(row=row, column=2, value=analysis.title)
        _link(ws.cell(row=row, column=3), f"#'{analysis.sheet_name}'!A1", analysis.sheet_name)
        if analysis.empty_groups:
            ws.cell(row=row, column=4, value=", ".join(analysis.empty_groups))
        row += 1

    for letter, width in zip("ABCD", (5, 50, 25, 40)):
        ws.column_dimensions[letter].width = width


def _cell_value(val, is_pct: bool):
    """Excel-ready value; percentages become fractions for the % number format."""
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return None
    if is_pct:
        return float(val) / 100.0
    return val.item() if hasattr(val, "item") else val


def _column_width(name: str, values: pd.Series) -> int:
    longest = max([len(name), *(len(str(v)) for v in values.head(20) if not pd.isna(v))])
    return min(longest + 4, MAX_COLUMN_WIDTH)


def _write_analysis_sheet(wb: Workbook, analysis, chart_png: bytes | None = None) -> None:
    df = present(analysis)
    ws = wb.create_sheet(analysis.sheet_name)
    ws.freeze_panes = "A2"
    ws.append(list(df.columns))
    for cell in ws[1]:
        cell.style = "churn_header"

    formats = {col: excel_number_format(analysis.column_policies.get(col)) for col in df.columns}
    pct = {col: is_percentage_policy(analysis.column_policies.get(col)) for col in df.columns}
    for offset, record in enumerate(df.to_dict("records")):
        row = offset + 2
        style = "churn_row_odd" if offset % 2 else "churn_row_even"
        for col_idx, col in enumerate(df.columns, start=1):
            cell = ws.cell(row=row, column=col_idx, value=_cell_value(record[col], pct[col]))
            cell.style = style
            cell.number_format = formats[col]

    if len(df.columns):
        ws.auto_filter.ref = f"A1:{get_column_letter(len(df.columns))}{len(df) + 1}"
    for col_idx, col in enumerate(df.columns, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = _column_width(col, df[col])

    next_row = len(df) + 3
    if df.empty:
        note = ws.cell(row=next_row, column=1, value="No rows for this run")
        note.font = Font(name=FONT_NAME, size=9, italic=True, color=ALERT_RED)
        next_row += 2
    if analysis.empty_groups:
        note = ws.cell(
            row=next_row,
            column=1,
            value=f"Undefined (empty group): {', '.join(analysis.empty_groups)}",
        )
        note.font = Font(name=FONT_NAME, size=9, italic=True, color=ALERT_RED)
        next_row += 2

    if chart_png:
        try:
            img = XlImage(BytesIO(chart_png))
            img.width, img.height = 900, 500
            ws.add_image(img, f"A{next_row}")
            next_row += CHART_ROWS
        except Exception as exc:
            logger.warning("Chart embed failed for '%s': %s", analysis.sheet_name, exc)

    _link(ws.cell(row=next_row + 1, column=1), "#Contents!A1", "Back to Contents")


def write_excel_report(result, output_path: Path) -> None:
    """Write the workbook for a finished pipeline run."""
    wb = Workbook()
    _register_styles(wb)
    _write_cover_sheet(wb, result)
    _write_contents_sheet(wb, result.analyses)

    chart_pngs = result.chart_pngs or {}
    for analysis in result.analyses:
        _write_analysis_sheet(wb, analysis, chart_png=chart_pngs.get(analysis.name))

    wb.save(output_path)
    logger.info("Excel report saved: %s (%d sheets)", output_path, len(wb.sheetnames))
