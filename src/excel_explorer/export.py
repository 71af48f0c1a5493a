"""Excel export — serializes a table back into a downloadable workbook.

Image cells are written as their raw value. For an inline ``data:`` payload
that is a (very long) text string: pictures are not re-embedded, so an
exported file re-imports with the payload as text in the image column.
"""

from __future__ import annotations

import re
from io import BytesIO
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from excel_explorer import MAX_COLUMN_WIDTH, STATUS_FALSE_GLYPH, STATUS_TRUE_GLYPH
from excel_explorer.errors import ExportError
from excel_explorer.models import CellScalar, Table, is_status_header

SHEET_NAME = "Data"
DEFAULT_EXPORT_NAME = "edited-data.xlsx"
EXPORT_SUFFIX = "-edited"

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

_WIDTH_PADDING = 2
_KNOWN_EXTENSION_RE = re.compile(r"\.xlsx?$", re.IGNORECASE)


# ── Helpers ──────────────────────────────────────────────────────


def export_file_name(source_file_name: str | None) -> str:
    """Download name for a table ingested from *source_file_name*."""
    if not source_file_name:
        return DEFAULT_EXPORT_NAME
    base = _KNOWN_EXTENSION_RE.sub("", Path(source_file_name).name)
    return f"{base}{EXPORT_SUFFIX}.xlsx"


def status_glyph(value: Any) -> str:
    return STATUS_TRUE_GLYPH if value else STATUS_FALSE_GLYPH


def _export_value(value: CellScalar, *, is_status: bool) -> CellScalar:
    if is_status:
        return status_glyph(value)
    if value is None:
        return ""
    return value


def column_widths(table: Table, *, max_width: int = MAX_COLUMN_WIDTH) -> list[int]:
    """Per-column width: longest header or value, padded and clamped."""
    widths: list[int] = []
    for header in table.headers:
        is_status = is_status_header(header, table.status_column)
        longest = len(header)
        for row in table.rows:
            value = _export_value(row[header], is_status=is_status)
            longest = max(longest, len(str(value)))
        widths.append(min(longest + _WIDTH_PADDING, max_width))
    return widths


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _write_cell(ws: Worksheet, row: int, column: int, value: CellScalar) -> Cell:
    cell = ws.cell(row=row, column=column, value=value)
    if isinstance(value, str) and cell.data_type in ("f", "e"):
        # Text such as "=total" or "#N/A" stays text, never a formula or error.
        cell.data_type = "s"
    return cell


def _build_workbook(table: Table, max_width: int) -> Workbook:
    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = SHEET_NAME

    for c_idx, header in enumerate(table.headers, 1):
        _write_cell(ws, 1, c_idx, header)

    status_flags = [is_status_header(h, table.status_column) for h in table.headers]
    for r_idx, row in enumerate(table.rows, 2):
        for c_idx, (header, is_status) in enumerate(zip(table.headers, status_flags), 1):
            _write_cell(ws, r_idx, c_idx, _export_value(row[header], is_status=is_status))

    _style_header(ws, len(table.headers))
    ws.freeze_panes = "A2"
    for c_idx, width in enumerate(column_widths(table, max_width=max_width), 1):
        ws.column_dimensions[get_column_letter(c_idx)].width = width
    return wb


# ── Public API ───────────────────────────────────────────────────


def export_workbook(table: Table, *, max_width: int = MAX_COLUMN_WIDTH) -> bytes:
    """Serialize *table* to ``.xlsx`` bytes.

    Raises
    ------
    ExportError
        If the workbook cannot be built or saved. *table* is left untouched.
    """
    try:
        wb = _build_workbook(table, max_width)
        buffer = BytesIO()
        wb.save(buffer)
    except Exception as exc:
        raise ExportError(f"Export failed: {exc}") from exc
    return buffer.getvalue()


def write_export(out_dir: Path, table: Table, *, max_width: int = MAX_COLUMN_WIDTH) -> Path:
    """Write the exported workbook into *out_dir* and return the path."""
    payload = export_workbook(table, max_width=max_width)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    export_path = out_dir / export_file_name(table.source_file_name)
    tmp_path = export_path.with_name(export_path.stem + ".tmp.xlsx")
    tmp_path.write_bytes(payload)
    tmp_path.replace(export_path)
    return export_path
