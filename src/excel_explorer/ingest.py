"""Ingestion pipeline — workbook bytes in, normalized table out."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Literal

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from excel_explorer import IMAGE_KEYWORDS, STATUS_COLUMN, TALL_ROW_HEIGHT
from excel_explorer.cells import (
    classify_cell,
    has_data,
    normalize_image_value,
    normalize_value,
    status_from_cell,
)
from excel_explorer.errors import EmptyWorkbookError, WorkbookParseError
from excel_explorer.images import read_media, resolve_images
from excel_explorer.models import IngestReport, Row, Table, is_status_header

ColumnKind = Literal["plain", "image", "status"]


@dataclass(frozen=True)
class Column:
    """A header discovered in row 1.

    ``index`` is the 1-based sheet column, or ``None`` for the synthesized
    status column that has no source cells.
    """

    name: str
    index: int | None
    kind: ColumnKind = "plain"


def is_image_header(name: str) -> bool:
    lower = name.lower()
    return any(keyword in lower for keyword in IMAGE_KEYWORDS)


# ── Loading ──────────────────────────────────────────────────────


def _load(data: bytes, *, data_only: bool = False) -> Workbook:
    try:
        return load_workbook(BytesIO(data), data_only=data_only, rich_text=not data_only)
    except Exception as exc:
        raise WorkbookParseError(
            f"Could not read workbook (expected an .xlsx file): {exc}"
        ) from exc


def _has_formulas(ws: Worksheet) -> bool:
    return any(cell.data_type == "f" for row in ws.iter_rows() for cell in row)


# ── Header discovery ─────────────────────────────────────────────


def _header_text(cell: object, column_number: int, cached: object = None) -> str:
    value = normalize_value(classify_cell(cell, cached))
    text = "" if value is None else str(value).strip()
    return text or f"Column {column_number}"


def _unique_name(name: str, seen: set[str]) -> str:
    if name not in seen:
        return name
    n = 2
    while f"{name} ({n})" in seen:
        n += 1
    return f"{name} ({n})"


def discover_columns(
    ws: Worksheet,
    *,
    status_column: str = STATUS_COLUMN,
    cached_ws: Worksheet | None = None,
) -> tuple[list[Column], bool]:
    """Read row 1 into columns.

    Header names come out unique: a repeated name gets a `` (2)``, `` (3)``
    suffix. *cached_ws* supplies computed results for formula headers.

    Returns ``(columns, synthesized)``; *synthesized* is true when the
    status column did not exist and was appended.
    """
    columns: list[Column] = []
    seen: set[str] = set()
    status_count = 0
    header_cells = next(ws.iter_rows(min_row=1, max_row=1), ())
    for cell in header_cells:
        if cell.value is None:
            continue
        number = cell.column
        cached = cached_ws.cell(row=1, column=number) if cached_ws is not None else None
        name = _header_text(cell, number, cached)
        kind: ColumnKind = "plain"
        if is_image_header(name):
            kind = "image"
        elif is_status_header(name, status_column):
            status_count += 1
            if status_count == 1:
                kind = "status"
            else:
                name = f"{name} ({status_count})"
        name = _unique_name(name, seen)
        seen.add(name)
        columns.append(Column(name=name, index=number, kind=kind))

    if status_count:
        return columns, False
    columns.append(Column(name=status_column, index=None, kind="status"))
    return columns, True


# ── Main ingestion function ──────────────────────────────────────


def ingest_workbook(
    data: bytes,
    *,
    source_file_name: str | None = None,
    status_column: str = STATUS_COLUMN,
    tall_row_height: float = TALL_ROW_HEIGHT,
) -> tuple[Table, IngestReport]:
    """Normalize the first sheet of the workbook in *data*.

    Returns ``(table, report)``.  Only unreadable bytes and a workbook
    without worksheets raise; every cell or picture problem degrades to an
    empty value and is listed in ``report.anomalies``.

    Raises
    ------
    WorkbookParseError
        If *data* is not a readable workbook.
    EmptyWorkbookError
        If the workbook contains no worksheet.
    """
    wb = _load(data)
    if not wb.worksheets:
        raise EmptyWorkbookError("Workbook is empty")
    ws = wb.worksheets[0]

    report = IngestReport()

    # 1. Cached formula results, only when needed
    cached_ws: Worksheet | None = None
    if _has_formulas(ws):
        cached_ws = _load(data, data_only=True).worksheets[0]

    # 2. Headers
    columns, synthesized = discover_columns(
        ws, status_column=status_column, cached_ws=cached_ws
    )
    report.synthesized_status = synthesized

    # 3. Pictures
    image_map = resolve_images(ws, read_media(data), tall_row_height=tall_row_height)
    report.image_strategy = image_map.strategy
    report.images_found = len(image_map.rows)
    report.anomalies.extend(image_map.anomalies)

    # 4. Rows
    last_row = max(ws.max_row, image_map.last_row)
    max_col = max((c.index for c in columns if c.index is not None), default=1)
    rows: list[Row] = []
    scanned = 0
    for row_cells in ws.iter_rows(min_row=2, max_row=last_row, min_col=1, max_col=max_col):
        scanned += 1
        row_number = row_cells[0].row
        record: Row = {}
        row_has_data = False

        for column in columns:
            if column.index is None:
                record[column.name] = False
                continue

            cell = row_cells[column.index - 1]
            cached = (
                cached_ws.cell(row=row_number, column=column.index)
                if cached_ws is not None
                else None
            )
            variant = classify_cell(cell, cached)

            if column.kind == "status":
                record[column.name] = status_from_cell(variant)
                continue

            if column.kind == "image":
                payload = image_map.rows.get(row_number)
                if payload is not None:
                    record[column.name] = payload
                    row_has_data = True
                    continue
                value, anomaly = normalize_image_value(variant)
                if anomaly:
                    report.anomalies.append(
                        f"Row {row_number}, column {column.name!r}: discarded {anomaly}"
                    )
            else:
                value = normalize_value(variant)

            record[column.name] = value
            if has_data(value):
                row_has_data = True

        if row_has_data:
            rows.append(record)

    table = Table(
        headers=[c.name for c in columns],
        rows=rows,
        source_file_name=source_file_name,
        status_column=status_column,
    )
    report.rows_in = scanned
    report.rows_out = len(rows)
    report.dropped_rows = scanned - len(rows)
    return table, report


def read_workbook(
    data: bytes,
    *,
    source_file_name: str | None = None,
    status_column: str = STATUS_COLUMN,
    tall_row_height: float = TALL_ROW_HEIGHT,
) -> Table:
    """Like :func:`ingest_workbook`, without the diagnostics report."""
    table, _report = ingest_workbook(
        data,
        source_file_name=source_file_name,
        status_column=status_column,
        tall_row_height=tall_row_height,
    )
    return table
