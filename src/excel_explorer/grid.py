"""Grid operations — the row edits, filters and sorts a table view needs.

Everything here is pure: edits return a new :class:`Table`, filters and
sorts return new row lists. The source table is never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Literal

from excel_explorer.cells import is_web_url, normalize_status
from excel_explorer.ingest import is_image_header
from excel_explorer.models import CellScalar, Row, Table

SortDirection = Literal["asc", "desc"]

_LOCATION_KEYWORDS = ("ubicacion", "ubicación", "mapa", "maps")
_CITY_KEYWORDS = ("ciudad", "pueblo", "localidad")


# ── Column classification ───────────────────────────────────────


def is_image_column(name: str) -> bool:
    return is_image_header(name)


def is_location_column(name: str) -> bool:
    lower = name.lower()
    return any(keyword in lower for keyword in _LOCATION_KEYWORDS)


def is_city_column(name: str) -> bool:
    lower = name.lower()
    return any(keyword in lower for keyword in _CITY_KEYWORDS)


def is_link(value: object) -> bool:
    return is_web_url(value)


# ── Edits ────────────────────────────────────────────────────────


def replace_row(table: Table, index: int, row: Mapping[str, Any]) -> Table:
    return table.replace_row(index, row)


def update_cell(table: Table, index: int, column: str, value: CellScalar) -> Table:
    """Return a new table with one field of row *index* changed."""
    if column not in table.headers:
        raise KeyError(f"Unknown column: {column!r}")
    if column == table.status_header:
        value = normalize_status(value)
    row = dict(table.rows[index])
    row[column] = value
    return table.replace_row(index, row)


def toggle_status(table: Table, index: int) -> Table:
    status = table.status_header
    return update_cell(table, index, status, not table.rows[index][status])


# ── Views ────────────────────────────────────────────────────────


def filter_rows(rows: Iterable[Row], filters: Mapping[str, str]) -> list[Row]:
    """Keep rows whose value contains every non-empty filter (case-insensitive)."""
    active = {column: text.lower() for column, text in filters.items() if text}
    kept: list[Row] = []
    for row in rows:
        matches = True
        for column, needle in active.items():
            value = row.get(column)
            if value is None or needle not in str(value).lower():
                matches = False
                break
        if matches:
            kept.append(row)
    return kept


def _sort_key(value: CellScalar) -> tuple[int, Any]:
    # Booleans rank apart from numbers.
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (1, value)
    return (2, str(value))


def sort_rows(rows: Iterable[Row], column: str, direction: SortDirection = "asc") -> list[Row]:
    """Stable sort by *column*; empty values always go last."""
    if direction not in ("asc", "desc"):
        raise ValueError(f"Invalid sort direction: {direction!r}. Use asc/desc.")
    rows = list(rows)
    filled = [r for r in rows if r.get(column) is not None]
    empty = [r for r in rows if r.get(column) is None]
    filled.sort(key=lambda r: _sort_key(r[column]), reverse=direction == "desc")
    return filled + empty


def unique_options(table: Table, column: str) -> list[str]:
    """Sorted distinct non-empty values of *column*, as text."""
    values = {
        str(row[column])
        for row in table.rows
        if row.get(column) is not None and row.get(column) != ""
    }
    return sorted(values)
