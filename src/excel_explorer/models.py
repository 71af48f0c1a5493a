"""Table model and the diagnostics report produced by ingestion."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Any, Literal, Union

import pandas as pd

from excel_explorer import STATUS_COLUMN

CellScalar = Union[str, int, float, bool, None]
Row = dict[str, CellScalar]
ImageStrategy = Literal["anchored", "tall-rows", "none"]

_IMAGE_STRATEGIES: frozenset[str] = frozenset({"anchored", "tall-rows", "none"})


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _check_scalar(value: Any, header: str) -> None:
    if value is None or isinstance(value, (str, bool)):
        return
    if isinstance(value, Real):
        return
    raise TypeError(
        f"Value for {header!r} must be text, number, boolean or None, "
        f"got {type(value).__name__}"
    )


def is_status_header(name: str, status_column: str = STATUS_COLUMN) -> bool:
    return name.lower() == status_column.lower()


@dataclass
class Table:
    """One worksheet, normalized into headers and row records.

    Contract invariants:

    * every row holds a key for every header;
    * exactly one header equals ``status_column`` case-insensitively and its
      values are booleans.
    """

    headers: list[str]
    rows: list[Row] = field(default_factory=list)
    source_file_name: str | None = None
    status_column: str = STATUS_COLUMN

    def __post_init__(self) -> None:
        self.headers = _to_string_list(self.headers, "headers")
        status_headers = [h for h in self.headers if is_status_header(h, self.status_column)]
        if len(status_headers) != 1:
            raise ValueError(
                f"headers must contain exactly one {self.status_column!r} column, "
                f"found {len(status_headers)}"
            )
        self.rows = [self._check_row(row, idx) for idx, row in enumerate(self.rows)]

    @property
    def status_header(self) -> str:
        return next(h for h in self.headers if is_status_header(h, self.status_column))

    def _check_row(self, row: Mapping[str, Any], index: int) -> Row:
        missing = [h for h in self.headers if h not in row]
        if missing:
            raise ValueError(f"row {index} is missing columns: {', '.join(missing)}")
        checked: Row = {}
        for header in self.headers:
            value = row[header]
            _check_scalar(value, header)
            checked[header] = value
        status = checked[self.status_header]
        if not isinstance(status, bool):
            raise TypeError(f"row {index}: {self.status_header!r} must be a boolean")
        return checked

    def replace_row(self, index: int, row: Mapping[str, Any]) -> Table:
        """Return a new table with row *index* swapped for *row*."""
        if not 0 <= index < len(self.rows):
            raise IndexError(f"row index {index} out of range (0..{len(self.rows) - 1})")
        rows = list(self.rows)
        rows[index] = self._check_row(row, index)
        return Table(
            headers=list(self.headers),
            rows=rows,
            source_file_name=self.source_file_name,
            status_column=self.status_column,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "headers": list(self.headers),
            "rows": [dict(row) for row in self.rows],
            "source_file_name": self.source_file_name,
        }

    def to_frame(self) -> pd.DataFrame:
        """Tabular view of the rows, columns in header order."""
        # Duplicate header names share one row key, so build by position.
        data = [[row[h] for h in self.headers] for row in self.rows]
        return pd.DataFrame(data, columns=pd.Index(self.headers), dtype="object")


@dataclass
class IngestReport:
    """Diagnostics emitted alongside every ingested table.

    Contract invariant: ``dropped_rows == rows_in - rows_out``.
    """

    rows_in: int = 0
    rows_out: int = 0
    dropped_rows: int = 0
    image_strategy: ImageStrategy = "none"
    images_found: int = 0
    synthesized_status: bool = False
    anomalies: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.dropped_rows = _to_non_negative_int(self.dropped_rows, "dropped_rows")
        self.images_found = _to_non_negative_int(self.images_found, "images_found")
        self.anomalies = _to_string_list(self.anomalies, "anomalies")
        if self.image_strategy not in _IMAGE_STRATEGIES:
            raise ValueError(f"image_strategy must be one of {sorted(_IMAGE_STRATEGIES)}")
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        if self.dropped_rows != self.rows_in - self.rows_out:
            raise ValueError("dropped_rows must equal rows_in - rows_out")

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "dropped_rows": self.dropped_rows,
            "image_strategy": self.image_strategy,
            "images_found": self.images_found,
            "synthesized_status": self.synthesized_status,
            "anomalies": list(self.anomalies),
        }
