"""Cell variants and the normalization rules applied to each of them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Union

from openpyxl.cell.rich_text import CellRichText
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula

from excel_explorer import STATUS_TRUE_VALUES
from excel_explorer.models import CellScalar

INLINE_IMAGE_PREFIX = "data:image/"
_WEB_PREFIXES = ("http://", "https://")


# ── Variants ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class EmptyCell:
    pass


@dataclass(frozen=True)
class ScalarCell:
    value: CellScalar


@dataclass(frozen=True)
class ErrorCell:
    code: str


@dataclass(frozen=True)
class RichTextCell:
    text: str


@dataclass(frozen=True)
class FormulaCell:
    formula: str
    result: CellVariant


@dataclass(frozen=True)
class HyperlinkCell:
    text: str
    target: str

    @property
    def display(self) -> str:
        return self.text if self.text.strip() else self.target


CellVariant = Union[EmptyCell, ScalarCell, ErrorCell, RichTextCell, FormulaCell, HyperlinkCell]


# ── Classification ───────────────────────────────────────────────


def _to_scalar(value: Any) -> CellScalar:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def _formula_text(value: Any) -> str:
    if isinstance(value, ArrayFormula):
        return value.text or ""
    return str(value)


def classify_cell(cell: Any, cached: Any = None) -> CellVariant:
    """Map an openpyxl cell to its variant.

    *cached* is the same cell from a value-only load of the workbook; it
    supplies the computed result of formula cells.
    """
    value = getattr(cell, "value", None)
    if value is None:
        return EmptyCell()

    data_type = getattr(cell, "data_type", None)
    if data_type == "e":
        return ErrorCell(code=str(value))
    if data_type == "f" or isinstance(value, (ArrayFormula, DataTableFormula)):
        result = classify_cell(cached) if cached is not None else EmptyCell()
        return FormulaCell(formula=_formula_text(value), result=result)
    if isinstance(value, CellRichText):
        return RichTextCell(text=str(value))

    hyperlink = getattr(cell, "hyperlink", None)
    if hyperlink is not None:
        target = hyperlink.target or hyperlink.location or ""
        return HyperlinkCell(text=str(_to_scalar(value)), target=target)

    return ScalarCell(value=_to_scalar(value))


# ── Normalization ────────────────────────────────────────────────


def _normalize_empty(_cell: EmptyCell) -> CellScalar:
    return None


def _normalize_scalar(cell: ScalarCell) -> CellScalar:
    return cell.value


def _normalize_error(_cell: ErrorCell) -> CellScalar:
    return None


def _normalize_rich_text(cell: RichTextCell) -> CellScalar:
    return cell.text


def _normalize_formula(cell: FormulaCell) -> CellScalar:
    return normalize_value(cell.result)


def _normalize_hyperlink(cell: HyperlinkCell) -> CellScalar:
    return cell.display


_NORMALIZERS: dict[type, Any] = {
    EmptyCell: _normalize_empty,
    ScalarCell: _normalize_scalar,
    ErrorCell: _normalize_error,
    RichTextCell: _normalize_rich_text,
    FormulaCell: _normalize_formula,
    HyperlinkCell: _normalize_hyperlink,
}


def normalize_value(cell: CellVariant) -> CellScalar:
    """Reduce a plain-column cell to the value stored in the table."""
    try:
        normalizer = _NORMALIZERS[type(cell)]
    except KeyError:
        raise TypeError(f"Unknown cell variant: {type(cell).__name__}") from None
    return normalizer(cell)


def is_web_url(value: object) -> bool:
    return isinstance(value, str) and value.startswith(_WEB_PREFIXES)


def is_inline_image(value: object) -> bool:
    return isinstance(value, str) and value.startswith(INLINE_IMAGE_PREFIX)


def normalize_image_value(cell: CellVariant) -> tuple[CellScalar, str | None]:
    """Reduce an image-column cell with no embedded picture.

    Returns ``(value, anomaly)``; *anomaly* describes why a non-empty cell
    was discarded, or is ``None``.
    """
    if isinstance(cell, EmptyCell):
        return None, None
    if isinstance(cell, ErrorCell):
        return None, f"error value {cell.code}"
    if isinstance(cell, ScalarCell):
        value = cell.value
        if is_web_url(value) or is_inline_image(value):
            return value, None
        if isinstance(value, str):
            if not value.strip():
                return None, None
            return None, f"local path or text {value!r} cannot be displayed"
        return None, f"non-text value {value!r}"
    return None, f"unhandled {type(cell).__name__}"


def normalize_status(value: object) -> bool:
    """Coerce any raw status value to a boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in STATUS_TRUE_VALUES
    if isinstance(value, (int, float, Decimal)):
        return value == 1
    return False


def status_from_cell(cell: CellVariant) -> bool:
    if isinstance(cell, ScalarCell):
        return normalize_status(cell.value)
    if isinstance(cell, (RichTextCell, FormulaCell, HyperlinkCell)):
        return normalize_status(normalize_value(cell))
    return False


def has_data(value: CellScalar) -> bool:
    return value is not None and value != ""
