from __future__ import annotations

import re
import zipfile
from collections.abc import Callable, Sequence
from io import BytesIO
from typing import Any

import pytest
from openpyxl import Workbook
from openpyxl.drawing.image import Image as XLImage
from openpyxl.worksheet.worksheet import Worksheet
from PIL import Image as PILImage

WorkbookFactory = Callable[..., bytes]


def png_bytes(color: str = "red", size: tuple[int, int] = (4, 4)) -> bytes:
    buf = BytesIO()
    PILImage.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def add_picture(ws: Worksheet, anchor: str, color: str = "red") -> None:
    ws.add_image(XLImage(BytesIO(png_bytes(color))), anchor)


def workbook_bytes(wb: Workbook) -> bytes:
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def build_workbook(
    rows: Sequence[Sequence[Any]],
    *,
    images: Sequence[str] = (),
    heights: dict[int, float] | None = None,
    title: str = "Sheet1",
) -> bytes:
    """Workbook whose first sheet holds *rows* (row 1 = headers)."""
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for r_idx, row in enumerate(rows, 1):
        for c_idx, value in enumerate(row, 1):
            if value is not None:
                ws.cell(row=r_idx, column=c_idx, value=value)
    for anchor in images:
        add_picture(ws, anchor)
    for row_number, height in (heights or {}).items():
        ws.row_dimensions[row_number].height = height
    return workbook_bytes(wb)


def with_cached_values(
    data: bytes, values: dict[str, Any], sheet: str = "xl/worksheets/sheet1.xml"
) -> bytes:
    """Store computed results for formula cells, the way Excel does on save.

    openpyxl writes formulas without results; *values* maps a cell reference
    to the result to embed next to its formula.
    """
    out = BytesIO()
    with zipfile.ZipFile(BytesIO(data)) as src, zipfile.ZipFile(
        out, "w", zipfile.ZIP_DEFLATED
    ) as dst:
        for item in src.infolist():
            payload = src.read(item.filename)
            if item.filename == sheet:
                for ref, value in values.items():
                    kind = ' t="str"' if isinstance(value, str) else ""
                    pattern = (
                        rb'<c r="' + ref.encode() + rb'"([^>]*)>'
                        rb"<f>([^<]*)</f>\s*(?:<v\s*/>|<v>\s*</v>)?"
                    )
                    replacement = f'<c r="{ref}"\\1{kind}><f>\\2</f><v>{value}</v>'.encode()
                    payload, count = re.subn(pattern, replacement, payload)
                    assert count == 1, f"no formula cell {ref} in {sheet}"
            dst.writestr(item, payload)
    return out.getvalue()


@pytest.fixture
def make_workbook() -> WorkbookFactory:
    return build_workbook
