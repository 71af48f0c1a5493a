"""Associate embedded pictures with sheet rows.

Two strategies, tried in order:

``anchored``
    openpyxl attaches every picture it can read to the worksheet together
    with its drawing anchor. The anchor's top-left row is the row the image
    belongs to.

``tall-rows``
    Some producers write pictures without a usable anchor. When the archive
    still holds media, non-empty rows taller than a threshold are assumed to
    hold one picture each, and media is handed out to them in order. This is
    a guess: it presumes media and tall rows appear in the same relative
    order, which nothing guarantees.
"""

from __future__ import annotations

import base64
import re
import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import PurePosixPath
from typing import Any

from openpyxl.utils.cell import coordinate_from_string
from openpyxl.utils.exceptions import CellCoordinatesException
from openpyxl.worksheet.worksheet import Worksheet

from excel_explorer import TALL_ROW_HEIGHT
from excel_explorer.models import ImageStrategy

_MEDIA_PREFIX = "xl/media/"
_MEDIA_NUMBER_RE = re.compile(r"(\d+)")

_MIME_TYPES: dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}


@dataclass(frozen=True)
class MediaItem:
    name: str
    extension: str
    blob: bytes


@dataclass
class ImageMap:
    """Inline image payloads keyed by 1-based sheet row."""

    rows: dict[int, str] = field(default_factory=dict)
    strategy: ImageStrategy = "none"
    anomalies: list[str] = field(default_factory=list)

    @property
    def last_row(self) -> int:
        return max(self.rows, default=0)


# ── Encoding ─────────────────────────────────────────────────────


def mime_for_extension(extension: str | None) -> str:
    return _MIME_TYPES.get((extension or "").lower().lstrip("."), "image/png")


def to_data_url(blob: bytes, extension: str | None) -> str:
    """Return *blob* as a ``data:`` URL usable directly as an image source."""
    payload = base64.b64encode(blob).decode("ascii")
    return f"data:{mime_for_extension(extension)};base64,{payload}"


# ── Archive media ────────────────────────────────────────────────


def _media_sort_key(name: str) -> tuple[int, str]:
    match = _MEDIA_NUMBER_RE.search(PurePosixPath(name).stem)
    return (int(match.group(1)) if match else 0, name)


def read_media(data: bytes) -> list[MediaItem]:
    """List the pictures stored in the workbook archive, in media order."""
    try:
        with zipfile.ZipFile(BytesIO(data)) as archive:
            names = [
                n for n in archive.namelist()
                if n.startswith(_MEDIA_PREFIX) and not n.endswith("/")
            ]
            return [
                MediaItem(
                    name=name,
                    extension=PurePosixPath(name).suffix.lstrip(".").lower(),
                    blob=archive.read(name),
                )
                for name in sorted(names, key=_media_sort_key)
            ]
    except (zipfile.BadZipFile, OSError):
        return []


# ── Strategies ───────────────────────────────────────────────────


def anchor_row(anchor: Any) -> int | None:
    """Return the 1-based row an image anchor points at, if any."""
    if isinstance(anchor, str):
        try:
            _column, row = coordinate_from_string(anchor)
        except CellCoordinatesException:
            return None
        return row
    marker = getattr(anchor, "_from", None)
    if marker is None:
        return None
    return int(marker.row) + 1


def _image_extension(image: Any) -> str:
    return str(getattr(image, "format", "") or "png").lower()


def _anchored_images(ws: Worksheet, image_map: ImageMap) -> int:
    anchored = 0
    for idx, image in enumerate(getattr(ws, "_images", [])):
        row = anchor_row(getattr(image, "anchor", None))
        if row is None:
            continue
        anchored += 1
        try:
            blob = image._data()
        except Exception as exc:
            image_map.anomalies.append(f"Image {idx + 1} at row {row} could not be read: {exc}")
            continue
        if not blob:
            image_map.anomalies.append(f"Image {idx + 1} at row {row} is empty")
            continue
        image_map.rows[row] = to_data_url(blob, _image_extension(image))
    return anchored


def tall_rows(ws: Worksheet, threshold: float = TALL_ROW_HEIGHT) -> list[int]:
    """Rows after the header that hold a value and exceed *threshold* in height.

    Blank spacer rows never count, however tall.
    """
    filled = {
        idx
        for idx, values in enumerate(ws.iter_rows(min_row=1, values_only=True), 1)
        if any(value is not None for value in values)
    }
    found: list[int] = []
    for idx, dim in ws.row_dimensions.items():
        height = dim.ht
        if idx > 1 and idx in filled and height is not None and height > threshold:
            found.append(idx)
    return sorted(found)


def _tall_row_images(
    ws: Worksheet, media: list[MediaItem], threshold: float, image_map: ImageMap
) -> None:
    rows = tall_rows(ws, threshold)
    for row, item in zip(rows, media):
        image_map.rows[row] = to_data_url(item.blob, item.extension)
    if len(rows) != len(media):
        image_map.anomalies.append(
            f"Approximate image placement: {len(media)} media item(s) for "
            f"{len(rows)} tall row(s)"
        )


def resolve_images(
    ws: Worksheet,
    media: list[MediaItem],
    *,
    tall_row_height: float = TALL_ROW_HEIGHT,
) -> ImageMap:
    """Build the row -> inline image mapping for *ws*."""
    image_map = ImageMap()
    if _anchored_images(ws, image_map):
        image_map.strategy = "anchored"
        return image_map

    if media:
        _tall_row_images(ws, media, tall_row_height, image_map)
        if image_map.rows:
            image_map.strategy = "tall-rows"
    return image_map
