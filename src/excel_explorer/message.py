"""Compose a shareable text message from one table row."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote

from excel_explorer.cells import HyperlinkCell, RichTextCell, is_inline_image
from excel_explorer.export import status_glyph
from excel_explorer.grid import is_image_column, is_location_column

SHARE_URL = "https://wa.me/?text="
PHOTO_NOTE = "📷 *Photo:* see it in the app"

# encodeURIComponent leaves these unescaped.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def resolve_link(value: Any) -> Any:
    """Reduce hyperlink-like values to their plain URL (or text)."""
    if isinstance(value, HyperlinkCell):
        return value.target or value.text
    if isinstance(value, RichTextCell):
        return value.text
    if isinstance(value, Mapping):
        if value.get("hyperlink"):
            return value["hyperlink"]
        if "text" in value:
            return value["text"]
    return value


def _message_line(header: str, value: Any) -> str | None:
    if is_inline_image(value):
        return None
    if is_location_column(header) or isinstance(value, (HyperlinkCell, RichTextCell, Mapping)):
        value = resolve_link(value)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        value = status_glyph(value)
    return f"*{header}:* {value}"


def compose_message(row: Mapping[str, Any], headers: Sequence[str]) -> str:
    """One ``*Header:* value`` line per non-empty field.

    Inline image payloads are too large for a text message and are skipped;
    a note is appended instead when the row carries a picture.
    """
    lines = [
        line
        for line in (_message_line(header, row.get(header)) for header in headers)
        if line is not None
    ]
    message = "\n".join(lines)

    photo_header = next((h for h in headers if is_image_column(h)), None)
    if photo_header is not None and row.get(photo_header):
        return f"{message}\n\n{PHOTO_NOTE}"
    return message


def share_link(row: Mapping[str, Any], headers: Sequence[str]) -> str:
    """``wa.me`` link that opens a chat pre-filled with the row message."""
    return SHARE_URL + quote(compose_message(row, headers), safe=_URI_COMPONENT_SAFE)
