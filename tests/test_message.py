from __future__ import annotations

from urllib.parse import unquote

from excel_explorer.cells import HyperlinkCell
from excel_explorer.message import PHOTO_NOTE, SHARE_URL, compose_message, resolve_link, share_link

HEADERS = ["Nombre", "Teléfono", "Foto", "Ubicación", "estado"]


def test_compose_message_lists_non_empty_fields() -> None:
    row = {"Nombre": "Ana", "Teléfono": 5551234, "Foto": None, "Ubicación": "", "estado": True}

    message = compose_message(row, HEADERS)

    assert message == "*Nombre:* Ana\n*Teléfono:* 5551234\n*estado:* ✅"


def test_compose_message_skips_inline_images_and_adds_note() -> None:
    row = {
        "Nombre": "Ana",
        "Teléfono": None,
        "Foto": "data:image/png;base64," + "A" * 5000,
        "Ubicación": None,
        "estado": False,
    }

    message = compose_message(row, HEADERS)

    assert "base64" not in message
    assert message == f"*Nombre:* Ana\n*estado:* ✖️\n\n{PHOTO_NOTE}"


def test_compose_message_keeps_photo_urls() -> None:
    row = {"Nombre": "Ana", "Foto": "https://example.com/ana.png"}

    message = compose_message(row, ["Nombre", "Foto"])

    assert "*Foto:* https://example.com/ana.png" in message
    assert message.endswith(PHOTO_NOTE)


def test_location_hyperlinks_resolve_to_plain_url() -> None:
    row = {
        "Nombre": "Ana",
        "Ubicación": {"text": "Ver mapa", "hyperlink": "https://maps.example.com/?q=lima"},
    }

    message = compose_message(row, ["Nombre", "Ubicación"])

    assert message == "*Nombre:* Ana\n*Ubicación:* https://maps.example.com/?q=lima"


def test_resolve_link_variants() -> None:
    assert resolve_link(HyperlinkCell(text="Site", target="https://a.example")) == "https://a.example"
    assert resolve_link(HyperlinkCell(text="Site", target="")) == "Site"
    assert resolve_link({"text": "only text"}) == "only text"
    assert resolve_link("plain") == "plain"


def test_share_link_encodes_like_encode_uri_component() -> None:
    row = {"Nombre": "Ana & Luis", "Ubicación": "https://maps.example.com/?q=1"}

    link = share_link(row, ["Nombre", "Ubicación"])

    assert link.startswith(SHARE_URL)
    encoded = link[len(SHARE_URL):]
    assert " " not in encoded
    assert "&" not in encoded
    assert "%0A" in encoded
    assert "*" in encoded
    assert unquote(encoded) == compose_message(row, ["Nombre", "Ubicación"])
