from __future__ import annotations

import pytest

from excel_explorer.models import IngestReport, Table


def _table() -> Table:
    return Table(
        headers=["Name", "Foto", "Estado"],
        rows=[
            {"Name": "Ana", "Foto": None, "Estado": True},
            {"Name": "Luis", "Foto": "https://example.com/l.png", "Estado": False},
        ],
        source_file_name="people.xlsx",
    )


def test_table_finds_status_header_case_insensitively() -> None:
    assert _table().status_header == "Estado"


def test_table_requires_exactly_one_status_header() -> None:
    with pytest.raises(ValueError, match="exactly one"):
        Table(headers=["Name"])

    with pytest.raises(ValueError, match="found 2"):
        Table(headers=["estado", "ESTADO"])


def test_table_rejects_rows_missing_headers() -> None:
    with pytest.raises(ValueError, match="missing columns: Foto"):
        Table(headers=["Name", "Foto", "estado"], rows=[{"Name": "Ana", "estado": True}])


def test_table_rejects_non_boolean_status() -> None:
    with pytest.raises(TypeError, match="must be a boolean"):
        Table(headers=["Name", "estado"], rows=[{"Name": "Ana", "estado": "sí"}])


def test_table_rejects_unsupported_values() -> None:
    with pytest.raises(TypeError, match="text, number, boolean or None"):
        Table(headers=["Name", "estado"], rows=[{"Name": ["Ana"], "estado": True}])


def test_table_drops_extra_keys_and_orders_by_header() -> None:
    table = Table(
        headers=["Name", "estado"],
        rows=[{"estado": False, "Name": "Ana", "extra": 1}],
    )

    assert table.rows == [{"Name": "Ana", "estado": False}]
    assert list(table.rows[0]) == ["Name", "estado"]


def test_replace_row_returns_new_table() -> None:
    table = _table()
    original_rows = table.rows

    edited = table.replace_row(0, {"Name": "Ana B.", "Foto": None, "Estado": False})

    assert edited is not table
    assert edited.rows[0]["Name"] == "Ana B."
    assert edited.rows[1] == original_rows[1]
    assert table.rows[0]["Name"] == "Ana"
    assert edited.source_file_name == "people.xlsx"


def test_replace_row_validates_index_and_keys() -> None:
    table = _table()

    with pytest.raises(IndexError):
        table.replace_row(5, table.rows[0])

    with pytest.raises(ValueError, match="missing columns"):
        table.replace_row(0, {"Name": "Ana", "Estado": True})


def test_to_dict_returns_copies() -> None:
    table = _table()

    payload = table.to_dict()
    payload["headers"].append("x")
    payload["rows"][0]["Name"] = "changed"

    assert table.headers == ["Name", "Foto", "Estado"]
    assert table.rows[0]["Name"] == "Ana"
    assert payload["source_file_name"] == "people.xlsx"


def test_to_frame_keeps_header_order() -> None:
    frame = _table().to_frame()

    assert list(frame.columns) == ["Name", "Foto", "Estado"]
    assert frame.shape == (2, 3)
    assert frame.iloc[1, 0] == "Luis"
    assert frame.iloc[0, 1] is None


def test_ingest_report_to_dict_returns_list_copies() -> None:
    report = IngestReport(rows_in=3, rows_out=2, dropped_rows=1, anomalies=["odd cell"])

    payload = report.to_dict()
    payload["anomalies"].append("another")

    assert report.anomalies == ["odd cell"]
    assert payload["image_strategy"] == "none"


def test_ingest_report_rejects_inconsistent_counts() -> None:
    with pytest.raises(ValueError, match="rows_out"):
        IngestReport(rows_in=1, rows_out=2)

    with pytest.raises(ValueError, match="dropped_rows"):
        IngestReport(rows_in=5, rows_out=4, dropped_rows=0)

    with pytest.raises(ValueError, match="rows_in"):
        IngestReport(rows_in=-1)


def test_ingest_report_rejects_bad_types() -> None:
    with pytest.raises(TypeError, match="images_found"):
        IngestReport(images_found=True)  # type: ignore[arg-type]

    with pytest.raises(TypeError, match="anomalies"):
        IngestReport(anomalies="oops")  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="image_strategy"):
        IngestReport(image_strategy="guess")  # type: ignore[arg-type]
