"""Editing session — owns the current table between upload and export."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from excel_explorer import STATUS_COLUMN, TALL_ROW_HEIGHT
from excel_explorer.errors import ExportError, IngestError, UploadInProgressError
from excel_explorer.export import export_file_name, export_workbook
from excel_explorer.grid import toggle_status, update_cell
from excel_explorer.ingest import ingest_workbook
from excel_explorer.io import check_extension
from excel_explorer.models import CellScalar, IngestReport, Table

UNKNOWN_UPLOAD_ERROR = "Unknown error while reading the file"
EXPORT_ERROR = "Could not export the Excel file"


@dataclass
class EditingSession:
    """One user's table, replaced wholesale on every upload.

    Uploads are serialized: a second upload while one is being ingested is
    refused. A failed upload or export leaves the current table as it was
    and stores a single user-facing message in :attr:`error`.
    """

    status_column: str = STATUS_COLUMN
    tall_row_height: float = TALL_ROW_HEIGHT
    table: Table | None = None
    report: IngestReport | None = None
    error: str | None = None
    _upload_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    @property
    def busy(self) -> bool:
        return self._upload_lock.locked()

    def upload(self, data: bytes, file_name: str) -> Table:
        if not self._upload_lock.acquire(blocking=False):
            raise UploadInProgressError("An upload is already being processed")
        self.error = None
        try:
            check_extension(file_name)
            table, report = ingest_workbook(
                data,
                source_file_name=file_name,
                status_column=self.status_column,
                tall_row_height=self.tall_row_height,
            )
        except IngestError as exc:
            self.error = str(exc)
            raise
        except Exception:
            self.error = UNKNOWN_UPLOAD_ERROR
            raise
        else:
            self.table = table
            self.report = report
        finally:
            self._upload_lock.release()
        return table

    def _require_table(self) -> Table:
        if self.table is None:
            raise LookupError("No table loaded")
        return self.table

    def replace_row(self, index: int, row: Mapping[str, Any]) -> Table:
        self.table = self._require_table().replace_row(index, row)
        return self.table

    def update_cell(self, index: int, column: str, value: CellScalar) -> Table:
        self.table = update_cell(self._require_table(), index, column, value)
        return self.table

    def toggle_status(self, index: int) -> Table:
        self.table = toggle_status(self._require_table(), index)
        return self.table

    def export(self) -> tuple[str, bytes]:
        """Return ``(file_name, workbook_bytes)`` for download."""
        table = self._require_table()
        try:
            payload = export_workbook(table)
        except ExportError:
            self.error = EXPORT_ERROR
            raise
        return export_file_name(table.source_file_name), payload

    def reset(self) -> None:
        self.table = None
        self.report = None
        self.error = None
