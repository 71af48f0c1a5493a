"""Exception types raised by the ingestion and export stages."""

from __future__ import annotations


class ExplorerError(Exception):
    """Base class for every error the package raises on purpose."""


class IngestError(ExplorerError, ValueError):
    """The upload could not be turned into a table."""


class WorkbookParseError(IngestError):
    """The bytes are not a readable workbook."""


class EmptyWorkbookError(IngestError):
    """The workbook has no worksheet."""


class UnsupportedFileError(IngestError):
    """The file name does not carry a spreadsheet extension."""


class UploadInProgressError(ExplorerError, RuntimeError):
    """Another upload is still being ingested."""


class ExportError(ExplorerError, RuntimeError):
    """Serializing the table to a workbook failed."""
