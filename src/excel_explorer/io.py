"""I/O helpers — read uploads, write JSON and binary artifacts."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

from excel_explorer.errors import UnsupportedFileError

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls")


# ── Loading ──────────────────────────────────────────────────────


def check_extension(file_name: str) -> str:
    """Return the lower-cased extension of *file_name* if it is a spreadsheet.

    Only the name is checked; the content is not sniffed.
    """
    suffix = Path(file_name).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError(
            f"Unsupported file type: {suffix or file_name!r}. Use .xlsx or .xls"
        )
    return suffix


def read_upload(path: Path) -> bytes:
    """Return the raw bytes of the spreadsheet at *path*.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    UnsupportedFileError
        If *path* is a directory or does not carry a spreadsheet extension.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise UnsupportedFileError(f"Input path is a directory, not a file: {path}")
    check_extension(path.name)
    return path.read_bytes()


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _replace_atomically(path: Path, payload: bytes) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(payload)
    tmp_path.replace(path)
    return path


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    return _replace_atomically(path, payload.encode("utf-8"))


def write_bytes(path: Path, data: bytes) -> Path:
    """Write *data* to *path* atomically."""
    return _replace_atomically(path, data)
