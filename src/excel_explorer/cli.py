"""CLI entry point for excel-explorer."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from excel_explorer import STATUS_COLUMN, TALL_ROW_HEIGHT, __version__
from excel_explorer.cells import has_data, is_inline_image
from excel_explorer.errors import ExportError, IngestError
from excel_explorer.export import status_glyph, write_export
from excel_explorer.ingest import ingest_workbook, is_image_header
from excel_explorer.io import read_upload, write_json
from excel_explorer.message import compose_message, share_link
from excel_explorer.models import CellScalar, IngestReport, Table

app = typer.Typer(
    name="xlexplore",
    help="excel-explorer — Load a spreadsheet, edit it as a grid, export it back.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

_PREVIEW_WIDTH = 40


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"excel-explorer v{__version__}")
        raise typer.Exit()


def _ingest(
    input_file: Path, *, status_column: str, tall_row_height: float
) -> tuple[Table, IngestReport]:
    """Read and ingest *input_file*, exiting with code 2 on failure."""
    try:
        data = read_upload(input_file)
        return ingest_workbook(
            data,
            source_file_name=input_file.name,
            status_column=status_column,
            tall_row_height=tall_row_height,
        )
    except (FileNotFoundError, IngestError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)


def _print_anomalies(report: IngestReport, echo: Callable[..., None]) -> None:
    for anomaly in report.anomalies:
        echo(f"  [yellow]![/yellow] {escape(anomaly)}")


def _preview(value: CellScalar, *, is_status: bool) -> str:
    if is_status:
        return status_glyph(value)
    if value is None:
        return ""
    if is_inline_image(value):
        return "<image>"
    text = str(value)
    if len(text) > _PREVIEW_WIDTH:
        return text[: _PREVIEW_WIDTH - 1] + "…"
    return text


def _column_kind(table: Table, header: str) -> str:
    if header == table.status_header:
        return "status"
    if is_image_header(header):
        return "image"
    return "text"


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """excel-explorer CLI."""


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the .xlsx workbook.",
        exists=True, readable=True,
    ),
    rows: int = typer.Option(
        10, "--rows", "-n", min=0,
        help="Number of data rows to preview.",
    ),
    json_out: Path | None = typer.Option(
        None, "--json",
        help="Also write the normalized table + ingest report to this JSON file.",
    ),
    status_column: str = typer.Option(
        STATUS_COLUMN, "--status-column",
        help="Name of the boolean status column (added when missing).",
    ),
    tall_row_height: float = typer.Option(
        TALL_ROW_HEIGHT, "--tall-row-height",
        help="Row height above which a row is assumed to hold a picture "
        "when pictures carry no anchor.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output.",
    ),
) -> None:
    """Ingest a workbook and show how it was normalized."""
    echo = _printer(quiet)
    table, report = _ingest(
        input_file, status_column=status_column, tall_row_height=tall_row_height
    )

    if json_out is not None:
        out = write_json(json_out, {"table": table, "report": report})
        echo(f"  JSON -> {out}")

    if quiet:
        return

    summary = RichTable(title="Ingest Summary", show_lines=True)
    summary.add_column("Check", style="bold")
    summary.add_column("Result")
    summary.add_row("Rows scanned", str(report.rows_in))
    summary.add_row("Rows kept", str(report.rows_out))
    summary.add_row("Dropped (blank)", str(report.dropped_rows))
    summary.add_row("Images", f"{report.images_found} ({report.image_strategy})")
    summary.add_row(
        "Status column",
        f"{table.status_header} (added)" if report.synthesized_status else table.status_header,
    )
    console.print(summary)

    frame = table.to_frame()
    profile = RichTable(title="Columns")
    profile.add_column("#", justify="right")
    profile.add_column("Header", style="bold")
    profile.add_column("Kind")
    profile.add_column("Filled", justify="right")
    for pos, header in enumerate(table.headers):
        filled = int(frame.iloc[:, pos].map(has_data).sum())
        profile.add_row(str(pos + 1), escape(header), _column_kind(table, header), str(filled))
    console.print(profile)

    if rows and table.rows:
        preview = RichTable(title=f"First {min(rows, len(table.rows))} rows")
        for header in table.headers:
            preview.add_column(escape(header))
        status = table.status_header
        for row in table.rows[:rows]:
            preview.add_row(*(
                escape(_preview(row[h], is_status=h == status)) for h in table.headers
            ))
        console.print(preview)

    _print_anomalies(report, echo)


# ── export command ───────────────────────────────────────────────


@app.command()
def export(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the .xlsx workbook.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the exported workbook + ingest report.",
    ),
    status_column: str = typer.Option(
        STATUS_COLUMN, "--status-column",
        help="Name of the boolean status column (added when missing).",
    ),
    tall_row_height: float = typer.Option(
        TALL_ROW_HEIGHT, "--tall-row-height",
        help="Row height above which a row is assumed to hold a picture "
        "when pictures carry no anchor.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Normalize a workbook and write it back as <name>-edited.xlsx."""
    echo = _printer(quiet)
    if not quiet:
        console.print(Panel(
            f"[bold]excel-explorer[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}",
            title="Export", border_style="blue",
        ))

    # ── Ingest ───────────────────────────────────────────────────
    echo("[blue]>[/blue] Reading workbook …")
    table, report = _ingest(
        input_file, status_column=status_column, tall_row_height=tall_row_height
    )
    echo(f"  {report.rows_out} rows x {len(table.headers)} columns")
    _print_anomalies(report, echo)

    # ── Export ───────────────────────────────────────────────────
    echo("[blue]>[/blue] Writing workbook …")
    try:
        export_path = write_export(out_dir, table)
    except (ExportError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=1)
    report_path = write_json(out_dir / "ingest_report.json", report)
    echo(f"  Workbook -> {export_path}")
    echo(f"  Report   -> {report_path}")

    if not quiet:
        console.print(Panel(
            f"[green]Done[/green] — {report.rows_out} rows -> {export_path}",
            title="Export Complete", border_style="green",
        ))


# ── message command ──────────────────────────────────────────────


@app.command()
def message(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the .xlsx workbook.",
        exists=True, readable=True,
    ),
    row: int = typer.Option(
        1, "--row", "-r", min=1,
        help="1-based data row (after blank rows are dropped).",
    ),
    link: bool = typer.Option(
        False, "--link",
        help="Print the share link instead of the message text.",
    ),
    status_column: str = typer.Option(
        STATUS_COLUMN, "--status-column",
        help="Name of the boolean status column (added when missing).",
    ),
) -> None:
    """Print the share message (or link) for one data row."""
    table, _report = _ingest(
        input_file, status_column=status_column, tall_row_height=TALL_ROW_HEIGHT
    )
    if row > len(table.rows):
        _err(f"Row {row} out of range: the table has {len(table.rows)} rows")
        raise typer.Exit(code=2)

    record = table.rows[row - 1]
    if link:
        typer.echo(share_link(record, table.headers))
    else:
        typer.echo(compose_message(record, table.headers))
