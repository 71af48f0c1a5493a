"""``python -m excel_explorer`` entry point."""

from excel_explorer import cli

cli.app()
