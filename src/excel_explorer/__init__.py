"""excel-explorer — Load a spreadsheet, edit it as a grid, export it back."""

__version__ = "0.1.0"

STATUS_COLUMN: str = "estado"
STATUS_TRUE_GLYPH: str = "✅"
STATUS_FALSE_GLYPH: str = "✖️"
STATUS_TRUE_VALUES: frozenset[str] = frozenset({"✅", "true", "si", "sí", "1", "activo"})

IMAGE_KEYWORDS: tuple[str, ...] = ("foto", "photo", "imagen", "picture", "image")
TALL_ROW_HEIGHT: float = 50.0
MAX_COLUMN_WIDTH: int = 50
