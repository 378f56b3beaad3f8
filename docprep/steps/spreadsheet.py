"""
Spreadsheet extraction.

Only the first sheet is read, and its used range is bounded from the
top-left corner to at most max_rows x max_cols cells. Cells beyond the bound
are dropped, not sampled, and rows past the bound are never read.
"""

import asyncio
import csv
import zipfile
from datetime import date, datetime, time, timedelta
from itertools import dropwhile, islice
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from python_calamine import CalamineError, CalamineWorkbook

from docprep.config import Config
from docprep.models import Document, Strategy
from docprep.processor.pipeline import ProcessingStep
from docprep.utils.errors import ExtractionError, InvalidFormatError
from docprep.utils.logging import get_logger, log_performance

logger = get_logger(__name__)

DEFAULT_MAX_ROWS = 1000
DEFAULT_MAX_COLS = 100

# openpyxl streams these; calamine covers the binary and OpenDocument formats
WORKBOOK_EXTENSIONS = frozenset({"xlsx", "xlsm"})
CALAMINE_EXTENSIONS = frozenset({"xls", "ods"})


def validate_sheet_range(
    start_row: int,
    start_col: int,
    end_row: int,
    end_col: int,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_cols: int = DEFAULT_MAX_COLS,
) -> Tuple[int, int, int, int]:
    """
    Clamp a sheet range so it spans at most max_rows x max_cols from its start.

    Coordinates are zero-based and inclusive.

    Returns:
        (start_row, start_col, end_row, end_col) with the end pulled in
    """
    if end_row - start_row > max_rows:
        end_row = start_row + max_rows
    if end_col - start_col > max_cols:
        end_col = start_col + max_cols
    return start_row, start_col, end_row, end_col


def format_cell(value: Any) -> Optional[str]:
    """
    Stringify a cell by its type.

    Returns:
        The cell text, or None for an empty cell
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (int, datetime, date, time, timedelta)):
        return str(value)
    text = str(value)
    return text if text else None


def _is_blank(row: Sequence[Any]) -> bool:
    return all(format_cell(value) is None for value in row)


def leading_rows(rows: Iterable[Sequence[Any]], max_rows: int) -> List[Tuple[Any, ...]]:
    """
    Take at most max_rows rows, starting at the first non-blank one.

    The iterator is consumed lazily, so rows past the window are never read.
    """
    window = islice(dropwhile(_is_blank, rows), max_rows)
    return [tuple(row) for row in window]


def render_grid(
    rows: Sequence[Sequence[Any]],
    start_row: int,
    start_col: int,
    end_row: int,
    end_col: int,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_cols: int = DEFAULT_MAX_COLS,
) -> str:
    """
    Render the bounded part of a zero-based grid as text.

    Cells are space-joined per row and rows are newline-joined.
    """
    start_row, start_col, end_row, end_col = validate_sheet_range(
        start_row, start_col, end_row, end_col, max_rows, max_cols
    )
    row_stop = min(end_row + 1, start_row + max_rows)
    col_stop = min(end_col + 1, start_col + max_cols)

    lines = []
    for row_index in range(start_row, row_stop):
        row = rows[row_index] if row_index < len(rows) else ()
        cells = (format_cell(value) for value in row[start_col:col_stop])
        lines.append(" ".join(cell for cell in cells if cell is not None))
    return "\n".join(lines)


def _grid_bounds(rows: Sequence[Sequence[Any]]) -> Optional[Tuple[int, int, int, int]]:
    """Find the zero-based used range of a grid, or None if it is empty."""
    used_rows = [i for i, row in enumerate(rows) if not _is_blank(row)]
    if not used_rows:
        return None
    used_cols = [
        j for row in rows for j, value in enumerate(row) if format_cell(value) is not None
    ]
    return used_rows[0], min(used_cols), used_rows[-1], max(used_cols)


def read_sheet_rows(path: Path, max_rows: int = DEFAULT_MAX_ROWS) -> List[Tuple[Any, ...]]:
    """
    Read the first max_rows rows of a spreadsheet's first sheet.

    Leading blank rows are skipped and do not count toward the limit.

    Raises:
        InvalidFormatError: For extensions without a reader
        ExtractionError: If the file cannot be read
    """
    extension = path.suffix.lower().lstrip(".")
    if extension == "csv":
        return _read_csv(path, max_rows)
    if extension in WORKBOOK_EXTENSIONS:
        return _read_workbook(path, max_rows)
    if extension in CALAMINE_EXTENSIONS:
        return _read_calamine(path, max_rows)
    raise InvalidFormatError(f"no spreadsheet reader for .{extension} files")


def _read_csv(path: Path, max_rows: int) -> List[Tuple[Any, ...]]:
    try:
        with open(path, encoding="utf-8-sig", newline="") as f:
            return leading_rows(csv.reader(f), max_rows)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ExtractionError(str(e), {"file_path": str(path)}) from e


def _read_workbook(path: Path, max_rows: int) -> List[Tuple[Any, ...]]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise ExtractionError(str(e), {"file_path": str(path)}) from e

    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        return leading_rows(sheet.iter_rows(values_only=True), max_rows)
    finally:
        workbook.close()


def _read_calamine(path: Path, max_rows: int) -> List[Tuple[Any, ...]]:
    try:
        workbook = CalamineWorkbook.from_path(str(path))
        if not workbook.sheet_names:
            return []
        sheet = workbook.get_sheet_by_index(0)
        return leading_rows(sheet.iter_rows(), max_rows)
    except (OSError, CalamineError, ValueError) as e:
        raise ExtractionError(str(e), {"file_path": str(path)}) from e


class SpreadsheetExtractor(ProcessingStep):
    """Extract the first sheet of a workbook or CSV file as text."""

    name = "spreadsheet_processor"
    applicable_strategies = frozenset({Strategy.SPREADSHEET})

    @log_performance
    async def process(self, document: Document, config: Config) -> None:
        if not document.file_path:
            raise ExtractionError("No file path provided")

        text = await asyncio.to_thread(self.extract_text, Path(document.file_path), config)
        if text.strip():
            document.prompt_parts.append(text)
        else:
            logger.info(f"No cell content found in {document.file_path}")

    def extract_text(self, path: Path, config: Config) -> str:
        """Read the bounded first sheet of a spreadsheet as text."""
        rows = read_sheet_rows(path, config.max_rows)

        bounds = _grid_bounds(rows)
        if bounds is None:
            return ""

        start_row, start_col, end_row, end_col = bounds
        logger.debug(
            f"Sheet used range ({start_row},{start_col})-({end_row},{end_col}) in {path.name}"
        )
        return render_grid(rows, *bounds, max_rows=config.max_rows, max_cols=config.max_cols)
