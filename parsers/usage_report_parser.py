"""
Distributor usage report parser.

Distributor exports are loosely structured: a few metadata rows on top,
then a header row whose column names drift between exports
("Mfr #" vs "Mfr No", "Cost Per Unit" vs "Unit Cost"). This module finds
the header row, maps columns to line item fields by substring patterns and
turns every non-blank data row into a LineItemCreate.

Malformed cells never fail a parse: missing columns become ""/0 and
unparsable numbers become 0. Only an unreadable file raises.
"""

from dataclasses import dataclass
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, Optional, Sequence, Union
import re
import structlog

import pandas as pd

from exceptions import ExcelParseError, InvalidFileTypeError
from models.line_item import LineItemCreate
from utils.text_utils import normalize_header

logger = structlog.get_logger(__name__)

Cell = Union[str, int, float, None]
RawRow = Sequence[Cell]

HEADER_SCAN_ROWS = 20

# A row is the header if its text holds one of these token pairs
HEADER_SIGNATURES = [
    ("item", "mfr"),
    ("description", "uom"),
    ("manufacturer", "cost"),
]

# Field → header substrings, tried in order against normalized headers
COLUMN_PATTERNS: dict[str, tuple[str, ...]] = {
    "item_number": ("item#", "itemno", "itemnumber", "itemnum"),
    "manufacturer": ("manufacturer",),
    "mfr_number": ("mfr#", "mfr", "mfrno", "mfrnumber", "manufactureritem", "partno", "part#", "sku"),
    "description": ("description", "desc", "itemdesc", "productname"),
    "contents": ("contents", "content"),
    "uom": ("uom", "unitofmeasure", "unit"),
    "ship_qty": ("shipqty", "totalshipqty", "qty", "quantity"),
    "cost_per_unit": ("costperunit", "unitcost", "cost", "price", "unitprice"),
    "total_ext_purchase": ("totalext", "extpurchase", "totalpurchase", "extended"),
    "percent_total_purchases": ("%total", "percent", "%"),
    "invoice_count": ("invoicecount", "invoice", "invcount"),
}

TEXT_FIELDS = ("item_number", "manufacturer", "mfr_number", "description", "contents", "uom")
FLOAT_FIELDS = ("ship_qty", "cost_per_unit", "total_ext_purchase", "percent_total_purchases")

ABSENT = -1

SUPPORTED_EXTENSIONS = (".xlsx", ".xls", ".csv")

_LEADING_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?|^-?\.\d+")


@dataclass
class ColumnMap:
    """Column index per line item field; ABSENT when not found."""
    item_number: int = ABSENT
    manufacturer: int = ABSENT
    mfr_number: int = ABSENT
    description: int = ABSENT
    contents: int = ABSENT
    uom: int = ABSENT
    ship_qty: int = ABSENT
    cost_per_unit: int = ABSENT
    total_ext_purchase: int = ABSENT
    percent_total_purchases: int = ABSENT
    invoice_count: int = ABSENT

    def resolved(self) -> dict[str, int]:
        """Fields that were found."""
        return {name: index for name, index in vars(self).items() if index != ABSENT}


@dataclass
class UsageReport:
    """Result of column inference over a decoded sheet."""
    header_row_index: int
    columns: ColumnMap
    data_row_count: int
    items: list[LineItemCreate]


# ===================
# CELL HELPERS
# ===================

def _is_blank(cell: Cell) -> bool:
    if cell is None:
        return True
    if isinstance(cell, float) and cell != cell:
        return True
    return isinstance(cell, str) and cell == ""


def cell_text(cell: Cell) -> str:
    """
    Cell as text.

    Integral floats lose the ".0" spreadsheets add to numeric codes
    (item number 1042.0 → "1042").
    """
    if _is_blank(cell):
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell)


def parse_number(cell: Cell) -> float:
    """
    Lenient numeric parse.

    - 12.5        → 12.5
    - "$1,204.50" → 1204.5
    - "12%"       → 12.0
    - "n/a", None → 0.0
    """
    if _is_blank(cell):
        return 0.0
    if isinstance(cell, bool):
        return float(cell)
    if isinstance(cell, (int, float)):
        return float(cell)

    text = str(cell).strip().replace("$", "").replace(",", "").replace("%", "")
    match = _LEADING_NUMBER.match(text.strip())
    if not match:
        return 0.0
    return float(match.group(0))


# ===================
# COLUMN INFERENCE
# ===================

def find_header_row(rows: Sequence[RawRow]) -> int:
    """
    Index of the header row within the first rows of a sheet.

    Falls back to 0 when no row carries a header signature.
    """
    for index in range(min(len(rows), HEADER_SCAN_ROWS)):
        row_text = " ".join(cell_text(cell).lower() for cell in rows[index])
        for first, second in HEADER_SIGNATURES:
            if first in row_text and second in row_text:
                return index
    return 0


def resolve_columns(header_row: RawRow) -> ColumnMap:
    """Map normalized headers to line item fields."""
    headers = [normalize_header(cell_text(cell)) for cell in header_row]

    def find_column(patterns: tuple[str, ...]) -> int:
        for index, header in enumerate(headers):
            if any(pattern in header for pattern in patterns):
                return index
        return ABSENT

    return ColumnMap(**{
        field_name: find_column(patterns)
        for field_name, patterns in COLUMN_PATTERNS.items()
    })


def _cell_at(row: RawRow, index: int) -> Cell:
    if index == ABSENT or index >= len(row):
        return None
    return row[index]


def row_to_line_item(row: RawRow, columns: ColumnMap) -> LineItemCreate:
    """Build a line item from one data row."""
    values: dict[str, Any] = {}

    for name in TEXT_FIELDS:
        values[name] = cell_text(_cell_at(row, getattr(columns, name)))
    values["mfr_number"] = values["mfr_number"].strip()

    for name in FLOAT_FIELDS:
        values[name] = parse_number(_cell_at(row, getattr(columns, name)))

    values["invoice_count"] = int(parse_number(_cell_at(row, columns.invoice_count)))

    return LineItemCreate(**values)


def parse_usage_rows(rows: Sequence[RawRow]) -> UsageReport:
    """
    Run column inference over decoded rows.

    Args:
        rows: Sheet rows, each a sequence of raw cell values

    Returns:
        UsageReport with one line item per non-blank data row
    """
    if not rows:
        return UsageReport(header_row_index=0, columns=ColumnMap(), data_row_count=0, items=[])

    header_index = find_header_row(rows)
    columns = resolve_columns(rows[header_index])
    data_rows = rows[header_index + 1:]

    items = [
        row_to_line_item(row, columns)
        for row in data_rows
        if not all(_is_blank(cell) for cell in row)
    ]

    logger.info(
        "usage_report_columns_resolved",
        header_row=header_index,
        columns=columns.resolved(),
        data_rows=len(data_rows),
        items=len(items)
    )

    return UsageReport(
        header_row_index=header_index,
        columns=columns,
        data_row_count=len(data_rows),
        items=items,
    )


# ===================
# FILE DECODING
# ===================

def _frame_to_rows(frame: pd.DataFrame) -> list[list[Cell]]:
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.values.tolist()


def read_report_rows(
    file: Union[str, Path, BytesIO, bytes],
    filename: Optional[str] = None
) -> list[list[Cell]]:
    """
    Decode the first sheet of a report into raw rows.

    Args:
        file: File path, file-like object or raw bytes
        filename: Original filename, used to pick the decoder

    Returns:
        Rows of cell values with blanks as None

    Raises:
        InvalidFileTypeError: Extension is not .xlsx, .xls or .csv
        ExcelParseError: File cannot be decoded
    """
    name = filename or (str(file) if isinstance(file, (str, Path)) else "")
    extension = Path(name).suffix.lower()

    if extension not in SUPPORTED_EXTENSIONS:
        raise InvalidFileTypeError(name)

    if isinstance(file, bytes):
        file = BytesIO(file)

    logger.info("reading_usage_report", filename=name, extension=extension)

    try:
        if extension == ".csv":
            if isinstance(file, BytesIO):
                file = StringIO(file.getvalue().decode("utf-8-sig"))
            frame = pd.read_csv(file, header=None, dtype=object, skip_blank_lines=False)
        else:
            engine = "openpyxl" if extension == ".xlsx" else "xlrd"
            frame = pd.read_excel(file, sheet_name=0, header=None, dtype=object, engine=engine)
    except Exception as e:
        logger.error("usage_report_read_failed", filename=name, error=str(e))
        raise ExcelParseError(
            message="Failed to read usage report",
            details={"filename": name, "original_error": str(e)}
        )

    return _frame_to_rows(frame)


def parse_usage_report(
    file: Union[str, Path, BytesIO, bytes],
    filename: Optional[str] = None
) -> UsageReport:
    """Decode a report file and run column inference on it."""
    return parse_usage_rows(read_report_rows(file, filename))
