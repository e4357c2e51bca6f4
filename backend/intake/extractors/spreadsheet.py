"""intake/extractors/spreadsheet.py

Spreadsheet (Path A) extraction.

Reads the first sheet's *calculated* values; formulas are never evaluated
here, so a workbook saved without recalculation carries whatever the
producing application cached. Every cell is rendered as display text.

Two row sets come out:
- data: error tokens replaced by "" and strings trimmed (what gets stored)
- audit rows: trimmed only, error tokens intact (what the quality analyzer sees)
"""

import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Iterable

from intake.constants.routes import FileType
from intake.constants.tokens import is_formula_error
from intake.core import AppError, ErrorCode, ErrorReason
from intake.extractors.encoding import decode_bytes
from intake.triage.types import ExtractorOutput, UploadedFile

logger = logging.getLogger("intake.extractors.spreadsheet")

CSV_MIME_TYPES = {"text/csv", "application/csv"}

# "0", "0.00", "#,##0.00", "0%", "0.0%"
_NUMBER_FORMAT_RE = re.compile(r"(?P<grouping>#,##)?0(?:\.(?P<decimals>0+))?(?P<percent>%)?")


@dataclass(frozen=True)
class SheetTable:
    sheet_name: str
    header: list[str]
    rows: list[list[Any]]


def _format_number(value: int | float, number_format: str | None) -> str:
    # Only plain fixed-decimal and percent formats are honoured; anything
    # else (currency, scientific, custom) renders like "General".
    match = _NUMBER_FORMAT_RE.fullmatch((number_format or "").split(";", 1)[0].strip())
    if match:
        decimals = len(match.group("decimals") or "")
        if match.group("percent"):
            return f"{value * 100:.{decimals}f}%"
        grouping = "," if match.group("grouping") else ""
        return f"{value:{grouping}.{decimals}f}"
    if isinstance(value, float):
        # 15 significant digits, as spreadsheet applications display them
        return str(int(value)) if value.is_integer() else format(value, ".15g")
    return str(value)


def format_cell(value: Any, number_format: str | None = None) -> Any:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return _format_number(value, number_format)
    return value


def clean_value(value: Any) -> Any:
    if isinstance(value, str):
        if is_formula_error(value):
            return ""
        return value.strip()
    return value


def trim_value(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def clean_rows(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{key: clean_value(value) for key, value in row.items()} for row in records]


def unique_headers(raw_header: Iterable[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for idx, cell in enumerate(raw_header):
        name = str(format_cell(cell)).strip()
        if not name:
            name = "__EMPTY" if idx == 0 else f"__EMPTY_{idx}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        headers.append(name)
    return headers


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _split_header(sheet_name: str, grid: list[list[Any]]) -> SheetTable:
    if not grid:
        return SheetTable(sheet_name=sheet_name, header=[], rows=[])

    # Formatting often stretches the used range past the last real column.
    width = max(len(r) for r in grid)
    while width > 0 and all(_is_blank(r[width - 1]) for r in grid if len(r) >= width):
        width -= 1

    header = unique_headers(grid[0][:width] + [None] * max(0, width - len(grid[0])))
    return SheetTable(sheet_name=sheet_name, header=header, rows=[r[:width] for r in grid[1:]])


def _read_xlsx(content: bytes) -> SheetTable:
    import openpyxl

    wb = openpyxl.load_workbook(io.BytesIO(content), data_only=True, read_only=True)
    try:
        ws = wb.worksheets[0]
        grid = [[format_cell(c.value, c.number_format) for c in row] for row in ws.iter_rows()]
        return _split_header(ws.title, grid)
    finally:
        wb.close()


def _read_xls(content: bytes) -> SheetTable:
    import xlrd

    book = xlrd.open_workbook(file_contents=content)
    sheet = book.sheet_by_index(0)

    def cell_value(cell):
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
            return None
        if cell.ctype == xlrd.XL_CELL_ERROR:
            return xlrd.error_text_from_code.get(cell.value, "#VALUE!")
        if cell.ctype == xlrd.XL_CELL_DATE:
            return xlrd.xldate_as_datetime(cell.value, book.datemode)
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return bool(cell.value)
        return cell.value

    grid = [[cell_value(c) for c in sheet.row(r)] for r in range(sheet.nrows)]
    return _split_header(sheet.name, grid)


def _read_csv(content: bytes) -> SheetTable:
    text = decode_bytes(content).replace("\r\n", "\n").replace("\r", "\n")

    delimiter = ","
    try:
        delimiter = csv.Sniffer().sniff(text[:8192], delimiters=",;\t|").delimiter
    except csv.Error:
        pass

    grid = [row for row in csv.reader(io.StringIO(text), delimiter=delimiter) if row]
    return _split_header("Sheet1", grid)


def _is_csv(upload: UploadedFile) -> bool:
    return upload.extension == ".csv" or (upload.content_type or "").lower() in CSV_MIME_TYPES


def read_first_sheet(upload: UploadedFile) -> SheetTable:
    if _is_csv(upload):
        return _read_csv(upload.content)
    # OOXML workbooks are zip archives; anything else is legacy BIFF.
    if upload.content[:2] == b"PK":
        return _read_xlsx(upload.content)
    return _read_xls(upload.content)


def to_records(table: SheetTable) -> list[dict[str, Any]]:
    records = []
    width = len(table.header)
    for raw in table.rows:
        cells = list(raw[:width]) + [None] * max(0, width - len(raw))
        row = {col: format_cell(value) for col, value in zip(table.header, cells)}
        if all(v == "" for v in row.values()):
            continue
        records.append(row)
    return records


def extract_spreadsheet(upload: UploadedFile) -> ExtractorOutput:
    try:
        table = read_first_sheet(upload)
    except Exception as e:
        raise AppError(
            code=ErrorCode.EXTRACTION_FAILED,
            reason=ErrorReason.SPREADSHEET_INVALID,
            message=f"Could not read spreadsheet: {e}",
            status_code=422,
            details={"filename": upload.filename},
        ) from e

    records = to_records(table)
    if not records:
        raise AppError(
            code=ErrorCode.EMPTY_DOCUMENT,
            reason=ErrorReason.EMPTY_FILE,
            message="Excel file has no data",
            status_code=422,
            details={"filename": upload.filename},
        )

    cleaned = clean_rows(records)
    audit_rows = [{key: trim_value(value) for key, value in row.items()} for row in records]

    logger.info(
        "spreadsheet.extracted",
        extra={"sheet": table.sheet_name, "rows": len(cleaned), "columns": len(table.header)},
    )

    return ExtractorOutput(
        file_type=FileType.EXCEL,
        data=cleaned,
        metadata={
            "sheet_name": table.sheet_name,
            "columns": table.header,
            "row_count": len(cleaned),
            "is_structured": True,
        },
        audit_rows=audit_rows,
    )
