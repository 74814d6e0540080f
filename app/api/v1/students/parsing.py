"""Decode uploaded roster files into the generic row shape the importer consumes.

Expected columns: PRN, Name, Email, Mobile, ParentMobile, BatchID. Only the header row
decides the keys; values are passed through untouched (the importer trims them).
"""

import csv
import io
from typing import Any, Dict, List, Optional

from fastapi import status
from openpyxl import Workbook, load_workbook

from app.core.exceptions import ServiceError

IMPORT_COLUMNS = ("PRN", "Name", "Email", "Mobile", "ParentMobile", "BatchID")
IMPORT_MAX_ROWS = 5000
IMPORT_MAX_BYTES = 5 * 1024 * 1024


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _header(value: Any) -> Optional[str]:
    if value is None:
        return None
    h = str(value).strip()
    return h or None


def _check_row_limit(row_num: int) -> None:
    if row_num - 1 > IMPORT_MAX_ROWS:
        raise ServiceError(f"Maximum {IMPORT_MAX_ROWS} data rows allowed", status.HTTP_400_BAD_REQUEST)


def parse_csv(content: bytes) -> List[Dict[str, Any]]:
    """First line is the header. Blank lines are skipped."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ServiceError(f"CSV file is not valid UTF-8: {e}", status.HTTP_400_BAD_REQUEST) from e

    reader = csv.reader(io.StringIO(text))
    header_row = next(reader, None)
    if not header_row:
        raise ServiceError("CSV file has no header row", status.HTTP_400_BAD_REQUEST)
    headers = [_header(h) for h in header_row]

    rows: List[Dict[str, Any]] = []
    for row_num, values in enumerate(reader, start=2):
        _check_row_limit(row_num)
        if all(_is_blank(v) for v in values):
            continue
        rows.append({h: v for h, v in zip(headers, values) if h})
    return rows


def parse_excel(content: bytes) -> List[Dict[str, Any]]:
    """Read the first worksheet. First row is the header; blank rows are skipped."""
    try:
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ServiceError(f"Invalid Excel file: {e}", status.HTTP_400_BAD_REQUEST) from e

    try:
        if not wb.worksheets:
            raise ServiceError("Excel file has no worksheet", status.HTTP_400_BAD_REQUEST)
        ws = wb.worksheets[0]
        rows_iter = ws.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if not header_row:
            raise ServiceError("Excel file has no header row", status.HTTP_400_BAD_REQUEST)
        headers = [_header(h) for h in header_row]

        rows: List[Dict[str, Any]] = []
        for row_num, values in enumerate(rows_iter, start=2):
            _check_row_limit(row_num)
            if not values or all(_is_blank(v) for v in values):
                continue
            rows.append({h: v for h, v in zip(headers, values) if h and v is not None})
        return rows
    finally:
        wb.close()


def parse_rows(filename: str, content: bytes) -> List[Dict[str, Any]]:
    """Pick the decoder from the file extension (.csv or .xlsx)."""
    if not content:
        raise ServiceError("File is empty", status.HTTP_400_BAD_REQUEST)
    if len(content) > IMPORT_MAX_BYTES:
        raise ServiceError(
            f"File is too large (limit {IMPORT_MAX_BYTES // (1024 * 1024)} MB)",
            status.HTTP_400_BAD_REQUEST,
        )
    name = (filename or "").lower()
    if name.endswith(".csv"):
        rows = parse_csv(content)
    elif name.endswith(".xlsx"):
        rows = parse_excel(content)
    else:
        raise ServiceError(
            "Unsupported file. Please upload a CSV or Excel (.xlsx) file.",
            status.HTTP_400_BAD_REQUEST,
        )
    if not rows:
        raise ServiceError(
            "The file appears to be empty or improperly formatted.",
            status.HTTP_400_BAD_REQUEST,
        )
    return rows


def build_import_template() -> bytes:
    """Empty roster workbook with the expected header row and one sample line."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Students"
    ws.append(list(IMPORT_COLUMNS))
    ws.append(["1001", "Sample Student", "student@example.com", "9876543210", "9876543211", "BATCH-A"])
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
