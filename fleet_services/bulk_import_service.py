import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from openpyxl import load_workbook

from database import FleetDatabaseManager

logger = logging.getLogger(__name__)

REQUIRED_COLUMN = "car_num"
MISSING_VEHICLE_NUMBER = "(none)"
MODEL_YEAR_PATTERN = re.compile(r"^(\d{2,4})")

SheetRow = Tuple[int, Dict[str, str]]


class BulkImportError(ValueError):
    """Raised when an uploaded spreadsheet cannot be imported at all"""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


@dataclass
class BulkImportResult:
    success: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def add_error(self, row: int, vehicle_number: str, error: str) -> None:
        self.failed += 1
        self.errors.append({"row": row, "vehicleNumber": vehicle_number, "error": error})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "updated": self.updated,
            "failed": self.failed,
            "errors": self.errors,
        }


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _decode_csv(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Excel on Korean Windows saves CSV as CP949
        return content.decode("cp949")


def _rows_from_table(table: List[List[Any]]) -> Tuple[List[str], List[SheetRow]]:
    """Split a table into its header and (line_number, row) pairs; the header is line 1"""
    if not table:
        return [], []

    columns = [_cell_text(name) for name in table[0]]
    rows = []
    for line_number, values in enumerate(table[1:], start=2):
        cells = [_cell_text(value) for value in values]
        if not any(cells):
            continue
        rows.append((line_number, {
            column: cells[index] if index < len(cells) else ""
            for index, column in enumerate(columns)
            if column
        }))
    return [column for column in columns if column], rows


def read_rows(filename: str, content: bytes) -> Tuple[List[str], List[SheetRow]]:
    """Read an uploaded .csv or .xlsx file into (columns, rows).

    Raises:
        BulkImportError: unsupported extension or an unreadable workbook.
    """
    lowered = (filename or "").lower()

    if lowered.endswith(".csv"):
        text = _decode_csv(content)
        return _rows_from_table(list(csv.reader(io.StringIO(text))))

    if lowered.endswith(".xlsx"):
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            raise BulkImportError(f"Could not read Excel file: {e}")
        try:
            sheet = workbook.worksheets[0]
            table = [list(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()
        return _rows_from_table(table)

    if lowered.endswith(".xls"):
        raise BulkImportError(
            "Legacy .xls files are not supported",
            hint="Save the workbook as .xlsx or export it as CSV and upload again",
        )

    raise BulkImportError("Only CSV or Excel (.xlsx) files can be uploaded")


def parse_model_year(value: Any) -> Optional[int]:
    """Parse model years such as '26MY', '2026' or '26'; two digits are 2000-based"""
    text = _cell_text(value)
    match = MODEL_YEAR_PATTERN.match(text)
    if not match:
        return None

    year = int(match.group(1))
    if year < 100:
        year += 2000
    if 1900 <= year <= 2100:
        return year
    return None


def row_to_vehicle_fields(row: Dict[str, str]) -> Dict[str, Any]:
    """Map spreadsheet columns onto vehicle columns (empty cells become None)"""
    car_name = row.get("car_name") or None
    return {
        "model": car_name,
        "manufacturer": row.get("maker") or None,
        "vehicle_type": row.get("car_model") or None,
        "engine": row.get("engine") or None,
        "year": parse_model_year(row.get("model_year")),
        "fuel": row.get("fuel") or None,
    }


class BulkImportService:
    def __init__(self, db_manager: FleetDatabaseManager):
        self.db_manager = db_manager

    def import_file(self, filename: str, content: bytes) -> BulkImportResult:
        columns, rows = read_rows(filename, content)
        if not rows:
            raise BulkImportError("The file contains no data rows")
        if REQUIRED_COLUMN not in columns:
            raise BulkImportError(
                f"Missing required column: {REQUIRED_COLUMN}",
                hint=f"Columns found in file: {', '.join(columns)}",
            )

        logger.info(f"Bulk import of {filename}: {len(rows)} rows, columns {', '.join(columns)}")
        return self.import_rows(rows)

    def import_rows(self, rows: List[SheetRow]) -> BulkImportResult:
        """Create or update one vehicle per (row_number, row); failures are collected per row"""
        result = BulkImportResult()

        for row_number, row in rows:
            vehicle_number = row.get(REQUIRED_COLUMN, "").strip()
            if not vehicle_number:
                result.add_error(row_number, MISSING_VEHICLE_NUMBER, "Vehicle number (car_num) is empty")
                continue

            try:
                updated = self.db_manager.upsert_vehicle(
                    vehicle_number,
                    row_to_vehicle_fields(row),
                    owner_name=row.get("car_name") or vehicle_number,
                    overwrite_empty=True,
                )
            except Exception as e:
                logger.error(f"Bulk import failed at row {row_number} ({vehicle_number}): {e}")
                result.add_error(row_number, vehicle_number, str(e))
                continue

            if updated:
                result.updated += 1
            else:
                result.success += 1

        logger.info(
            f"Bulk import result: {result.success} created, {result.updated} updated, {result.failed} failed"
        )
        return result
