from __future__ import annotations

import io

import pytest
from openpyxl import Workbook

from database import FleetDatabaseManager
from fleet_services.bulk_import_service import (
    BulkImportError,
    BulkImportService,
    parse_model_year,
    read_rows,
    row_to_vehicle_fields,
)


@pytest.fixture()
def service(tmp_path) -> BulkImportService:
    return BulkImportService(FleetDatabaseManager(f"sqlite:///{tmp_path / 'bulk.db'}"))


@pytest.mark.parametrize(
    ("value", "expected"),
    [("26MY", 2026), ("2026", 2026), ("99", 2099), (2024.0, 2024), ("", None), ("연식미상", None), ("3000", None)],
)
def test_parse_model_year(value, expected) -> None:
    assert parse_model_year(value) == expected


def test_read_rows_decodes_cp949_csv() -> None:
    content = "car_num,car_name\n12가3456,그랜저\n,\n".encode("cp949")

    columns, rows = read_rows("vehicles.CSV", content)

    assert columns == ["car_num", "car_name"]
    assert rows == [(2, {"car_num": "12가3456", "car_name": "그랜저"})]


def test_read_rows_rejects_legacy_excel() -> None:
    with pytest.raises(BulkImportError) as excinfo:
        read_rows("vehicles.xls", b"\xd0\xcf\x11\xe0")

    assert excinfo.value.hint


def test_read_rows_reports_broken_workbook() -> None:
    with pytest.raises(BulkImportError, match="Could not read Excel file"):
        read_rows("vehicles.xlsx", b"not a zip archive")


def test_row_to_vehicle_fields_maps_columns() -> None:
    fields = row_to_vehicle_fields({
        "car_num": "12가3456",
        "car_name": "G80",
        "maker": "제네시스",
        "car_model": "세단",
        "engine": "",
        "model_year": "25MY",
    })

    assert fields == {
        "model": "G80",
        "manufacturer": "제네시스",
        "vehicle_type": "세단",
        "engine": None,
        "year": 2025,
        "fuel": None,
    }


def test_import_file_requires_rows_and_plate_column(service) -> None:
    with pytest.raises(BulkImportError, match="no data rows"):
        service.import_file("vehicles.csv", b"car_num,car_name\n")

    with pytest.raises(BulkImportError) as excinfo:
        service.import_file("vehicles.csv", b"plate,name\nA,B\n")
    assert excinfo.value.hint == "Columns found in file: plate, name"


def test_import_rows_overwrites_existing_values(service) -> None:
    db = service.db_manager
    db.create_vehicle({"vehicle_number": "12가3456", "owner_name": "Owner", "engine": "2.5T", "fuel": "가솔린"})

    result = service.import_rows([
        (2, {"car_num": "12가3456", "car_name": "G80", "engine": ""}),
        (3, {"car_num": " 34나7890 ", "car_name": ""}),
        (4, {"car_num": "", "car_name": "Nameless"}),
    ])

    assert result.to_dict() == {
        "success": 1,
        "updated": 1,
        "failed": 1,
        "errors": [{"row": 4, "vehicleNumber": "(none)", "error": "Vehicle number (car_num) is empty"}],
    }
    existing = db.get_vehicle_by_number("12가3456")
    assert existing["ownerName"] == "Owner"
    assert existing["model"] == "G80"
    assert existing["engine"] is None
    assert existing["fuel"] is None
    assert db.get_vehicle_by_number("34나7890")["ownerName"] == "34나7890"


def test_import_rows_collects_database_errors(service, monkeypatch) -> None:
    def broken_upsert(*args, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(service.db_manager, "upsert_vehicle", broken_upsert)

    result = service.import_rows([(2, {"car_num": "12가3456"})])

    assert result.failed == 1
    assert result.errors == [{"row": 2, "vehicleNumber": "12가3456", "error": "database is locked"}]


def test_blank_lines_keep_spreadsheet_row_numbers(service) -> None:
    content = "car_num,car_name\n12가0001,A\n,\n\n,Missing plate\n".encode("utf-8")

    columns, rows = read_rows("vehicles.csv", content)
    result = service.import_file("vehicles.csv", content)

    assert [line for line, _ in rows] == [2, 5]
    assert result.success == 1
    assert result.errors == [{"row": 5, "vehicleNumber": "(none)", "error": "Vehicle number (car_num) is empty"}]


def test_blank_workbook_rows_keep_row_numbers(service) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["car_num", "car_name"])
    sheet.append(["12가0001", "A"])
    sheet.append([None, None])
    sheet.append([None, "Missing plate"])
    buffer = io.BytesIO()
    workbook.save(buffer)

    result = service.import_file("vehicles.xlsx", buffer.getvalue())

    assert result.errors == [{"row": 4, "vehicleNumber": "(none)", "error": "Vehicle number (car_num) is empty"}]
