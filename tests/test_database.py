from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from database import (
    DuplicateVehicleError,
    FleetDatabaseManager,
    RecordNotFoundError,
    format_korean_datetime,
    isoformat_utc,
    parse_iso_datetime,
    to_kst,
    to_utc_naive,
)


@pytest.fixture()
def db(tmp_path) -> FleetDatabaseManager:
    return FleetDatabaseManager(f"sqlite:///{tmp_path / 'fleet.db'}")


def test_time_helpers() -> None:
    aware = datetime(2026, 1, 8, 7, 10, tzinfo=timezone(timedelta(hours=9)))

    assert to_utc_naive(aware) == datetime(2026, 1, 7, 22, 10)
    assert to_kst(datetime(2026, 1, 7, 22, 10)).hour == 7
    assert isoformat_utc(datetime(2026, 1, 7, 22, 10, 5, 123456)) == "2026-01-07T22:10:05.123Z"
    assert parse_iso_datetime("2026-01-07T22:10:00.000Z") == datetime(2026, 1, 7, 22, 10, tzinfo=timezone.utc)
    assert format_korean_datetime(datetime(2026, 1, 7, 22, 10)) == "2026. 1. 8. 오전 7:10:00"
    assert format_korean_datetime(datetime(2026, 1, 8, 3, 30, 15)) == "2026. 1. 8. 오후 12:30:15"
    assert format_korean_datetime(None) == ""


def test_create_vehicle_rejects_duplicates(db) -> None:
    db.create_vehicle({"vehicle_number": "12가3456", "owner_name": "G80"})

    with pytest.raises(DuplicateVehicleError):
        db.create_vehicle({"vehicle_number": "12가3456", "owner_name": "Other"})
    assert db.count_vehicles() == 1


def test_latest_inspection_dates_only_covers_registered_plates(db) -> None:
    first = db.create_vehicle({"vehicle_number": "12가3456", "owner_name": "G80"})
    db.create_vehicle({"vehicle_number": "34나7890", "owner_name": "GV80"})
    for day in (5, 7):
        db.create_inspection({
            "vehicle_id": first["id"],
            "inspection_date": datetime(2026, 1, day, 1, 0),
            "inspection_type": "세차점검",
            "overall_status": "양호",
        })

    latest = db.latest_inspection_dates(["12가3456", "34나7890", "99허9999", "12가3456"])

    assert latest == {"12가3456": datetime(2026, 1, 7, 1, 0), "34나7890": None}
    assert db.latest_inspection_dates([]) == {}


def test_count_inspections_between_is_half_open(db) -> None:
    vehicle = db.create_vehicle({"vehicle_number": "12가3456", "owner_name": "G80"})
    for hour in (0, 12, 24):
        db.create_inspection({
            "vehicle_id": vehicle["id"],
            "inspection_date": datetime(2026, 1, 7, 0, 0) + timedelta(hours=hour),
            "inspection_type": "세차점검",
            "overall_status": "양호",
        })

    assert db.count_inspections_between(datetime(2026, 1, 7), datetime(2026, 1, 8)) == 2


def test_writes_against_missing_parents(db) -> None:
    with pytest.raises(RecordNotFoundError):
        db.create_inspection({
            "vehicle_id": "missing",
            "inspection_date": datetime(2026, 1, 7),
            "inspection_type": "세차점검",
            "overall_status": "양호",
        })
    with pytest.raises(RecordNotFoundError):
        db.create_area({"inspection_id": "missing", "area_category": "외관", "area_name": "앞범퍼", "status": "양호"})

    assert db.get_area_context("missing") is None
    assert db.delete_inspection("missing") is None
    assert db.delete_photo("missing") is None
