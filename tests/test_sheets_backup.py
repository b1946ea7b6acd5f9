from __future__ import annotations

from fleet_services.sheets_backup import SHEET_HEADERS, SheetsBackupService, build_inspection_row


def test_build_inspection_row_flattens_checklist() -> None:
    inspection = {
        "id": "c1a2",
        "inspectionDate": "2026-01-08T06:05:00.000Z",
        "inspectionType": "반납상태",
        "overallStatus": "보통",
        "inspector": None,
        "memo": "앞범퍼 확인",
        "details": {
            "contamination": "보통",
            "exteriorDamage": ["앞범퍼 스크래치", "사이드미러"],
            "tires": {"FL": "정상", "RR": "마모"},
            "battery": "정상",
            "warningLights": [],
        },
        "vehicle": {"vehicleNumber": "34나7890", "ownerName": "GV80"},
    }

    row = build_inspection_row(inspection, photo_count=4)

    assert len(row) == len(SHEET_HEADERS)
    assert row == [
        "2026. 1. 8. 오후 3:05:00", "34나7890", "GV80", "반납상태", "보통", "",
        "보통", "앞범퍼 스크래치, 사이드미러", "FL:정상, RR:마모", "",
        "", "정상", "", "",
        "앞범퍼 확인", 4, "c1a2",
    ]


def test_build_inspection_row_without_details() -> None:
    row = build_inspection_row({"id": "x", "inspectionDate": None, "details": "free text"})

    assert row[0] == ""
    assert row[6:14] == [""] * 8
    assert row[-2:] == [0, "x"]


def test_disabled_backup_is_a_no_op() -> None:
    service = SheetsBackupService()

    assert service.enabled is False
    assert service.append_inspection_record({"id": "x"}) is False
    assert service.update_photo_count("x", 3) is False
    assert service.initialize_sheet_headers() is False
