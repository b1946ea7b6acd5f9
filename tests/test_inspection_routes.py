from __future__ import annotations

import inspection_routes


def _create_inspection(client, vehicle_id: str, date: str, inspection_type: str = "세차점검") -> dict:
    resp = client.post(
        "/api/inspections",
        json={
            "vehicleId": vehicle_id,
            "inspectionDate": date,
            "inspectionType": inspection_type,
            "overallStatus": "양호",
        },
    )
    assert resp.status_code == 201
    return resp.json()


def test_create_inspection_returns_vehicle_and_areas(inspection, vehicle) -> None:
    assert inspection["vehicleId"] == vehicle["id"]
    assert inspection["vehicle"]["vehicleNumber"] == "12가3456"
    assert inspection["inspectionDate"] == "2026-01-07T22:10:00.000Z"
    assert inspection["details"] == {"battery": "정상", "tires": {"FL": "정상", "FR": "마모"}}
    assert sorted(area["areaName"] for area in inspection["areas"]) == ["앞범퍼", "운전석"]
    assert all(area["photos"] == [] for area in inspection["areas"])


def test_create_inspection_normalizes_offsets_to_utc(client, vehicle) -> None:
    created = _create_inspection(client, vehicle["id"], "2026-01-08T07:10:00+09:00")

    assert created["inspectionDate"] == "2026-01-07T22:10:00.000Z"


def test_create_inspection_schedules_backup(client, vehicle, monkeypatch) -> None:
    recorded = []
    monkeypatch.setattr(inspection_routes, "record_inspection_backup", recorded.append)

    created = _create_inspection(client, vehicle["id"], "2026-01-08T01:00:00Z")

    assert [item["id"] for item in recorded] == [created["id"]]


def test_create_inspection_unknown_vehicle(client) -> None:
    resp = client.post(
        "/api/inspections",
        json={
            "vehicleId": "7f1c6a52-4f7e-4b2a-9a7e-1b2c3d4e5f60",
            "inspectionDate": "2026-01-08T01:00:00Z",
            "inspectionType": "세차점검",
            "overallStatus": "양호",
        },
    )

    assert resp.status_code == 404
    assert resp.json()["error"] == "Vehicle not found"


def test_create_inspection_validates_payload(client, vehicle) -> None:
    not_uuid = client.post(
        "/api/inspections",
        json={"vehicleId": "abc", "inspectionDate": "2026-01-08", "inspectionType": "x", "overallStatus": "y"},
    )
    missing_type = client.post(
        "/api/inspections",
        json={"vehicleId": vehicle["id"], "inspectionDate": "2026-01-08T01:00:00Z", "overallStatus": "양호"},
    )

    assert not_uuid.status_code == 400
    assert missing_type.status_code == 400
    assert missing_type.json()["error"] == "Invalid input"


def test_list_inspections_filters_and_paginates(client, vehicle) -> None:
    _create_inspection(client, vehicle["id"], "2026-01-05T01:00:00Z")
    _create_inspection(client, vehicle["id"], "2026-01-06T01:00:00Z", "반납상태")
    newest = _create_inspection(client, vehicle["id"], "2026-01-07T01:00:00Z")

    resp = client.get("/api/inspections", params={"vehicleId": vehicle["id"], "limit": 2})

    assert resp.status_code == 200
    assert resp.headers["cache-control"] == "public, s-maxage=10, stale-while-revalidate=30"
    data = resp.json()
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}
    assert data["inspections"][0]["id"] == newest["id"]
    assert data["inspections"][0]["vehicle"] == {
        "id": vehicle["id"],
        "vehicleNumber": vehicle["vehicleNumber"],
        "ownerName": vehicle["ownerName"],
    }

    returns = client.get("/api/inspections", params={"inspectionType": "반납상태"}).json()
    assert [i["inspectionType"] for i in returns["inspections"]] == ["반납상태"]


def test_list_inspections_date_range_returns_summaries(client, vehicle) -> None:
    _create_inspection(client, vehicle["id"], "2026-01-05T01:00:00Z")
    inside = _create_inspection(client, vehicle["id"], "2026-01-06T01:00:00Z")

    resp = client.get(
        "/api/inspections",
        params={"startDate": "2026-01-06T00:00:00Z", "endDate": "2026-01-07T00:00:00Z", "limit": 5},
    )

    data = resp.json()
    assert data["pagination"]["total"] == 1
    assert data["inspections"] == [{
        "id": inside["id"],
        "inspectionDate": "2026-01-06T01:00:00.000Z",
        "inspectionType": "세차점검",
    }]

    wide = client.get(
        "/api/inspections",
        params={"startDate": "2026-01-01", "endDate": "2026-01-31", "limit": 50},
    ).json()
    assert wide["pagination"]["total"] == 2
    assert "areas" in wide["inspections"][0]


def test_list_inspections_date_bounds_are_inclusive(client, vehicle) -> None:
    _create_inspection(client, vehicle["id"], "2026-01-05T23:59:59Z")
    at_start = _create_inspection(client, vehicle["id"], "2026-01-06T00:00:00Z")
    at_end = _create_inspection(client, vehicle["id"], "2026-01-07T00:00:00Z")
    _create_inspection(client, vehicle["id"], "2026-01-07T00:00:01Z")

    resp = client.get(
        "/api/inspections",
        params={"startDate": "2026-01-06T00:00:00Z", "endDate": "2026-01-07T00:00:00Z", "limit": 5},
    )

    assert resp.headers["cache-control"] == "public, s-maxage=10, stale-while-revalidate=30"
    data = resp.json()
    assert data["pagination"]["total"] == 2
    assert [i["id"] for i in data["inspections"]] == [at_end["id"], at_start["id"]]

    date_only = client.get(
        "/api/inspections", params={"startDate": "2026-01-06", "endDate": "2026-01-07", "limit": 5}
    ).json()
    assert [i["id"] for i in date_only["inspections"]] == [at_end["id"], at_start["id"]]


def test_list_inspections_rejects_bad_dates(client) -> None:
    resp = client.get("/api/inspections", params={"startDate": "yesterday"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid startDate: expected an ISO-8601 date"


def test_add_area_to_inspection(client, inspection) -> None:
    resp = client.post(
        "/api/inspections/areas",
        json={"inspectionId": inspection["id"], "areaCategory": "타이어", "areaName": "FL", "status": "마모"},
    )

    assert resp.status_code == 201
    assert resp.json()["inspectionId"] == inspection["id"]

    detail = client.get(f"/api/inspections/{inspection['id']}").json()
    assert [area["areaName"] for area in detail["areas"]][-1] == "FL"


def test_add_area_to_unknown_inspection(client) -> None:
    resp = client.post(
        "/api/inspections/areas",
        json={"inspectionId": "missing", "areaCategory": "외관", "areaName": "앞범퍼", "status": "양호"},
    )

    assert resp.status_code == 404
    assert resp.json()["error"] == "Inspection not found"


def test_get_and_delete_inspection(client, inspection) -> None:
    fetched = client.get(f"/api/inspections/{inspection['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["vehicle"]["ownerName"] == "G80 Black"

    deleted = client.delete(f"/api/inspections/{inspection['id']}")
    assert deleted.json() == {"message": "Inspection deleted successfully"}

    assert client.get(f"/api/inspections/{inspection['id']}").status_code == 404
    assert client.delete(f"/api/inspections/{inspection['id']}").status_code == 404
