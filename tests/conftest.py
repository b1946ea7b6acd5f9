from __future__ import annotations

import os
import tempfile

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="fleet-readiness-tests-")

# Settings are read at import time, so the environment is prepared first.
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test_fleet.db')}"
os.environ["ADMIN_PIN"] = "4821"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["LOCAL_UPLOADS"] = "true"
for _name in (
    "CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET",
    "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REFRESH_TOKEN",
    "GOOGLE_SERVICE_ACCOUNT_EMAIL", "GOOGLE_PRIVATE_KEY", "GOOGLE_SHEETS_ID",
    "EMAIL_USER", "EMAIL_APP_PASSWORD", "EMAIL_RECIPIENT",
):
    os.environ[_name] = ""

from fastapi.testclient import TestClient

from app import app, db_manager

ADMIN_PIN = "4821"


@pytest.fixture()
def client():
    db_manager.drop_tables()
    db_manager.create_tables()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"x-admin-pin": ADMIN_PIN}


@pytest.fixture()
def vehicle(client, admin_headers) -> dict:
    resp = client.post(
        "/api/vehicles",
        json={"vehicleNumber": "12가3456", "ownerName": "G80 Black", "model": "G80", "year": 2025},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture()
def inspection(client, vehicle) -> dict:
    resp = client.post(
        "/api/inspections",
        json={
            "vehicleId": vehicle["id"],
            "inspectionDate": "2026-01-07T22:10:00.000Z",
            "inspectionType": "세차점검",
            "overallStatus": "양호",
            "inspector": "김점검",
            "details": {"battery": "정상", "tires": {"FL": "정상", "FR": "마모"}},
            "areas": [
                {"areaCategory": "외관", "areaName": "앞범퍼", "status": "양호"},
                {"areaCategory": "실내", "areaName": "운전석", "status": "양호", "memo": "청결"},
            ],
        },
    )
    assert resp.status_code == 201
    return resp.json()
