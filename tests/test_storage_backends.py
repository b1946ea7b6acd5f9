from __future__ import annotations

import cloudinary.uploader

from fleet_services.cloudinary_storage import CloudinaryStorage
from fleet_services.config import fleet_settings
from fleet_services.google_drive_storage import GoogleDriveStorage
from fleet_services.sheets_backup import SheetsBackupService


class _Request:
    def __init__(self, result):
        self._result = result

    def execute(self):
        return self._result


class FakeDriveService:
    """Mimics the files()/permissions() chains of the Drive v3 client"""

    def __init__(self, existing=None):
        self.folders = dict(existing or {})
        self.created = []
        self.permissions_granted = []
        self.deleted = []

    def files(self):
        return self

    def permissions(self):
        return _Permissions(self)

    def list(self, q, fields):
        name = q.split("name='", 1)[1].split("' and", 1)[0]
        parent = q.split("and '", 1)[1].split("' in parents", 1)[0]
        folder_id = self.folders.get((parent, name))
        return _Request({"files": [{"id": folder_id, "name": name}] if folder_id else []})

    def create(self, body, fields, media_body=None):
        new_id = f"id-{len(self.created) + 1}"
        self.created.append((body["name"], body["parents"][0]))
        if media_body is None:
            self.folders[(body["parents"][0], body["name"])] = new_id
            return _Request({"id": new_id})
        return _Request({"id": new_id, "webViewLink": f"https://drive.example/{new_id}"})

    def delete(self, fileId):
        self.deleted.append(fileId)
        return _Request({})


class _Permissions:
    def __init__(self, service):
        self.service = service

    def create(self, fileId, body):
        self.service.permissions_granted.append((fileId, body["type"]))
        return _Request({})


class FakeSheetsService:
    def __init__(self, ids):
        self.ids = ids
        self.updates = []
        self.appended = []

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def get(self, spreadsheetId, range):
        return _Request({"values": [[value] if value else [] for value in self.ids]})

    def update(self, spreadsheetId, range, valueInputOption, body):
        self.updates.append((range, body["values"]))
        return _Request({})

    def append(self, spreadsheetId, range, valueInputOption, body):
        self.appended.append((range, body["values"]))
        return _Request({})


def _enable_drive(monkeypatch) -> None:
    monkeypatch.setattr(fleet_settings, "google_client_id", "client")
    monkeypatch.setattr(fleet_settings, "google_client_secret", "secret")
    monkeypatch.setattr(fleet_settings, "google_refresh_token", "refresh")
    monkeypatch.setattr(fleet_settings, "google_drive_folder_id", "")
    monkeypatch.setattr(fleet_settings, "google_drive_top_folder_name", "PremiumCare")


def _enable_sheets(monkeypatch) -> None:
    monkeypatch.setattr(fleet_settings, "google_service_account_email", "bot@example.iam.gserviceaccount.com")
    monkeypatch.setattr(fleet_settings, "google_private_key", "key")
    monkeypatch.setattr(fleet_settings, "google_sheets_id", "sheet-id")
    monkeypatch.setattr(fleet_settings, "google_sheets_name", "점검기록")


def test_drive_upload_creates_folder_tree_once(monkeypatch) -> None:
    _enable_drive(monkeypatch)
    fake = FakeDriveService()
    storage = GoogleDriveStorage()
    monkeypatch.setattr(storage, "get_service", lambda: fake)

    first = storage.upload(b"img", "a.jpg", "image/jpeg", ["12가3456", "2026-01-08"])
    second = storage.upload(b"img", "b.jpg", "image/jpeg", ["12가3456", "2026-01-08"])

    assert first == {"file_id": "id-4", "web_view_link": "https://drive.example/id-4"}
    assert second["file_id"] == "id-5"
    assert fake.created[:3] == [("PremiumCare", "root"), ("12가3456", "id-1"), ("2026-01-08", "id-2")]
    assert fake.created[3:] == [("a.jpg", "id-3"), ("b.jpg", "id-3")]
    assert fake.permissions_granted == [("id-4", "anyone"), ("id-5", "anyone")]


def test_drive_configured_folder_is_used_as_root(monkeypatch) -> None:
    _enable_drive(monkeypatch)
    monkeypatch.setattr(fleet_settings, "google_drive_folder_id", "shared-folder")
    fake = FakeDriveService(existing={("shared-folder", "12가3456"): "plate-folder"})
    storage = GoogleDriveStorage()

    assert storage.resolve_folder(fake, ["12가3456"]) == "plate-folder"
    assert fake.created == []


def test_drive_failures_and_delete(monkeypatch) -> None:
    _enable_drive(monkeypatch)
    storage = GoogleDriveStorage()
    fake = FakeDriveService()
    monkeypatch.setattr(storage, "get_service", lambda: fake)

    assert storage.delete("file-1") is True
    assert fake.deleted == ["file-1"]
    assert storage.delete("") is False

    def offline():
        raise ConnectionError("offline")

    monkeypatch.setattr(storage, "get_service", offline)
    assert storage.upload(b"img", "a.jpg", "image/jpeg", []) is None
    assert storage.delete("file-1") is False


def test_sheets_append_and_photo_count(monkeypatch) -> None:
    _enable_sheets(monkeypatch)
    fake = FakeSheetsService(ids=["점검ID", "", "insp-1", "insp-2"])
    service = SheetsBackupService()
    monkeypatch.setattr(service, "get_service", lambda: fake)

    assert service.append_inspection_record({"id": "insp-3", "vehicle": {"vehicleNumber": "12가3456"}})
    assert fake.appended[0][0] == "점검기록!A:Q"
    assert fake.appended[0][1][0][-1] == "insp-3"

    assert service.update_photo_count("insp-2", 5) is True
    assert fake.updates == [("점검기록!P4", [[5]])]

    assert service.update_photo_count("unknown", 1) is False


def test_sheets_headers(monkeypatch) -> None:
    _enable_sheets(monkeypatch)
    fake = FakeSheetsService(ids=[])
    service = SheetsBackupService()
    monkeypatch.setattr(service, "get_service", lambda: fake)

    assert service.initialize_sheet_headers() is True
    header_range, values = fake.updates[0]
    assert header_range == "점검기록!A1:Q1"
    assert values[0][0] == "날짜" and values[0][-1] == "점검ID"


def test_cloudinary_upload_and_delete(monkeypatch) -> None:
    monkeypatch.setattr(fleet_settings, "cloudinary_cloud_name", "demo")
    monkeypatch.setattr(fleet_settings, "cloudinary_api_key", "key")
    monkeypatch.setattr(fleet_settings, "cloudinary_api_secret", "secret")
    monkeypatch.setattr(fleet_settings, "cloudinary_root_folder", "PremiumCare")
    calls = {}

    def fake_upload(content, **options):
        calls["upload"] = options
        return {"secure_url": "https://res.cloudinary.com/demo/a.jpg", "public_id": f"{options['folder']}/a"}

    def fake_destroy(public_id):
        calls["destroy"] = public_id
        return {"result": "ok"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)
    storage = CloudinaryStorage()

    result = storage.upload(b"img", "a.jpg", "12가3456", "2026-01-08", "before")

    assert result == {
        "url": "https://res.cloudinary.com/demo/a.jpg",
        "public_id": "PremiumCare/12가3456/2026-01-08/점검전/a",
    }
    assert calls["upload"]["public_id"] == "a"
    assert storage.delete(result["public_id"]) is True
    assert calls["destroy"] == result["public_id"]


def test_cloudinary_disabled_or_failing(monkeypatch) -> None:
    storage = CloudinaryStorage()
    assert storage.upload(b"img", "a.jpg", "12가3456", "2026-01-08") is None

    monkeypatch.setattr(fleet_settings, "cloudinary_cloud_name", "demo")
    monkeypatch.setattr(fleet_settings, "cloudinary_api_key", "key")
    monkeypatch.setattr(fleet_settings, "cloudinary_api_secret", "secret")

    def broken_upload(content, **options):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(cloudinary.uploader, "upload", broken_upload)
    assert storage.upload(b"img", "a.jpg", "12가3456", "2026-01-08") is None
