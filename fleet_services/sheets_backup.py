import logging
from typing import Any, Dict, List, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build

from database import format_korean_datetime, parse_iso_datetime
from fleet_services.config import fleet_settings

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

SHEET_HEADERS = [
    "날짜", "차량번호", "소유자", "점검유형", "상태", "담당자",
    "오염도", "외관이상", "타이어상태", "내부오염",
    "세차", "배터리", "와이퍼/워셔액", "경고등",
    "특이사항", "사진수", "점검ID",
]
PHOTO_COUNT_COLUMN = "P"
INSPECTION_ID_COLUMN = "Q"


def _join(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def _tires_text(value: Any) -> str:
    if isinstance(value, dict):
        return ", ".join(f"{position}:{status}" for position, status in value.items())
    return _join(value)


def build_inspection_row(inspection: Dict[str, Any], photo_count: int = 0) -> List[Any]:
    """Build the A..Q row for an inspection dict that includes its vehicle"""
    vehicle = inspection.get("vehicle") or {}
    details = inspection.get("details")
    if not isinstance(details, dict):
        details = {}

    inspection_date = parse_iso_datetime(inspection.get("inspectionDate"))

    return [
        format_korean_datetime(inspection_date),
        vehicle.get("vehicleNumber", ""),
        vehicle.get("ownerName", ""),
        inspection.get("inspectionType", ""),
        inspection.get("overallStatus", ""),
        inspection.get("inspector") or "",
        _join(details.get("contamination")),
        _join(details.get("exteriorDamage")),
        _tires_text(details.get("tires")),
        _join(details.get("interiorContamination")),
        _join(details.get("carWash")),
        _join(details.get("battery")),
        _join(details.get("wiperWasher")),
        _join(details.get("warningLights")),
        inspection.get("memo") or "",
        photo_count,
        inspection.get("id", ""),
    ]


class SheetsBackupService:
    """Mirrors inspection records to a Google Sheets log"""

    @property
    def enabled(self) -> bool:
        return fleet_settings.google_sheets_configured

    @property
    def sheet_name(self) -> str:
        return fleet_settings.google_sheets_name

    def get_service(self):
        credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": fleet_settings.google_service_account_email,
                "private_key": fleet_settings.google_private_key,
                "token_uri": TOKEN_URI,
            },
            scopes=SHEETS_SCOPES,
        )
        return build("sheets", "v4", credentials=credentials, cache_discovery=False)

    def append_inspection_record(self, inspection: Dict[str, Any], photo_count: int = 0) -> bool:
        if not self.enabled:
            logger.warning("Google Sheets credentials not configured")
            return False

        row = build_inspection_row(inspection, photo_count)
        try:
            self.get_service().spreadsheets().values().append(
                spreadsheetId=fleet_settings.google_sheets_id,
                range=f"{self.sheet_name}!A:{INSPECTION_ID_COLUMN}",
                valueInputOption="USER_ENTERED",
                body={"values": [row]},
            ).execute()
        except Exception as e:
            logger.error(f"Failed to append inspection {inspection.get('id')} to Google Sheets: {e}")
            return False

        logger.info(f"Google Sheets record added: {row[1]} - {row[3]}")
        return True

    def find_row(self, service, inspection_id: str) -> Optional[int]:
        """1-based sheet row holding the inspection id, or None"""
        result = service.spreadsheets().values().get(
            spreadsheetId=fleet_settings.google_sheets_id,
            range=f"{self.sheet_name}!{INSPECTION_ID_COLUMN}:{INSPECTION_ID_COLUMN}",
        ).execute()
        for index, values in enumerate(result.get("values", [])):
            if values and values[0] == inspection_id:
                return index + 1
        return None

    def update_photo_count(self, inspection_id: str, photo_count: int) -> bool:
        if not self.enabled:
            return False

        try:
            service = self.get_service()
            row_number = self.find_row(service, inspection_id)
            if row_number is None:
                logger.warning(f"Inspection {inspection_id} not found in Google Sheets")
                return False

            service.spreadsheets().values().update(
                spreadsheetId=fleet_settings.google_sheets_id,
                range=f"{self.sheet_name}!{PHOTO_COUNT_COLUMN}{row_number}",
                valueInputOption="USER_ENTERED",
                body={"values": [[photo_count]]},
            ).execute()
        except Exception as e:
            logger.error(f"Failed to update photo count for {inspection_id}: {e}")
            return False

        logger.info(f"Google Sheets photo count for {inspection_id} set to {photo_count}")
        return True

    def initialize_sheet_headers(self) -> bool:
        if not self.enabled:
            return False

        try:
            self.get_service().spreadsheets().values().update(
                spreadsheetId=fleet_settings.google_sheets_id,
                range=f"{self.sheet_name}!A1:{INSPECTION_ID_COLUMN}1",
                valueInputOption="USER_ENTERED",
                body={"values": [SHEET_HEADERS]},
            ).execute()
        except Exception as e:
            logger.error(f"Failed to write Google Sheets headers: {e}")
            return False

        logger.info("Google Sheets headers written")
        return True
