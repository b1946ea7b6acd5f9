import io
import logging
from typing import Dict, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from fleet_services.config import fleet_settings

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


def _escape_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveStorage:
    """Backs up inspection photos to Google Drive using an OAuth refresh token"""

    @property
    def enabled(self) -> bool:
        return fleet_settings.google_drive_configured

    def get_service(self):
        """Initialize and return Google Drive service"""
        credentials = Credentials(
            token=None,
            refresh_token=fleet_settings.google_refresh_token,
            client_id=fleet_settings.google_client_id,
            client_secret=fleet_settings.google_client_secret,
            token_uri=TOKEN_URI,
            scopes=DRIVE_SCOPES,
        )
        return build("drive", "v3", credentials=credentials, cache_discovery=False)

    def find_or_create_folder(self, service, folder_name: str, parent_id: str) -> str:
        """Create or find a folder in Google Drive"""
        query = (
            f"name='{_escape_query_value(folder_name)}' and mimeType='{FOLDER_MIME_TYPE}' "
            f"and '{parent_id}' in parents and trashed=false"
        )
        results = service.files().list(q=query, fields="files(id, name)").execute()
        folders = results.get("files", [])
        if folders:
            return folders[0]["id"]

        folder = service.files().create(
            body={"name": folder_name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
            fields="id",
        ).execute()
        logger.info(f"Created Drive folder {folder_name}")
        return folder["id"]

    def resolve_folder(self, service, folder_path: List[str]) -> str:
        """Walk {top}/{plate}/{date}, creating folders as needed"""
        parent_id = fleet_settings.google_drive_folder_id or "root"
        if parent_id == "root" and fleet_settings.google_drive_top_folder_name:
            parent_id = self.find_or_create_folder(service, fleet_settings.google_drive_top_folder_name, "root")

        for folder_name in folder_path:
            if folder_name:
                parent_id = self.find_or_create_folder(service, folder_name, parent_id)
        return parent_id

    def upload(
        self,
        content: bytes,
        file_name: str,
        mime_type: str,
        folder_path: List[str],
    ) -> Optional[Dict[str, str]]:
        """Upload bytes and share read-only by link; returns {file_id, web_view_link} or None"""
        if not self.enabled:
            logger.warning("Google Drive credentials not configured")
            return None

        try:
            service = self.get_service()
            folder_id = self.resolve_folder(service, folder_path)
            media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
            created = service.files().create(
                body={"name": file_name, "parents": [folder_id]},
                media_body=media,
                fields="id, webViewLink",
            ).execute()

            service.permissions().create(
                fileId=created["id"],
                body={"role": "reader", "type": "anyone"},
            ).execute()
        except HttpError as e:
            logger.error(f"Google Drive API error uploading {file_name}: {e}")
            return None
        except Exception as e:
            logger.error(f"Error uploading {file_name} to Google Drive: {e}")
            return None

        return {"file_id": created["id"], "web_view_link": created.get("webViewLink", "")}

    def delete(self, file_id: str) -> bool:
        if not self.enabled or not file_id:
            return False

        try:
            self.get_service().files().delete(fileId=file_id).execute()
        except Exception as e:
            logger.error(f"Error deleting {file_id} from Google Drive: {e}")
            return False
        return True
