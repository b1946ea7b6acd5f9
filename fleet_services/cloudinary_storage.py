import logging
import os
import re
from typing import Dict, Optional

import cloudinary
import cloudinary.uploader

from fleet_services.config import fleet_settings

logger = logging.getLogger(__name__)

PHASE_FOLDERS = {"before": "점검전", "after": "점검후"}
PUBLIC_ID_UNSAFE = re.compile(r"[^a-zA-Z0-9가-힣\s-]")
MAX_PUBLIC_ID_LENGTH = 200


def build_folder(vehicle_number: str, date_folder: str, photo_phase: Optional[str] = None) -> str:
    """PremiumCare/{plate}/{YYYY-MM-DD}[/점검전|/점검후]"""
    parts = [fleet_settings.cloudinary_root_folder, vehicle_number, date_folder]
    phase_folder = PHASE_FOLDERS.get(photo_phase or "")
    if phase_folder:
        parts.append(phase_folder)
    return "/".join(parts)


def build_public_id(file_name: str) -> str:
    stem, _ = os.path.splitext(file_name)
    return PUBLIC_ID_UNSAFE.sub("_", stem)[:MAX_PUBLIC_ID_LENGTH]


class CloudinaryStorage:
    """Hosts inspection photos on Cloudinary"""

    def __init__(self):
        self._configured_for = None

    @property
    def enabled(self) -> bool:
        return fleet_settings.cloudinary_configured

    def _configure(self) -> None:
        credentials = (
            fleet_settings.cloudinary_cloud_name,
            fleet_settings.cloudinary_api_key,
            fleet_settings.cloudinary_api_secret,
        )
        if self._configured_for == credentials:
            return
        cloudinary.config(
            cloud_name=credentials[0],
            api_key=credentials[1],
            api_secret=credentials[2],
            secure=True,
        )
        self._configured_for = credentials

    def upload(
        self,
        content: bytes,
        file_name: str,
        vehicle_number: str,
        date_folder: str,
        photo_phase: Optional[str] = None,
    ) -> Optional[Dict[str, str]]:
        """Upload image bytes; returns {url, public_id} or None when skipped or failed"""
        if not self.enabled:
            logger.warning("Cloudinary credentials not configured")
            return None

        self._configure()
        folder = build_folder(vehicle_number, date_folder, photo_phase)
        try:
            result = cloudinary.uploader.upload(
                content,
                folder=folder,
                public_id=build_public_id(file_name),
                resource_type="image",
                overwrite=False,
                use_filename=False,
                unique_filename=True,
                quality="auto:good",
                fetch_format="auto",
            )
        except Exception as e:
            logger.error(f"Error uploading {file_name} to Cloudinary: {e}")
            return None

        logger.info(f"Uploaded {result.get('public_id')} to Cloudinary")
        return {"url": result["secure_url"], "public_id": result["public_id"]}

    def delete(self, public_id: str) -> bool:
        if not self.enabled or not public_id:
            return False

        self._configure()
        try:
            result = cloudinary.uploader.destroy(public_id)
        except Exception as e:
            logger.error(f"Error deleting {public_id} from Cloudinary: {e}")
            return False
        return result.get("result") == "ok"
