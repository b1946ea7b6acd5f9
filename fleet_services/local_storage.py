import logging
import os
import uuid
from typing import Dict, Optional

import aiofiles
import aiofiles.os

from fleet_services.config import fleet_settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".heic": "image/heic",
}


def _safe_segment(value: str) -> str:
    cleaned = value.replace("/", "_").replace("\\", "_").strip()
    return cleaned if cleaned not in ("", ".", "..") else "_"


def guess_mime_type(path: str) -> str:
    return MIME_TYPES.get(os.path.splitext(path)[1].lower(), "application/octet-stream")


class LocalPhotoStorage:
    """Stores photos under UPLOAD_DIR and maps them to /uploads/... URLs"""

    @property
    def enabled(self) -> bool:
        return fleet_settings.local_uploads_enabled

    @property
    def root(self) -> str:
        return os.path.realpath(fleet_settings.upload_dir)

    async def save(self, content: bytes, original_name: str, vehicle_number: str, date_folder: str) -> Dict[str, str]:
        """Write the file; returns {file_name, file_path} (file_path empty when disabled)"""
        extension = os.path.splitext(original_name or "")[1].lower()
        file_name = f"{uuid.uuid4()}{extension}"
        if not self.enabled:
            return {"file_name": file_name, "file_path": ""}

        relative_parts = ["vehicles", _safe_segment(vehicle_number), _safe_segment(date_folder)]
        save_dir = os.path.join(self.root, *relative_parts)
        await aiofiles.os.makedirs(save_dir, exist_ok=True)

        async with aiofiles.open(os.path.join(save_dir, file_name), "wb") as handle:
            await handle.write(content)

        public_path = PUBLIC_PREFIX + "/".join(relative_parts + [file_name])
        logger.debug(f"Saved photo to {public_path}")
        return {"file_name": file_name, "file_path": public_path}

    def resolve(self, relative_path: str) -> Optional[str]:
        """Absolute path for a path below the upload root, or None if it escapes it or is missing"""
        if not self.enabled:
            return None
        root = self.root
        candidate = os.path.realpath(os.path.join(root, relative_path.lstrip("/")))
        if os.path.commonpath([root, candidate]) != root:
            logger.warning(f"Rejected upload path outside of upload root: {relative_path}")
            return None
        if not os.path.isfile(candidate):
            return None
        return candidate

    async def delete(self, public_path: Optional[str]) -> bool:
        if not public_path or not public_path.startswith(PUBLIC_PREFIX):
            return False
        absolute_path = self.resolve(public_path[len(PUBLIC_PREFIX):])
        if not absolute_path:
            return False
        try:
            await aiofiles.os.remove(absolute_path)
        except OSError as e:
            logger.error(f"Failed to delete local photo {public_path}: {e}")
            return False
        return True
