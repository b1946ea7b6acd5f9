import logging
import os
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from database import FleetDatabaseManager, RecordNotFoundError, parse_iso_datetime, to_kst
from fleet_services.cloudinary_storage import CloudinaryStorage
from fleet_services.config import fleet_settings
from fleet_services.email_service import EmailAttachment, EmailService
from fleet_services.google_drive_storage import GoogleDriveStorage
from fleet_services.local_storage import LocalPhotoStorage
from fleet_services.sheets_backup import SheetsBackupService

logger = logging.getLogger(__name__)

PHOTO_PHASES = ("before", "after")


@dataclass
class IncomingPhoto:
    filename: str
    content_type: str
    content: bytes


def format_file_name_date(inspection_date) -> str:
    """'2026. 01. 08. 오전 7:10:00' in KST"""
    local = to_kst(inspection_date)
    meridiem = "오후" if local.hour >= 12 else "오전"
    hour = local.hour % 12 or 12
    return f"{local.year}. {local.month:02d}. {local.day:02d}. {meridiem} {hour}:{local.minute:02d}:00"


def build_base_file_name(vehicle: Dict[str, Any], inspection: Dict[str, Any]) -> str:
    """'{plate} - {owner}, {date}, {status}, {type}[, {inspector}]'"""
    inspection_date = parse_iso_datetime(inspection["inspectionDate"])
    name = (
        f"{vehicle['vehicleNumber']} - {vehicle['ownerName']}, {format_file_name_date(inspection_date)}, "
        f"{inspection['overallStatus']}, {inspection['inspectionType']}"
    )
    if inspection.get("inspector"):
        name += f", {inspection['inspector']}"
    return name


def build_storage_file_name(base_name: str, original_name: str) -> str:
    extension = os.path.splitext(original_name or "")[1]
    unique_id = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:5]}"
    return f"{base_name}_{unique_id}{extension}"


def normalize_photo_phase(value: Optional[str]) -> Optional[str]:
    return value if value in PHOTO_PHASES else None


class PhotoUploadService:
    """Stores uploaded inspection photos and keeps the backups in sync"""

    def __init__(
        self,
        db_manager: FleetDatabaseManager,
        cloudinary_storage: Optional[CloudinaryStorage] = None,
        drive_storage: Optional[GoogleDriveStorage] = None,
        local_storage: Optional[LocalPhotoStorage] = None,
        sheets_backup: Optional[SheetsBackupService] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.db_manager = db_manager
        self.cloudinary = cloudinary_storage or CloudinaryStorage()
        self.drive = drive_storage or GoogleDriveStorage()
        self.local = local_storage or LocalPhotoStorage()
        self.sheets = sheets_backup or SheetsBackupService()
        self.email = email_service or EmailService()

    def is_acceptable(self, photo: IncomingPhoto) -> bool:
        if not (photo.content_type or "").startswith("image/"):
            logger.warning(f"Skipping non-image upload {photo.filename} ({photo.content_type})")
            return False
        if len(photo.content) > fleet_settings.max_photo_bytes:
            logger.warning(f"Skipping {photo.filename}: {len(photo.content)} bytes exceeds limit")
            return False
        return True

    async def upload(
        self,
        area_id: str,
        photos: List[IncomingPhoto],
        description: Optional[str] = None,
        photo_phase: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store each acceptable photo; returns {photos, context, attachments}.

        Raises:
            RecordNotFoundError: the inspection area does not exist.
        """
        context = self.db_manager.get_area_context(area_id)
        if not context:
            raise RecordNotFoundError("Inspection area not found")

        vehicle = context["vehicle"]
        inspection = context["inspection"]
        phase = normalize_photo_phase(photo_phase)
        date_folder = to_kst(parse_iso_datetime(inspection["inspectionDate"])).strftime("%Y-%m-%d")
        base_name = build_base_file_name(vehicle, inspection)

        stored = []
        attachments = []
        for photo in photos:
            if not self.is_acceptable(photo):
                continue

            file_name = build_storage_file_name(base_name, photo.filename)
            mime_type = photo.content_type or "image/jpeg"

            cloudinary_result = await run_in_threadpool(
                self.cloudinary.upload, photo.content, file_name, vehicle["vehicleNumber"], date_folder, phase
            )
            drive_result = await run_in_threadpool(
                self.drive.upload, photo.content, file_name, mime_type, [vehicle["vehicleNumber"], date_folder]
            )
            local_result = await self.local.save(photo.content, photo.filename, vehicle["vehicleNumber"], date_folder)

            cloudinary_url = cloudinary_result["url"] if cloudinary_result else None
            stored.append(self.db_manager.add_photo({
                "inspection_area_id": area_id,
                "file_name": file_name,
                "original_file_name": photo.filename or file_name,
                "file_path": cloudinary_url or local_result["file_path"],
                "local_file_path": local_result["file_path"] or None,
                "cloudinary_public_id": cloudinary_result["public_id"] if cloudinary_result else None,
                "cloudinary_url": cloudinary_url,
                "google_drive_file_id": drive_result["file_id"] if drive_result else None,
                "google_drive_url": drive_result["web_view_link"] if drive_result else None,
                "file_size": len(photo.content),
                "mime_type": mime_type,
                "description": description or None,
                "photo_phase": phase,
            }))
            attachments.append(EmailAttachment(filename=file_name, content=photo.content, content_type=mime_type))

        logger.info(f"Stored {len(stored)} of {len(photos)} photos for area {area_id}")
        return {"photos": stored, "context": context, "attachments": attachments}

    def sync_after_upload(self, context: Dict[str, Any], attachments: List[EmailAttachment]) -> None:
        """Refresh the sheet photo count and email the new photos"""
        if not attachments:
            return

        inspection = context["inspection"]
        vehicle = context["vehicle"]
        total = self.db_manager.count_inspection_photos(inspection["id"])
        self.sheets.update_photo_count(inspection["id"], total)

        date_label = to_kst(parse_iso_datetime(inspection["inspectionDate"])).strftime("%Y-%m-%d")
        self.email.send_photos_email(
            vehicle["vehicleNumber"],
            vehicle["ownerName"],
            inspection["inspectionType"],
            date_label,
            attachments,
        )

    async def remove_stored_files(self, photos: List[Dict[str, Any]]) -> None:
        """Delete photo files from local disk, Cloudinary and Google Drive"""
        for photo in photos:
            if photo.get("localFilePath"):
                await self.local.delete(photo["localFilePath"])
            if photo.get("cloudinaryPublicId"):
                await run_in_threadpool(self.cloudinary.delete, photo["cloudinaryPublicId"])
            if photo.get("googleDriveFileId"):
                await run_in_threadpool(self.drive.delete, photo["googleDriveFileId"])
