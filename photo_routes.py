#!/usr/bin/env python3
"""
Photo Routes
Upload, lookup and deletion of inspection photos.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, HTTPException, UploadFile, status

from database import RecordNotFoundError
from fleet_services.photo_service import IncomingPhoto
from inspection_routes import db_manager, photo_service

logger = logging.getLogger(__name__)

# Create router with prefix
router = APIRouter(prefix="/api/photos", tags=["Photos"])


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_photos(
    background_tasks: BackgroundTasks,
    inspection_area_id: Optional[str] = Form(None, alias="inspectionAreaId"),
    description: Optional[str] = Form(None),
    photo_phase: Optional[str] = Form(None, alias="photoPhase"),
    files: Optional[List[UploadFile]] = File(None),
):
    """
    Upload photos for an inspection area.

    Non-image files and files over 10 MB are skipped. Each stored photo goes
    to Cloudinary, Google Drive and local disk when those are configured.
    """
    if not inspection_area_id or not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    incoming = []
    for upload in files:
        incoming.append(IncomingPhoto(
            filename=upload.filename or "",
            content_type=upload.content_type or "",
            content=await upload.read(),
        ))

    try:
        result = await photo_service.upload(inspection_area_id, incoming, description, photo_phase)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inspection area not found")
    except Exception as e:
        logger.error(f"Error uploading photos: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload photos"
        )

    if result["photos"]:
        background_tasks.add_task(photo_service.sync_after_upload, result["context"], result["attachments"])

    return {"photos": result["photos"], "count": len(result["photos"])}


@router.get("/inspection/{inspection_id}")
async def list_inspection_photos(inspection_id: str):
    """All photos of an inspection in upload order"""
    return {"photos": db_manager.list_inspection_photos(inspection_id)}


@router.get("/{photo_id}")
async def get_photo(photo_id: str):
    photo = db_manager.get_photo(photo_id)
    if not photo:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
    return photo


@router.delete("/{photo_id}")
async def delete_photo(photo_id: str):
    """Remove the stored files, then the photo record"""
    photo = db_manager.get_photo(photo_id)
    if not photo:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")

    await photo_service.remove_stored_files([photo])

    try:
        db_manager.delete_photo(photo_id)
    except Exception as e:
        logger.error(f"Error deleting photo {photo_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete photo"
        )

    return {"message": "Photo deleted successfully"}
