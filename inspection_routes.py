#!/usr/bin/env python3
"""
Inspection Routes
Wash/inspection and maintenance records with their inspection areas.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from fastapi.responses import JSONResponse

from database import RecordNotFoundError, get_database_manager, to_utc_naive
from fleet_models.inspection import InspectionAreaCreate, InspectionCreate
from fleet_services.email_service import EmailService
from fleet_services.photo_service import PhotoUploadService
from fleet_services.sheets_backup import SheetsBackupService

logger = logging.getLogger(__name__)

LIST_CACHE_HEADERS = {"Cache-Control": "public, s-maxage=10, stale-while-revalidate=30"}
SUMMARY_LIMIT = 20

# Create router with prefix
router = APIRouter(prefix="/api/inspections", tags=["Inspections"])

# Initialize services
db_manager = get_database_manager()
sheets_backup = SheetsBackupService()
email_service = EmailService()
photo_service = PhotoUploadService(db_manager, sheets_backup=sheets_backup, email_service=email_service)


def parse_date_param(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse an ISO date or datetime query parameter into naive UTC"""
    if not value:
        return None
    try:
        return to_utc_naive(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name}: expected an ISO-8601 date"
        )


def record_inspection_backup(inspection: Dict[str, Any]) -> None:
    """Append the new inspection to the sheet log and send the completion email"""
    sheets_backup.append_inspection_record(inspection, photo_count=0)
    email_service.send_inspection_email(inspection, photo_count=0)


@router.get("")
async def list_inspections(
    vehicle_id: Optional[str] = Query(None, alias="vehicleId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    inspection_type: Optional[str] = Query(None, alias="inspectionType"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """
    List inspections, newest first.

    When both dates are given with a small limit only id, date and type are
    returned (used for the dashboard's date counters).
    """
    start = parse_date_param(start_date, "startDate")
    end = parse_date_param(end_date, "endDate")
    summary_only = bool(start and end and limit <= SUMMARY_LIMIT)

    try:
        inspections, total = db_manager.list_inspections(
            vehicle_id=vehicle_id,
            start_date=start,
            end_date=end,
            inspection_type=inspection_type,
            page=page,
            limit=limit,
            summary_only=summary_only,
        )
    except Exception as e:
        logger.error(f"Error listing inspections: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch inspections"
        )

    return JSONResponse(
        content={
            "inspections": inspections,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": (total + limit - 1) // limit,
            },
        },
        headers=LIST_CACHE_HEADERS,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_inspection(inspection_data: InspectionCreate, background_tasks: BackgroundTasks):
    """
    Record an inspection with its areas.

    The sheet backup row and the notification email are sent after the
    response.
    """
    try:
        inspection = db_manager.create_inspection(
            {
                "vehicle_id": str(inspection_data.vehicle_id),
                "inspection_date": to_utc_naive(inspection_data.inspection_date),
                "completed_at": to_utc_naive(inspection_data.completed_at),
                "inspection_type": inspection_data.inspection_type,
                "overall_status": inspection_data.overall_status,
                "inspector": inspection_data.inspector,
                "memo": inspection_data.memo,
                "details": inspection_data.details,
            },
            areas=[
                area.model_dump() for area in inspection_data.areas
            ],
        )
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    except Exception as e:
        logger.error(f"Error creating inspection: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create inspection"
        )

    background_tasks.add_task(record_inspection_backup, inspection)
    return inspection


@router.post("/areas", status_code=status.HTTP_201_CREATED)
async def create_inspection_area(area_data: InspectionAreaCreate):
    """Add an area to an existing inspection"""
    try:
        return db_manager.create_area(area_data.model_dump())
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inspection not found")
    except Exception as e:
        logger.error(f"Error creating inspection area: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create inspection area"
        )


@router.get("/{inspection_id}")
async def get_inspection(inspection_id: str):
    """Inspection with its vehicle, areas and photos"""
    inspection = db_manager.get_inspection(inspection_id)
    if not inspection:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inspection not found")
    return inspection


@router.delete("/{inspection_id}")
async def delete_inspection(inspection_id: str, background_tasks: BackgroundTasks):
    """Delete an inspection; stored photo files are removed after the response"""
    try:
        photos = db_manager.delete_inspection(inspection_id)
    except Exception as e:
        logger.error(f"Error deleting inspection {inspection_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete inspection"
        )

    if photos is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inspection not found")

    background_tasks.add_task(photo_service.remove_stored_files, photos)
    return {"message": "Inspection deleted successfully"}
