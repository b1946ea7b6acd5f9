#!/usr/bin/env python3
"""
Vehicle Readiness Dashboard - FastAPI Backend
Fleet vehicles, inspections and photos for car-sharing readiness operations
"""

import os
import logging
from datetime import datetime, timedelta
from typing import Optional
from fastapi import FastAPI, Request, HTTPException, Query, Depends, File, UploadFile, BackgroundTasks, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from dotenv import load_dotenv

load_dotenv()

from auth_utils import (
    ACCESS_TOKEN_EXPIRE_HOURS,
    ADMIN_SUBJECT,
    create_access_token,
    require_admin,
    verify_admin_pin,
)
from database import (
    DuplicateVehicleError,
    KST,
    format_korean_datetime,
    get_database_manager,
    isoformat_utc,
    parse_iso_datetime,
    to_utc_naive,
    utc_now,
)
from fleet_models.vehicle import PinVerification, VehicleCreate, VehicleUpdate, VehicleUpsert
from fleet_services.bulk_import_service import BulkImportError, BulkImportService
from fleet_services.config import configure_logging, fleet_settings
from fleet_services.local_storage import guess_mime_type

configure_logging()
logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
LIST_CACHE_HEADERS = {"Cache-Control": "public, s-maxage=10, stale-while-revalidate=30"}
UPLOAD_CACHE_HEADERS = {"Cache-Control": "public, max-age=31536000, immutable"}

# Initialize FastAPI app
app = FastAPI(
    title="Vehicle Readiness Dashboard API",
    description="Fleet vehicle inspections, photos and reservation readiness",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# Mount static files
app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")

# Initialize templates
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))


def kst_datetime_filter(value) -> str:
    """Jinja filter: serialized UTC timestamp -> KST display string"""
    return format_korean_datetime(parse_iso_datetime(value))


templates.env.filters["kst"] = kst_datetime_filter

# Include feature routers
from inspection_routes import router as inspection_router, photo_service
from photo_routes import router as photo_router
from reservation_routes import router as reservation_router
app.include_router(inspection_router)
app.include_router(photo_router)
app.include_router(reservation_router)

# Initialize database manager (will use environment variables for database connection)
logger.info("Initializing database connection...")
db_manager = get_database_manager()
bulk_import_service = BulkImportService(db_manager)

if fleet_settings.secret_key.startswith("your-secret-key-change-in-production"):
    logger.warning("Using default SECRET_KEY. Set SECRET_KEY in your .env so admin tokens remain valid across restarts.")
if not fleet_settings.admin_pin:
    logger.warning("ADMIN_PIN is not set; administrator routes are unavailable.")


# Error handlers

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    content = {"success": False}
    if isinstance(exc.detail, dict):
        content.update(exc.detail)
    elif exc.status_code == 404 and exc.detail == "Not Found":
        content["error"] = "Endpoint not found"
    else:
        content["error"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "Invalid input", "details": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"}
    )


# Authentication Routes

@app.post("/api/auth/verify-pin")
async def verify_pin(pin_data: PinVerification):
    """Exchange the administrator PIN for a bearer token"""
    if not fleet_settings.admin_pin:
        logger.error("ADMIN_PIN is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error"
        )

    if not verify_admin_pin(pin_data.pin):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid PIN")

    access_token = create_access_token(
        data={"sub": ADMIN_SUBJECT}, expires_delta=timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    )
    return {
        "success": True,
        "accessToken": access_token,
        "tokenType": "bearer",
        "expiresIn": ACCESS_TOKEN_EXPIRE_HOURS * 3600,
    }


# Vehicle Routes

@app.get("/api/vehicles")
async def get_vehicles(
    search: str = Query("", description="Search by plate number or owner name"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """Get all vehicles with pagination and search"""
    try:
        vehicles, total = db_manager.list_vehicles(search=search.strip() or None, page=page, limit=limit)
    except Exception as e:
        logger.error(f"Error listing vehicles: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch vehicles")

    return JSONResponse(
        content={
            "vehicles": vehicles,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": (total + limit - 1) // limit,
            },
        },
        headers=LIST_CACHE_HEADERS,
    )


@app.post("/api/vehicles", status_code=status.HTTP_201_CREATED)
async def create_vehicle(vehicle_data: VehicleCreate, _admin: str = Depends(require_admin)):
    """Register a new vehicle"""
    try:
        return db_manager.create_vehicle(vehicle_data.model_dump())
    except DuplicateVehicleError:
        raise HTTPException(status_code=400, detail="Vehicle number is already registered")
    except Exception as e:
        logger.error(f"Error creating vehicle: {e}")
        raise HTTPException(status_code=500, detail="Failed to create vehicle")


@app.post("/api/vehicles/upsert")
async def upsert_vehicle(vehicle_data: VehicleUpsert, _admin: str = Depends(require_admin)):
    """Create a vehicle or fill in details of an existing one by plate number"""
    if not vehicle_data.vehicle_number:
        raise HTTPException(status_code=400, detail="Vehicle number is required")

    try:
        updated = db_manager.upsert_vehicle(
            vehicle_data.vehicle_number,
            vehicle_data.model_dump(exclude={"vehicle_number", "owner_name"}),
            owner_name=vehicle_data.owner_name,
        )
    except Exception as e:
        logger.error(f"Error upserting vehicle {vehicle_data.vehicle_number}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save vehicle")

    return {"success": True, "updated": updated, "vehicleNumber": vehicle_data.vehicle_number}


@app.post("/api/vehicles/bulk")
async def bulk_import_vehicles(file: Optional[UploadFile] = File(None), _admin: str = Depends(require_admin)):
    """Import vehicles from a .csv or .xlsx spreadsheet"""
    if file is None:
        raise HTTPException(status_code=400, detail="File is required")

    content = await file.read()
    try:
        result = bulk_import_service.import_file(file.filename or "", content)
    except BulkImportError as e:
        detail = {"error": e.message}
        if e.hint:
            detail["hint"] = e.hint
        raise HTTPException(status_code=400, detail=detail)
    except Exception as e:
        logger.error(f"Error in bulk import: {e}")
        raise HTTPException(status_code=500, detail=f"Bulk import failed: {str(e)}")

    return {"message": "Bulk import completed", "result": result.to_dict()}


@app.get("/api/vehicles/{vehicle_id}")
async def get_vehicle_details(vehicle_id: str):
    """Vehicle with its inspection history"""
    vehicle = db_manager.get_vehicle(vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


@app.put("/api/vehicles/{vehicle_id}")
async def update_vehicle(vehicle_id: str, vehicle_data: VehicleUpdate):
    """Partially update a vehicle"""
    try:
        vehicle = db_manager.update_vehicle(vehicle_id, vehicle_data.model_dump(exclude_unset=True))
    except Exception as e:
        logger.error(f"Error updating vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update vehicle")

    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


@app.delete("/api/vehicles/{vehicle_id}")
async def delete_vehicle(vehicle_id: str, background_tasks: BackgroundTasks, _admin: str = Depends(require_admin)):
    """Delete a vehicle with all inspections and photos"""
    try:
        photos = db_manager.delete_vehicle(vehicle_id)
    except Exception as e:
        logger.error(f"Error deleting vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to delete vehicle: {str(e)}")

    if photos is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")

    background_tasks.add_task(photo_service.remove_stored_files, photos)
    return {"message": "Vehicle deleted successfully"}


# Local photo files

@app.get("/uploads/{file_path:path}")
async def serve_upload(file_path: str):
    """Serve a locally stored photo"""
    absolute_path = photo_service.local.resolve(file_path)
    if not absolute_path:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(absolute_path, media_type=guess_mime_type(absolute_path), headers=UPLOAD_CACHE_HEADERS)


# Dashboard pages

def _today_bounds_utc():
    """Start and end of the current KST day as naive UTC"""
    today = datetime.now(KST).replace(hour=0, minute=0, second=0, microsecond=0)
    return to_utc_naive(today), to_utc_naive(today + timedelta(days=1))


def _not_found_page(request: Request, message: str):
    return templates.TemplateResponse(
        request=request, name="not_found.html", context={"message": message}, status_code=404
    )


@app.get("/", response_class=HTMLResponse)
async def dashboard(request: Request):
    """Main dashboard page"""
    start, end = _today_bounds_utc()
    recent_vehicles, total_vehicles = db_manager.list_vehicles(page=1, limit=10)
    return templates.TemplateResponse(request=request, name="dashboard.html", context={
        "total_vehicles": total_vehicles,
        "today_inspections": db_manager.count_inspections_between(start, end),
        "recent_vehicles": recent_vehicles,
    })


@app.get("/vehicles", response_class=HTMLResponse)
async def vehicles_page(request: Request, search: str = "", page: int = Query(1, ge=1)):
    """Searchable vehicle list"""
    limit = 20
    vehicles, total = db_manager.list_vehicles(search=search.strip() or None, page=page, limit=limit)
    return templates.TemplateResponse(request=request, name="vehicles.html", context={
        "vehicles": vehicles,
        "search": search,
        "page": page,
        "total": total,
        "total_pages": max(1, (total + limit - 1) // limit),
    })


@app.get("/vehicles/{vehicle_id}", response_class=HTMLResponse)
async def vehicle_detail_page(request: Request, vehicle_id: str):
    vehicle = db_manager.get_vehicle(vehicle_id)
    if not vehicle:
        return _not_found_page(request, "Vehicle not found")
    return templates.TemplateResponse(request=request, name="vehicle_detail.html", context={"vehicle": vehicle})


@app.get("/inspections/{inspection_id}", response_class=HTMLResponse)
async def inspection_detail_page(request: Request, inspection_id: str):
    inspection = db_manager.get_inspection(inspection_id)
    if not inspection:
        return _not_found_page(request, "Inspection not found")
    return templates.TemplateResponse(request=request, name="inspection_detail.html", context={"inspection": inspection})


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": isoformat_utc(utc_now())}

if __name__ == '__main__':
    logger.info("Starting Vehicle Readiness Dashboard at http://localhost:9000 (API docs at /api/docs)")
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=9000,
        reload=True,
        log_level="info"
    )
