#!/usr/bin/env python3
"""
Vehicle Readiness Database Module
SQLAlchemy models and database operations for fleet vehicles, inspections,
inspection areas and inspection photos.
"""

import os
import json
import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Iterable, Tuple
from sqlalchemy import create_engine, Column, String, DateTime, Text, Integer, ForeignKey, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, relationship, selectinload, sessionmaker, Session
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()

# Reservation sheets and operators work in Korean standard time
KST = timezone(timedelta(hours=9))

DEFAULT_SQLITE_URL = "sqlite:///./fleet_readiness.db"


class RecordNotFoundError(LookupError):
    """Raised when a parent record referenced by a write does not exist"""


class DuplicateVehicleError(ValueError):
    """Raised when a vehicle number is already registered"""


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC"""
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_kst(value: datetime) -> datetime:
    """Convert a UTC datetime (naive or aware) to an aware KST datetime"""
    return to_utc_naive(value).replace(tzinfo=timezone.utc).astimezone(KST)


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return to_utc_naive(value).isoformat(timespec="milliseconds") + "Z"


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse a serialized timestamp ('...Z' or with offset); datetimes pass through"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def format_korean_datetime(value: Optional[datetime]) -> str:
    """Render a stored UTC datetime the way ko-KR locales do: '2026. 1. 8. 오전 7:10:00'"""
    if value is None:
        return ""
    local = to_kst(to_utc_naive(value))
    meridiem = "오전" if local.hour < 12 else "오후"
    hour = local.hour % 12 or 12
    return f"{local.year}. {local.month}. {local.day}. {meridiem} {hour}:{local.minute:02d}:{local.second:02d}"


class Vehicle(Base):
    """Fleet vehicle identified by its plate number"""
    __tablename__ = 'vehicles'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    vehicle_number = Column(String(50), unique=True, nullable=False, index=True)
    owner_name = Column(String(200), nullable=False, index=True)
    model = Column(String(200), nullable=True)
    manufacturer = Column(String(100), nullable=True)
    vehicle_type = Column(String(100), nullable=True)
    engine = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    fuel = Column(String(50), nullable=True)
    contact = Column(String(100), nullable=True)
    memo = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False, index=True)

    inspections = relationship(
        'Inspection',
        back_populates='vehicle',
        cascade='all, delete-orphan',
        order_by='Inspection.inspection_date.desc()',
    )

    def __repr__(self):
        return f"<Vehicle(vehicle_number='{self.vehicle_number}', owner='{self.owner_name}')>"

    def to_dict(self, include_inspections: bool = False) -> Dict[str, Any]:
        """Convert vehicle to dictionary for JSON serialization"""
        data = {
            'id': self.id,
            'vehicleNumber': self.vehicle_number,
            'ownerName': self.owner_name,
            'model': self.model,
            'manufacturer': self.manufacturer,
            'vehicleType': self.vehicle_type,
            'engine': self.engine,
            'year': self.year,
            'fuel': self.fuel,
            'contact': self.contact,
            'memo': self.memo,
            'createdAt': isoformat_utc(self.created_at),
            'updatedAt': isoformat_utc(self.updated_at),
        }
        if include_inspections:
            data['inspections'] = [
                inspection.to_dict(include_areas=True) for inspection in self.inspections
            ]
        return data

    def to_summary(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'vehicleNumber': self.vehicle_number,
            'ownerName': self.owner_name,
        }


class Inspection(Base):
    """Wash/inspection or maintenance event recorded against a vehicle"""
    __tablename__ = 'inspections'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    vehicle_id = Column(String(36), ForeignKey('vehicles.id', ondelete='CASCADE'), nullable=False, index=True)
    inspection_date = Column(DateTime, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    inspection_type = Column(String(50), nullable=False, index=True)
    overall_status = Column(String(50), nullable=False)
    inspector = Column(String(100), nullable=True)
    memo = Column(Text, nullable=True)
    details = Column(Text, nullable=True)  # JSON string of the checklist answers
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    vehicle = relationship('Vehicle', back_populates='inspections')
    areas = relationship(
        'InspectionArea',
        back_populates='inspection',
        cascade='all, delete-orphan',
        order_by='InspectionArea.created_at',
    )

    def __repr__(self):
        return f"<Inspection(vehicle_id='{self.vehicle_id}', type='{self.inspection_type}', date='{self.inspection_date}')>"

    def get_details(self) -> Optional[Any]:
        return json.loads(self.details) if self.details else None

    def to_dict(
        self,
        include_vehicle: bool = False,
        include_areas: bool = False,
        photo_limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'vehicleId': self.vehicle_id,
            'inspectionDate': isoformat_utc(self.inspection_date),
            'completedAt': isoformat_utc(self.completed_at),
            'inspectionType': self.inspection_type,
            'overallStatus': self.overall_status,
            'inspector': self.inspector,
            'memo': self.memo,
            'details': self.get_details(),
            'createdAt': isoformat_utc(self.created_at),
            'updatedAt': isoformat_utc(self.updated_at),
        }
        if include_vehicle:
            data['vehicle'] = self.vehicle.to_dict() if self.vehicle else None
        if include_areas:
            data['areas'] = [area.to_dict(photo_limit=photo_limit) for area in self.areas]
        return data

    def to_summary(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'inspectionDate': isoformat_utc(self.inspection_date),
            'inspectionType': self.inspection_type,
        }


class InspectionArea(Base):
    """Checked area of an inspection that photos are attached to"""
    __tablename__ = 'inspection_areas'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    inspection_id = Column(String(36), ForeignKey('inspections.id', ondelete='CASCADE'), nullable=False, index=True)
    area_category = Column(String(100), nullable=False)
    area_name = Column(String(100), nullable=False)
    status = Column(String(50), nullable=False)
    memo = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    inspection = relationship('Inspection', back_populates='areas')
    photos = relationship(
        'InspectionPhoto',
        back_populates='inspection_area',
        cascade='all, delete-orphan',
        order_by='InspectionPhoto.uploaded_at',
    )

    def to_dict(self, include_photos: bool = True, photo_limit: Optional[int] = None) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'inspectionId': self.inspection_id,
            'areaCategory': self.area_category,
            'areaName': self.area_name,
            'status': self.status,
            'memo': self.memo,
            'createdAt': isoformat_utc(self.created_at),
        }
        if include_photos:
            photos = self.photos if photo_limit is None else self.photos[:photo_limit]
            data['photos'] = [photo.to_dict() for photo in photos]
        return data

    def to_summary(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'areaName': self.area_name,
            'areaCategory': self.area_category,
        }


class InspectionPhoto(Base):
    """Uploaded photo with the locations it was stored to"""
    __tablename__ = 'inspection_photos'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    inspection_area_id = Column(String(36), ForeignKey('inspection_areas.id', ondelete='CASCADE'), nullable=False, index=True)
    file_name = Column(String(500), nullable=False)
    original_file_name = Column(String(500), nullable=False)
    file_path = Column(String(1000), nullable=False, default='')
    local_file_path = Column(String(1000), nullable=True)
    cloudinary_public_id = Column(String(500), nullable=True)
    cloudinary_url = Column(String(1000), nullable=True)
    google_drive_file_id = Column(String(200), nullable=True)
    google_drive_url = Column(String(1000), nullable=True)
    file_size = Column(Integer, nullable=False, default=0)
    mime_type = Column(String(100), nullable=False, default='image/jpeg')
    description = Column(Text, nullable=True)
    photo_phase = Column(String(20), nullable=True)
    uploaded_at = Column(DateTime, default=utc_now, nullable=False)

    inspection_area = relationship('InspectionArea', back_populates='photos')

    @property
    def url(self) -> str:
        return self.cloudinary_url or self.file_path or self.google_drive_url or ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'inspectionAreaId': self.inspection_area_id,
            'fileName': self.file_name,
            'originalFileName': self.original_file_name,
            'filePath': self.file_path,
            'localFilePath': self.local_file_path,
            'url': self.url,
            'cloudinaryPublicId': self.cloudinary_public_id,
            'cloudinaryUrl': self.cloudinary_url,
            'googleDriveFileId': self.google_drive_file_id,
            'googleDriveUrl': self.google_drive_url,
            'fileSize': self.file_size,
            'mimeType': self.mime_type,
            'description': self.description,
            'photoPhase': self.photo_phase,
            'uploadedAt': isoformat_utc(self.uploaded_at),
        }


def build_database_url_from_env() -> str:
    """Resolve the database URL from environment variables without side effects."""
    database_url = os.getenv('DATABASE_URL')
    if database_url:
        return database_url

    postgres_user = os.getenv('POSTGRES_USER')
    postgres_password = os.getenv('POSTGRES_PASSWORD')
    if postgres_user and postgres_password:
        postgres_host = os.getenv('POSTGRES_HOST', 'localhost')
        postgres_port = os.getenv('POSTGRES_PORT', '5432')
        postgres_db = os.getenv('POSTGRES_DB', 'fleet_readiness')
        return f"postgresql://{postgres_user}:{postgres_password}@{postgres_host}:{postgres_port}/{postgres_db}"

    return DEFAULT_SQLITE_URL


class FleetDatabaseManager:
    """Database manager for vehicle readiness operations"""

    def __init__(self, db_url: str = None):
        """Initialize database connection"""
        if db_url is None:
            db_url = build_database_url_from_env()

        self.db_url = db_url
        connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
        self.engine = create_engine(db_url, echo=False, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=self.engine)

        # Create tables if they don't exist
        self.create_tables()

    def create_tables(self):
        """Create database tables"""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """Drop all database tables"""
        Base.metadata.drop_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get database session"""
        return self.SessionLocal()

    # Vehicles

    def list_vehicles(self, search: str = None, page: int = 1, limit: int = 20) -> Tuple[List[Dict[str, Any]], int]:
        """List vehicles (most recently updated first) with their latest inspection date"""
        with self.get_session() as session:
            latest = session.query(
                Inspection.vehicle_id.label('vehicle_id'),
                func.max(Inspection.inspection_date).label('last_inspection_date'),
            ).group_by(Inspection.vehicle_id).subquery()

            query = session.query(Vehicle, latest.c.last_inspection_date).outerjoin(
                latest, latest.c.vehicle_id == Vehicle.id
            )
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(
                    Vehicle.vehicle_number.ilike(pattern),
                    Vehicle.owner_name.ilike(pattern),
                ))

            total = query.count()
            rows = query.order_by(
                Vehicle.updated_at.desc(), Vehicle.vehicle_number
            ).offset((page - 1) * limit).limit(limit).all()

            vehicles = []
            for vehicle, last_inspection_date in rows:
                last_inspection = isoformat_utc(last_inspection_date)
                vehicles.append({
                    'id': vehicle.id,
                    'vehicleNumber': vehicle.vehicle_number,
                    'ownerName': vehicle.owner_name,
                    'model': vehicle.model,
                    'manufacturer': vehicle.manufacturer,
                    'lastInspectionDate': last_inspection,
                    'inspections': [{'inspectionDate': last_inspection}] if last_inspection else [],
                })
            return vehicles, total

    def count_vehicles(self) -> int:
        with self.get_session() as session:
            return session.query(Vehicle).count()

    def get_vehicle(self, vehicle_id: str, include_inspections: bool = True) -> Optional[Dict[str, Any]]:
        """Get a vehicle with its full inspection history"""
        with self.get_session() as session:
            query = session.query(Vehicle)
            if include_inspections:
                query = query.options(
                    selectinload(Vehicle.inspections)
                    .selectinload(Inspection.areas)
                    .selectinload(InspectionArea.photos)
                )
            vehicle = query.filter(Vehicle.id == vehicle_id).first()
            if not vehicle:
                return None
            return vehicle.to_dict(include_inspections=include_inspections)

    def get_vehicle_by_number(self, vehicle_number: str) -> Optional[Dict[str, Any]]:
        with self.get_session() as session:
            vehicle = session.query(Vehicle).filter(Vehicle.vehicle_number == vehicle_number).first()
            return vehicle.to_dict() if vehicle else None

    def create_vehicle(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new vehicle; raises DuplicateVehicleError for a known plate"""
        with self.get_session() as session:
            existing = session.query(Vehicle.id).filter(
                Vehicle.vehicle_number == data['vehicle_number']
            ).first()
            if existing:
                raise DuplicateVehicleError(f"Vehicle number {data['vehicle_number']} is already registered")

            vehicle = Vehicle(**data)
            session.add(vehicle)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateVehicleError(f"Vehicle number {data['vehicle_number']} is already registered") from exc
            session.refresh(vehicle)
            logger.info("Created vehicle %s - %s", vehicle.id, vehicle.vehicle_number)
            return vehicle.to_dict()

    def update_vehicle(self, vehicle_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update an existing vehicle; returns None when it does not exist"""
        with self.get_session() as session:
            vehicle = session.get(Vehicle, vehicle_id)
            if not vehicle:
                return None

            for key, value in changes.items():
                if hasattr(vehicle, key):
                    setattr(vehicle, key, value)
            vehicle.updated_at = utc_now()

            session.commit()
            session.refresh(vehicle)
            logger.info("Updated vehicle %s (%s)", vehicle.id, ", ".join(sorted(changes)) or "no fields")
            return vehicle.to_dict()

    def delete_vehicle(self, vehicle_id: str) -> Optional[List[Dict[str, Any]]]:
        """Delete a vehicle and its history; returns the photos that were removed"""
        with self.get_session() as session:
            vehicle = session.query(Vehicle).options(
                selectinload(Vehicle.inspections)
                .selectinload(Inspection.areas)
                .selectinload(InspectionArea.photos)
            ).filter(Vehicle.id == vehicle_id).first()
            if not vehicle:
                return None

            photos = [
                photo.to_dict()
                for inspection in vehicle.inspections
                for area in inspection.areas
                for photo in area.photos
            ]
            session.delete(vehicle)
            session.commit()
            logger.info("Deleted vehicle %s with %d photos", vehicle_id, len(photos))
            return photos

    def upsert_vehicle(
        self,
        vehicle_number: str,
        fields: Dict[str, Any],
        owner_name: Optional[str] = None,
        overwrite_empty: bool = False,
    ) -> bool:
        """Create or update a vehicle by plate number; returns True when it already existed.

        Existing vehicles keep their owner name. Empty values are skipped on
        update unless overwrite_empty is set.
        """
        with self.get_session() as session:
            vehicle = session.query(Vehicle).filter(Vehicle.vehicle_number == vehicle_number).first()

            if vehicle:
                for key, value in fields.items():
                    if not value and not overwrite_empty:
                        continue
                    setattr(vehicle, key, value if value not in ('',) else None)
                vehicle.updated_at = utc_now()
                session.commit()
                return True

            cleaned = {key: (value if value not in ('', None) else None) for key, value in fields.items()}
            vehicle = Vehicle(
                vehicle_number=vehicle_number,
                owner_name=owner_name or vehicle_number,
                **cleaned,
            )
            session.add(vehicle)
            session.commit()
            return False

    # Inspections

    def latest_inspection_dates(self, vehicle_numbers: Iterable[str]) -> Dict[str, Optional[datetime]]:
        """Latest inspection date per registered vehicle number (None when never inspected)"""
        numbers = list(dict.fromkeys(vehicle_numbers))
        if not numbers:
            return {}

        with self.get_session() as session:
            rows = session.query(
                Vehicle.vehicle_number,
                func.max(Inspection.inspection_date),
            ).outerjoin(
                Inspection, Inspection.vehicle_id == Vehicle.id
            ).filter(
                Vehicle.vehicle_number.in_(numbers)
            ).group_by(Vehicle.vehicle_number).all()
            return {vehicle_number: latest for vehicle_number, latest in rows}

    def list_inspections(
        self,
        vehicle_id: str = None,
        start_date: datetime = None,
        end_date: datetime = None,
        inspection_type: str = None,
        page: int = 1,
        limit: int = 20,
        summary_only: bool = False,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """List inspections (newest first) matching the given filters"""
        with self.get_session() as session:
            query = session.query(Inspection)
            if vehicle_id:
                query = query.filter(Inspection.vehicle_id == vehicle_id)
            if inspection_type:
                query = query.filter(Inspection.inspection_type == inspection_type)
            if start_date:
                query = query.filter(Inspection.inspection_date >= start_date)
            if end_date:
                query = query.filter(Inspection.inspection_date <= end_date)

            total = query.count()
            if not summary_only:
                query = query.options(
                    selectinload(Inspection.vehicle),
                    selectinload(Inspection.areas).selectinload(InspectionArea.photos),
                )
            inspections = query.order_by(
                Inspection.inspection_date.desc()
            ).offset((page - 1) * limit).limit(limit).all()

            if summary_only:
                return [inspection.to_summary() for inspection in inspections], total

            items = []
            for inspection in inspections:
                data = inspection.to_dict(include_areas=True, photo_limit=1)
                data['vehicle'] = inspection.vehicle.to_summary() if inspection.vehicle else None
                items.append(data)
            return items, total

    def count_inspections_between(self, start: datetime, end: datetime) -> int:
        with self.get_session() as session:
            return session.query(Inspection).filter(
                Inspection.inspection_date >= start,
                Inspection.inspection_date < end,
            ).count()

    def create_inspection(self, data: Dict[str, Any], areas: List[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Create an inspection with its areas; raises RecordNotFoundError for an unknown vehicle"""
        with self.get_session() as session:
            vehicle = session.get(Vehicle, data['vehicle_id'])
            if not vehicle:
                raise RecordNotFoundError("Vehicle not found")

            payload = dict(data)
            details = payload.pop('details', None)
            inspection = Inspection(
                **payload,
                details=json.dumps(details, ensure_ascii=False) if details is not None else None,
            )
            for area in areas or []:
                inspection.areas.append(InspectionArea(**area))

            session.add(inspection)
            session.commit()
            session.refresh(inspection)
            logger.info(
                "Created inspection %s for %s (%s, %d areas)",
                inspection.id, vehicle.vehicle_number, inspection.inspection_type, len(inspection.areas),
            )
            return inspection.to_dict(include_vehicle=True, include_areas=True)

    def get_inspection(self, inspection_id: str) -> Optional[Dict[str, Any]]:
        with self.get_session() as session:
            inspection = session.query(Inspection).options(
                selectinload(Inspection.vehicle),
                selectinload(Inspection.areas).selectinload(InspectionArea.photos),
            ).filter(Inspection.id == inspection_id).first()
            if not inspection:
                return None
            return inspection.to_dict(include_vehicle=True, include_areas=True)

    def delete_inspection(self, inspection_id: str) -> Optional[List[Dict[str, Any]]]:
        """Delete an inspection with its areas; returns the photos that were removed"""
        with self.get_session() as session:
            inspection = session.query(Inspection).options(
                selectinload(Inspection.areas).selectinload(InspectionArea.photos)
            ).filter(Inspection.id == inspection_id).first()
            if not inspection:
                return None

            photos = [photo.to_dict() for area in inspection.areas for photo in area.photos]
            session.delete(inspection)
            session.commit()
            logger.info("Deleted inspection %s with %d photos", inspection_id, len(photos))
            return photos

    # Areas and photos

    def create_area(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Add an area to an inspection; raises RecordNotFoundError for an unknown inspection"""
        with self.get_session() as session:
            if not session.get(Inspection, data['inspection_id']):
                raise RecordNotFoundError("Inspection not found")

            area = InspectionArea(**data)
            session.add(area)
            session.commit()
            session.refresh(area)
            return area.to_dict()

    def get_area_context(self, area_id: str) -> Optional[Dict[str, Any]]:
        """Get an area together with its inspection and vehicle"""
        with self.get_session() as session:
            area = session.query(InspectionArea).options(
                selectinload(InspectionArea.inspection).selectinload(Inspection.vehicle)
            ).filter(InspectionArea.id == area_id).first()
            if not area:
                return None
            return {
                'area': area.to_dict(include_photos=False),
                'inspection': area.inspection.to_dict(),
                'vehicle': area.inspection.vehicle.to_dict(),
            }

    def add_photo(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self.get_session() as session:
            photo = InspectionPhoto(**data)
            session.add(photo)
            session.commit()
            session.refresh(photo)
            return photo.to_dict()

    def count_inspection_photos(self, inspection_id: str) -> int:
        with self.get_session() as session:
            return session.query(InspectionPhoto).join(
                InspectionArea, InspectionPhoto.inspection_area_id == InspectionArea.id
            ).filter(InspectionArea.inspection_id == inspection_id).count()

    def get_photo(self, photo_id: str) -> Optional[Dict[str, Any]]:
        """Get a photo with its area, inspection and vehicle"""
        with self.get_session() as session:
            photo = session.query(InspectionPhoto).options(
                selectinload(InspectionPhoto.inspection_area)
                .selectinload(InspectionArea.inspection)
                .selectinload(Inspection.vehicle)
            ).filter(InspectionPhoto.id == photo_id).first()
            if not photo:
                return None

            area = photo.inspection_area
            data = photo.to_dict()
            data['inspectionArea'] = area.to_dict(include_photos=False)
            data['inspectionArea']['inspection'] = area.inspection.to_dict(include_vehicle=True)
            return data

    def delete_photo(self, photo_id: str) -> Optional[Dict[str, Any]]:
        """Delete a photo row; returns the deleted photo"""
        with self.get_session() as session:
            photo = session.get(InspectionPhoto, photo_id)
            if not photo:
                return None
            data = photo.to_dict()
            session.delete(photo)
            session.commit()
            return data

    def list_inspection_photos(self, inspection_id: str) -> List[Dict[str, Any]]:
        """List all photos of an inspection in upload order"""
        with self.get_session() as session:
            photos = session.query(InspectionPhoto).join(
                InspectionArea, InspectionPhoto.inspection_area_id == InspectionArea.id
            ).options(
                selectinload(InspectionPhoto.inspection_area)
            ).filter(
                InspectionArea.inspection_id == inspection_id
            ).order_by(InspectionPhoto.uploaded_at.asc()).all()

            items = []
            for photo in photos:
                data = photo.to_dict()
                data['inspectionArea'] = photo.inspection_area.to_summary()
                items.append(data)
            return items


# Global database manager instance
_db_manager = None

def get_database_manager(db_url: str = None) -> FleetDatabaseManager:
    """Get global database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = FleetDatabaseManager(db_url)
    return _db_manager
