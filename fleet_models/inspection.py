from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import Field

from fleet_models.vehicle import CamelModel

INSPECTION_TYPES = ("세차점검", "소모품·경정비", "반납상태")
OVERALL_STATUSES = ("우수", "양호", "보통", "불량", "사고수리", "경정비", "소모품교체")


class InspectionAreaInput(CamelModel):
    area_category: str = Field(..., min_length=1, description="Area group (e.g., '외관')")
    area_name: str = Field(..., min_length=1, description="Area name (e.g., '앞범퍼')")
    status: str = Field(..., min_length=1)
    memo: Optional[str] = None


class InspectionCreate(CamelModel):
    vehicle_id: UUID
    inspection_date: datetime
    completed_at: Optional[datetime] = None
    inspection_type: str = Field(..., min_length=1, description="One of INSPECTION_TYPES or free text")
    overall_status: str = Field(..., min_length=1, description="One of OVERALL_STATUSES or free text")
    inspector: Optional[str] = None
    memo: Optional[str] = None
    details: Optional[Any] = Field(default=None, description="Checklist answers (tires, battery, ...)")
    areas: List[InspectionAreaInput] = Field(default_factory=list)


class InspectionAreaCreate(InspectionAreaInput):
    inspection_id: str = Field(..., min_length=1)
