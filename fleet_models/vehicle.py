from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    """Request body that accepts camelCase keys (and snake_case field names)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PinVerification(BaseModel):
    pin: str = Field(..., description="Administrator PIN")


class VehicleCreate(CamelModel):
    vehicle_number: str = Field(..., description="License plate number (e.g., '12가3456')")
    owner_name: str = Field(..., description="Owner or display name of the vehicle")
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    vehicle_type: Optional[str] = None
    engine: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    fuel: Optional[str] = None
    contact: Optional[str] = None
    memo: Optional[str] = None

    @field_validator('vehicle_number', 'owner_name')
    def validate_required_text(cls, v):
        if not v.strip():
            raise ValueError('must not be empty')
        return v.strip()


class VehicleUpdate(CamelModel):
    """Partial update; only fields present in the body are written"""
    owner_name: Optional[str] = None
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    vehicle_type: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    contact: Optional[str] = None
    memo: Optional[str] = None

    @field_validator('owner_name')
    def validate_owner_name(cls, v):
        # Runs only when the field is sent; the column is NOT NULL
        if v is None or not v.strip():
            raise ValueError('owner_name cannot be empty')
        return v.strip()


class VehicleUpsert(CamelModel):
    vehicle_number: str = Field(default="", description="License plate number")
    owner_name: Optional[str] = None
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    vehicle_type: Optional[str] = None
    year: Optional[int] = None
    engine: Optional[str] = None
    fuel: Optional[str] = None

    @field_validator('vehicle_number')
    def strip_vehicle_number(cls, v):
        return v.strip()
