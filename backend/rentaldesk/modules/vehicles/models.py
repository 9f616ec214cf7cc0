# rentaldesk/modules/vehicles/models.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from rentaldesk.core.repository import PyObjectId

VEHICLE_STATUSES = Literal["In-House", "Loaned", "Maintenance"]


class VehicleBase(BaseModel):
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: str = Field(..., min_length=4)
    plate: str = Field(..., min_length=1, description="License plate, unique across the fleet")
    vin: Optional[str] = None
    status: VEHICLE_STATUSES = "In-House"
    type: str = Field(..., min_length=1)
    color: Optional[str] = None
    mileage: Optional[int] = Field(None, ge=0)


class VehicleCreateInternal(VehicleBase):
    pass


class VehicleUpdateInternal(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    plate: Optional[str] = None
    vin: Optional[str] = None
    status: Optional[VEHICLE_STATUSES] = None
    type: Optional[str] = None
    color: Optional[str] = None
    mileage: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(extra="ignore")


class VehicleInDB(VehicleBase):
    id: PyObjectId = Field(..., validation_alias=AliasChoices("_id", "id"))
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)
