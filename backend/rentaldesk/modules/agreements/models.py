# rentaldesk/modules/agreements/models.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from rentaldesk.core.repository import PyObjectId

AGREEMENT_STATUSES = Literal["Active", "Closed", "Cancelled"]


class AgreementBase(BaseModel):
    """Renter + vehicle + insurance snapshot taken when the contract is drafted."""

    # Renter
    renter_name: str
    renter_address: str
    renter_city: str
    renter_state: str
    renter_zip_code: str
    renter_phone: str
    renter_email: Optional[str] = None
    drivers_license: str
    license_state: str
    license_expiration: str
    date_of_birth: str

    # Insurance
    insurance_company: str
    policy_number: str
    policy_expiration: str
    insurance_agent: Optional[str] = None
    agent_phone: Optional[str] = None
    adjuster: Optional[str] = None
    adjuster_phone: Optional[str] = None
    claim_number: Optional[str] = None
    date_of_loss: Optional[str] = None

    # Vehicle in the shop (replacement rentals only)
    original_car_number: Optional[str] = None
    original_license: Optional[str] = None
    original_year: Optional[str] = None
    original_make: Optional[str] = None
    original_model: Optional[str] = None
    original_color: Optional[str] = None

    # Vehicle going out
    current_car_number: str
    current_license: str
    current_year: str
    current_make: str
    current_model: str
    current_color: str
    date_due_back: Optional[str] = None
    mileage_out: Optional[str] = None
    fuel_gauge_out: Optional[str] = None

    # Financial terms
    deposits: Optional[str] = None
    sales_tax: Optional[str] = None
    state_sales_tax: Optional[str] = None
    fuel_charges: Optional[str] = None


class AgreementCreateInternal(AgreementBase):
    agreement_number: str
    status: AGREEMENT_STATUSES = "Active"


class AgreementInDB(AgreementCreateInternal):
    id: PyObjectId = Field(..., validation_alias=AliasChoices("_id", "id"))
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)
