# rentaldesk/models/agreements.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rentaldesk.modules.agreements.models import AGREEMENT_STATUSES

# Fields the form may leave blank; stored as null
_OPTIONAL_FIELDS = (
    "renter_email", "insurance_agent", "agent_phone", "adjuster", "adjuster_phone",
    "claim_number", "date_of_loss", "original_car_number", "original_license",
    "original_year", "original_make", "original_model", "original_color",
    "date_due_back", "mileage_out", "fuel_gauge_out", "deposits",
    "sales_tax", "state_sales_tax", "fuel_charges",
)


class AgreementCreateAPI(BaseModel):
    """Payload posted by the agreement form (camelCase keys)."""
    renter_name: str = Field(..., min_length=1, alias="renterName")
    renter_address: str = Field(..., alias="address")
    renter_city: str = Field(..., alias="city")
    renter_state: str = Field(..., alias="state")
    renter_zip_code: str = Field(..., alias="zipCode")
    renter_phone: str = Field(..., alias="cellPhone")
    renter_email: Optional[str] = Field(None, alias="email")
    drivers_license: str = Field(..., alias="driversLicense")
    license_state: str = Field(..., alias="licenseState")
    license_expiration: str = Field(..., alias="licenseExpiration", description="YYYY-MM-DD")
    date_of_birth: str = Field(..., alias="dateOfBirth", description="YYYY-MM-DD")

    insurance_company: str = Field(..., alias="insuranceCompany")
    policy_number: str = Field(..., alias="policyNumber")
    policy_expiration: str = Field(..., alias="policyExpiration", description="YYYY-MM-DD")
    insurance_agent: Optional[str] = Field(None, alias="insuranceAgent")
    agent_phone: Optional[str] = Field(None, alias="agentPhone")
    adjuster: Optional[str] = Field(None, alias="adjuster")
    adjuster_phone: Optional[str] = Field(None, alias="adjusterPhone")
    claim_number: Optional[str] = Field(None, alias="claimNumber")
    date_of_loss: Optional[str] = Field(None, alias="dateOfLoss")

    original_car_number: Optional[str] = Field(None, alias="originalCarNumber")
    original_license: Optional[str] = Field(None, alias="originalLicense")
    original_year: Optional[str] = Field(None, alias="originalYear")
    original_make: Optional[str] = Field(None, alias="originalMake")
    original_model: Optional[str] = Field(None, alias="originalModel")
    original_color: Optional[str] = Field(None, alias="originalColor")

    current_car_number: str = Field(..., alias="currentCarNumber")
    current_license: str = Field(..., alias="currentLicense")
    current_year: str = Field(..., alias="currentYear")
    current_make: str = Field(..., alias="currentMake")
    current_model: str = Field(..., alias="currentModel")
    current_color: str = Field(..., alias="currentColor")
    date_due_back: Optional[str] = Field(None, alias="dateDueBack")
    mileage_out: Optional[str] = Field(None, alias="mileageOut")
    fuel_gauge_out: Optional[str] = Field(None, alias="fuelGaugeOut")

    deposits: Optional[str] = Field(None, alias="deposits")
    sales_tax: Optional[str] = Field(None, alias="salesTax")
    state_sales_tax: Optional[str] = Field(None, alias="stateSalesTax")
    fuel_charges: Optional[str] = Field(None, alias="fuelCharges")

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "renterName": "Jane O'Brien",
                "address": "12 Main St",
                "city": "Pawtucket",
                "state": "RI",
                "zipCode": "02860",
                "cellPhone": "401-555-0100",
                "driversLicense": "RI1234567",
                "licenseState": "RI",
                "licenseExpiration": "2028-06-30",
                "dateOfBirth": "1985-02-14",
                "insuranceCompany": "Acme Mutual",
                "policyNumber": "PN-99812",
                "policyExpiration": "2027-01-01",
                "currentCarNumber": "14",
                "currentLicense": "ABC123",
                "currentYear": "2022",
                "currentMake": "Toyota",
                "currentModel": "Camry",
                "currentColor": "Silver",
            }
        },
    )

    @field_validator(*_OPTIONAL_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AgreementStatusUpdateAPI(BaseModel):
    status: Optional[AGREEMENT_STATUSES] = None

    @field_validator("status", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
