"""
Establishment Pydantic schemas shared between the API server and client.

Field rules mirror what OSHA needs to identify an establishment on the
300/300A forms: legal name, street address, US state, ZIP, optional NAICS
classification and the average headcount for the reporting year.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    StringConstraints,
    field_validator,
)

from .common import US_STATE_CODES

MAX_AVERAGE_EMPLOYEES = 999_999

# Fields that must never be null once an establishment exists
REQUIRED_FIELDS = (
    "name",
    "address",
    "city",
    "state",
    "zip_code",
    "average_employees",
)
OPTIONAL_FIELDS = ("naics_code", "industry_description")


def _check_state_code(value: str) -> str:
    if value not in US_STATE_CODES:
        raise ValueError("State must be a valid 2-letter U.S. state code (e.g., CA, TX)")
    return value


Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Address = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
City = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
StateCode = Annotated[
    str,
    StringConstraints(to_upper=True, min_length=2, max_length=2),
    AfterValidator(_check_state_code),
]
ZipCode = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=10, pattern=r"^[0-9]{5}(-[0-9]{4})?$"),
]
NaicsCode = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[0-9]{6}$")]
IndustryDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
AverageEmployees = Annotated[int, Field(strict=True, ge=0, le=MAX_AVERAGE_EMPLOYEES)]


def _blank_to_none(value: Any) -> Any:
    # Forms submit "" for untouched optional inputs
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class EstablishmentCreate(BaseModel):
    """Payload for creating an establishment.

    The owner is always the caller; an owner field in the payload is ignored.
    """

    name: Name
    address: Address
    city: City
    state: StateCode
    zip_code: ZipCode
    naics_code: Optional[NaicsCode] = None
    industry_description: Optional[IndustryDescription] = None
    average_employees: AverageEmployees

    @field_validator(*OPTIONAL_FIELDS, mode="before")
    @classmethod
    def blank_optionals_to_none(cls, value):
        return _blank_to_none(value)


class EstablishmentUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied."""

    name: Optional[Name] = None
    address: Optional[Address] = None
    city: Optional[City] = None
    state: Optional[StateCode] = None
    zip_code: Optional[ZipCode] = None
    naics_code: Optional[NaicsCode] = None
    industry_description: Optional[IndustryDescription] = None
    average_employees: Optional[AverageEmployees] = None

    @field_validator(*OPTIONAL_FIELDS, mode="before")
    @classmethod
    def blank_optionals_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator(*REQUIRED_FIELDS)
    @classmethod
    def reject_explicit_null(cls, value):
        if value is None:
            raise ValueError("Field is required and cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class EstablishmentRead(BaseModel):
    id: uuid.UUID
    user_id: str
    name: str
    address: str
    city: str
    state: str
    zip_code: str
    naics_code: Optional[str] = None
    industry_description: Optional[str] = None
    average_employees: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
