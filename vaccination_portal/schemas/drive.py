"""
Pydantic schemas for vaccination drives.

Note: datetime is imported as a module (dt) so the `date` field does not
shadow the `datetime.date` type under Pydantic v2.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from vaccination_portal.models.enums import DriveStatus


def _clean_classes(v: List[str]) -> List[str]:
    cleaned: List[str] = []
    for item in v:
        item = item.strip()
        if not item:
            raise ValueError("Class identifiers must not be empty.")
        if item not in cleaned:
            cleaned.append(item)
    if not cleaned:
        raise ValueError("At least one applicable class is required.")
    return cleaned


class DriveCreate(BaseModel):
    vaccine_name: str
    date: dt.date
    available_doses: int
    applicable_classes: List[str]

    @field_validator("vaccine_name")
    @classmethod
    def vaccine_name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Vaccine name must not be empty.")
        return v.strip()

    @field_validator("available_doses")
    @classmethod
    def at_least_one_dose(cls, v: int) -> int:
        if v < 1:
            raise ValueError("A drive needs at least one available dose.")
        return v

    @field_validator("applicable_classes")
    @classmethod
    def at_least_one_class(cls, v: List[str]) -> List[str]:
        return _clean_classes(v)


class DriveUpdate(BaseModel):
    """Only the supplied fields are changed."""
    vaccine_name: Optional[str] = None
    date: Optional[dt.date] = None
    available_doses: Optional[int] = None
    applicable_classes: Optional[List[str]] = None

    @field_validator("vaccine_name")
    @classmethod
    def vaccine_name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Vaccine name must not be empty.")
        return v.strip() if v else v

    @field_validator("available_doses")
    @classmethod
    def doses_not_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Available doses cannot be negative.")
        return v

    @field_validator("applicable_classes")
    @classmethod
    def at_least_one_class(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return _clean_classes(v)


class DriveResponse(BaseModel):
    id: uuid.UUID
    vaccine_name: str
    date: dt.date
    available_doses: int
    applicable_classes: List[str]
    status: DriveStatus
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriveTransitionResult(BaseModel):
    """Result of a cancel/complete call: the drive and the records set to Missed."""
    message: str
    drive: DriveResponse
    missed_records: int


class DriveScheduleResult(BaseModel):
    drive_id: uuid.UUID
    scheduled: int
