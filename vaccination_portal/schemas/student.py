"""
Pydantic schemas for students, their vaccination records and CSV imports.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from vaccination_portal.models.enums import Gender, VaccinationStatus
from vaccination_portal.schemas.drive import DriveResponse


class StudentCreate(BaseModel):
    """Manual creation (POST /students) and validated CSV rows."""
    name: str
    student_id: str
    class_name: str
    section: str
    age: int = Field(gt=0, le=120)
    gender: Gender

    @field_validator("name", "student_id", "class_name", "section")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field must not be empty.")
        return v.strip()


class StudentUpdate(BaseModel):
    """Partial update (PUT /students/{id}). student_id is accepted only if unchanged."""
    name: Optional[str] = None
    student_id: Optional[str] = None
    class_name: Optional[str] = None
    section: Optional[str] = None
    age: Optional[int] = Field(default=None, gt=0, le=120)
    gender: Optional[Gender] = None

    @field_validator("name", "student_id", "class_name", "section")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Field must not be empty.")
        return v.strip() if v else v


class VaccinationRecordResponse(BaseModel):
    id: uuid.UUID
    drive_id: uuid.UUID
    vaccine_name: Optional[str]
    date_administered: Optional[datetime]
    status: VaccinationStatus

    model_config = {"from_attributes": True}


class StudentResponse(BaseModel):
    id: uuid.UUID
    student_id: str
    name: str
    class_name: str
    section: str
    age: int
    gender: Gender
    vaccinations: List[VaccinationRecordResponse] = []
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VaccinateRequest(BaseModel):
    drive_id: uuid.UUID


class ImportRowError(BaseModel):
    """A rejected CSV line."""
    row: int
    content: str
    reason: str


class StudentImportReport(BaseModel):
    """Report returned after a CSV import."""
    total_rows: int
    inserted: int
    rejected: int
    errors: List[ImportRowError]


class VaccinationResult(BaseModel):
    """Student and drive as persisted after a successful vaccination."""
    message: str
    student: StudentResponse
    drive: DriveResponse


class VaccinationFilter(str, Enum):
    """Student listing filter: has at least one Completed record, or none."""
    VACCINATED = "vaccinated"
    NOT_VACCINATED = "not-vaccinated"
