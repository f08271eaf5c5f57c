"""
Pydantic schemas for reports and dashboard statistics.
"""

import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from vaccination_portal.schemas.drive import DriveResponse


class ReportFilters(BaseModel):
    """Report criteria. All are optional and combined with AND."""
    vaccine_name: Optional[str] = None
    from_date: Optional[dt.date] = None
    to_date: Optional[dt.date] = None
    class_name: Optional[str] = None


class ReportRow(BaseModel):
    """One completed vaccination with its student denormalized onto the row."""
    student_id: str
    name: str
    class_name: str
    section: str
    vaccine_name: Optional[str]
    date_administered: Optional[datetime]
    status: str


class VaccineStat(BaseModel):
    vaccine_name: Optional[str]
    count: int


class ClassStat(BaseModel):
    """Coverage of one class; serialized with the key `class`."""
    class_name: str = Field(serialization_alias="class")
    total: int
    vaccinated: int
    percentage: int


class DashboardStats(BaseModel):
    total_students: int
    vaccinated_students: int
    vaccination_percentage: int
    upcoming_drives: List[DriveResponse]
    recent_drives: List[DriveResponse]
    vaccine_stats: List[VaccineStat]
