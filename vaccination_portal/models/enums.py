"""
Enumerations shared by the models, the schemas and the services.
Values are the strings stored in the database and exposed by the API.
"""

from enum import Enum as PyEnum


class DriveStatus(str, PyEnum):
    """Lifecycle of a vaccination drive: Scheduled, then Completed or Cancelled."""

    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class VaccinationStatus(str, PyEnum):
    """Status of a student's record against one drive."""

    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    MISSED = "Missed"


class Gender(str, PyEnum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


def enum_values(enum_cls) -> list[str]:
    """Store enum values ("Scheduled") rather than member names ("SCHEDULED")."""
    return [member.value for member in enum_cls]
