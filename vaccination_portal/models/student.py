"""
SQLAlchemy models for students and their embedded vaccination records.

A student owns an ordered list of VaccinationRecord rows (one per drive the
student is scheduled or vaccinated against). The record keeps the drive id and
a snapshot of the vaccine name, without a foreign key: deleting a drive leaves
the history untouched.
"""

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    func,
    text,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from vaccination_portal.database import Base
from vaccination_portal.models.enums import Gender, VaccinationStatus, enum_values


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(String(50), unique=True, nullable=False)  # external id, immutable
    name = Column(String(200), nullable=False)
    class_name = Column(String(20), nullable=False, index=True)
    section = Column(String(20), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(
        Enum(Gender, native_enum=False, length=10, values_callable=enum_values),
        nullable=False,
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    vaccinations = relationship(
        "VaccinationRecord",
        back_populates="student",
        cascade="all, delete-orphan",
        order_by="VaccinationRecord.position",
        collection_class=ordering_list("position"),
    )


class VaccinationRecord(Base):
    """Per-student, per-drive entry: Scheduled, Completed or Missed."""
    __tablename__ = "vaccination_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    drive_id = Column(Uuid, nullable=False, index=True)  # weak reference, no FK
    vaccine_name = Column(String(200), nullable=True)
    date_administered = Column(DateTime, nullable=True)  # only set once Completed
    status = Column(
        Enum(VaccinationStatus, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=VaccinationStatus.SCHEDULED,
    )

    student = relationship("Student", back_populates="vaccinations")

    __table_args__ = (
        # At most one Completed record per (student, drive)
        Index(
            "uq_vaccination_records_completed",
            "owner_id",
            "drive_id",
            unique=True,
            postgresql_where=text("status = 'Completed'"),
            sqlite_where=text("status = 'Completed'"),
        ),
    )
