"""
SQLAlchemy model for vaccination drives.
"""

import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Integer,
    String,
    Uuid,
    func,
)

from vaccination_portal.database import Base
from vaccination_portal.models.enums import DriveStatus, enum_values


class Drive(Base):
    __tablename__ = "drives"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vaccine_name = Column(String(200), nullable=False)
    date = Column(Date, nullable=False, index=True)
    available_doses = Column(Integer, nullable=False)
    applicable_classes = Column(JSON, nullable=False, default=list)  # ["5", "6"]
    status = Column(
        Enum(DriveStatus, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=DriveStatus.SCHEDULED,
    )
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("available_doses >= 0", name="ck_drives_available_doses_non_negative"),
    )
