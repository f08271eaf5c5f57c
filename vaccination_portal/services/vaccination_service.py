"""
Business service recording a vaccination: one student, one drive, one dose.
"""

import uuid
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vaccination_portal import errors
from vaccination_portal.database import commit
from vaccination_portal.models.drive import Drive
from vaccination_portal.models.enums import DriveStatus, VaccinationStatus
from vaccination_portal.models.student import Student, VaccinationRecord
from vaccination_portal.schemas.drive import DriveResponse
from vaccination_portal.schemas.student import StudentResponse, VaccinationResult
from vaccination_portal.services.drive_state import is_open

logger = logging.getLogger(__name__)


def vaccinate_student(
    db: Session,
    student_id: uuid.UUID,
    drive_id: uuid.UUID,
    administered_at: Optional[datetime] = None,
) -> VaccinationResult:
    """
    Records that a student received a dose during a drive.

    Checks, in order:
    1. The student and the drive exist
    2. The drive is still Scheduled
    3. The student's class is one of the drive's applicable classes
    4. The student has no Completed record for this drive yet
    5. The drive has doses left

    The dose is taken with a conditional UPDATE (status still Scheduled and
    available_doses > 0) so two concurrent calls cannot both consume the last
    dose. The decrement and the student record are committed together.
    """
    student = db.get(Student, student_id)
    if student is None:
        raise errors.NotFoundError("Student not found.")

    drive = db.get(Drive, drive_id)
    if drive is None:
        raise errors.NotFoundError("Vaccination drive not found.")

    if not is_open(drive.status):
        raise errors.InvalidStateError(
            f"Drive is {drive.status.value.lower()}, cannot vaccinate student."
        )

    if student.class_name not in drive.applicable_classes:
        raise errors.ValidationError(
            f"Student's class ({student.class_name}) is not applicable for this drive."
        )

    if any(
        r.drive_id == drive.id and r.status == VaccinationStatus.COMPLETED
        for r in student.vaccinations
    ):
        raise errors.ConflictError("Student is already vaccinated in this drive.")

    if drive.available_doses <= 0:
        raise errors.ConflictError("No doses available in this drive.")

    taken = db.execute(
        update(Drive)
        .where(
            Drive.id == drive.id,
            Drive.status == DriveStatus.SCHEDULED,
            Drive.available_doses > 0,
        )
        .values(available_doses=Drive.available_doses - 1)
        .execution_options(synchronize_session=False)
    ).rowcount

    if taken != 1:
        # Lost the race against another request: report what changed
        db.rollback()
        db.refresh(drive)
        if not is_open(drive.status):
            raise errors.InvalidStateError(
                f"Drive is {drive.status.value.lower()}, cannot vaccinate student."
            )
        raise errors.ConflictError("No doses available in this drive.")

    administered_at = administered_at or datetime.now()
    record = next(
        (
            r for r in student.vaccinations
            if r.drive_id == drive.id and r.status == VaccinationStatus.SCHEDULED
        ),
        None,
    )
    if record is None:
        record = VaccinationRecord(drive_id=drive.id)
        student.vaccinations.append(record)

    record.vaccine_name = drive.vaccine_name
    record.date_administered = administered_at
    record.status = VaccinationStatus.COMPLETED

    try:
        commit(db)
    except IntegrityError:
        # Partial unique index: a concurrent request completed this pair first
        raise errors.ConflictError("Student is already vaccinated in this drive.")

    db.refresh(student)
    db.refresh(drive)

    logger.info(
        "Student %s vaccinated (%s, drive %s), %d doses left",
        student.student_id, drive.vaccine_name, drive.id, drive.available_doses,
    )
    return VaccinationResult(
        message="Student vaccinated successfully.",
        student=StudentResponse.model_validate(student),
        drive=DriveResponse.model_validate(drive),
    )
