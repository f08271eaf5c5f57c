"""
Business service for vaccination drives.
Creation, listing, editing, deletion and the two terminal transitions
(complete / cancel) with their cascade onto student records.
"""

import uuid
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from vaccination_portal import errors
from vaccination_portal.config import settings
from vaccination_portal.database import commit
from vaccination_portal.models.drive import Drive
from vaccination_portal.models.enums import DriveStatus, VaccinationStatus
from vaccination_portal.models.student import Student, VaccinationRecord
from vaccination_portal.schemas.common import Page
from vaccination_portal.schemas.drive import (
    DriveCreate,
    DriveResponse,
    DriveScheduleResult,
    DriveTransitionResult,
    DriveUpdate,
)
from vaccination_portal.schemas.student import StudentResponse
from vaccination_portal.services.drive_state import ensure_open, ensure_transition

logger = logging.getLogger(__name__)


def create_drive(db: Session, data: DriveCreate, created_by: Optional[str] = None) -> DriveResponse:
    """Creates a drive in the Scheduled state."""
    drive = Drive(
        vaccine_name=data.vaccine_name,
        date=data.date,
        available_doses=data.available_doses,
        applicable_classes=data.applicable_classes,
        status=DriveStatus.SCHEDULED,
        created_by=created_by,
    )
    db.add(drive)
    commit(db)
    db.refresh(drive)

    logger.info(
        "Drive created: %s (%s on %s, %d doses, classes %s)",
        drive.id, drive.vaccine_name, drive.date, drive.available_doses, drive.applicable_classes,
    )
    return DriveResponse.model_validate(drive)


def get_drive(db: Session, drive_id: uuid.UUID) -> DriveResponse:
    return DriveResponse.model_validate(_get_or_raise(db, drive_id))


def list_drives(
    db: Session,
    status: Optional[DriveStatus] = None,
    upcoming: bool = False,
    page: int = 1,
    limit: int = 10,
    today: Optional[date] = None,
) -> Page[DriveResponse]:
    """
    Lists drives sorted by date.
    `upcoming` keeps only Scheduled drives within the next UPCOMING_WINDOW_DAYS
    and takes precedence over `status`.
    """
    query = select(Drive)

    if status is not None and not upcoming:
        query = query.where(Drive.status == status)

    if upcoming:
        today = today or date.today()
        query = query.where(
            Drive.status == DriveStatus.SCHEDULED,
            Drive.date >= today,
            Drive.date <= today + timedelta(days=settings.UPCOMING_WINDOW_DAYS),
        )

    total = db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0

    drives = db.execute(
        query.order_by(Drive.date, Drive.created_at)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    return Page[DriveResponse].build(
        [DriveResponse.model_validate(d) for d in drives], total, page, limit
    )


def update_drive(db: Session, drive_id: uuid.UUID, data: DriveUpdate) -> DriveResponse:
    """Applies the supplied fields. Only a Scheduled drive can be edited."""
    drive = _get_or_raise(db, drive_id)
    ensure_open(drive.status, "update")

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(drive, field, value)

    commit(db)
    db.refresh(drive)
    logger.info("Drive %s updated: %s", drive.id, sorted(update_data))
    return DriveResponse.model_validate(drive)


def complete_drive(db: Session, drive_id: uuid.UUID) -> DriveTransitionResult:
    """Marks a Scheduled drive as Completed and resolves its pending records to Missed."""
    drive, missed = _close_drive(db, drive_id, DriveStatus.COMPLETED)
    return DriveTransitionResult(
        message="Vaccination drive marked as completed successfully.",
        drive=drive,
        missed_records=missed,
    )


def cancel_drive(db: Session, drive_id: uuid.UUID) -> DriveTransitionResult:
    """Cancels a Scheduled drive and resolves its pending records to Missed."""
    drive, missed = _close_drive(db, drive_id, DriveStatus.CANCELLED)
    return DriveTransitionResult(
        message="Vaccination drive cancelled successfully.",
        drive=drive,
        missed_records=missed,
    )


def delete_drive(db: Session, drive_id: uuid.UUID, today: Optional[date] = None) -> None:
    """
    Deletes a drive permanently.

    Refused when:
    1. the drive date is in the past
    2. at least one student holds a Completed record against it

    Records referencing the drive are left in place (historical display).
    """
    drive = _get_or_raise(db, drive_id)
    today = today or date.today()

    if drive.date < today:
        raise errors.InvalidStateError("Cannot delete past vaccination drives.")

    vaccinated = db.execute(
        select(func.count(func.distinct(VaccinationRecord.owner_id)))
        .where(
            VaccinationRecord.drive_id == drive.id,
            VaccinationRecord.status == VaccinationStatus.COMPLETED,
        )
    ).scalar() or 0

    if vaccinated > 0:
        raise errors.ConflictError(
            f"Cannot delete drive as {vaccinated} students are already vaccinated."
        )

    vaccine_name = drive.vaccine_name
    db.delete(drive)
    commit(db)
    logger.info("Drive deleted: %s (%s)", drive_id, vaccine_name)


def list_drive_students(
    db: Session,
    drive_id: uuid.UUID,
    status: Optional[VaccinationStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Page[StudentResponse]:
    """Students holding a record against the drive, optionally by record status."""
    drive = _get_or_raise(db, drive_id)

    owners = select(VaccinationRecord.owner_id).where(VaccinationRecord.drive_id == drive.id)
    if status is not None:
        owners = owners.where(VaccinationRecord.status == status)

    query = select(Student).where(Student.id.in_(owners))
    total = db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0

    students = db.execute(
        query.options(selectinload(Student.vaccinations))
        .order_by(Student.name, Student.student_id)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    return Page[StudentResponse].build(
        [StudentResponse.model_validate(s) for s in students], total, page, limit
    )


def schedule_students(db: Session, drive_id: uuid.UUID) -> DriveScheduleResult:
    """
    Enrolls every student of the applicable classes who has no record for this
    drive yet, by appending a Scheduled record to each of them.
    """
    drive = _get_or_raise(db, drive_id)
    ensure_open(drive.status, "schedule students for")

    already_enrolled = select(VaccinationRecord.owner_id).where(
        VaccinationRecord.drive_id == drive.id
    )
    students = db.execute(
        select(Student)
        .where(
            Student.class_name.in_(drive.applicable_classes),
            Student.id.not_in(already_enrolled),
        )
        .options(selectinload(Student.vaccinations))
    ).scalars().all()

    for student in students:
        student.vaccinations.append(VaccinationRecord(
            drive_id=drive.id,
            vaccine_name=drive.vaccine_name,
            status=VaccinationStatus.SCHEDULED,
        ))

    commit(db)
    logger.info("Drive %s: %d students scheduled", drive.id, len(students))
    return DriveScheduleResult(drive_id=drive.id, scheduled=len(students))


def _close_drive(db: Session, drive_id: uuid.UUID, target: DriveStatus) -> tuple[DriveResponse, int]:
    """
    Moves a drive to a terminal status and flips its Scheduled records to Missed.

    Both writes share one transaction, so no reader sees the new drive status
    next to records still Scheduled. The status write is conditional on the
    drive still being Scheduled: of two concurrent transitions only one wins.
    """
    drive = _get_or_raise(db, drive_id)
    ensure_transition(drive.status, target)

    swapped = db.execute(
        update(Drive)
        .where(Drive.id == drive.id, Drive.status == DriveStatus.SCHEDULED)
        .values(status=target)
        .execution_options(synchronize_session=False)
    ).rowcount

    if swapped != 1:
        db.rollback()
        db.refresh(drive)
        ensure_transition(drive.status, target)
        raise errors.StoreError("The drive changed while it was being updated.")

    missed = db.execute(
        update(VaccinationRecord)
        .where(
            VaccinationRecord.drive_id == drive.id,
            VaccinationRecord.status == VaccinationStatus.SCHEDULED,
        )
        .values(status=VaccinationStatus.MISSED)
        .execution_options(synchronize_session=False)
    ).rowcount

    commit(db)
    db.refresh(drive)

    logger.info(
        "Drive %s moved to %s, %d scheduled records marked missed",
        drive.id, target.value, missed,
    )
    return DriveResponse.model_validate(drive), missed


def _get_or_raise(db: Session, drive_id: uuid.UUID) -> Drive:
    drive = db.get(Drive, drive_id)
    if drive is None:
        raise errors.NotFoundError("Vaccination drive not found.")
    return drive
