"""
Router for vaccination drives.
CRUD, the complete/cancel transitions, enrolled students and scheduling.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from vaccination_portal.config import settings
from vaccination_portal.database import get_db
from vaccination_portal.models.enums import DriveStatus, VaccinationStatus
from vaccination_portal.schemas.auth import AdminIdentity
from vaccination_portal.schemas.common import Page
from vaccination_portal.schemas.drive import (
    DriveCreate,
    DriveResponse,
    DriveScheduleResult,
    DriveTransitionResult,
    DriveUpdate,
)
from vaccination_portal.schemas.student import StudentResponse
from vaccination_portal.security import get_current_admin
from vaccination_portal.services import drive_service

router = APIRouter(
    prefix="/api/drives",
    tags=["Vaccination drives"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("", response_model=Page[DriveResponse], summary="List drives")
def list_drives(
    status: Optional[DriveStatus] = None,
    upcoming: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """Returns one page of drives by date. `upcoming=true` keeps Scheduled drives of the next 30 days."""
    return drive_service.list_drives(db, status, upcoming, page, limit)


@router.post("", response_model=DriveResponse, status_code=201, summary="Create a drive")
def create_drive(
    data: DriveCreate,
    db: Session = Depends(get_db),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """
    Creates a Scheduled drive.
    Needs a vaccine name, a date, at least one dose and at least one class.
    """
    return drive_service.create_drive(db, data, created_by=admin.id)


@router.get("/{drive_id}", response_model=DriveResponse, summary="Drive details")
def get_drive(drive_id: uuid.UUID, db: Session = Depends(get_db)):
    return drive_service.get_drive(db, drive_id)


@router.put("/{drive_id}", response_model=DriveResponse, summary="Update a drive")
def update_drive(drive_id: uuid.UUID, data: DriveUpdate, db: Session = Depends(get_db)):
    """Updates the supplied fields of a Scheduled drive."""
    return drive_service.update_drive(db, drive_id, data)


@router.delete("/{drive_id}", status_code=204, summary="Delete a drive")
def delete_drive(drive_id: uuid.UUID, db: Session = Depends(get_db)):
    """
    Deletes a drive permanently.
    Refused for past drives and for drives where students were already vaccinated.
    """
    drive_service.delete_drive(db, drive_id)


@router.patch("/{drive_id}/cancel", response_model=DriveTransitionResult, summary="Cancel a drive")
def cancel_drive(drive_id: uuid.UUID, db: Session = Depends(get_db)):
    """Cancels a Scheduled drive; its Scheduled student records become Missed."""
    return drive_service.cancel_drive(db, drive_id)


@router.patch("/{drive_id}/complete", response_model=DriveTransitionResult, summary="Complete a drive")
def complete_drive(drive_id: uuid.UUID, db: Session = Depends(get_db)):
    """Marks a Scheduled drive as completed; its Scheduled student records become Missed."""
    return drive_service.complete_drive(db, drive_id)


@router.get("/{drive_id}/students", response_model=Page[StudentResponse], summary="Students of a drive")
def list_drive_students(
    drive_id: uuid.UUID,
    status: Optional[VaccinationStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """Students holding a record against this drive, optionally by record status."""
    return drive_service.list_drive_students(db, drive_id, status, page, limit)


@router.post("/{drive_id}/schedule", response_model=DriveScheduleResult, summary="Schedule eligible students")
def schedule_students(drive_id: uuid.UUID, db: Session = Depends(get_db)):
    """Adds a Scheduled record to every student of the applicable classes not yet enrolled."""
    return drive_service.schedule_students(db, drive_id)
