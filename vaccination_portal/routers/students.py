"""
Router for students.
Listing with filters, manual CRUD, CSV import and vaccination.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile
from sqlalchemy.orm import Session

from vaccination_portal.config import settings
from vaccination_portal.database import get_db
from vaccination_portal.schemas.common import Page
from vaccination_portal.schemas.student import (
    StudentCreate,
    StudentImportReport,
    StudentResponse,
    StudentUpdate,
    VaccinateRequest,
    VaccinationFilter,
    VaccinationResult,
)
from vaccination_portal.security import get_current_admin
from vaccination_portal.services import student_import, student_service, vaccination_service

router = APIRouter(
    prefix="/api/students",
    tags=["Students"],
    dependencies=[Depends(get_current_admin)],
)

ALLOWED_CONTENT_TYPES = {"text/csv", "text/plain", "application/vnd.ms-excel"}


@router.get("", response_model=Page[StudentResponse], summary="List students")
def list_students(
    name: Optional[str] = None,
    student_id: Optional[str] = None,
    class_name: Optional[str] = None,
    vaccination_status: Optional[VaccinationFilter] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """
    Returns one page of students sorted by name.
    `name` and `student_id` match substrings (case-insensitive), `class_name` is exact,
    `vaccination_status` is `vaccinated` or `not-vaccinated`.
    """
    return student_service.list_students(
        db, name, student_id, class_name, vaccination_status, page, limit
    )


@router.post("", response_model=StudentResponse, status_code=201, summary="Create a student")
def create_student(data: StudentCreate, db: Session = Depends(get_db)):
    """Creates a student. The student ID must be unique."""
    return student_service.create_student(db, data)


@router.get("/import/template", summary="Download the CSV import template")
def import_template():
    """CSV header with one example row."""
    return Response(
        content=student_import.template_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="student_import_template.csv"'},
    )


@router.post("/import", response_model=StudentImportReport, summary="Import students from CSV")
async def import_students(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """
    Imports students from a CSV file.

    Expected format:
    - Columns: `name`, `studentId`, `class`, `section`, `age`, `gender`
    - Separator: comma (`,`) or semicolon (`;`)
    - Encoding: UTF-8 (with or without BOM)

    Returns a report of inserted and rejected rows; a bad row does not stop the import.
    """
    filename = file.filename or ""
    if file.content_type not in ALLOWED_CONTENT_TYPES and not filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Invalid format. Only CSV files are accepted.")

    content = await file.read()

    if len(content) > settings.MAX_IMPORT_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {settings.MAX_IMPORT_FILE_SIZE_MB} MB.",
        )

    if not content:
        raise HTTPException(status_code=400, detail="The CSV file is empty.")

    return student_import.parse_and_import_csv(content, db)


@router.get("/{student_id}", response_model=StudentResponse, summary="Student details")
def get_student(student_id: uuid.UUID, db: Session = Depends(get_db)):
    """Returns a student with its vaccination records, oldest first."""
    return student_service.get_student(db, student_id)


@router.put("/{student_id}", response_model=StudentResponse, summary="Update a student")
def update_student(student_id: uuid.UUID, data: StudentUpdate, db: Session = Depends(get_db)):
    """Updates the supplied fields. The student ID itself cannot change."""
    return student_service.update_student(db, student_id, data)


@router.delete("/{student_id}", status_code=204, summary="Delete a student")
def delete_student(student_id: uuid.UUID, db: Session = Depends(get_db)):
    """Deletes a student and its vaccination records."""
    student_service.delete_student(db, student_id)


@router.post(
    "/{student_id}/vaccinate",
    response_model=VaccinationResult,
    summary="Vaccinate a student during a drive",
)
def vaccinate_student(student_id: uuid.UUID, data: VaccinateRequest, db: Session = Depends(get_db)):
    """
    Records a dose for the student against a Scheduled drive open to its class.
    Takes one dose from the drive.
    """
    return vaccination_service.vaccinate_student(db, student_id, data.drive_id)
