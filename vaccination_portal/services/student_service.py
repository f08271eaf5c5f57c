"""
Business service for students: creation, listing with filters, editing, deletion.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from vaccination_portal import errors
from vaccination_portal.database import commit
from vaccination_portal.models.enums import VaccinationStatus
from vaccination_portal.models.student import Student, VaccinationRecord
from vaccination_portal.schemas.common import Page
from vaccination_portal.schemas.student import (
    StudentCreate,
    StudentResponse,
    StudentUpdate,
    VaccinationFilter,
)

logger = logging.getLogger(__name__)


def create_student(db: Session, data: StudentCreate) -> StudentResponse:
    """
    Creates a student with an empty vaccination history.
    Raises ConflictError if the student_id is already used.
    """
    if student_id_exists(db, data.student_id):
        raise errors.ConflictError("Student ID already exists.")

    student = Student(
        name=data.name,
        student_id=data.student_id,
        class_name=data.class_name,
        section=data.section,
        age=data.age,
        gender=data.gender,
    )
    db.add(student)
    try:
        commit(db)
    except IntegrityError:
        raise errors.ConflictError("Student ID already exists.")
    db.refresh(student)

    logger.info("Student created: %s (%s, class %s)", student.student_id, student.id, student.class_name)
    return StudentResponse.model_validate(student)


def get_student(db: Session, student_id: uuid.UUID) -> StudentResponse:
    return StudentResponse.model_validate(_get_or_raise(db, student_id))


def list_students(
    db: Session,
    name: Optional[str] = None,
    student_id: Optional[str] = None,
    class_name: Optional[str] = None,
    vaccination_status: Optional[VaccinationFilter] = None,
    page: int = 1,
    limit: int = 10,
) -> Page[StudentResponse]:
    """
    Lists students sorted by name.
    name and student_id match case-insensitive substrings; class_name is exact;
    vaccination_status keeps students with (or without) a Completed record.
    """
    query = select(Student)

    if name:
        query = query.where(Student.name.ilike(f"%{name.strip()}%"))
    if student_id:
        query = query.where(Student.student_id.ilike(f"%{student_id.strip()}%"))
    if class_name:
        query = query.where(Student.class_name == class_name)

    completed = Student.vaccinations.any(VaccinationRecord.status == VaccinationStatus.COMPLETED)
    if vaccination_status == VaccinationFilter.VACCINATED:
        query = query.where(completed)
    elif vaccination_status == VaccinationFilter.NOT_VACCINATED:
        query = query.where(~completed)

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


def update_student(db: Session, student_id: uuid.UUID, data: StudentUpdate) -> StudentResponse:
    """
    Updates the supplied fields. The external student_id is immutable:
    it may be sent back unchanged but not modified.
    """
    student = _get_or_raise(db, student_id)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    new_student_id = update_data.pop("student_id", None)
    if new_student_id is not None and new_student_id != student.student_id:
        raise errors.ValidationError("Student ID cannot be changed after creation.")

    for field, value in update_data.items():
        setattr(student, field, value)

    commit(db)
    db.refresh(student)
    return StudentResponse.model_validate(student)


def delete_student(db: Session, student_id: uuid.UUID) -> None:
    """Deletes a student together with the vaccination records it owns."""
    student = _get_or_raise(db, student_id)
    external_id = student.student_id
    db.delete(student)
    commit(db)
    logger.info("Student deleted: %s (%s)", external_id, student_id)


def student_id_exists(db: Session, student_id: str) -> bool:
    return db.execute(
        select(Student.id).where(Student.student_id == student_id)
    ).first() is not None


def _get_or_raise(db: Session, student_id: uuid.UUID) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise errors.NotFoundError("Student not found.")
    return student
