"""
Read-only reports and dashboard statistics.
Loads students with their records and hands them to the aggregation helpers.
"""

import csv
import io
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from vaccination_portal.config import settings
from vaccination_portal.models.drive import Drive
from vaccination_portal.models.enums import DriveStatus, VaccinationStatus
from vaccination_portal.models.student import Student, VaccinationRecord
from vaccination_portal.schemas.common import Page
from vaccination_portal.schemas.drive import DriveResponse
from vaccination_portal.schemas.report import (
    ClassStat,
    DashboardStats,
    ReportFilters,
    ReportRow,
    VaccineStat,
)
from vaccination_portal.services import aggregation

logger = logging.getLogger(__name__)

REPORT_CSV_HEADER = ["Name", "Student ID", "Class", "Section", "Vaccine Name", "Date Administered"]


def report_rows(db: Session, filters: ReportFilters) -> list[ReportRow]:
    """
    All Completed vaccinations matching the filters, newest first.
    An inverted date range simply matches nothing.
    """
    query = (
        select(Student)
        .where(Student.vaccinations.any(VaccinationRecord.status == VaccinationStatus.COMPLETED))
        .options(selectinload(Student.vaccinations))
    )
    # Narrowing by class in SQL only saves loading; filter_rows still applies it
    if filters.class_name:
        query = query.where(Student.class_name == filters.class_name)

    students = db.execute(query).scalars().all()
    rows = aggregation.filter_rows(aggregation.flatten_completed(students), filters)
    return aggregation.sort_newest_first(rows)


def generate_report(
    db: Session, filters: ReportFilters, page: int = 1, limit: int = 10
) -> Page[ReportRow]:
    rows = report_rows(db, filters)
    start = (page - 1) * limit
    logger.info("Report generated: %d rows (filters %s)", len(rows), filters.model_dump(exclude_none=True))
    return Page[ReportRow].build(rows[start:start + limit], len(rows), page, limit)


def export_report_csv(db: Session, filters: ReportFilters) -> str:
    """
    Renders the full (unpaginated) report as CSV.
    Returns the content as a string, UTF-8 BOM prefixed for Excel.
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(REPORT_CSV_HEADER)

    for row in report_rows(db, filters):
        writer.writerow([
            row.name,
            row.student_id,
            row.class_name,
            row.section,
            row.vaccine_name or "",
            row.date_administered.strftime("%Y-%m-%d") if row.date_administered else "",
        ])

    return "\ufeff" + output.getvalue()


def vaccine_stats(db: Session) -> list[VaccineStat]:
    students = _students_with_records(db, vaccinated_only=True)
    return aggregation.vaccine_statistics(aggregation.flatten_completed(students))


def class_stats(db: Session) -> list[ClassStat]:
    return aggregation.class_statistics(_students_with_records(db))


def available_vaccines(db: Session) -> list[str]:
    """
    Vaccine names seen in Completed records; when there are none yet,
    the vaccine names of the drives.
    """
    administered = db.execute(
        select(VaccinationRecord.vaccine_name)
        .where(
            VaccinationRecord.status == VaccinationStatus.COMPLETED,
            VaccinationRecord.vaccine_name.is_not(None),
        )
        .distinct()
    ).scalars().all()
    if administered:
        return sorted(administered)

    return sorted(db.execute(select(Drive.vaccine_name).distinct()).scalars().all())


def dashboard_stats(db: Session, today: Optional[date] = None) -> DashboardStats:
    """
    Dashboard summary:
    - number of students, of vaccinated students and the percentage
    - Scheduled drives in the next UPCOMING_WINDOW_DAYS (soonest first)
    - Completed drives of the last UPCOMING_WINDOW_DAYS (latest first)
    - vaccine statistics
    """
    today = today or date.today()
    window = timedelta(days=settings.UPCOMING_WINDOW_DAYS)

    total_students = db.execute(select(func.count()).select_from(Student)).scalar() or 0
    vaccinated_students = db.execute(
        select(func.count())
        .select_from(Student)
        .where(Student.vaccinations.any(VaccinationRecord.status == VaccinationStatus.COMPLETED))
    ).scalar() or 0

    upcoming = db.execute(
        select(Drive)
        .where(
            Drive.status == DriveStatus.SCHEDULED,
            Drive.date >= today,
            Drive.date <= today + window,
        )
        .order_by(Drive.date)
    ).scalars().all()

    recent = db.execute(
        select(Drive)
        .where(
            Drive.status == DriveStatus.COMPLETED,
            Drive.date >= today - window,
            Drive.date <= today,
        )
        .order_by(Drive.date.desc())
    ).scalars().all()

    return DashboardStats(
        total_students=total_students,
        vaccinated_students=vaccinated_students,
        vaccination_percentage=aggregation.percentage(vaccinated_students, total_students),
        upcoming_drives=[DriveResponse.model_validate(d) for d in upcoming],
        recent_drives=[DriveResponse.model_validate(d) for d in recent],
        vaccine_stats=vaccine_stats(db),
    )


def _students_with_records(db: Session, vaccinated_only: bool = False) -> list[Student]:
    query = select(Student).options(selectinload(Student.vaccinations))
    if vaccinated_only:
        query = query.where(
            Student.vaccinations.any(VaccinationRecord.status == VaccinationStatus.COMPLETED)
        )
    return db.execute(query).scalars().all()
