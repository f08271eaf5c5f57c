"""
Router for reports: filtered vaccination listing, CSV export and statistics.
"""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from vaccination_portal.config import settings
from vaccination_portal.database import get_db
from vaccination_portal.schemas.common import Page
from vaccination_portal.schemas.report import ClassStat, ReportFilters, ReportRow, VaccineStat
from vaccination_portal.security import get_current_admin
from vaccination_portal.services import report_service

router = APIRouter(
    prefix="/api/reports",
    tags=["Reports"],
    dependencies=[Depends(get_current_admin)],
)


def report_filters(
    vaccine_name: Optional[str] = None,
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    class_name: Optional[str] = None,
) -> ReportFilters:
    return ReportFilters(
        vaccine_name=vaccine_name,
        from_date=from_date,
        to_date=to_date,
        class_name=class_name,
    )


@router.get("", response_model=Page[ReportRow], summary="Vaccination report")
def generate_report(
    filters: ReportFilters = Depends(report_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """
    Completed vaccinations, newest first, one row per vaccination.
    Filters are combined (AND); `from_date` and `to_date` are inclusive.
    """
    return report_service.generate_report(db, filters, page, limit)


@router.get("/export", summary="Vaccination report as CSV")
def export_report(
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
):
    """Same rows as the report, unpaginated, as a CSV download."""
    content = report_service.export_report_csv(db, filters)
    filename = f"vaccination_report_{dt.date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/vaccines", response_model=List[VaccineStat], summary="Vaccinations per vaccine")
def vaccine_stats(db: Session = Depends(get_db)):
    return report_service.vaccine_stats(db)


@router.get("/class-stats", response_model=List[ClassStat], summary="Vaccination coverage per class")
def class_stats(db: Session = Depends(get_db)):
    return report_service.class_stats(db)


@router.get("/available-vaccines", response_model=List[str], summary="Known vaccine names")
def available_vaccines(db: Session = Depends(get_db)):
    """Vaccines already administered, or the drives' vaccines when none were."""
    return report_service.available_vaccines(db)
