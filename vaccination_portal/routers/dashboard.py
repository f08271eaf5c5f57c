"""
Router for the dashboard summary.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vaccination_portal.database import get_db
from vaccination_portal.schemas.report import DashboardStats
from vaccination_portal.security import get_current_admin
from vaccination_portal.services import report_service

router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("", response_model=DashboardStats, summary="Dashboard statistics")
def dashboard(db: Session = Depends(get_db)):
    """Student coverage, upcoming and recent drives, vaccinations per vaccine."""
    return report_service.dashboard_stats(db)
