"""
Unit tests for reports, CSV export and dashboard statistics.
"""

import csv
import io
from datetime import date, datetime, timedelta

import pytest

from vaccination_portal.models.enums import DriveStatus, VaccinationStatus
from vaccination_portal.schemas.report import ClassStat, ReportFilters
from vaccination_portal.services import report_service


@pytest.fixture
def vaccinated_school(make_student, make_drive, add_record):
    """Three students, two vaccines, one student without any vaccination."""
    polio = make_drive(vaccine_name="Polio", classes=("5", "6"))
    mmr = make_drive(vaccine_name="MMR", classes=("5",))
    alice = make_student(name="Alice", student_id="S-1", class_name="5")
    bob = make_student(name="Bob", student_id="S-2", class_name="6")
    make_student(name="Carol", student_id="S-3", class_name="5")

    add_record(alice, polio, date_administered=datetime(2026, 3, 1, 9, 0))
    add_record(alice, mmr, date_administered=datetime(2026, 3, 20, 14, 0))
    add_record(bob, polio, date_administered=datetime(2026, 4, 2, 10, 0))
    return {"polio": polio, "mmr": mmr}


# --- Report ---

def test_report_lists_completed_vaccinations_newest_first(vaccinated_school, db):
    page = report_service.generate_report(db, ReportFilters())

    assert page.total == 3
    assert [(r.student_id, r.vaccine_name) for r in page.items] == [
        ("S-2", "Polio"), ("S-1", "MMR"), ("S-1", "Polio"),
    ]


def test_report_excludes_scheduled_and_missed(make_student, make_drive, add_record, db):
    drive = make_drive()
    add_record(make_student(), drive, status=VaccinationStatus.SCHEDULED)
    add_record(make_student(), drive, status=VaccinationStatus.MISSED)

    assert report_service.generate_report(db, ReportFilters()).total == 0


def test_report_filters(vaccinated_school, db):
    by_vaccine = report_service.report_rows(db, ReportFilters(vaccine_name="Polio"))
    by_class = report_service.report_rows(db, ReportFilters(class_name="6"))
    march = report_service.report_rows(
        db, ReportFilters(from_date=date(2026, 3, 1), to_date=date(2026, 3, 20))
    )

    assert {r.student_id for r in by_vaccine} == {"S-1", "S-2"}
    assert [r.student_id for r in by_class] == ["S-2"]
    assert [r.vaccine_name for r in march] == ["MMR", "Polio"]


def test_report_pagination(vaccinated_school, db):
    page = report_service.generate_report(db, ReportFilters(), page=2, limit=2)

    assert page.total == 3
    assert page.total_pages == 2
    assert page.current_page == 2
    assert len(page.items) == 1


def test_report_inverted_dates_match_nothing(vaccinated_school, db):
    """from_date after to_date is not an error: the report is just empty."""
    page = report_service.generate_report(
        db, ReportFilters(from_date=date(2026, 3, 31), to_date=date(2026, 3, 1))
    )

    assert page.total == 0
    assert page.items == []


# --- CSV export ---

def test_export_csv(vaccinated_school, db):
    content = report_service.export_report_csv(db, ReportFilters(vaccine_name="MMR"))

    assert content.startswith("\ufeff")
    rows = list(csv.reader(io.StringIO(content.lstrip("\ufeff"))))
    assert rows[0] == ["Name", "Student ID", "Class", "Section", "Vaccine Name", "Date Administered"]
    assert rows[1:] == [["Alice", "S-1", "5", "A", "MMR", "2026-03-20"]]


def test_export_csv_without_rows_has_header_only(db):
    content = report_service.export_report_csv(db, ReportFilters())
    rows = list(csv.reader(io.StringIO(content.lstrip("\ufeff"))))
    assert len(rows) == 1


# --- Statistics ---

def test_vaccine_stats(vaccinated_school, db):
    stats = report_service.vaccine_stats(db)
    assert [(s.vaccine_name, s.count) for s in stats] == [("Polio", 2), ("MMR", 1)]


def test_class_stats(vaccinated_school, db):
    stats = {s.class_name: s for s in report_service.class_stats(db)}

    assert stats["5"].total == 2
    assert stats["5"].vaccinated == 1
    assert stats["5"].percentage == 50
    assert stats["6"].percentage == 100


def test_class_stat_serializes_class_key():
    stat = ClassStat(class_name="5", total=2, vaccinated=1, percentage=50)

    assert stat.model_dump(by_alias=True) == {
        "class": "5", "total": 2, "vaccinated": 1, "percentage": 50,
    }


def test_available_vaccines_from_records(vaccinated_school, make_drive, db):
    make_drive(vaccine_name="BCG")
    assert report_service.available_vaccines(db) == ["MMR", "Polio"]


def test_available_vaccines_falls_back_to_drives(make_drive, db):
    make_drive(vaccine_name="Typhoid")
    make_drive(vaccine_name="BCG")
    assert report_service.available_vaccines(db) == ["BCG", "Typhoid"]


def test_dashboard_stats(vaccinated_school, make_drive, db):
    today = date.today()
    make_drive(vaccine_name="Recent", days_ahead=-5, status=DriveStatus.COMPLETED)
    make_drive(vaccine_name="Old", days_ahead=-60, status=DriveStatus.COMPLETED)
    make_drive(vaccine_name="Far", days_ahead=90)

    stats = report_service.dashboard_stats(db, today=today)

    assert stats.total_students == 3
    assert stats.vaccinated_students == 2
    assert stats.vaccination_percentage == 67
    assert {d.vaccine_name for d in stats.upcoming_drives} == {"Polio", "MMR"}
    assert [d.vaccine_name for d in stats.recent_drives] == ["Recent"]
    assert stats.vaccine_stats[0].vaccine_name == "Polio"


def test_dashboard_on_empty_database(db):
    stats = report_service.dashboard_stats(db, today=date.today() + timedelta(days=1))

    assert stats.total_students == 0
    assert stats.vaccination_percentage == 0
    assert stats.upcoming_drives == []
