"""
Shared test configuration.
Every test runs against a fresh in-memory SQLite database (no PostgreSQL),
and API tests replace the authenticated administrator with a fixed identity.
"""

import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import vaccination_portal.models  # noqa: E402,F401
from vaccination_portal.database import Base, get_db  # noqa: E402
from vaccination_portal.main import app  # noqa: E402
from vaccination_portal.models.drive import Drive  # noqa: E402
from vaccination_portal.models.enums import DriveStatus, Gender, VaccinationStatus  # noqa: E402
from vaccination_portal.models.student import Student, VaccinationRecord  # noqa: E402
from vaccination_portal.schemas.auth import AdminIdentity  # noqa: E402
from vaccination_portal.security import get_current_admin  # noqa: E402


@pytest.fixture
def db():
    """SQLAlchemy session on an empty in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def client(db):
    """HTTP test client, authenticated as the administrator."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_admin] = lambda: AdminIdentity(id="1", username="admin")
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db):
    """HTTP test client without token override: authentication is enforced."""
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_student(db):
    """Inserts a student directly in the database."""
    counter = {"n": 0}

    def _make(name=None, student_id=None, class_name="5", section="A", age=10, gender=Gender.FEMALE):
        counter["n"] += 1
        student = Student(
            name=name or f"Student {counter['n']:03d}",
            student_id=student_id or f"STU-{counter['n']:03d}",
            class_name=class_name,
            section=section,
            age=age,
            gender=gender,
        )
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    return _make


@pytest.fixture
def make_drive(db):
    """Inserts a drive directly in the database (any date or status)."""

    def _make(vaccine_name="Polio", days_ahead=10, doses=5, classes=("5",), status=DriveStatus.SCHEDULED):
        drive = Drive(
            vaccine_name=vaccine_name,
            date=date.today() + timedelta(days=days_ahead),
            available_doses=doses,
            applicable_classes=list(classes),
            status=status,
        )
        db.add(drive)
        db.commit()
        db.refresh(drive)
        return drive

    return _make


@pytest.fixture
def add_record(db):
    """Appends a vaccination record to a student."""

    def _add(student, drive, status=VaccinationStatus.COMPLETED, date_administered=None):
        record = VaccinationRecord(
            drive_id=drive.id,
            vaccine_name=drive.vaccine_name,
            status=status,
            date_administered=date_administered,
        )
        student.vaccinations.append(record)
        db.commit()
        db.refresh(record)
        return record

    return _add
