"""
CSV import service for students.
Handles parsing, per-row validation, duplicate detection and insertion.

A bad row is reported in the import report and never aborts the batch.
"""

import csv
import io
import logging

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vaccination_portal.database import commit
from vaccination_portal.models.student import Student
from vaccination_portal.schemas.student import ImportRowError, StudentCreate, StudentImportReport

logger = logging.getLogger(__name__)

# Accepted CSV columns (case-insensitive, "_" and spaces ignored) -> StudentCreate field
COLUMN_FIELDS = {
    "name": "name",
    "studentid": "student_id",
    "class": "class_name",
    "classname": "class_name",
    "section": "section",
    "age": "age",
    "gender": "gender",
}
REQUIRED_FIELDS = {"name", "student_id", "class_name", "section", "age", "gender"}

TEMPLATE_HEADER = ["name", "studentId", "class", "section", "age", "gender"]
TEMPLATE_EXAMPLE = ["Jane Doe", "STU-001", "5", "A", "10", "Female"]


def _normalize_header(raw: str) -> str:
    """Normalizes a column name: lowercase, no spaces or underscores."""
    return raw.strip().lower().replace("_", "").replace(" ", "")


def _detect_separator(sample: str) -> str:
    """Detects the CSV separator (comma or semicolon)."""
    if sample.count(";") > sample.count(","):
        return ";"
    return ","


def _first_error(exc: SchemaValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return f"{field}: {err.get('msg', 'invalid value')}" if field else err.get("msg", "invalid value")


def _empty_report(reason: str, content: str = "") -> StudentImportReport:
    return StudentImportReport(
        total_rows=0, inserted=0, rejected=0,
        errors=[ImportRowError(row=0, content=content, reason=reason)],
    )


def template_csv() -> str:
    """CSV template offered to users before an import (header + one example row)."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(TEMPLATE_HEADER)
    writer.writerow(TEMPLATE_EXAMPLE)
    return output.getvalue()


def parse_and_import_csv(content: bytes, db: Session) -> StudentImportReport:
    """
    Parses the CSV, validates every row, detects duplicates and inserts.

    Rules:
    - Required columns: name, studentId, class, section, age, gender
    - Each row goes through the same validation as a manual creation
    - Duplicate in file: same studentId already seen in an earlier row
    - Duplicate in database: studentId already stored
    """
    try:
        text = content.decode("utf-8-sig")  # utf-8-sig strips the Excel BOM
    except UnicodeDecodeError:
        return _empty_report("File is not valid UTF-8 text")

    lines = text.splitlines()
    separator = _detect_separator(lines[0] if lines else "")
    reader = csv.DictReader(io.StringIO(text), delimiter=separator)

    if reader.fieldnames is None:
        return _empty_report("Empty or unreadable CSV file")

    # raw CSV header -> StudentCreate field
    field_map = {
        raw: COLUMN_FIELDS[_normalize_header(raw)]
        for raw in reader.fieldnames
        if raw and _normalize_header(raw) in COLUMN_FIELDS
    }
    missing = REQUIRED_FIELDS - set(field_map.values())
    if missing:
        return _empty_report(
            f"Missing columns: {', '.join(sorted(missing))}",
            content=str(reader.fieldnames),
        )

    valid: list[tuple[int, StudentCreate]] = []
    errors: list[ImportRowError] = []
    seen_in_file: set[str] = set()
    total_rows = 0

    for row_num, row in enumerate(reader, start=2):  # line 1 = header
        values = {
            field: (row.get(raw) or "").strip()
            for raw, field in field_map.items()
        }
        # Blank line
        if not any(values.values()):
            continue
        total_rows += 1
        line = separator.join(values.values())

        if values.get("gender"):
            values["gender"] = values["gender"].capitalize()

        try:
            student = StudentCreate(**values)
        except SchemaValidationError as exc:
            errors.append(ImportRowError(row=row_num, content=line, reason=_first_error(exc)))
            continue

        if student.student_id in seen_in_file:
            errors.append(ImportRowError(
                row=row_num, content=line, reason="Duplicate student ID in the CSV file"
            ))
            continue
        seen_in_file.add(student.student_id)
        valid.append((row_num, student))

    # Duplicates against the database (one batch query)
    existing = set()
    if valid:
        existing = set(db.execute(
            select(Student.student_id).where(
                Student.student_id.in_([s.student_id for _, s in valid])
            )
        ).scalars().all())

    to_insert: list[tuple[int, StudentCreate]] = []
    for row_num, student in valid:
        if student.student_id in existing:
            errors.append(ImportRowError(
                row=row_num, content=student.student_id, reason="Student ID already exists"
            ))
        else:
            to_insert.append((row_num, student))

    inserted = _insert(db, to_insert, errors)
    errors.sort(key=lambda e: e.row)

    logger.info(
        "CSV import: %d rows, %d inserted, %d rejected", total_rows, inserted, len(errors)
    )
    return StudentImportReport(
        total_rows=total_rows,
        inserted=inserted,
        rejected=len(errors),
        errors=errors,
    )


def _insert(db: Session, rows: list[tuple[int, StudentCreate]], errors: list[ImportRowError]) -> int:
    """
    Inserts the rows in one transaction. If a concurrent insert makes that
    fail, falls back to row by row so only the conflicting rows are rejected.
    """
    if not rows:
        return 0

    db.add_all([_to_model(s) for _, s in rows])
    try:
        commit(db)
        return len(rows)
    except IntegrityError:
        logger.warning("CSV import: batch insert conflicted, retrying row by row")

    inserted = 0
    for row_num, student in rows:
        db.add(_to_model(student))
        try:
            commit(db)
            inserted += 1
        except IntegrityError:
            errors.append(ImportRowError(
                row=row_num, content=student.student_id, reason="Student ID already exists"
            ))
    return inserted


def _to_model(data: StudentCreate) -> Student:
    return Student(
        name=data.name,
        student_id=data.student_id,
        class_name=data.class_name,
        section=data.section,
        age=data.age,
        gender=data.gender,
    )
