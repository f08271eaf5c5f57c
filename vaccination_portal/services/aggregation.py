"""
Report building blocks, independent of the database.

Reports are computed as flatten -> filter -> group over students and their
owned vaccination records:
- flatten_completed() turns each Completed record into a row carrying its
  student's identity
- filter_rows() applies the report criteria (AND, dates inclusive)
- vaccine_statistics() / class_statistics() count
"""

import math
from collections import Counter
from datetime import datetime, time
from typing import Iterable, Iterator

from vaccination_portal.models.enums import VaccinationStatus
from vaccination_portal.schemas.report import ClassStat, ReportFilters, ReportRow, VaccineStat


def percentage(part: int, total: int) -> int:
    """100 * part / total rounded to the nearest integer (halves up), 0 when total is 0."""
    if total <= 0:
        return 0
    return int(math.floor(100 * part / total + 0.5))


def is_vaccinated(student) -> bool:
    return any(r.status == VaccinationStatus.COMPLETED for r in student.vaccinations)


def flatten_completed(students: Iterable) -> Iterator[ReportRow]:
    """One row per Completed record, with the owning student denormalized."""
    for student in students:
        for record in student.vaccinations:
            if record.status != VaccinationStatus.COMPLETED:
                continue
            yield ReportRow(
                student_id=student.student_id,
                name=student.name,
                class_name=student.class_name,
                section=student.section,
                vaccine_name=record.vaccine_name,
                date_administered=record.date_administered,
                status=VaccinationStatus(record.status).value,
            )


def filter_rows(rows: Iterable[ReportRow], filters: ReportFilters) -> list[ReportRow]:
    """
    Keeps the rows matching every supplied criterion.
    from_date starts at 00:00 and to_date ends at 23:59:59.999999 of its day,
    so a vaccination on either boundary date is included.
    """
    lower = datetime.combine(filters.from_date, time.min) if filters.from_date else None
    upper = datetime.combine(filters.to_date, time.max) if filters.to_date else None

    kept = []
    for row in rows:
        if filters.vaccine_name and row.vaccine_name != filters.vaccine_name:
            continue
        if filters.class_name and row.class_name != filters.class_name:
            continue
        if lower or upper:
            if row.date_administered is None:
                continue
            if lower and row.date_administered < lower:
                continue
            if upper and row.date_administered > upper:
                continue
        kept.append(row)
    return kept


def sort_newest_first(rows: Iterable[ReportRow]) -> list[ReportRow]:
    return sorted(rows, key=lambda r: r.date_administered or datetime.min, reverse=True)


def vaccine_statistics(rows: Iterable[ReportRow]) -> list[VaccineStat]:
    """Completed vaccinations per vaccine name, most frequent first."""
    counts = Counter(row.vaccine_name for row in rows)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0] or ""))
    return [VaccineStat(vaccine_name=name, count=count) for name, count in ordered]


def class_statistics(students: Iterable) -> list[ClassStat]:
    """
    Students and vaccinated students per class.
    A student counts as vaccinated with at least one Completed record.
    """
    totals: Counter = Counter()
    vaccinated: Counter = Counter()
    for student in students:
        totals[student.class_name] += 1
        if is_vaccinated(student):
            vaccinated[student.class_name] += 1

    return [
        ClassStat(
            class_name=class_name,
            total=totals[class_name],
            vaccinated=vaccinated[class_name],
            percentage=percentage(vaccinated[class_name], totals[class_name]),
        )
        for class_name in sorted(totals)
    ]
