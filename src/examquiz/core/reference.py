"""Grades and subjects."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

import structlog
import yaml

from examquiz.db.reference_repository import (
    GradeRecord,
    SubjectRecord,
    get_grade_by_id,
    get_grade_by_number,
    get_subject_by_id,
    get_subject_by_name,
    insert_grade,
    insert_subject,
)
from examquiz.utils.validators import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def create_grade(number: int, active: bool = True) -> GradeRecord:
    if number < 1:
        raise ValidationError("Grade number must be positive")
    try:
        grade = insert_grade(number, active)
    except sqlite3.IntegrityError:
        raise ConflictError(f"Grade {number} already exists")

    logger.info("grade.created", number=number)
    return grade


def create_subject(name: str, grade_id: int, active: bool = True) -> SubjectRecord:
    """Add a subject (e.g. "Mathematics P1") to a grade."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Subject name is required")
    if get_grade_by_id(grade_id) is None:
        raise NotFoundError("Grade not found")
    try:
        subject_id = insert_subject(name, grade_id, active)
    except sqlite3.IntegrityError:
        raise ConflictError(f"Subject '{name}' already exists for this grade")

    logger.info("subject.created", subject_id=subject_id, name=name, grade_id=grade_id)
    subject = get_subject_by_id(subject_id)
    if subject is None:
        raise NotFoundError("Subject not found")
    return subject


def load_seed_file(path: Path) -> dict[str, Any]:
    """Read a reference-data YAML file.

    Format::

        grades: [10, 11, 12]
        subjects:
          - name: Mathematics P1
            grades: [10, 11, 12]
    """
    if not path.exists():
        raise NotFoundError(f"Seed file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def seed_reference_data(data: dict[str, Any]) -> tuple[int, int]:
    """Create the grades and subjects listed in ``data`` that are missing.

    Returns:
        (grades created, subjects created)
    """
    grades_created = 0
    subjects_created = 0

    numbers = {int(n) for n in data.get("grades", [])}
    for subject in data.get("subjects", []):
        numbers.update(int(n) for n in subject.get("grades", []))

    grade_ids: dict[int, int] = {}
    for number in sorted(numbers):
        grade = get_grade_by_number(number)
        if grade is None:
            grade = create_grade(number)
            grades_created += 1
        grade_ids[number] = grade.id

    for subject in data.get("subjects", []):
        for number in subject.get("grades", []):
            grade_id = grade_ids[int(number)]
            if get_subject_by_name(subject["name"], grade_id) is None:
                create_subject(subject["name"], grade_id, subject.get("active", True))
                subjects_created += 1

    logger.info("reference.seeded", grades=grades_created, subjects=subjects_created)
    return grades_created, subjects_created
