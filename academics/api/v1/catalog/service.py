"""Read-only lookups against the catalog collaborator's tables (years, terms, classes, subjects, students)."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academics.core.exceptions import NotFoundError, PreconditionFailedError, ValidationFailedError
from academics.core.models import (
    AssessmentType,
    Department,
    SchoolClass,
    SchoolYear,
    Student,
    Subject,
    Term,
)


async def require_school_year(db: AsyncSession, school_year_id: UUID) -> SchoolYear:
    year = await db.get(SchoolYear, school_year_id)
    if not year:
        raise NotFoundError("School year", school_year_id, field="school_year_id")
    return year


async def require_term(db: AsyncSession, term_id: UUID, school_year_id: Optional[UUID] = None) -> Term:
    """Term must exist and, when a year is given, belong to it."""
    term = await db.get(Term, term_id)
    if not term:
        raise NotFoundError("Term", term_id, field="term_id")
    if school_year_id is not None and term.school_year_id != school_year_id:
        raise ValidationFailedError(
            f"Term {term.name} does not belong to school year {school_year_id}",
            field="term_id",
            constraint="term must belong to the given school year",
        )
    return term


async def require_class(db: AsyncSession, class_id: UUID, field: str = "class_id") -> SchoolClass:
    school_class = await db.get(SchoolClass, class_id)
    if not school_class:
        raise NotFoundError("Class", class_id, field=field)
    return school_class


async def require_subject(db: AsyncSession, subject_id: UUID) -> Subject:
    subject = await db.get(Subject, subject_id)
    if not subject:
        raise NotFoundError("Subject", subject_id, field="subject_id")
    return subject


async def require_student(db: AsyncSession, student_id: UUID) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student", student_id, field="student_id")
    return student


async def require_department(db: AsyncSession, department_id: UUID) -> Department:
    department = await db.get(Department, department_id)
    if not department:
        raise NotFoundError("Department", department_id, field="department_id")
    return department


async def require_assessment_type(db: AsyncSession, assessment_type_id: UUID) -> AssessmentType:
    assessment_type = await db.get(AssessmentType, assessment_type_id)
    if not assessment_type:
        raise NotFoundError("Assessment type", assessment_type_id, field="assessment_type_id")
    return assessment_type


async def get_current_school_year(db: AsyncSession) -> Optional[SchoolYear]:
    """The year flagged is_current by the catalog. Never inferred from dates."""
    result = await db.execute(select(SchoolYear).where(SchoolYear.is_current.is_(True)))
    return result.scalar_one_or_none()


async def require_current_school_year(db: AsyncSession) -> SchoolYear:
    year = await get_current_school_year(db)
    if not year:
        raise PreconditionFailedError(
            "No school year is marked as current",
            entity="School year",
            constraint="exactly one school year must be current",
        )
    return year


async def get_terminal_term(db: AsyncSession, school_year_id: UUID) -> Term:
    """Last term of the year by sequence ("Term 3" in a three-term year)."""
    result = await db.execute(
        select(Term)
        .where(Term.school_year_id == school_year_id)
        .order_by(Term.sequence.desc())
        .limit(1)
    )
    term = result.scalar_one_or_none()
    if not term:
        raise NotFoundError("Terminal term", school_year_id=str(school_year_id))
    return term
