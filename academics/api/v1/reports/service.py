"""Read-only reporting over academic records. Only published, non-deleted records are ever counted."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.catalog import service as catalog
from academics.api.v1.teaching_assignments.service import teacher_class_ids
from academics.core.exceptions import NotFoundError
from academics.core.models import AcademicRecord, SchoolClass, SchoolYear, Student, Subject, Term

from .schemas import (
    ClassPerformance,
    ClassPerformanceResponse,
    PerformanceSubjectRow,
    StudentPerformanceReport,
    StudentRecordLine,
    StudentSummaryResponse,
    SubjectAverage,
    TeacherClassResult,
    TeacherStudentResult,
    TeacherSubjectReport,
)

NO_AVERAGE = "N/A"
TWO_PLACES = Decimal("0.01")

# (lower bound inclusive, band); anything above 0 below the last bound is F
GRADE_BANDS = (
    (Decimal("90"), "A+"),
    (Decimal("80"), "A"),
    (Decimal("70"), "B+"),
    (Decimal("60"), "B"),
    (Decimal("50"), "C"),
    (Decimal("40"), "D"),
)


def _visible():
    return (AcademicRecord.is_published.is_(True), AcademicRecord.deleted_at.is_(None))


def mean_score(scores: Iterable) -> Optional[Decimal]:
    values = [Decimal(s) for s in scores]
    if not values:
        return None
    return (sum(values) / len(values)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_average(average: Optional[Decimal]) -> str:
    return NO_AVERAGE if average is None else f"{average:.2f}"


def grade_band(average: Optional[Decimal]) -> str:
    """Letter band for an aggregate average. Not related to the per-subject final_grade."""
    if average is None:
        return NO_AVERAGE
    for lower, band in GRADE_BANDS:
        if average >= lower:
            return band
    return "F" if average > 0 else NO_AVERAGE


def _round(value) -> float:
    return round(float(value), 2)


async def get_student_summary(db: AsyncSession, student_id: UUID) -> StudentSummaryResponse:
    student = await catalog.require_student(db, student_id)
    result = await db.execute(
        select(AcademicRecord, Subject.name, Term.name, SchoolYear.name)
        .join(Subject, Subject.id == AcademicRecord.subject_id)
        .join(Term, Term.id == AcademicRecord.term_id)
        .join(SchoolYear, SchoolYear.id == AcademicRecord.school_year_id)
        .where(AcademicRecord.student_id == student_id, *_visible())
        .order_by(SchoolYear.start_date.desc(), Term.sequence.desc(), Subject.name)
    )
    records = [
        StudentRecordLine(
            record_id=r.id,
            subject_id=r.subject_id,
            subject_name=subject_name,
            class_id=r.class_id,
            term_id=r.term_id,
            term_name=term_name,
            school_year_id=r.school_year_id,
            school_year_name=year_name,
            final_score=r.final_score,
            final_grade=r.final_grade,
        )
        for r, subject_name, term_name, year_name in result.all()
    ]
    return StudentSummaryResponse(
        student_id=student.id,
        full_name=student.full_name,
        student_number=student.student_number,
        overall_average=format_average(mean_score(r.final_score for r in records)),
        total_records=len(records),
        records=records,
    )


async def get_student_performance_report(
    db: AsyncSession,
    student_id: UUID,
    school_year_id: UUID,
    term_id: UUID,
) -> StudentPerformanceReport:
    """Structured report for one student and term, ready to hand to a document renderer."""
    student = await catalog.require_student(db, student_id)
    year = await catalog.require_school_year(db, school_year_id)
    term = await catalog.require_term(db, term_id, school_year_id)

    result = await db.execute(
        select(AcademicRecord, Subject.name)
        .join(Subject, Subject.id == AcademicRecord.subject_id)
        .where(
            AcademicRecord.student_id == student_id,
            AcademicRecord.school_year_id == school_year_id,
            AcademicRecord.term_id == term_id,
            *_visible(),
        )
        .order_by(Subject.name)
    )
    rows = result.all()
    subjects = [
        PerformanceSubjectRow(
            subject_id=r.subject_id,
            subject_name=subject_name,
            final_score=r.final_score,
            final_grade=r.final_grade,
        )
        for r, subject_name in rows
    ]

    # The class sat in that term, falling back to the current class.
    class_id = rows[0][0].class_id if rows else student.current_class_id
    class_name = None
    if class_id is not None:
        school_class = await db.get(SchoolClass, class_id)
        class_name = school_class.name if school_class else None

    average = mean_score(s.final_score for s in subjects)
    return StudentPerformanceReport(
        student_id=student.id,
        full_name=student.full_name,
        student_number=student.student_number,
        class_id=class_id,
        class_name=class_name,
        school_year_id=year.id,
        school_year_name=year.name,
        term_id=term.id,
        term_name=term.name,
        subjects=subjects,
        overall_average=format_average(average),
        overall_grade=grade_band(average),
        generated_at=datetime.utcnow(),
    )


async def get_class_performance(db: AsyncSession, school_year_id: UUID, term_id: UUID) -> ClassPerformanceResponse:
    await catalog.require_school_year(db, school_year_id)
    await catalog.require_term(db, term_id, school_year_id)
    scope = (
        AcademicRecord.school_year_id == school_year_id,
        AcademicRecord.term_id == term_id,
        *_visible(),
    )

    per_class = await db.execute(
        select(
            SchoolClass.id,
            SchoolClass.name,
            func.count(func.distinct(AcademicRecord.student_id)),
            func.avg(AcademicRecord.final_score),
        )
        .select_from(AcademicRecord)
        .join(SchoolClass, SchoolClass.id == AcademicRecord.class_id)
        .where(*scope)
        .group_by(SchoolClass.id, SchoolClass.name, SchoolClass.display_order)
        .order_by(SchoolClass.display_order, SchoolClass.name)
    )
    per_subject = await db.execute(
        select(
            AcademicRecord.class_id,
            Subject.id,
            Subject.name,
            func.avg(AcademicRecord.final_score),
            func.count(AcademicRecord.id),
        )
        .join(Subject, Subject.id == AcademicRecord.subject_id)
        .where(*scope)
        .group_by(AcademicRecord.class_id, Subject.id, Subject.name)
        .order_by(Subject.name)
    )
    subject_averages: Dict[UUID, List[SubjectAverage]] = {}
    for class_id, subject_id, subject_name, avg, count in per_subject.all():
        subject_averages.setdefault(class_id, []).append(
            SubjectAverage(subject_id=subject_id, subject_name=subject_name, average=_round(avg), record_count=count)
        )

    classes = [
        ClassPerformance(
            class_id=class_id,
            class_name=class_name,
            total_students=total_students,
            overall_average=_round(avg),
            subject_averages=subject_averages.get(class_id, []),
        )
        for class_id, class_name, total_students, avg in per_class.all()
    ]
    return ClassPerformanceResponse(school_year_id=school_year_id, term_id=term_id, classes=classes)


async def get_teacher_subject_report(
    db: AsyncSession,
    teacher_id: UUID,
    subject_id: UUID,
    school_year_id: UUID,
    term_id: UUID,
) -> TeacherSubjectReport:
    """Published results of the subject in every class the teacher is assigned to teach it for the term."""
    subject = await catalog.require_subject(db, subject_id)
    await catalog.require_school_year(db, school_year_id)
    await catalog.require_term(db, term_id, school_year_id)

    class_ids = await teacher_class_ids(db, teacher_id, subject_id, term_id, school_year_id)
    if not class_ids:
        raise NotFoundError(
            "Teaching assignment",
            teacher_id=str(teacher_id),
            subject_id=str(subject_id),
            term_id=str(term_id),
            school_year_id=str(school_year_id),
        )

    class_result = await db.execute(
        select(SchoolClass)
        .where(SchoolClass.id.in_(class_ids))
        .order_by(SchoolClass.display_order, SchoolClass.name)
    )
    grouped: Dict[UUID, TeacherClassResult] = dict(
        (c.id, TeacherClassResult(class_id=c.id, class_name=c.name, students=[]))
        for c in class_result.scalars().all()
    )

    result = await db.execute(
        select(AcademicRecord, Student.full_name)
        .join(Student, Student.id == AcademicRecord.student_id)
        .where(
            AcademicRecord.subject_id == subject_id,
            AcademicRecord.term_id == term_id,
            AcademicRecord.school_year_id == school_year_id,
            AcademicRecord.class_id.in_(class_ids),
            *_visible(),
        )
        .order_by(Student.full_name)
    )
    for record, full_name in result.all():
        grouped[record.class_id].students.append(
            TeacherStudentResult(
                student_id=record.student_id,
                full_name=full_name,
                final_score=record.final_score,
                final_grade=record.final_grade,
            )
        )
    for entry in grouped.values():
        average = mean_score(s.final_score for s in entry.students)
        entry.class_average = float(average) if average is not None else None

    return TeacherSubjectReport(
        teacher_id=teacher_id,
        subject_id=subject.id,
        subject_name=subject.name,
        term_id=term_id,
        school_year_id=school_year_id,
        classes=list(grouped.values()),
    )
