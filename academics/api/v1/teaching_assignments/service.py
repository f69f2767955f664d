"""
Teaching assignment registry.

Holds which teacher teaches which subject to which class in a (term, year), which teacher heads a
department for a year, and which teacher supervises a class. The unique indexes on
teaching_assignments are the authority for "one teacher per scope" and "one HOD per department
per year"; the pre-checks below only turn a collision into a readable error before the insert.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.catalog import service as catalog
from academics.core.enums import DutyType
from academics.core.exceptions import ConflictError, NotFoundError
from academics.core.logging import get_logger
from academics.core.models import TeachingAssignment
from academics.db.session import atomic

from .schemas import (
    DepartmentHodResponse,
    DutyAssignmentRequest,
    DutyAssignmentResponse,
    DutyResult,
    HodDuty,
    SupervisorDuty,
    TeachingAssignmentResponse,
    TeachingDuty,
)

logger = get_logger(__name__)


def _to_response(a: TeachingAssignment) -> TeachingAssignmentResponse:
    return TeachingAssignmentResponse(
        id=a.id,
        teacher_id=a.teacher_id,
        school_year_id=a.school_year_id,
        subject_id=a.subject_id,
        class_id=a.class_id,
        term_id=a.term_id,
        department_id=a.department_id,
        is_hod=a.is_hod,
        created_at=a.created_at,
    )


async def _assign_hod(db: AsyncSession, teacher_id: UUID, duty: HodDuty) -> DutyResult:
    await catalog.require_department(db, duty.department_id)
    await catalog.require_school_year(db, duty.school_year_id)
    result = await db.execute(
        select(TeachingAssignment).where(
            TeachingAssignment.is_hod.is_(True),
            TeachingAssignment.department_id == duty.department_id,
            TeachingAssignment.school_year_id == duty.school_year_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing:
        if existing.teacher_id == teacher_id:
            return DutyResult(type=DutyType.HOD.value, status="unchanged", assignment_id=existing.id)
        raise ConflictError(
            "This department already has a head for the school year",
            entity="TeachingAssignment",
            field="department_id",
            department_id=str(duty.department_id),
            current_teacher_id=str(existing.teacher_id),
            constraint="one HOD per department per school year",
        )
    obj = TeachingAssignment(
        teacher_id=teacher_id,
        department_id=duty.department_id,
        school_year_id=duty.school_year_id,
        is_hod=True,
    )
    db.add(obj)
    await db.flush()
    return DutyResult(type=DutyType.HOD.value, status="assigned", assignment_id=obj.id)


async def _assign_supervisor(db: AsyncSession, teacher_id: UUID, duty: SupervisorDuty) -> DutyResult:
    school_class = await catalog.require_class(db, duty.class_id)
    if school_class.supervisor_id == teacher_id:
        return DutyResult(type=DutyType.SUPERVISOR.value, status="unchanged", class_id=school_class.id)
    if school_class.supervisor_id is not None:
        raise ConflictError(
            f"Class {school_class.name} already has a supervisor",
            entity="Class",
            field="supervisor_id",
            class_id=str(school_class.id),
            current_teacher_id=str(school_class.supervisor_id),
            constraint="one supervisor per class",
        )
    school_class.supervisor_id = teacher_id
    return DutyResult(type=DutyType.SUPERVISOR.value, status="assigned", class_id=school_class.id)


async def _assign_teaching(db: AsyncSession, teacher_id: UUID, duty: TeachingDuty) -> DutyResult:
    await catalog.require_subject(db, duty.subject_id)
    await catalog.require_class(db, duty.class_id)
    await catalog.require_school_year(db, duty.school_year_id)
    await catalog.require_term(db, duty.term_id, duty.school_year_id)
    result = await db.execute(
        select(TeachingAssignment).where(
            TeachingAssignment.is_hod.is_(False),
            TeachingAssignment.subject_id == duty.subject_id,
            TeachingAssignment.class_id == duty.class_id,
            TeachingAssignment.term_id == duty.term_id,
            TeachingAssignment.school_year_id == duty.school_year_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing:
        if existing.teacher_id == teacher_id:
            return DutyResult(type=DutyType.TEACHING.value, status="unchanged", assignment_id=existing.id)
        raise ConflictError(
            "Another teacher is already assigned to this subject for the class, term and year",
            entity="TeachingAssignment",
            field="subject_id",
            current_teacher_id=str(existing.teacher_id),
            constraint="one teacher per (subject, class, term, year)",
        )
    obj = TeachingAssignment(
        teacher_id=teacher_id,
        subject_id=duty.subject_id,
        class_id=duty.class_id,
        term_id=duty.term_id,
        school_year_id=duty.school_year_id,
        is_hod=False,
    )
    db.add(obj)
    await db.flush()
    return DutyResult(type=DutyType.TEACHING.value, status="assigned", assignment_id=obj.id)


async def assign_duties(
    db: AsyncSession,
    teacher_id: UUID,
    payload: DutyAssignmentRequest,
) -> DutyAssignmentResponse:
    """Assign every duty or none. Re-assigning a duty the teacher already holds is reported as unchanged."""
    results: List[DutyResult] = []
    async with atomic(db, "Duty collides with an existing assignment", entity="TeachingAssignment"):
        for duty in payload.duties:
            if isinstance(duty, HodDuty):
                results.append(await _assign_hod(db, teacher_id, duty))
            elif isinstance(duty, SupervisorDuty):
                results.append(await _assign_supervisor(db, teacher_id, duty))
            else:
                results.append(await _assign_teaching(db, teacher_id, duty))
    logger.info(
        "teacher_duties_assigned",
        teacher_id=str(teacher_id),
        assigned=sum(1 for r in results if r.status == "assigned"),
        unchanged=sum(1 for r in results if r.status == "unchanged"),
    )
    return DutyAssignmentResponse(teacher_id=teacher_id, results=results)


async def list_assignments(
    db: AsyncSession,
    teacher_id: Optional[UUID] = None,
    school_year_id: Optional[UUID] = None,
    term_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    department_id: Optional[UUID] = None,
    is_hod: Optional[bool] = None,
) -> List[TeachingAssignmentResponse]:
    stmt = select(TeachingAssignment)
    if teacher_id is not None:
        stmt = stmt.where(TeachingAssignment.teacher_id == teacher_id)
    if school_year_id is not None:
        stmt = stmt.where(TeachingAssignment.school_year_id == school_year_id)
    if term_id is not None:
        stmt = stmt.where(TeachingAssignment.term_id == term_id)
    if subject_id is not None:
        stmt = stmt.where(TeachingAssignment.subject_id == subject_id)
    if class_id is not None:
        stmt = stmt.where(TeachingAssignment.class_id == class_id)
    if department_id is not None:
        stmt = stmt.where(TeachingAssignment.department_id == department_id)
    if is_hod is not None:
        stmt = stmt.where(TeachingAssignment.is_hod.is_(is_hod))
    result = await db.execute(stmt.order_by(TeachingAssignment.created_at))
    return [_to_response(a) for a in result.scalars().all()]


async def delete_assignment(db: AsyncSession, assignment_id: UUID) -> None:
    async with atomic(db):
        obj = await db.get(TeachingAssignment, assignment_id)
        if not obj:
            raise NotFoundError("Teaching assignment", assignment_id, field="assignment_id")
        await db.delete(obj)
    logger.info("teaching_assignment_deleted", assignment_id=str(assignment_id))


async def get_department_hod(
    db: AsyncSession,
    department_id: UUID,
    school_year_id: Optional[UUID] = None,
) -> DepartmentHodResponse:
    """HOD of the department for the given year, or for the current year when none is given."""
    await catalog.require_department(db, department_id)
    if school_year_id is None:
        school_year_id = (await catalog.require_current_school_year(db)).id
    result = await db.execute(
        select(TeachingAssignment).where(
            TeachingAssignment.is_hod.is_(True),
            TeachingAssignment.department_id == department_id,
            TeachingAssignment.school_year_id == school_year_id,
        )
    )
    hod = result.scalar_one_or_none()
    if not hod:
        raise NotFoundError(
            "Head of department",
            department_id=str(department_id),
            school_year_id=str(school_year_id),
        )
    return DepartmentHodResponse(
        department_id=department_id,
        school_year_id=school_year_id,
        teacher_id=hod.teacher_id,
        assignment_id=hod.id,
    )


async def teacher_class_ids(
    db: AsyncSession,
    teacher_id: UUID,
    subject_id: UUID,
    term_id: UUID,
    school_year_id: UUID,
) -> List[UUID]:
    """Classes the teacher is assigned to teach the subject in for the (term, year)."""
    result = await db.execute(
        select(TeachingAssignment.class_id)
        .where(
            TeachingAssignment.is_hod.is_(False),
            TeachingAssignment.teacher_id == teacher_id,
            TeachingAssignment.subject_id == subject_id,
            TeachingAssignment.term_id == term_id,
            TeachingAssignment.school_year_id == school_year_id,
        )
        .distinct()
    )
    return [cid for cid in result.scalars().all() if cid is not None]


async def teacher_can_grade(
    db: AsyncSession,
    teacher_id: UUID,
    subject_id: UUID,
    class_id: Optional[UUID],
    term_id: UUID,
    school_year_id: UUID,
) -> bool:
    """True when the teacher holds a teaching assignment covering the scope.
    A school-wide scope (class_id None) is covered by an assignment in any class."""
    class_ids = await teacher_class_ids(db, teacher_id, subject_id, term_id, school_year_id)
    if class_id is None:
        return bool(class_ids)
    return class_id in class_ids
