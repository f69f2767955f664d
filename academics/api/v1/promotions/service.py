"""
Promotion engine.

A student is evaluated on the published, live academic records of the terminal term of the
current school year. With passed = records scoring at least PASS_MARK and total = all such
records, the student is promoted when passed / total >= PASS_RATIO and retained otherwise.
No records at all is a failed precondition, never a default outcome.
"""

from decimal import Decimal
from typing import List, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.catalog import service as catalog
from academics.core.enums import PromotionDecision
from academics.core.exceptions import PreconditionFailedError
from academics.core.logging import get_logger
from academics.core.models import AcademicRecord, SchoolYear, Student, Term
from academics.db.session import atomic

from .schemas import ClassPromotionRequest, ClassPromotionResponse, PromotionResult

logger = get_logger(__name__)

PASS_MARK = Decimal("50")
PASS_RATIO = Decimal("0.5")
NO_RECORDS_REASON = "No published academic records for the terminal term"


def _evaluated_records(student_id: UUID, term_id: UUID, school_year_id: UUID):
    return (
        AcademicRecord.student_id == student_id,
        AcademicRecord.term_id == term_id,
        AcademicRecord.school_year_id == school_year_id,
        AcademicRecord.is_published.is_(True),
        AcademicRecord.deleted_at.is_(None),
    )


async def _tally(db: AsyncSession, student_id: UUID, term_id: UUID, school_year_id: UUID) -> Tuple[int, int]:
    """(passed, total) over the student's published records for the term."""
    result = await db.execute(
        select(AcademicRecord.final_score).where(*_evaluated_records(student_id, term_id, school_year_id))
    )
    scores = result.scalars().all()
    passed = sum(1 for s in scores if Decimal(s) >= PASS_MARK)
    return passed, len(scores)


def decide(passed: int, total: int) -> PromotionDecision:
    if total <= 0:
        raise PreconditionFailedError(
            NO_RECORDS_REASON,
            entity="AcademicRecord",
            constraint="at least one published record for the terminal term",
        )
    if Decimal(passed) / Decimal(total) >= PASS_RATIO:
        return PromotionDecision.promoted
    return PromotionDecision.retained


async def _apply(
    db: AsyncSession,
    student: Student,
    decision: PromotionDecision,
    target_class_id: UUID,
    term_id: UUID,
    school_year_id: UUID,
) -> None:
    promoted = decision == PromotionDecision.promoted
    if promoted:
        student.current_class_id = target_class_id
    await db.execute(
        update(AcademicRecord)
        .where(*_evaluated_records(student.id, term_id, school_year_id))
        .values(is_promoted=promoted)
        .execution_options(synchronize_session=False)
    )


async def _evaluation_period(db: AsyncSession) -> Tuple[SchoolYear, Term]:
    year = await catalog.require_current_school_year(db)
    term = await catalog.get_terminal_term(db, year.id)
    return year, term


async def promote_student(db: AsyncSession, student_id: UUID, target_class_id: UUID) -> PromotionResult:
    """Evaluate and apply in one transaction: either the class change and record flags all land, or none do."""
    async with atomic(db):
        student = await catalog.require_student(db, student_id)
        await catalog.require_class(db, target_class_id, field="target_class_id")
        year, term = await _evaluation_period(db)

        passed, total = await _tally(db, student_id, term.id, year.id)
        if total == 0:
            raise PreconditionFailedError(
                NO_RECORDS_REASON,
                entity="AcademicRecord",
                student_id=str(student_id),
                school_year_id=str(year.id),
                term_id=str(term.id),
                constraint="at least one published record for the terminal term",
            )
        decision = decide(passed, total)
        await _apply(db, student, decision, target_class_id, term.id, year.id)

    logger.info(
        "student_promotion_evaluated",
        student_id=str(student_id),
        decision=decision.value,
        passed=passed,
        total=total,
    )
    return PromotionResult(
        student_id=student_id,
        full_name=student.full_name,
        decision=decision,
        passed_count=passed,
        total_count=total,
        new_class_id=target_class_id if decision == PromotionDecision.promoted else None,
        school_year_id=year.id,
        term_id=term.id,
    )


async def promote_class(db: AsyncSession, class_id: UUID, payload: ClassPromotionRequest) -> ClassPromotionResponse:
    """
    Evaluate every student currently in the class. Students with nothing to evaluate are reported
    as skipped instead of failing the batch. With preview=True nothing is written.
    """
    results: List[PromotionResult] = []
    async with atomic(db):
        await catalog.require_class(db, class_id)
        await catalog.require_class(db, payload.target_class_id, field="target_class_id")
        year, term = await _evaluation_period(db)

        roster = await db.execute(
            select(Student).where(Student.current_class_id == class_id).order_by(Student.full_name)
        )
        for student in roster.scalars().all():
            passed, total = await _tally(db, student.id, term.id, year.id)
            if total == 0:
                results.append(
                    PromotionResult(
                        student_id=student.id,
                        full_name=student.full_name,
                        decision=PromotionDecision.skipped,
                        school_year_id=year.id,
                        term_id=term.id,
                        reason=NO_RECORDS_REASON,
                    )
                )
                continue
            decision = decide(passed, total)
            if not payload.preview:
                await _apply(db, student, decision, payload.target_class_id, term.id, year.id)
            results.append(
                PromotionResult(
                    student_id=student.id,
                    full_name=student.full_name,
                    decision=decision,
                    passed_count=passed,
                    total_count=total,
                    new_class_id=payload.target_class_id if decision == PromotionDecision.promoted else None,
                    school_year_id=year.id,
                    term_id=term.id,
                )
            )

    response = ClassPromotionResponse(
        class_id=class_id,
        target_class_id=payload.target_class_id,
        school_year_id=year.id,
        term_id=term.id,
        preview=payload.preview,
        promoted=sum(1 for r in results if r.decision == PromotionDecision.promoted),
        retained=sum(1 for r in results if r.decision == PromotionDecision.retained),
        skipped=sum(1 for r in results if r.decision == PromotionDecision.skipped),
        results=results,
    )
    logger.info(
        "class_promotion_evaluated",
        class_id=str(class_id),
        preview=payload.preview,
        promoted=response.promoted,
        retained=response.retained,
        skipped=response.skipped,
    )
    return response
