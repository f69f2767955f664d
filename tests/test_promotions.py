"""Promotion decisions on the terminal term of the current school year."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.academic_records import service as record_service
from academics.api.v1.academic_records.schemas import AcademicRecordCreate
from academics.api.v1.assessments import service as assessment_service
from academics.api.v1.assessments.schemas import AssessmentCreate, AssessmentTypeCreate
from academics.api.v1.promotions import service
from academics.api.v1.promotions.schemas import ClassPromotionRequest
from academics.api.v1.scores import service as score_service
from academics.api.v1.scores.schemas import ScoreEntry, ScoreSubmission
from academics.core.enums import AssessmentKind, PromotionDecision
from academics.core.exceptions import NotFoundError, PreconditionFailedError
from academics.core.models import AcademicRecord, SchoolYear, Student


async def _class_of(db: AsyncSession, student_id):
    result = await db.execute(select(Student.current_class_id).where(Student.id == student_id))
    return result.scalar_one()


async def _promoted_flags(db: AsyncSession, student_id):
    result = await db.execute(
        select(AcademicRecord.is_promoted)
        .where(AcademicRecord.student_id == student_id)
        .order_by(AcademicRecord.final_score)
    )
    return result.scalars().all()


def test_decision_boundary() -> None:
    assert service.decide(2, 4) == PromotionDecision.promoted
    assert service.decide(1, 4) == PromotionDecision.retained
    assert service.decide(1, 1) == PromotionDecision.promoted
    assert service.decide(0, 3) == PromotionDecision.retained
    with pytest.raises(PreconditionFailedError):
        service.decide(0, 0)


@pytest.mark.asyncio
async def test_half_passed_is_promoted(db_session: AsyncSession, school, make_record) -> None:
    for subject_id, score in zip(school.subject_ids, (50, 75, 49.99, 20)):
        await make_record(school.student_a_id, subject_id, score)

    result = await service.promote_student(db_session, school.student_a_id, school.jhs2_id)
    assert result.decision == PromotionDecision.promoted
    assert (result.passed_count, result.total_count) == (2, 4)
    assert result.new_class_id == school.jhs2_id
    assert result.term_id == school.term3_id
    assert await _class_of(db_session, school.student_a_id) == school.jhs2_id
    assert await _promoted_flags(db_session, school.student_a_id) == [True, True, True, True]


@pytest.mark.asyncio
async def test_quarter_passed_is_retained(db_session: AsyncSession, school, make_record) -> None:
    for subject_id, score in zip(school.subject_ids, (90, 30, 40, 10)):
        await make_record(school.student_a_id, subject_id, score)

    result = await service.promote_student(db_session, school.student_a_id, school.jhs2_id)
    assert result.decision == PromotionDecision.retained
    assert (result.passed_count, result.total_count) == (1, 4)
    assert result.new_class_id is None
    assert await _class_of(db_session, school.student_a_id) == school.jhs1_id
    assert await _promoted_flags(db_session, school.student_a_id) == [False, False, False, False]


@pytest.mark.asyncio
async def test_unpublished_and_other_terms_are_not_evaluated(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 30)
    await make_record(school.student_a_id, school.english_id, 95, published=False)
    await make_record(school.student_a_id, school.science_id, 95, term_id=school.term2_id)

    result = await service.promote_student(db_session, school.student_a_id, school.jhs2_id)
    assert result.decision == PromotionDecision.retained
    assert (result.passed_count, result.total_count) == (0, 1)


@pytest.mark.asyncio
async def test_no_published_records_is_a_precondition_failure(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 90, published=False)

    with pytest.raises(PreconditionFailedError) as exc:
        await service.promote_student(db_session, school.student_a_id, school.jhs2_id)
    assert exc.value.status_code == 412
    assert await _class_of(db_session, school.student_a_id) == school.jhs1_id


@pytest.mark.asyncio
async def test_missing_target_class_changes_nothing(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 90)

    with pytest.raises(NotFoundError) as exc:
        await service.promote_student(db_session, school.student_a_id, uuid.uuid4())
    assert exc.value.details["field"] == "target_class_id"
    assert await _class_of(db_session, school.student_a_id) == school.jhs1_id
    assert await _promoted_flags(db_session, school.student_a_id) == [False]

    with pytest.raises(NotFoundError):
        await service.promote_student(db_session, uuid.uuid4(), school.jhs2_id)


@pytest.mark.asyncio
async def test_requires_a_current_school_year(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 90)
    year = await db_session.get(SchoolYear, school.year_id)
    year.is_current = False
    await db_session.commit()

    with pytest.raises(PreconditionFailedError):
        await service.promote_student(db_session, school.student_a_id, school.jhs2_id)


@pytest.mark.asyncio
async def test_scores_to_promotion_scenario(db_session: AsyncSession, school) -> None:
    """Scores of 55 and 45 on a 100-mark exam, published as each student's only Term 3 record."""
    exam_type = await assessment_service.create_assessment_type(
        db_session, AssessmentTypeCreate(name="End of Term Exam", kind=AssessmentKind.END_OF_TERM, weight=Decimal("60"))
    )
    exam = await assessment_service.create_assessment(
        db_session,
        AssessmentCreate(
            title="Term 3 Mathematics Exam",
            date=date(2026, 7, 10),
            max_score=Decimal("100"),
            assessment_type_id=exam_type.id,
            subject_id=school.math_id,
            class_id=school.jhs1_id,
            term_id=school.term3_id,
            school_year_id=school.year_id,
        ),
    )
    submitted = await score_service.submit_scores(
        db_session,
        exam.id,
        ScoreSubmission(
            entries=[
                ScoreEntry(student_id=school.student_a_id, score=Decimal("55")),
                ScoreEntry(student_id=school.student_b_id, score=Decimal("45")),
            ]
        ),
    )
    for result in submitted.results:
        sheet = await score_service.get_scores_for_assessment(db_session, exam.id)
        score = next(r.score for r in sheet.rows if r.student_id == result.student_id)
        record = await record_service.create_record(
            db_session,
            AcademicRecordCreate(
                student_id=result.student_id,
                class_id=school.jhs1_id,
                subject_id=school.math_id,
                term_id=school.term3_id,
                school_year_id=school.year_id,
                final_score=score,
                final_grade="C" if score >= 50 else "F",
            ),
        )
        await record_service.publish(db_session, record.id)

    a = await service.promote_student(db_session, school.student_a_id, school.jhs2_id)
    b = await service.promote_student(db_session, school.student_b_id, school.jhs2_id)
    assert a.decision == PromotionDecision.promoted
    assert b.decision == PromotionDecision.retained
    assert await _class_of(db_session, school.student_a_id) == school.jhs2_id
    assert await _class_of(db_session, school.student_b_id) == school.jhs1_id


@pytest.mark.asyncio
async def test_rerun_recomputes_from_current_data(db_session: AsyncSession, school, make_record) -> None:
    record_id = await make_record(school.student_a_id, school.math_id, 40)
    first = await service.promote_student(db_session, school.student_a_id, school.jhs2_id)
    assert first.decision == PromotionDecision.retained

    await record_service.unpublish(db_session, record_id)
    await make_record(school.student_a_id, school.english_id, 80)
    second = await service.promote_student(db_session, school.student_a_id, school.jhs2_id)
    assert second.decision == PromotionDecision.promoted
    assert (second.passed_count, second.total_count) == (1, 1)


@pytest.mark.asyncio
async def test_class_promotion_with_preview_and_skips(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 70)
    await make_record(school.student_a_id, school.english_id, 45)
    # student_b has nothing published
    await make_record(school.student_b_id, school.math_id, 70, published=False)

    preview = await service.promote_class(
        db_session, school.jhs1_id, ClassPromotionRequest(target_class_id=school.jhs2_id, preview=True)
    )
    assert preview.preview is True
    assert (preview.promoted, preview.retained, preview.skipped) == (1, 0, 1)
    assert await _class_of(db_session, school.student_a_id) == school.jhs1_id

    applied = await service.promote_class(
        db_session, school.jhs1_id, ClassPromotionRequest(target_class_id=school.jhs2_id)
    )
    by_student = {r.student_id: r for r in applied.results}
    assert by_student[school.student_a_id].decision == PromotionDecision.promoted
    assert by_student[school.student_b_id].decision == PromotionDecision.skipped
    assert by_student[school.student_b_id].reason
    assert await _class_of(db_session, school.student_a_id) == school.jhs2_id
    assert await _class_of(db_session, school.student_b_id) == school.jhs1_id
