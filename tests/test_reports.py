"""Reports only ever see published, live records."""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.academic_records import service as record_service
from academics.api.v1.reports import service
from academics.api.v1.teaching_assignments import service as assignment_service
from academics.api.v1.teaching_assignments.schemas import DutyAssignmentRequest
from academics.core.exceptions import NotFoundError


@pytest.mark.parametrize(
    "average,band",
    [
        (Decimal("95"), "A+"),
        (Decimal("90"), "A+"),
        (Decimal("89.99"), "A"),
        (Decimal("80"), "A"),
        (Decimal("70"), "B+"),
        (Decimal("60"), "B"),
        (Decimal("50"), "C"),
        (Decimal("40"), "D"),
        (Decimal("39.99"), "F"),
        (Decimal("0.5"), "F"),
        (Decimal("0"), "N/A"),
        (None, "N/A"),
    ],
)
def test_grade_band(average, band) -> None:
    assert service.grade_band(average) == band


def test_average_formatting() -> None:
    assert service.format_average(service.mean_score([80, 60, 70])) == "70.00"
    assert service.format_average(service.mean_score([Decimal("66.5"), Decimal("70")])) == "68.25"
    assert service.format_average(service.mean_score([100, 0, 0])) == "33.33"
    assert service.format_average(service.mean_score([])) == "N/A"


@pytest.mark.asyncio
async def test_student_summary_average_and_order(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 80, term_id=school.term1_id)
    await make_record(school.student_a_id, school.english_id, 60)
    await make_record(school.student_a_id, school.math_id, 70)
    await make_record(
        school.student_a_id,
        school.science_id,
        99,
        term_id=school.previous_term_id,
        school_year_id=school.previous_year_id,
        published=False,
    )

    summary = await service.get_student_summary(db_session, school.student_a_id)
    assert summary.overall_average == "70.00"
    assert summary.total_records == 3
    assert [(r.term_name, r.subject_name) for r in summary.records] == [
        ("Term 3", "English Language"),
        ("Term 3", "Mathematics"),
        ("Term 1", "Mathematics"),
    ]


@pytest.mark.asyncio
async def test_summary_orders_newest_year_first(db_session: AsyncSession, school, make_record) -> None:
    await make_record(
        school.student_a_id,
        school.math_id,
        50,
        term_id=school.previous_term_id,
        school_year_id=school.previous_year_id,
    )
    await make_record(school.student_a_id, school.math_id, 60, term_id=school.term1_id)

    summary = await service.get_student_summary(db_session, school.student_a_id)
    assert [r.school_year_name for r in summary.records] == ["2025-2026", "2024-2025"]


@pytest.mark.asyncio
async def test_student_without_published_records_has_no_average(db_session: AsyncSession, school, make_record) -> None:
    record_id = await make_record(school.student_b_id, school.math_id, 88, published=False)
    summary = await service.get_student_summary(db_session, school.student_b_id)
    assert summary.overall_average == "N/A"
    assert summary.records == []

    await record_service.publish(db_session, record_id)
    summary = await service.get_student_summary(db_session, school.student_b_id)
    assert summary.overall_average == "88.00"

    await record_service.delete_record(db_session, record_id)
    summary = await service.get_student_summary(db_session, school.student_b_id)
    assert summary.overall_average == "N/A"

    with pytest.raises(NotFoundError):
        await service.get_student_summary(db_session, uuid.uuid4())


@pytest.mark.asyncio
async def test_student_performance_report(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 84, grade="A")
    await make_record(school.student_a_id, school.english_id, 77, grade="B+")
    await make_record(school.student_a_id, school.social_id, 10, grade="F", published=False)

    report = await service.get_student_performance_report(
        db_session, school.student_a_id, school.year_id, school.term3_id
    )
    assert report.full_name == "Ama Mensah"
    assert report.class_name == "JHS 1"
    assert report.term_name == "Term 3"
    assert [(s.subject_name, s.final_grade) for s in report.subjects] == [("English Language", "B+"), ("Mathematics", "A")]
    assert report.overall_average == "80.50"
    assert report.overall_grade == "A"

    empty = await service.get_student_performance_report(
        db_session, school.student_b_id, school.year_id, school.term1_id
    )
    assert empty.subjects == []
    assert empty.overall_average == "N/A"
    assert empty.overall_grade == "N/A"


@pytest.mark.asyncio
async def test_class_performance(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 80)
    await make_record(school.student_a_id, school.english_id, 60)
    await make_record(school.student_b_id, school.math_id, 50)
    await make_record(school.student_b_id, school.english_id, 100, published=False)
    await make_record(school.student_b_id, school.science_id, 90, term_id=school.term2_id)

    resp = await service.get_class_performance(db_session, school.year_id, school.term3_id)
    assert len(resp.classes) == 1
    jhs1 = resp.classes[0]
    assert jhs1.class_name == "JHS 1"
    assert jhs1.total_students == 2
    assert jhs1.overall_average == pytest.approx(63.33)
    averages = {s.subject_name: (s.average, s.record_count) for s in jhs1.subject_averages}
    assert averages == {"English Language": (60.0, 1), "Mathematics": (65.0, 2)}


@pytest.mark.asyncio
async def test_class_performance_groups_by_class(db_session: AsyncSession, school, make_record) -> None:
    await make_record(school.student_a_id, school.math_id, 80)
    await make_record(school.student_b_id, school.math_id, 40, class_id=school.jhs2_id)

    resp = await service.get_class_performance(db_session, school.year_id, school.term3_id)
    assert [(c.class_name, c.total_students, c.overall_average) for c in resp.classes] == [
        ("JHS 1", 1, 80.0),
        ("JHS 2", 1, 40.0),
    ]


@pytest.mark.asyncio
async def test_teacher_subject_report(db_session: AsyncSession, school, make_record) -> None:
    teacher_id = uuid.uuid4()
    await assignment_service.assign_duties(
        db_session,
        teacher_id,
        DutyAssignmentRequest(
            duties=[
                {
                    "type": "teaching",
                    "subject_id": str(school.math_id),
                    "class_id": str(class_id),
                    "term_id": str(school.term3_id),
                    "school_year_id": str(school.year_id),
                }
                for class_id in (school.jhs1_id, school.jhs2_id)
            ]
        ),
    )
    await make_record(school.student_a_id, school.math_id, 90, grade="A+")
    await make_record(school.student_b_id, school.math_id, 60, grade="B")
    await make_record(school.student_a_id, school.english_id, 30, grade="F")

    report = await service.get_teacher_subject_report(
        db_session, teacher_id, school.math_id, school.year_id, school.term3_id
    )
    assert report.subject_name == "Mathematics"
    assert [c.class_name for c in report.classes] == ["JHS 1", "JHS 2"]
    jhs1, jhs2 = report.classes
    assert [(s.full_name, s.final_grade) for s in jhs1.students] == [("Ama Mensah", "A+"), ("Kofi Boateng", "B")]
    assert jhs1.class_average == pytest.approx(75.0)
    assert jhs2.students == []
    assert jhs2.class_average is None


@pytest.mark.asyncio
async def test_teacher_report_without_assignment(db_session: AsyncSession, school) -> None:
    with pytest.raises(NotFoundError):
        await service.get_teacher_subject_report(
            db_session, uuid.uuid4(), school.math_id, school.year_id, school.term3_id
        )
