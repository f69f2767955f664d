"""Score ledger: one score per (student, assessment), written through an all-or-nothing bulk upsert."""

from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.assessments.service import require_assessment
from academics.api.v1.teaching_assignments.service import teacher_can_grade
from academics.auth.schemas import CurrentUser
from academics.core.enums import ScoreEntryStatus
from academics.core.exceptions import NotFoundError, PermissionDeniedError, ValidationFailedError
from academics.core.logging import get_logger
from academics.core.models import Assessment, Student, StudentAssessmentScore
from academics.db.session import atomic

from .schemas import (
    ScoreEntry,
    ScoreEntryResult,
    ScoreResponse,
    ScoreSheetResponse,
    ScoreSheetRow,
    ScoreSubmission,
    ScoreSubmissionResponse,
    ScoreUpdate,
)
from .workbook import build_marking_template, parse_marks_workbook

logger = get_logger(__name__)

NOT_GRADED_REASON = "No score given; left as not yet graded"


def _to_response(s: StudentAssessmentScore) -> ScoreResponse:
    return ScoreResponse(
        id=s.id,
        student_id=s.student_id,
        assessment_id=s.assessment_id,
        score=s.score,
        remarks=s.remarks,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


def _check_range(assessment: Assessment, student_id: UUID, score: Decimal) -> None:
    max_score = Decimal(assessment.max_score)
    if score < 0 or score > max_score:
        raise ValidationFailedError(
            f"Score {score} for student {student_id} is outside the valid range 0 to {max_score}",
            entity="StudentAssessmentScore",
            field="score",
            student_id=str(student_id),
            value=float(score),
            range=[0, float(max_score)],
            constraint="0 <= score <= assessment.max_score",
        )


async def _ensure_can_grade(db: AsyncSession, current_user: Optional[CurrentUser], assessment: Assessment) -> None:
    """Teachers may only grade inside a teaching assignment they hold. Other roles are gated by the router."""
    if current_user is None or not current_user.is_teacher:
        return
    allowed = await teacher_can_grade(
        db,
        current_user.id,
        subject_id=assessment.subject_id,
        class_id=assessment.class_id,
        term_id=assessment.term_id,
        school_year_id=assessment.school_year_id,
    )
    if not allowed:
        raise PermissionDeniedError(
            "You are not assigned to teach this subject for this class, term and year",
            entity="Assessment",
            id=str(assessment.id),
            constraint="teacher must hold a matching teaching assignment",
        )


def _validate_batch_shape(entries: List[ScoreEntry]) -> None:
    if not entries:
        raise ValidationFailedError(
            "At least one score entry is required",
            field="entries",
            constraint="non-empty batch",
        )
    seen = set()
    for entry in entries:
        if entry.student_id in seen:
            raise ValidationFailedError(
                f"Student {entry.student_id} appears more than once in the batch",
                field="entries",
                student_id=str(entry.student_id),
                constraint="one entry per student",
            )
        seen.add(entry.student_id)


async def submit_scores(
    db: AsyncSession,
    assessment_id: UUID,
    payload: ScoreSubmission,
    current_user: Optional[CurrentUser] = None,
) -> ScoreSubmissionResponse:
    """
    Bulk upsert scores for one assessment.

    Every entry is validated before anything is written; one bad entry (score out of range,
    unknown student) aborts the whole batch. Re-submitting the same payload leaves the stored
    state as it was and reports every graded entry as updated.
    """
    entries = payload.entries
    _validate_batch_shape(entries)

    async with atomic(db):
        assessment = await require_assessment(db, assessment_id)
        await _ensure_can_grade(db, current_user, assessment)

        for entry in entries:
            if entry.score is not None:
                _check_range(assessment, entry.student_id, entry.score)

        student_ids = [e.student_id for e in entries]
        result = await db.execute(select(Student.id).where(Student.id.in_(student_ids)))
        found = set(result.scalars().all())
        missing = [sid for sid in student_ids if sid not in found]
        if missing:
            raise NotFoundError(
                "Student",
                missing[0],
                field="student_id",
                missing=[str(m) for m in missing],
            )

        result = await db.execute(
            select(StudentAssessmentScore).where(
                StudentAssessmentScore.assessment_id == assessment_id,
                StudentAssessmentScore.student_id.in_(student_ids),
            )
        )
        existing: Dict[UUID, StudentAssessmentScore] = {s.student_id: s for s in result.scalars().all()}

        written = []
        for entry in entries:
            if entry.score is None:
                continue
            row = existing.get(entry.student_id)
            if row is None:
                row = StudentAssessmentScore(
                    student_id=entry.student_id,
                    assessment_id=assessment_id,
                    score=entry.score,
                    remarks=entry.remarks,
                )
                db.add(row)
                written.append((entry.student_id, ScoreEntryStatus.created, row))
            else:
                row.score = entry.score
                row.remarks = entry.remarks
                written.append((entry.student_id, ScoreEntryStatus.updated, row))
        await db.flush()

    by_student = {sid: (status, row) for sid, status, row in written}
    results: List[ScoreEntryResult] = []
    for entry in entries:
        if entry.student_id in by_student:
            status, row = by_student[entry.student_id]
            results.append(ScoreEntryResult(student_id=entry.student_id, status=status, score_id=row.id))
        else:
            prior = existing.get(entry.student_id)
            results.append(
                ScoreEntryResult(
                    student_id=entry.student_id,
                    status=ScoreEntryStatus.skipped,
                    score_id=prior.id if prior else None,
                    reason=NOT_GRADED_REASON,
                )
            )

    response = ScoreSubmissionResponse(
        assessment_id=assessment_id,
        results=results,
        created=sum(1 for r in results if r.status == ScoreEntryStatus.created),
        updated=sum(1 for r in results if r.status == ScoreEntryStatus.updated),
        skipped=sum(1 for r in results if r.status == ScoreEntryStatus.skipped),
    )
    logger.info(
        "scores_submitted",
        assessment_id=str(assessment_id),
        created=response.created,
        updated=response.updated,
        skipped=response.skipped,
    )
    return response


async def update_score(
    db: AsyncSession,
    score_id: UUID,
    payload: ScoreUpdate,
    current_user: Optional[CurrentUser] = None,
) -> ScoreResponse:
    async with atomic(db):
        row = await db.get(StudentAssessmentScore, score_id)
        if not row:
            raise NotFoundError("Score", score_id, field="score_id")
        assessment = await require_assessment(db, row.assessment_id)
        await _ensure_can_grade(db, current_user, assessment)
        _check_range(assessment, row.student_id, payload.score)
        row.score = payload.score
        row.remarks = payload.remarks
    await db.refresh(row)
    logger.info("score_updated", score_id=str(score_id), assessment_id=str(row.assessment_id))
    return _to_response(row)


async def get_scores_for_assessment(db: AsyncSession, assessment_id: UUID) -> ScoreSheetResponse:
    """Class-scoped assessments list the whole class roster (ungraded students with score None);
    school-wide ones list only the stored scores."""
    assessment = await require_assessment(db, assessment_id)

    result = await db.execute(
        select(StudentAssessmentScore, Student)
        .join(Student, Student.id == StudentAssessmentScore.student_id)
        .where(StudentAssessmentScore.assessment_id == assessment_id)
        .order_by(Student.full_name)
    )
    scored = [(score, student) for score, student in result.all()]

    rows: List[ScoreSheetRow] = []
    if assessment.class_id is not None:
        by_student = {student.id: score for score, student in scored}
        roster = await db.execute(
            select(Student)
            .where(Student.current_class_id == assessment.class_id)
            .order_by(Student.full_name)
        )
        on_roster = set()
        for student in roster.scalars().all():
            on_roster.add(student.id)
            score = by_student.get(student.id)
            rows.append(
                ScoreSheetRow(
                    student_id=student.id,
                    student_name=student.full_name,
                    student_number=student.student_number,
                    score_id=score.id if score else None,
                    score=score.score if score else None,
                    remarks=score.remarks if score else None,
                )
            )
        # Students graded here who have since moved class keep their line.
        scored = [(score, student) for score, student in scored if student.id not in on_roster]

    for score, student in scored:
        rows.append(
            ScoreSheetRow(
                student_id=student.id,
                student_name=student.full_name,
                student_number=student.student_number,
                score_id=score.id,
                score=score.score,
                remarks=score.remarks,
            )
        )

    return ScoreSheetResponse(
        assessment_id=assessment.id,
        assessment_title=assessment.title,
        max_score=assessment.max_score,
        class_id=assessment.class_id,
        rows=rows,
    )


# ----- Excel marking template -----
async def build_marking_template_for_assessment(db: AsyncSession, assessment_id: UUID) -> bytes:
    sheet = await get_scores_for_assessment(db, assessment_id)
    return build_marking_template(sheet)


async def import_scores_from_workbook(
    db: AsyncSession,
    assessment_id: UUID,
    filename: Optional[str],
    content: bytes,
    current_user: Optional[CurrentUser] = None,
) -> ScoreSubmissionResponse:
    """Parse an uploaded marking template and submit it as one batch."""
    await require_assessment(db, assessment_id)
    entries = parse_marks_workbook(filename, content, assessment_id)
    return await submit_scores(db, assessment_id, ScoreSubmission(entries=entries), current_user)
