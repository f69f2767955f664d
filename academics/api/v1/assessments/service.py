"""Assessment catalog: assessment types and the gradable assessments scoped to subject/class/term/year."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.catalog import service as catalog
from academics.core.enums import AssessmentKind
from academics.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from academics.core.logging import get_logger
from academics.core.models import Assessment, AssessmentType, StudentAssessmentScore
from academics.db.session import atomic

from .schemas import (
    AssessmentCreate,
    AssessmentResponse,
    AssessmentTypeCreate,
    AssessmentTypeResponse,
    AssessmentTypeUpdate,
    AssessmentUpdate,
)

logger = get_logger(__name__)


def _type_to_response(t: AssessmentType) -> AssessmentTypeResponse:
    return AssessmentTypeResponse(
        id=t.id,
        name=t.name,
        kind=t.kind,
        weight=t.weight,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


def _to_response(
    a: Assessment,
    type_name: Optional[str] = None,
    kind: Optional[str] = None,
) -> AssessmentResponse:
    return AssessmentResponse(
        id=a.id,
        title=a.title,
        description=a.description,
        date=a.date,
        max_score=a.max_score,
        assessment_type_id=a.assessment_type_id,
        assessment_type_name=type_name,
        kind=kind,
        subject_id=a.subject_id,
        class_id=a.class_id,
        term_id=a.term_id,
        school_year_id=a.school_year_id,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


# ----- Assessment types -----
async def _type_name_taken(db: AsyncSession, name: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(AssessmentType.id).where(AssessmentType.name == name)
    if exclude_id is not None:
        stmt = stmt.where(AssessmentType.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def create_assessment_type(db: AsyncSession, payload: AssessmentTypeCreate) -> AssessmentTypeResponse:
    name = payload.name.strip()
    conflict = f"Assessment type '{name}' already exists"
    async with atomic(db, conflict, entity="Assessment type", field="name"):
        if await _type_name_taken(db, name):
            raise ConflictError(conflict, entity="Assessment type", field="name")
        obj = AssessmentType(name=name, kind=payload.kind.value, weight=payload.weight)
        db.add(obj)
    await db.refresh(obj)
    logger.info("assessment_type_created", assessment_type_id=str(obj.id), kind=obj.kind)
    return _type_to_response(obj)


async def list_assessment_types(
    db: AsyncSession,
    kind: Optional[AssessmentKind] = None,
) -> List[AssessmentTypeResponse]:
    stmt = select(AssessmentType)
    if kind is not None:
        stmt = stmt.where(AssessmentType.kind == kind.value)
    result = await db.execute(stmt.order_by(AssessmentType.name))
    return [_type_to_response(t) for t in result.scalars().all()]


async def get_assessment_type(db: AsyncSession, assessment_type_id: UUID) -> AssessmentTypeResponse:
    return _type_to_response(await catalog.require_assessment_type(db, assessment_type_id))


async def update_assessment_type(
    db: AsyncSession,
    assessment_type_id: UUID,
    payload: AssessmentTypeUpdate,
) -> AssessmentTypeResponse:
    async with atomic(db, "Assessment type name already exists", entity="Assessment type", field="name"):
        obj = await catalog.require_assessment_type(db, assessment_type_id)
        if payload.name is not None:
            name = payload.name.strip()
            if await _type_name_taken(db, name, exclude_id=assessment_type_id):
                raise ConflictError(f"Assessment type '{name}' already exists", entity="Assessment type", field="name")
            obj.name = name
        if payload.kind is not None:
            obj.kind = payload.kind.value
        if payload.weight is not None:
            obj.weight = payload.weight
    await db.refresh(obj)
    return _type_to_response(obj)


async def delete_assessment_type(db: AsyncSession, assessment_type_id: UUID) -> int:
    """Delete the type. Its assessments stay, with assessment_type_id set to NULL. Returns how many were orphaned."""
    async with atomic(db):
        obj = await catalog.require_assessment_type(db, assessment_type_id)
        result = await db.execute(
            update(Assessment)
            .where(Assessment.assessment_type_id == assessment_type_id)
            .values(assessment_type_id=None)
        )
        orphaned = result.rowcount or 0
        await db.delete(obj)
    logger.info("assessment_type_deleted", assessment_type_id=str(assessment_type_id), orphaned=orphaned)
    return orphaned


# ----- Assessments -----
async def _title_taken(
    db: AsyncSession,
    title: str,
    subject_id: UUID,
    class_id: Optional[UUID],
    term_id: UUID,
    school_year_id: UUID,
    exclude_id: Optional[UUID] = None,
) -> bool:
    stmt = select(Assessment.id).where(
        Assessment.title == title,
        Assessment.subject_id == subject_id,
        Assessment.term_id == term_id,
        Assessment.school_year_id == school_year_id,
        Assessment.class_id.is_(None) if class_id is None else Assessment.class_id == class_id,
    )
    if exclude_id is not None:
        stmt = stmt.where(Assessment.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


def _title_conflict(title: str) -> ConflictError:
    return ConflictError(
        f"An assessment titled '{title}' already exists for this subject, class, term and year",
        entity="Assessment",
        field="title",
        constraint="title unique per (subject, class, term, year)",
    )


async def create_assessment(db: AsyncSession, payload: AssessmentCreate) -> AssessmentResponse:
    title = payload.title.strip()
    async with atomic(db, _title_conflict(title).message, entity="Assessment", field="title"):
        assessment_type = await catalog.require_assessment_type(db, payload.assessment_type_id)
        await catalog.require_subject(db, payload.subject_id)
        if payload.class_id is not None:
            await catalog.require_class(db, payload.class_id)
        await catalog.require_school_year(db, payload.school_year_id)
        await catalog.require_term(db, payload.term_id, payload.school_year_id)
        if await _title_taken(
            db, title, payload.subject_id, payload.class_id, payload.term_id, payload.school_year_id
        ):
            raise _title_conflict(title)
        obj = Assessment(
            title=title,
            description=payload.description,
            date=payload.date,
            max_score=payload.max_score,
            assessment_type_id=payload.assessment_type_id,
            subject_id=payload.subject_id,
            class_id=payload.class_id,
            term_id=payload.term_id,
            school_year_id=payload.school_year_id,
        )
        db.add(obj)
    await db.refresh(obj)
    logger.info("assessment_created", assessment_id=str(obj.id), title=obj.title)
    return _to_response(obj, assessment_type.name, assessment_type.kind)


async def list_assessments(
    db: AsyncSession,
    subject_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    term_id: Optional[UUID] = None,
    school_year_id: Optional[UUID] = None,
    kind: Optional[AssessmentKind] = None,
) -> List[AssessmentResponse]:
    stmt = select(Assessment, AssessmentType.name, AssessmentType.kind).outerjoin(
        AssessmentType, Assessment.assessment_type_id == AssessmentType.id
    )
    if subject_id is not None:
        stmt = stmt.where(Assessment.subject_id == subject_id)
    if class_id is not None:
        stmt = stmt.where(Assessment.class_id == class_id)
    if term_id is not None:
        stmt = stmt.where(Assessment.term_id == term_id)
    if school_year_id is not None:
        stmt = stmt.where(Assessment.school_year_id == school_year_id)
    if kind is not None:
        stmt = stmt.where(AssessmentType.kind == kind.value)
    stmt = stmt.order_by(Assessment.date.desc(), Assessment.title)
    result = await db.execute(stmt)
    return [_to_response(a, type_name, type_kind) for a, type_name, type_kind in result.all()]


async def require_assessment(db: AsyncSession, assessment_id: UUID) -> Assessment:
    obj = await db.get(Assessment, assessment_id)
    if not obj:
        raise NotFoundError("Assessment", assessment_id, field="assessment_id")
    return obj


async def get_assessment(db: AsyncSession, assessment_id: UUID) -> AssessmentResponse:
    result = await db.execute(
        select(Assessment, AssessmentType.name, AssessmentType.kind)
        .outerjoin(AssessmentType, Assessment.assessment_type_id == AssessmentType.id)
        .where(Assessment.id == assessment_id)
    )
    row = result.first()
    if not row:
        raise NotFoundError("Assessment", assessment_id, field="assessment_id")
    return _to_response(*row)


async def update_assessment(
    db: AsyncSession,
    assessment_id: UUID,
    payload: AssessmentUpdate,
) -> AssessmentResponse:
    fields = payload.model_fields_set
    async with atomic(db, "Assessment title already exists in this scope", entity="Assessment", field="title"):
        obj = await require_assessment(db, assessment_id)
        if payload.assessment_type_id is not None:
            await catalog.require_assessment_type(db, payload.assessment_type_id)
            obj.assessment_type_id = payload.assessment_type_id
        if payload.subject_id is not None:
            await catalog.require_subject(db, payload.subject_id)
            obj.subject_id = payload.subject_id
        if "class_id" in fields:
            if payload.class_id is not None:
                await catalog.require_class(db, payload.class_id)
            obj.class_id = payload.class_id
        if payload.school_year_id is not None:
            await catalog.require_school_year(db, payload.school_year_id)
            obj.school_year_id = payload.school_year_id
        if payload.term_id is not None:
            obj.term_id = payload.term_id
        if payload.term_id is not None or payload.school_year_id is not None:
            await catalog.require_term(db, obj.term_id, obj.school_year_id)
        if payload.title is not None:
            obj.title = payload.title.strip()
        if payload.description is not None:
            obj.description = payload.description
        if payload.date is not None:
            obj.date = payload.date
        if payload.max_score is not None:
            highest = (
                await db.execute(
                    select(func.max(StudentAssessmentScore.score)).where(
                        StudentAssessmentScore.assessment_id == assessment_id
                    )
                )
            ).scalar_one_or_none()
            if highest is not None and highest > payload.max_score:
                raise ValidationFailedError(
                    f"max_score {payload.max_score} is below an already recorded score of {highest}",
                    entity="Assessment",
                    field="max_score",
                    constraint="max_score >= every recorded score",
                )
            obj.max_score = payload.max_score
        if await _title_taken(
            db, obj.title, obj.subject_id, obj.class_id, obj.term_id, obj.school_year_id, exclude_id=assessment_id
        ):
            raise _title_conflict(obj.title)
    return await get_assessment(db, assessment_id)


async def delete_assessment(db: AsyncSession, assessment_id: UUID) -> int:
    """Delete the assessment and every score recorded against it. Returns the number of scores removed."""
    async with atomic(db):
        obj = await require_assessment(db, assessment_id)
        result = await db.execute(
            delete(StudentAssessmentScore).where(StudentAssessmentScore.assessment_id == assessment_id)
        )
        removed = result.rowcount or 0
        await db.delete(obj)
    logger.info("assessment_deleted", assessment_id=str(assessment_id), scores_removed=removed)
    return removed
