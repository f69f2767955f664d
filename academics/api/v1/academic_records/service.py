"""
Academic record store: the authoritative end-of-term result per (student, subject, term, year).

Records are created once per key, changed only through update/publish/unpublish, and
tombstoned (deleted_at) instead of being removed. A tombstoned row keeps its key, so it is
brought back with restore rather than re-created.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academics.api.v1.catalog import service as catalog
from academics.core.exceptions import ConflictError, NotFoundError
from academics.core.logging import get_logger
from academics.core.models import AcademicRecord, Subject
from academics.db.session import atomic

from .schemas import (
    AcademicRecordCreate,
    AcademicRecordResponse,
    AcademicRecordUpdate,
    PublicationRequest,
    PublicationResponse,
)

logger = get_logger(__name__)

UNIQUE_KEY = "one record per (student, subject, term, school year)"


def _to_response(r: AcademicRecord, subject_name: Optional[str] = None) -> AcademicRecordResponse:
    return AcademicRecordResponse(
        id=r.id,
        student_id=r.student_id,
        class_id=r.class_id,
        subject_id=r.subject_id,
        subject_name=subject_name,
        term_id=r.term_id,
        school_year_id=r.school_year_id,
        final_score=r.final_score,
        final_grade=r.final_grade,
        is_published=r.is_published,
        is_promoted=r.is_promoted,
        created_at=r.created_at,
        updated_at=r.updated_at,
        deleted_at=r.deleted_at,
    )


async def _require_record(db: AsyncSession, record_id: UUID, include_deleted: bool = False) -> AcademicRecord:
    record = await db.get(AcademicRecord, record_id)
    if not record or (record.deleted_at is not None and not include_deleted):
        raise NotFoundError("Academic record", record_id, field="record_id")
    return record


async def create_record(db: AsyncSession, payload: AcademicRecordCreate) -> AcademicRecordResponse:
    conflict = "An academic record already exists for this student, subject, term and year; update it instead"
    async with atomic(db, conflict, entity="AcademicRecord", constraint=UNIQUE_KEY):
        await catalog.require_student(db, payload.student_id)
        await catalog.require_class(db, payload.class_id)
        await catalog.require_subject(db, payload.subject_id)
        await catalog.require_school_year(db, payload.school_year_id)
        await catalog.require_term(db, payload.term_id, payload.school_year_id)

        result = await db.execute(
            select(AcademicRecord).where(
                AcademicRecord.student_id == payload.student_id,
                AcademicRecord.subject_id == payload.subject_id,
                AcademicRecord.term_id == payload.term_id,
                AcademicRecord.school_year_id == payload.school_year_id,
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            details = {"entity": "AcademicRecord", "record_id": str(existing.id), "constraint": UNIQUE_KEY}
            if existing.deleted_at is not None:
                raise ConflictError(
                    "A deleted academic record exists for this student, subject, term and year; restore it instead",
                    **details,
                )
            raise ConflictError(conflict, **details)

        record = AcademicRecord(
            student_id=payload.student_id,
            class_id=payload.class_id,
            subject_id=payload.subject_id,
            term_id=payload.term_id,
            school_year_id=payload.school_year_id,
            final_score=payload.final_score,
            final_grade=payload.final_grade.strip().upper(),
            is_published=False,
            is_promoted=False,
        )
        db.add(record)
    await db.refresh(record)
    logger.info("academic_record_created", record_id=str(record.id), student_id=str(record.student_id))
    return _to_response(record)


async def get_record(db: AsyncSession, record_id: UUID) -> AcademicRecordResponse:
    return _to_response(await _require_record(db, record_id))


async def update_record(db: AsyncSession, record_id: UUID, payload: AcademicRecordUpdate) -> AcademicRecordResponse:
    async with atomic(db):
        record = await _require_record(db, record_id)
        if payload.final_score is not None:
            record.final_score = payload.final_score
        if payload.final_grade is not None:
            record.final_grade = payload.final_grade.strip().upper()
    await db.refresh(record)
    logger.info("academic_record_updated", record_id=str(record_id))
    return _to_response(record)


async def _set_published(db: AsyncSession, record_id: UUID, value: bool) -> AcademicRecordResponse:
    async with atomic(db):
        record = await _require_record(db, record_id)
        record.is_published = value
    await db.refresh(record)
    logger.info("academic_record_publication_changed", record_id=str(record_id), is_published=value)
    return _to_response(record)


async def publish(db: AsyncSession, record_id: UUID) -> AcademicRecordResponse:
    """Make the record visible to reports and promotion. Score and grade are untouched."""
    return await _set_published(db, record_id, True)


async def unpublish(db: AsyncSession, record_id: UUID) -> AcademicRecordResponse:
    return await _set_published(db, record_id, False)


async def delete_record(db: AsyncSession, record_id: UUID) -> None:
    async with atomic(db):
        record = await _require_record(db, record_id)
        record.deleted_at = datetime.utcnow()
    logger.info("academic_record_deleted", record_id=str(record_id))


async def restore_record(db: AsyncSession, record_id: UUID) -> AcademicRecordResponse:
    async with atomic(db):
        record = await _require_record(db, record_id, include_deleted=True)
        if record.deleted_at is None:
            raise ConflictError(
                "Academic record is not deleted",
                entity="AcademicRecord",
                record_id=str(record_id),
                field="deleted_at",
            )
        record.deleted_at = None
    await db.refresh(record)
    logger.info("academic_record_restored", record_id=str(record_id))
    return _to_response(record)


async def list_for_student_term(
    db: AsyncSession,
    student_id: UUID,
    term_id: UUID,
    school_year_id: UUID,
) -> List[AcademicRecordResponse]:
    """Every live record (published or not) of the student for the term, by subject name."""
    await catalog.require_student(db, student_id)
    result = await db.execute(
        select(AcademicRecord, Subject.name)
        .join(Subject, Subject.id == AcademicRecord.subject_id)
        .where(
            AcademicRecord.student_id == student_id,
            AcademicRecord.term_id == term_id,
            AcademicRecord.school_year_id == school_year_id,
            AcademicRecord.deleted_at.is_(None),
        )
        .order_by(Subject.name)
    )
    return [_to_response(r, subject_name) for r, subject_name in result.all()]


async def set_publication(db: AsyncSession, payload: PublicationRequest) -> PublicationResponse:
    async with atomic(db):
        await catalog.require_school_year(db, payload.school_year_id)
        await catalog.require_term(db, payload.term_id, payload.school_year_id)
        if payload.class_id is not None:
            await catalog.require_class(db, payload.class_id)
        stmt = update(AcademicRecord).where(
            AcademicRecord.school_year_id == payload.school_year_id,
            AcademicRecord.term_id == payload.term_id,
            AcademicRecord.deleted_at.is_(None),
        )
        if payload.class_id is not None:
            stmt = stmt.where(AcademicRecord.class_id == payload.class_id)
        result = await db.execute(
            stmt.values(is_published=payload.publish, updated_at=datetime.utcnow()).execution_options(
                synchronize_session=False
            )
        )
        affected = result.rowcount or 0
    logger.info(
        "academic_records_publication_changed",
        school_year_id=str(payload.school_year_id),
        term_id=str(payload.term_id),
        class_id=str(payload.class_id) if payload.class_id else None,
        is_published=payload.publish,
        affected=affected,
    )
    return PublicationResponse(
        school_year_id=payload.school_year_id,
        term_id=payload.term_id,
        class_id=payload.class_id,
        is_published=payload.publish,
        affected=affected,
    )
