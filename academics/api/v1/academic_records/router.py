from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from academics.auth.dependencies import get_current_user
from academics.auth.rbac import require_admin
from academics.auth.schemas import CurrentUser
from academics.core.exceptions import ServiceError
from academics.db.session import get_db

from . import service
from .schemas import (
    AcademicRecordCreate,
    AcademicRecordResponse,
    AcademicRecordUpdate,
    PublicationRequest,
    PublicationResponse,
)

router = APIRouter(prefix="/api/v1/academic-records", tags=["academic-records"])


@router.post(
    "",
    response_model=AcademicRecordResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_record(
    payload: AcademicRecordCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create the end-of-term result for a student/subject/term/year. Fails with 409 if one already exists."""
    try:
        return await service.create_record(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/publication",
    response_model=PublicationResponse,
    dependencies=[Depends(require_admin)],
)
async def set_publication(
    payload: PublicationRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.set_publication(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/students/{student_id}/years/{school_year_id}/terms/{term_id}",
    response_model=List[AcademicRecordResponse],
)
async def list_for_student_term(
    student_id: UUID,
    school_year_id: UUID,
    term_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Includes unpublished records; students can only see their own, and only once published."""
    if current_user.is_student and current_user.id != student_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    try:
        records = await service.list_for_student_term(db, student_id, term_id, school_year_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    if current_user.is_student:
        records = [r for r in records if r.is_published]
    return records


@router.get(
    "/{record_id}",
    response_model=AcademicRecordResponse,
    dependencies=[Depends(require_admin)],
)
async def get_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.get_record(db, record_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put(
    "/{record_id}",
    response_model=AcademicRecordResponse,
    dependencies=[Depends(require_admin)],
)
async def update_record(
    record_id: UUID,
    payload: AcademicRecordUpdate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.update_record(db, record_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{record_id}/publish",
    response_model=AcademicRecordResponse,
    dependencies=[Depends(require_admin)],
)
async def publish_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.publish(db, record_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{record_id}/unpublish",
    response_model=AcademicRecordResponse,
    dependencies=[Depends(require_admin)],
)
async def unpublish_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.unpublish(db, record_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete(
    "/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Soft delete. The record can be brought back with POST /{record_id}/restore."""
    try:
        await service.delete_record(db, record_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{record_id}/restore",
    response_model=AcademicRecordResponse,
    dependencies=[Depends(require_admin)],
)
async def restore_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.restore_record(db, record_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
