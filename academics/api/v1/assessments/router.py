from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from academics.auth.dependencies import get_current_user
from academics.auth.rbac import require_admin
from academics.core.enums import AssessmentKind
from academics.core.exceptions import ServiceError
from academics.db.session import get_db

from . import service
from .schemas import (
    AssessmentCreate,
    AssessmentResponse,
    AssessmentTypeCreate,
    AssessmentTypeResponse,
    AssessmentTypeUpdate,
    AssessmentUpdate,
)

router = APIRouter(prefix="/api/v1", tags=["assessments"])


# ----- Assessment types -----
@router.post(
    "/assessment-types",
    response_model=AssessmentTypeResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_assessment_type(
    payload: AssessmentTypeCreate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.create_assessment_type(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/assessment-types",
    response_model=List[AssessmentTypeResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_assessment_types(
    kind: Optional[AssessmentKind] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_assessment_types(db, kind=kind)


@router.get(
    "/assessment-types/{assessment_type_id}",
    response_model=AssessmentTypeResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_assessment_type(
    assessment_type_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.get_assessment_type(db, assessment_type_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put(
    "/assessment-types/{assessment_type_id}",
    response_model=AssessmentTypeResponse,
    dependencies=[Depends(require_admin)],
)
async def update_assessment_type(
    assessment_type_id: UUID,
    payload: AssessmentTypeUpdate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.update_assessment_type(db, assessment_type_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete(
    "/assessment-types/{assessment_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_assessment_type(
    assessment_type_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Assessments of this type are kept; their type becomes empty."""
    try:
        await service.delete_assessment_type(db, assessment_type_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ----- Assessments -----
@router.post(
    "/assessments",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_assessment(
    payload: AssessmentCreate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.create_assessment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/assessments",
    response_model=List[AssessmentResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_assessments(
    subject_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    term_id: Optional[UUID] = Query(None),
    school_year_id: Optional[UUID] = Query(None),
    kind: Optional[AssessmentKind] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_assessments(
        db,
        subject_id=subject_id,
        class_id=class_id,
        term_id=term_id,
        school_year_id=school_year_id,
        kind=kind,
    )


@router.get(
    "/assessments/{assessment_id}",
    response_model=AssessmentResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_assessment(
    assessment_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.get_assessment(db, assessment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put(
    "/assessments/{assessment_id}",
    response_model=AssessmentResponse,
    dependencies=[Depends(require_admin)],
)
async def update_assessment(
    assessment_id: UUID,
    payload: AssessmentUpdate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.update_assessment(db, assessment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete(
    "/assessments/{assessment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_assessment(
    assessment_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Deletes the assessment together with every score recorded against it."""
    try:
        await service.delete_assessment(db, assessment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return Response(status_code=status.HTTP_204_NO_CONTENT)
