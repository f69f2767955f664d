from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from academics.auth.dependencies import get_current_user
from academics.auth.rbac import require_admin
from academics.core.exceptions import ServiceError
from academics.db.session import get_db

from . import service
from .schemas import (
    DepartmentHodResponse,
    DutyAssignmentRequest,
    DutyAssignmentResponse,
    TeachingAssignmentResponse,
)

router = APIRouter(prefix="/api/v1/teaching-assignments", tags=["teaching-assignments"])


@router.post(
    "/teachers/{teacher_id}/duties",
    response_model=DutyAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def assign_duties(
    teacher_id: UUID,
    payload: DutyAssignmentRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Assign duties to a teacher in one go. Each duty is tagged by "type":
    HOD (department_id, school_year_id), supervisor (class_id) or
    teaching (subject_id, class_id, term_id, school_year_id).
    """
    try:
        return await service.assign_duties(db, teacher_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "",
    response_model=List[TeachingAssignmentResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_assignments(
    teacher_id: Optional[UUID] = Query(None),
    school_year_id: Optional[UUID] = Query(None),
    term_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    department_id: Optional[UUID] = Query(None),
    is_hod: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_assignments(
        db,
        teacher_id=teacher_id,
        school_year_id=school_year_id,
        term_id=term_id,
        subject_id=subject_id,
        class_id=class_id,
        department_id=department_id,
        is_hod=is_hod,
    )


@router.delete(
    "/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_assignment(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        await service.delete_assignment(db, assignment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/departments/{department_id}/hod",
    response_model=DepartmentHodResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_department_hod(
    department_id: UUID,
    school_year_id: Optional[UUID] = Query(None, description="Defaults to the current school year"),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.get_department_hod(db, department_id, school_year_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
