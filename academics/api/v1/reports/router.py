from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from academics.auth.dependencies import get_current_user
from academics.auth.rbac import require_roles
from academics.auth.schemas import CurrentUser
from academics.core.enums import UserRole
from academics.core.exceptions import ServiceError
from academics.db.session import get_db

from . import service
from .schemas import (
    ClassPerformanceResponse,
    StudentPerformanceReport,
    StudentSummaryResponse,
    TeacherSubjectReport,
)

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


def _forbid_other_student(current_user: CurrentUser, student_id: UUID) -> None:
    if current_user.is_student and current_user.id != student_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Students can only view their own results")


@router.get(
    "/students/{student_id}/summary",
    response_model=StudentSummaryResponse,
)
async def get_student_summary(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """All published results of the student, newest year and term first, with the overall average."""
    _forbid_other_student(current_user, student_id)
    try:
        return await service.get_student_summary(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/students/{student_id}/years/{school_year_id}/terms/{term_id}",
    response_model=StudentPerformanceReport,
)
async def get_student_performance_report(
    student_id: UUID,
    school_year_id: UUID,
    term_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    _forbid_other_student(current_user, student_id)
    try:
        return await service.get_student_performance_report(db, student_id, school_year_id, term_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/classes/years/{school_year_id}/terms/{term_id}",
    response_model=ClassPerformanceResponse,
    dependencies=[Depends(require_roles(UserRole.TEACHER.value))],
)
async def get_class_performance(
    school_year_id: UUID,
    term_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.get_class_performance(db, school_year_id, term_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/teachers/{teacher_id}/subjects/{subject_id}/years/{school_year_id}/terms/{term_id}",
    response_model=TeacherSubjectReport,
)
async def get_teacher_subject_report(
    teacher_id: UUID,
    subject_id: UUID,
    school_year_id: UUID,
    term_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER.value)),
):
    """Teachers only see the classes of their own assignments."""
    if current_user.is_teacher and current_user.id != teacher_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teachers can only view their own report")
    try:
        return await service.get_teacher_subject_report(db, teacher_id, subject_id, school_year_id, term_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
