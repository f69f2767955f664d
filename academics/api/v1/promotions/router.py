from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from academics.auth.rbac import require_admin
from academics.core.exceptions import ServiceError
from academics.db.session import get_db

from . import service
from .schemas import ClassPromotionRequest, ClassPromotionResponse, PromotionRequest, PromotionResult

router = APIRouter(prefix="/api/v1/promotions", tags=["promotions"])


@router.post(
    "/students/{student_id}",
    response_model=PromotionResult,
    dependencies=[Depends(require_admin)],
)
async def promote_student(
    student_id: UUID,
    payload: PromotionRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Decide promotion from the student's published results in the last term of the current year.
    Promoted students move to target_class_id; retained students stay where they are.
    412 when the student has no published results for that term.
    """
    try:
        return await service.promote_student(db, student_id, payload.target_class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/classes/{class_id}",
    response_model=ClassPromotionResponse,
    dependencies=[Depends(require_admin)],
)
async def promote_class(
    class_id: UUID,
    payload: ClassPromotionRequest,
    db: AsyncSession = Depends(get_db),
):
    """Evaluate every student in the class. Set preview=true to see the decisions without saving them."""
    try:
        return await service.promote_class(db, class_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
