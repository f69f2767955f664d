from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from academics.auth.dependencies import get_current_user
from academics.auth.rbac import require_roles
from academics.auth.schemas import CurrentUser
from academics.core.enums import UserRole
from academics.core.exceptions import ServiceError
from academics.db.session import get_db

from . import service
from .schemas import ScoreResponse, ScoreSheetResponse, ScoreSubmission, ScoreSubmissionResponse, ScoreUpdate

router = APIRouter(prefix="/api/v1", tags=["scores"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

require_grader = require_roles(UserRole.TEACHER.value)


@router.post(
    "/assessments/{assessment_id}/scores",
    response_model=ScoreSubmissionResponse,
)
async def submit_scores(
    assessment_id: UUID,
    payload: ScoreSubmission,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_grader),
):
    """
    Create or update scores for many students at once. Safe to re-send: existing scores are updated in place.
    Entries with no score are reported as skipped. One invalid entry rejects the whole batch.
    """
    try:
        return await service.submit_scores(db, assessment_id, payload, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/assessments/{assessment_id}/scores",
    response_model=ScoreSheetResponse,
    dependencies=[Depends(require_grader)],
)
async def get_scores_for_assessment(
    assessment_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.get_scores_for_assessment(db, assessment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put(
    "/scores/{score_id}",
    response_model=ScoreResponse,
)
async def update_score(
    score_id: UUID,
    payload: ScoreUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_grader),
):
    try:
        return await service.update_score(db, score_id, payload, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/assessments/{assessment_id}/marking-template",
    dependencies=[Depends(require_grader)],
)
async def download_marking_template(
    assessment_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Excel sheet listing the roster with an editable score column. Fill it and upload via POST .../scores/import."""
    try:
        content = await service.build_marking_template_for_assessment(db, assessment_id)
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename=marks_{assessment_id}.xlsx"},
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/assessments/{assessment_id}/scores/import",
    response_model=ScoreSubmissionResponse,
)
async def import_scores(
    assessment_id: UUID,
    file: UploadFile = File(..., description="Marking template from GET .../marking-template with the score column filled"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_grader),
):
    """Same all-or-nothing rules as the JSON submission."""
    content = await file.read()
    try:
        return await service.import_scores_from_workbook(db, assessment_id, file.filename, content, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
