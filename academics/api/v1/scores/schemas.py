from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from academics.core.enums import ScoreEntryStatus


class ScoreEntry(BaseModel):
    """score=None means "not yet graded": reported back as skipped, nothing is written."""

    student_id: UUID
    score: Optional[Decimal] = None
    remarks: Optional[str] = Field(None, max_length=1000)


class ScoreSubmission(BaseModel):
    entries: List[ScoreEntry]


class ScoreEntryResult(BaseModel):
    student_id: UUID
    status: ScoreEntryStatus
    score_id: Optional[UUID] = None
    reason: Optional[str] = None


class ScoreSubmissionResponse(BaseModel):
    assessment_id: UUID
    results: List[ScoreEntryResult]
    created: int = 0
    updated: int = 0
    skipped: int = 0


class ScoreUpdate(BaseModel):
    score: Decimal
    remarks: Optional[str] = Field(None, max_length=1000)


class ScoreResponse(BaseModel):
    id: UUID
    student_id: UUID
    assessment_id: UUID
    score: Decimal
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScoreSheetRow(BaseModel):
    """One roster line. score_id/score are None for students not graded yet."""

    student_id: UUID
    student_name: str
    student_number: str
    score_id: Optional[UUID] = None
    score: Optional[Decimal] = None
    remarks: Optional[str] = None


class ScoreSheetResponse(BaseModel):
    assessment_id: UUID
    assessment_title: str
    max_score: Decimal
    class_id: Optional[UUID] = None
    rows: List[ScoreSheetRow]
