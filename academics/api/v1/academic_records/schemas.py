from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AcademicRecordCreate(BaseModel):
    """final_score and final_grade are both supplied by the caller; the grade is never derived from the score."""

    student_id: UUID
    class_id: UUID
    subject_id: UUID
    term_id: UUID
    school_year_id: UUID
    final_score: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    final_grade: str = Field(..., min_length=1, max_length=2)


class AcademicRecordUpdate(BaseModel):
    final_score: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    final_grade: Optional[str] = Field(None, min_length=1, max_length=2)


class AcademicRecordResponse(BaseModel):
    id: UUID
    student_id: UUID
    class_id: UUID
    subject_id: UUID
    subject_name: Optional[str] = None
    term_id: UUID
    school_year_id: UUID
    final_score: Decimal
    final_grade: str
    is_published: bool
    is_promoted: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicationRequest(BaseModel):
    """Publish (or unpublish) every live record of a term, optionally for one class only."""

    school_year_id: UUID
    term_id: UUID
    class_id: Optional[UUID] = None
    publish: bool = True


class PublicationResponse(BaseModel):
    school_year_id: UUID
    term_id: UUID
    class_id: Optional[UUID] = None
    is_published: bool
    affected: int
