from datetime import date, datetime
from datetime import date as DateType
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from academics.core.enums import AssessmentKind


# --- Assessment types ---
class AssessmentTypeCreate(BaseModel):
    """name is unique across the school."""

    name: str = Field(..., min_length=1, max_length=255, description="e.g. Continuous Assessment, End of Term Exam")
    kind: AssessmentKind
    weight: Decimal = Field(..., ge=0, le=100, decimal_places=2)


class AssessmentTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    kind: Optional[AssessmentKind] = None
    weight: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)


class AssessmentTypeResponse(BaseModel):
    id: UUID
    name: str
    kind: AssessmentKind
    weight: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Assessments ---
class AssessmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="e.g. Math Quiz 1, Term 1 Final Exam")
    description: Optional[str] = None
    date: date
    max_score: Decimal = Field(..., gt=0, le=1000, decimal_places=2)
    assessment_type_id: UUID
    subject_id: UUID
    class_id: Optional[UUID] = Field(None, description="Omit for school-wide exams")
    term_id: UUID
    school_year_id: UUID


class AssessmentUpdate(BaseModel):
    """Partial update. Sending class_id: null explicitly makes the assessment school-wide."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[DateType] = None
    max_score: Optional[Decimal] = Field(None, gt=0, le=1000, decimal_places=2)
    assessment_type_id: Optional[UUID] = None
    subject_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    term_id: Optional[UUID] = None
    school_year_id: Optional[UUID] = None


class AssessmentResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    date: date
    max_score: Decimal
    assessment_type_id: Optional[UUID] = None
    assessment_type_name: Optional[str] = None
    kind: Optional[AssessmentKind] = None
    subject_id: UUID
    class_id: Optional[UUID] = None
    term_id: UUID
    school_year_id: UUID
    created_at: datetime
    updated_at: datetime
