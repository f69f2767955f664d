from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from academics.core.enums import PromotionDecision


class PromotionRequest(BaseModel):
    target_class_id: UUID = Field(..., description="Class the student moves to if promoted")


class PromotionResult(BaseModel):
    """Outcome of evaluating one student on the terminal term of the current school year."""

    student_id: UUID
    full_name: Optional[str] = None
    decision: PromotionDecision
    passed_count: int = 0
    total_count: int = 0
    new_class_id: Optional[UUID] = Field(None, description="Set only when promoted")
    school_year_id: UUID
    term_id: UUID
    reason: Optional[str] = None


class ClassPromotionRequest(BaseModel):
    target_class_id: UUID
    preview: bool = Field(False, description="Evaluate every student but write nothing")


class ClassPromotionResponse(BaseModel):
    class_id: UUID
    target_class_id: UUID
    school_year_id: UUID
    term_id: UUID
    preview: bool
    promoted: int
    retained: int
    skipped: int
    results: List[PromotionResult]
