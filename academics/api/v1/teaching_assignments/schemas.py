from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


# --- Duties (tagged by "type"; unknown fields are rejected) ---
class HodDuty(BaseModel):
    """Head of department for one school year."""

    type: Literal["HOD"]
    department_id: UUID
    school_year_id: UUID

    class Config:
        extra = "forbid"


class SupervisorDuty(BaseModel):
    """Class supervisor (form teacher)."""

    type: Literal["supervisor"]
    class_id: UUID

    class Config:
        extra = "forbid"


class TeachingDuty(BaseModel):
    type: Literal["teaching"]
    subject_id: UUID
    class_id: UUID
    term_id: UUID
    school_year_id: UUID

    class Config:
        extra = "forbid"


TeacherDuty = Annotated[Union[HodDuty, SupervisorDuty, TeachingDuty], Field(discriminator="type")]


class DutyAssignmentRequest(BaseModel):
    duties: List[TeacherDuty] = Field(..., min_length=1)


class DutyResult(BaseModel):
    type: str
    status: Literal["assigned", "unchanged"]
    assignment_id: Optional[UUID] = None
    class_id: Optional[UUID] = None


class DutyAssignmentResponse(BaseModel):
    teacher_id: UUID
    results: List[DutyResult]


class TeachingAssignmentResponse(BaseModel):
    id: UUID
    teacher_id: UUID
    school_year_id: UUID
    subject_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    term_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    is_hod: bool
    created_at: datetime

    class Config:
        from_attributes = True


class DepartmentHodResponse(BaseModel):
    department_id: UUID
    school_year_id: UUID
    teacher_id: UUID
    assignment_id: UUID
