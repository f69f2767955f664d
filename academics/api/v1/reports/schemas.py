from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# --- Student summary ---
class StudentRecordLine(BaseModel):
    record_id: UUID
    subject_id: UUID
    subject_name: str
    class_id: UUID
    term_id: UUID
    term_name: str
    school_year_id: UUID
    school_year_name: str
    final_score: Decimal
    final_grade: str


class StudentSummaryResponse(BaseModel):
    student_id: UUID
    full_name: str
    student_number: str
    overall_average: str = Field(..., description='Mean final score to 2 decimals, or "N/A" without records')
    total_records: int
    records: List[StudentRecordLine]


# --- Student performance report (payload for document rendering) ---
class PerformanceSubjectRow(BaseModel):
    subject_id: UUID
    subject_name: str
    final_score: Decimal
    final_grade: str


class StudentPerformanceReport(BaseModel):
    student_id: UUID
    full_name: str
    student_number: str
    class_id: Optional[UUID] = None
    class_name: Optional[str] = None
    school_year_id: UUID
    school_year_name: str
    term_id: UUID
    term_name: str
    subjects: List[PerformanceSubjectRow]
    overall_average: str
    overall_grade: str = Field(..., description="Fixed band of the overall average (A+ .. F, N/A)")
    generated_at: datetime


# --- Class performance ---
class SubjectAverage(BaseModel):
    subject_id: UUID
    subject_name: str
    average: float
    record_count: int


class ClassPerformance(BaseModel):
    class_id: UUID
    class_name: str
    total_students: int
    overall_average: float
    subject_averages: List[SubjectAverage]


class ClassPerformanceResponse(BaseModel):
    school_year_id: UUID
    term_id: UUID
    classes: List[ClassPerformance]


# --- Teacher / subject performance ---
class TeacherStudentResult(BaseModel):
    student_id: UUID
    full_name: str
    final_score: Decimal
    final_grade: str


class TeacherClassResult(BaseModel):
    class_id: UUID
    class_name: str
    class_average: Optional[float] = None
    students: List[TeacherStudentResult]


class TeacherSubjectReport(BaseModel):
    teacher_id: UUID
    subject_id: UUID
    subject_name: str
    term_id: UUID
    school_year_id: UUID
    classes: List[TeacherClassResult]
