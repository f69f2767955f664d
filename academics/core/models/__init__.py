from academics.core.models.school_year import SchoolYear
from academics.core.models.term import Term
from academics.core.models.class_model import SchoolClass
from academics.core.models.department import Department
from academics.core.models.subject import Subject
from academics.core.models.student import Student
from academics.core.models.assessment_type import AssessmentType
from academics.core.models.assessment import Assessment
from academics.core.models.student_assessment_score import StudentAssessmentScore
from academics.core.models.academic_record import AcademicRecord
from academics.core.models.teaching_assignment import TeachingAssignment

__all__ = [
    "AcademicRecord",
    "Assessment",
    "AssessmentType",
    "Department",
    "SchoolClass",
    "SchoolYear",
    "Student",
    "StudentAssessmentScore",
    "Subject",
    "TeachingAssignment",
    "Term",
]
