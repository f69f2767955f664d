from enum import Enum


class AssessmentKind(str, Enum):
    CONTINUOUS = "continuous"
    END_OF_TERM = "endOfTerm"


class ScoreEntryStatus(str, Enum):
    created = "created"
    updated = "updated"
    skipped = "skipped"


class PromotionDecision(str, Enum):
    promoted = "promoted"
    retained = "retained"
    skipped = "skipped"  # batch promotion only: evaluation could not proceed


class DutyType(str, Enum):
    HOD = "HOD"
    SUPERVISOR = "supervisor"
    TEACHING = "teaching"


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"
