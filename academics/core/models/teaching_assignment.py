"""Teacher duties stored as assignments: subject teaching (subject, class, term, year) or department headship."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Uuid, text

from academics.db.session import Base


class TeachingAssignment(Base):
    __tablename__ = "teaching_assignments"
    __table_args__ = (
        # One teacher per subject/class/term/year.
        Index(
            "uq_teaching_assignment_scope",
            "subject_id", "class_id", "term_id", "school_year_id",
            unique=True,
            postgresql_where=text("NOT is_hod"),
            sqlite_where=text("is_hod = 0"),
        ),
        # One head per department per year.
        Index(
            "uq_teaching_assignment_hod",
            "department_id", "school_year_id",
            unique=True,
            postgresql_where=text("is_hod"),
            sqlite_where=text("is_hod = 1"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, nullable=False, index=True)  # identity-provider user id
    school_year_id = Column(Uuid, ForeignKey("school_years.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=True)
    term_id = Column(Uuid, ForeignKey("terms.id", ondelete="CASCADE"), nullable=True)
    department_id = Column(Uuid, ForeignKey("departments.id", ondelete="CASCADE"), nullable=True)
    is_hod = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
