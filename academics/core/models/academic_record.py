import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid

from academics.db.session import Base


class AcademicRecord(Base):
    """
    Authoritative end-of-term result for one student in one subject/term/year.
    One row per (student, subject, term, year), tombstones included: a deleted row still holds its key
    and is brought back with restore rather than re-created.
    finalScore and finalGrade are set independently by the caller; nothing here derives one from the other.
    Only published rows are visible to reporting and promotion.
    """

    __tablename__ = "academic_records"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "term_id", "school_year_id",
            name="uq_academic_record_student_subject_term_year",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False)  # class the student sat in for this term
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False)
    term_id = Column(Uuid, ForeignKey("terms.id"), nullable=False)
    school_year_id = Column(Uuid, ForeignKey("school_years.id"), nullable=False)
    final_score = Column(Numeric(5, 2), nullable=False)
    final_grade = Column(String(2), nullable=False)
    is_published = Column(Boolean, nullable=False, default=False)
    is_promoted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
