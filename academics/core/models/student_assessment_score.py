import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Text, UniqueConstraint, Uuid

from academics.db.session import Base


class StudentAssessmentScore(Base):
    """One student's score on one assessment. Deleted together with its assessment."""

    __tablename__ = "student_assessment_scores"
    __table_args__ = (
        UniqueConstraint("student_id", "assessment_id", name="uq_student_assessment_score"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    assessment_id = Column(Uuid, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Numeric(6, 2), nullable=False)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
