"""One gradable event scoped to subject, class (optional for school-wide exams), term and year."""

import uuid
from datetime import date, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint, Uuid, text

from academics.db.session import Base


class Assessment(Base):
    __tablename__ = "assessments"
    __table_args__ = (
        UniqueConstraint(
            "title", "subject_id", "class_id", "term_id", "school_year_id",
            name="uq_assessment_title_scope",
        ),
        # NULL class_id never collides in the constraint above; school-wide titles need their own index.
        Index(
            "uq_assessment_title_school_wide",
            "title", "subject_id", "term_id", "school_year_id",
            unique=True,
            postgresql_where=text("class_id IS NULL"),
            sqlite_where=text("class_id IS NULL"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, default=date.today)
    max_score = Column(Numeric(6, 2), nullable=False, default=100)
    # Orphaned (NULL) when its type is deleted.
    assessment_type_id = Column(Uuid, ForeignKey("assessment_types.id", ondelete="SET NULL"), nullable=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=True)
    term_id = Column(Uuid, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    school_year_id = Column(Uuid, ForeignKey("school_years.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
