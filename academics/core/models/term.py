"""Terms inside a school year. The terminal term is the one with the highest sequence."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid

from academics.db.session import Base


class Term(Base):
    __tablename__ = "terms"
    __table_args__ = (
        UniqueConstraint("school_year_id", "sequence", name="uq_term_year_sequence"),
        UniqueConstraint("school_year_id", "name", name="uq_term_year_name"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_year_id = Column(Uuid, ForeignKey("school_years.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(50), nullable=False)  # "Term 1" .. "Term 3"
    sequence = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
