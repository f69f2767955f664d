import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Index, String, Uuid, text

from academics.db.session import Base


class SchoolYear(Base):
    """
    School year owned by the catalog collaborator.
    is_current is the single source of truth for "current"; at most one row may carry it.
    """

    __tablename__ = "school_years"
    __table_args__ = (
        Index(
            "uq_school_year_current",
            "is_current",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False, unique=True)  # e.g. "2025-2026"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_current = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
