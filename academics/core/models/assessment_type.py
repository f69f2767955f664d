import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Numeric, String, Uuid

from academics.db.session import Base


class AssessmentType(Base):
    """Category of grading event: continuous assessment or end-of-term exam, with a weight in [0, 100]."""

    __tablename__ = "assessment_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    kind = Column(String(20), nullable=False)  # continuous | endOfTerm
    weight = Column(Numeric(5, 2), nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
