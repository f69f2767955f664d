import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, Uuid

from academics.db.session import Base


class Department(Base):
    """Department master data. Headship lives in teaching_assignments (is_hod rows)."""

    __tablename__ = "departments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
