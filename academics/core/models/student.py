import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid

from academics.db.session import Base


class Student(Base):
    """
    Student as seen by the records core. current_class_id is the class the student sits in now;
    promotion is the only core operation that moves it.
    """

    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    student_number = Column(String(50), nullable=False, unique=True)
    current_class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
