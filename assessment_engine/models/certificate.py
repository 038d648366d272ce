"""
Certificate model - issued course completion certificates
"""
from sqlalchemy import Column, String, Integer, Boolean, Float, TIMESTAMP, Uuid, UniqueConstraint, func
from assessment_engine.database import Base
import uuid


class Certificate(Base):
    """
    Certificates table - at most one per learner and course
    """
    __tablename__ = "certificates"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_certificates_user_course"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    course_id = Column(Uuid, nullable=False, index=True)
    certificate_number = Column(String(32), unique=True, nullable=False)
    verification_code = Column(String(32), unique=True, nullable=False)
    final_score = Column(Float)
    time_spent = Column(Integer)  # seconds
    is_valid = Column(Boolean, nullable=False, default=True)
    issued_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Certificate(number={self.certificate_number}, user_id={self.user_id}, course_id={self.course_id})>"
