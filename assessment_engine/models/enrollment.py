"""
Enrollment model - learner membership in a course
"""
from sqlalchemy import Column, String, TIMESTAMP, Uuid, UniqueConstraint, func
from assessment_engine.database import Base
import uuid

ACTIVE = "ACTIVE"
COMPLETED = "COMPLETED"
DROPPED = "DROPPED"
SUSPENDED = "SUSPENDED"

VALID_STATUSES = (ACTIVE, COMPLETED)


class Enrollment(Base):
    """
    Enrollments table - one row per learner and course
    """
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    course_id = Column(Uuid, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ACTIVE)
    enrolled_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Enrollment(user_id={self.user_id}, course_id={self.course_id}, status={self.status})>"
