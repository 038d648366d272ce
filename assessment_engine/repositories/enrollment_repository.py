"""
Enrollment collaborator
"""
from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session

from assessment_engine.models import Enrollment
from assessment_engine.repositories.base import upstream_call


class EnrollmentRepository:

    def get_enrollment(self, db: Session, course_id: UUID, user_id: UUID) -> Optional[Enrollment]:
        with upstream_call("Enrollment service"):
            return db.query(Enrollment).filter(
                Enrollment.course_id == course_id,
                Enrollment.user_id == user_id,
            ).first()


# Global instance
enrollment_repository = EnrollmentRepository()
