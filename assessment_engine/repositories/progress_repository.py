"""
Course progress collaborator - completion percentage and time-on-task
"""
import logging
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session

from assessment_engine.exceptions import UpstreamUnavailableError
from assessment_engine.models import CourseProgress, LessonProgress
from assessment_engine.repositories.base import upstream_call

logger = logging.getLogger(__name__)


class ProgressRepository:
    """Reads progress figures and rejects values outside their valid range"""

    def get_course_progress(self, db: Session, course_id: UUID, user_id: UUID) -> float:
        """Course completion percentage (0-100); 0 when nothing was reported yet"""
        with upstream_call("Progress service"):
            progress = db.query(CourseProgress.progress).filter(
                CourseProgress.course_id == course_id,
                CourseProgress.user_id == user_id,
            ).scalar()

        if progress is None:
            return 0.0
        if not 0 <= progress <= 100:
            logger.error(f"Malformed progress {progress} for user {user_id}, course {course_id}")
            raise UpstreamUnavailableError(
                "Progress service returned an out-of-range percentage",
                detail={"progress": progress},
            )
        return float(progress)

    def get_time_spent(self, db: Session, course_id: UUID, user_id: UUID) -> int:
        """Total study time for the course in seconds"""
        with upstream_call("Progress service"):
            records = db.query(LessonProgress.time_spent).filter(
                LessonProgress.course_id == course_id,
                LessonProgress.user_id == user_id,
            ).all()

        total = 0
        for (seconds,) in records:
            if seconds is None:
                continue
            if seconds < 0:
                logger.error(f"Negative lesson time {seconds} for user {user_id}, course {course_id}")
                raise UpstreamUnavailableError(
                    "Progress service returned a negative time",
                    detail={"time_spent": seconds},
                )
            total += seconds
        return total


# Global instance
progress_repository = ProgressRepository()
