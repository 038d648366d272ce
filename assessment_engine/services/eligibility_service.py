"""
Certificate eligibility service
Five independent checks folded into a single verdict with itemized reasons
"""
import logging
from typing import Dict, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from assessment_engine.config import settings
from assessment_engine.exceptions import NotEligibleError
from assessment_engine.models import Certificate
from assessment_engine.models.enrollment import VALID_STATUSES
from assessment_engine.repositories import (
    attempt_store,
    certificate_repository,
    enrollment_repository,
    progress_repository,
    quiz_catalog,
)
from assessment_engine.repositories.base import upstream_call
from assessment_engine.schemas.certificate import (
    EligibilityDetails,
    EligibilityReport,
    EligibilityRequirements,
)

logger = logging.getLogger(__name__)


class EligibilityService:
    """
    Service deciding whether a learner may receive a course certificate

    Requirements:
    - valid enrollment (ACTIVE or COMPLETED)
    - course progress at 100%
    - every required quiz passed at least once
    - minimum study time reached
    - no certificate issued yet

    An ineligible learner is a normal outcome, returned as a report. Only
    collaborator failures raise (UpstreamUnavailableError).
    """

    def __init__(self, minimum_time_seconds: Optional[int] = None):
        self.minimum_time_seconds = (
            settings.MIN_COURSE_TIME_SECONDS if minimum_time_seconds is None else minimum_time_seconds
        )

    def check_eligibility(self, db: Session, course_id: UUID, user_id: UUID) -> EligibilityReport:
        """
        Evaluate every requirement for a learner and course

        Raises:
            UpstreamUnavailableError: a collaborator is unreachable or returned malformed data
        """
        missing = []

        enrollment = enrollment_repository.get_enrollment(db, course_id, user_id)
        has_valid_enrollment = enrollment is not None and enrollment.status in VALID_STATUSES
        if not has_valid_enrollment:
            missing.append("Valid enrollment required")

        progress = progress_repository.get_course_progress(db, course_id, user_id)
        course_completed = progress >= 100
        if not course_completed:
            missing.append(f"Course completion required ({progress:g}% completed)")

        quiz_analysis = self._analyze_quiz_requirements(db, course_id, user_id)
        required_quizzes_passed = quiz_analysis["passed_count"] == quiz_analysis["required_count"]
        if not required_quizzes_passed:
            missing.append(
                f"Required quizzes must be passed "
                f"({quiz_analysis['passed_count']}/{quiz_analysis['required_count']} passed)"
            )

        time_spent = progress_repository.get_time_spent(db, course_id, user_id)
        minimum_time_spent = time_spent >= self.minimum_time_seconds
        if not minimum_time_spent:
            missing.append(
                f"Minimum study time required: {round(self.minimum_time_seconds / 60)} minutes "
                f"(current: {round(time_spent / 60)} minutes)"
            )

        existing = certificate_repository.find_certificate(db, course_id, user_id)
        no_duplicate_certificate = existing is None
        if not no_duplicate_certificate:
            missing.append("Certificate already issued for this course")

        requirements = EligibilityRequirements(
            has_valid_enrollment=has_valid_enrollment,
            course_completed=course_completed,
            required_quizzes_passed=required_quizzes_passed,
            minimum_time_spent=minimum_time_spent,
            no_duplicate_certificate=no_duplicate_certificate,
        )

        report = EligibilityReport(
            course_id=course_id,
            user_id=user_id,
            eligible=requirements.all_met(),
            requirements=requirements,
            details=EligibilityDetails(
                progress=progress,
                time_spent=time_spent,
                minimum_time_required=self.minimum_time_seconds,
                average_score=quiz_analysis["average_score"],
                required_quizzes=quiz_analysis["required_count"],
                passed_quizzes=quiz_analysis["passed_count"],
            ),
            missing_requirements=missing,
        )

        if not report.eligible:
            logger.info(f"User {user_id} not eligible for course {course_id}: {'; '.join(missing)}")
        return report

    def generate_certificate_if_eligible(self, db: Session, course_id: UUID, user_id: UUID) -> Certificate:
        """
        Issue a certificate only when every requirement is met

        Raises:
            NotEligibleError: carries the report listing what is missing
            ConflictError: a concurrent request issued the certificate first
            UpstreamUnavailableError: eligibility could not be determined
        """
        report = self.check_eligibility(db, course_id, user_id)
        if not report.eligible:
            raise NotEligibleError(report)

        average_score = report.details.average_score
        return certificate_repository.issue_certificate(
            db,
            course_id,
            user_id,
            final_score=average_score if average_score > 0 else None,
            time_spent=report.details.time_spent,
        )

    def _analyze_quiz_requirements(self, db: Session, course_id: UUID, user_id: UUID) -> Dict[str, float]:
        """Required/passed counts and the mean of best scores per attempted quiz"""
        with upstream_call("Quiz catalog"):
            quizzes = quiz_catalog.list_course_quizzes(db, course_id)
            attempts = attempt_store.list_course_attempts(db, course_id, user_id)

        best_scores = {}
        passed_quiz_ids = set()
        for attempt in attempts:
            if attempt.ungradable:
                continue
            key = str(attempt.quiz_id)
            best_scores[key] = max(best_scores.get(key, 0.0), attempt.score or 0.0)
            if attempt.passed:
                passed_quiz_ids.add(key)

        required_ids = [str(q.id) for q in quizzes if q.is_required]
        passed_required = [q_id for q_id in required_ids if q_id in passed_quiz_ids]

        average_score = sum(best_scores.values()) / len(best_scores) if best_scores else 0.0

        return {
            "required_count": len(required_ids),
            "passed_count": len(passed_required),
            "average_score": round(average_score, 2),
        }


# Global instance
eligibility_service = EligibilityService()
