"""
Unit tests for certificate eligibility and issuance.
"""
from tests.test_fixtures import DatabaseTestCase, FakeClock, TestFixtures

import unittest
import uuid
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from assessment_engine.database import SessionLocal
from assessment_engine.exceptions import ConflictError, NotEligibleError, UpstreamUnavailableError
from assessment_engine.models import Certificate
from assessment_engine.repositories import certificate_repository
from assessment_engine.services.attempt_service import AttemptSessionService
from assessment_engine.services.eligibility_service import EligibilityService
from assessment_engine.services.grading_service import GradingService
from assessment_engine.utils.attempt_timer import AttemptTimerRegistry


class EligibilityTestCase(DatabaseTestCase):
    """A learner who meets every requirement unless a test changes one."""

    def setUp(self):
        super().setUp()
        clock = FakeClock()
        self.sessions = AttemptSessionService(
            grader=GradingService(penalty_weight=1.0, precision=1),
            timers=AttemptTimerRegistry(clock=clock),
            clock=clock,
            session_factory=SessionLocal,
        )
        self.service = EligibilityService(minimum_time_seconds=600)
        self.course_id = uuid.uuid4()
        self.user_id = uuid.uuid4()

        self.enrollment = TestFixtures.add_enrollment(self.db, self.course_id, self.user_id)
        self.course_progress = TestFixtures.add_course_progress(self.db, self.course_id, self.user_id)
        TestFixtures.add_lesson_time(self.db, self.course_id, self.user_id, 900)
        self.required_quiz = TestFixtures.add_quiz(self.db, course_id=self.course_id, is_required=True)
        self.take_quiz(self.required_quiz, "B", ["x", "y"])

    def take_quiz(self, quiz, q1, q2):
        attempt = self.sessions.start_attempt(self.db, quiz.id, self.user_id)
        self.sessions.record_answer(self.db, attempt.id, "q1", q1)
        self.sessions.record_answer(self.db, attempt.id, "q2", q2)
        return self.sessions.submit_attempt(self.db, attempt.id)

    def check(self):
        return self.service.check_eligibility(self.db, self.course_id, self.user_id)


class TestCheckEligibility(EligibilityTestCase):

    def test_learner_meeting_everything_is_eligible(self):
        report = self.check()

        self.assertTrue(report.eligible)
        self.assertEqual(report.missing_requirements, [])
        self.assertTrue(report.requirements.all_met())
        self.assertEqual(report.details.progress, 100.0)
        self.assertEqual(report.details.time_spent, 900)
        self.assertEqual(report.details.required_quizzes, 1)
        self.assertEqual(report.details.passed_quizzes, 1)
        self.assertEqual(report.details.average_score, 100.0)

    def test_completed_enrollment_is_valid(self):
        self.enrollment.status = "COMPLETED"
        self.db.commit()
        self.assertTrue(self.check().eligible)

    def test_dropped_enrollment(self):
        self.enrollment.status = "DROPPED"
        self.db.commit()

        report = self.check()
        self.assertFalse(report.eligible)
        self.assertFalse(report.requirements.has_valid_enrollment)
        self.assertEqual(report.missing_requirements, ["Valid enrollment required"])

    def test_missing_enrollment_is_a_single_failure(self):
        self.db.delete(self.enrollment)
        self.db.commit()

        report = self.check()
        self.assertFalse(report.requirements.has_valid_enrollment)
        self.assertTrue(report.requirements.course_completed)
        self.assertEqual(report.details.progress, 100.0)
        self.assertEqual(report.missing_requirements, ["Valid enrollment required"])

    def test_no_reported_progress_reads_as_zero(self):
        self.db.delete(self.course_progress)
        self.db.commit()

        report = self.check()
        self.assertTrue(report.requirements.has_valid_enrollment)
        self.assertEqual(report.missing_requirements, ["Course completion required (0% completed)"])

    def test_revoked_certificate_does_not_block(self):
        self.db.add(Certificate(
            course_id=self.course_id,
            user_id=self.user_id,
            certificate_number="CERT-2020-OLD",
            verification_code="WWT-2020-OLD",
            is_valid=False,
        ))
        self.db.commit()

        report = self.check()
        self.assertTrue(report.eligible)
        self.assertTrue(report.requirements.no_duplicate_certificate)

    def test_incomplete_course(self):
        self.course_progress.progress = 50
        self.db.commit()

        report = self.check()
        self.assertFalse(report.requirements.course_completed)
        self.assertEqual(report.missing_requirements, ["Course completion required (50% completed)"])

    def test_unpassed_required_quiz(self):
        second = TestFixtures.add_quiz(self.db, course_id=self.course_id, is_required=True)
        self.take_quiz(second, "A", ["z"])

        report = self.check()
        self.assertFalse(report.requirements.required_quizzes_passed)
        self.assertEqual(report.missing_requirements, ["Required quizzes must be passed (1/2 passed)"])
        self.assertEqual(report.details.average_score, 50.0)

    def test_optional_quiz_does_not_block(self):
        optional = TestFixtures.add_quiz(self.db, course_id=self.course_id)
        self.take_quiz(optional, "A", ["z"])
        self.assertTrue(self.check().eligible)

    def test_best_attempt_counts(self):
        second = TestFixtures.add_quiz(self.db, course_id=self.course_id, is_required=True)
        self.take_quiz(second, "A", ["z"])
        self.take_quiz(second, "B", ["x", "y"])

        report = self.check()
        self.assertTrue(report.eligible)
        self.assertEqual(report.details.passed_quizzes, 2)

    def test_not_enough_study_time(self):
        strict = EligibilityService(minimum_time_seconds=3600)

        report = strict.check_eligibility(self.db, self.course_id, self.user_id)
        self.assertFalse(report.requirements.minimum_time_spent)
        self.assertEqual(
            report.missing_requirements,
            ["Minimum study time required: 60 minutes (current: 15 minutes)"],
        )

    def test_existing_certificate(self):
        self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)

        report = self.check()
        self.assertFalse(report.requirements.no_duplicate_certificate)
        self.assertEqual(report.missing_requirements, ["Certificate already issued for this course"])

    def test_every_failure_is_reported(self):
        stranger = uuid.uuid4()
        report = self.service.check_eligibility(self.db, self.course_id, stranger)

        self.assertFalse(report.eligible)
        self.assertEqual(len(report.missing_requirements), 4)
        self.assertTrue(report.requirements.no_duplicate_certificate)


class TestCollaboratorFailures(EligibilityTestCase):

    def test_unreachable_storage(self):
        failure = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with patch.object(self.db, "query", side_effect=failure):
            with self.assertRaises(UpstreamUnavailableError):
                self.check()

    def test_out_of_range_progress(self):
        self.course_progress.progress = 150
        self.db.commit()
        with self.assertRaises(UpstreamUnavailableError):
            self.check()

    def test_negative_study_time(self):
        TestFixtures.add_lesson_time(self.db, self.course_id, self.user_id, -30)
        with self.assertRaises(UpstreamUnavailableError):
            self.check()


class TestGenerateCertificate(EligibilityTestCase):

    def test_eligible_learner_receives_certificate(self):
        certificate = self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)

        self.assertTrue(certificate.certificate_number.startswith("CERT-"))
        self.assertTrue(certificate.verification_code.startswith("WWT-"))
        self.assertEqual(certificate.final_score, 100.0)
        self.assertEqual(certificate.time_spent, 900)

    def test_ineligible_learner_is_refused_with_report(self):
        self.course_progress.progress = 80
        self.db.commit()

        with self.assertRaises(NotEligibleError) as ctx:
            self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)

        self.assertFalse(ctx.exception.report.eligible)
        self.assertEqual(ctx.exception.detail["missing_requirements"], ["Course completion required (80% completed)"])
        self.assertEqual(self.db.query(Certificate).count(), 0)

    def test_second_request_is_not_eligible(self):
        self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)
        with self.assertRaises(NotEligibleError):
            self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)

    def test_revoked_certificate_is_reinstated(self):
        self.db.add(Certificate(
            course_id=self.course_id,
            user_id=self.user_id,
            certificate_number="CERT-2020-OLD",
            verification_code="WWT-2020-OLD",
            final_score=10.0,
            is_valid=False,
        ))
        self.db.commit()

        certificate = self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)

        self.assertTrue(certificate.is_valid)
        self.assertNotEqual(certificate.certificate_number, "CERT-2020-OLD")
        self.assertNotEqual(certificate.verification_code, "WWT-2020-OLD")
        self.assertEqual(certificate.final_score, 100.0)
        self.assertEqual(self.db.query(Certificate).count(), 1)

    def test_concurrent_issue_conflicts(self):
        """The duplicate check passed but another request inserted first."""
        self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)

        with patch.object(certificate_repository, "find_certificate", return_value=None):
            with self.assertRaises(ConflictError):
                self.service.generate_certificate_if_eligible(self.db, self.course_id, self.user_id)

        self.assertEqual(self.db.query(Certificate).count(), 1)


if __name__ == "__main__":
    unittest.main()
