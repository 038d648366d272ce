"""
Attempt session service
Drives one learner's pass through a quiz: start, answer, navigate, submit
"""
import logging
from datetime import timedelta
from typing import Callable, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment_engine.config import settings
from assessment_engine.database import SessionLocal
from assessment_engine.exceptions import ConflictError, NotFoundError, ValidationError
from assessment_engine.models import QuizAttempt
from assessment_engine.models.quiz_attempt import GRADED, IN_PROGRESS
from assessment_engine.repositories import attempt_store, quiz_catalog
from assessment_engine.schemas.attempt import AttemptResponse, Direction
from assessment_engine.schemas.quiz import AnswerValue, GradedAnswer, QuestionView, QuizDefinition
from assessment_engine.services.grading_service import (
    GradingService,
    answers_from_responses,
    check_answer_shape,
    grading_service,
)
from assessment_engine.utils.attempt_timer import AttemptTimerRegistry, Clock, attempt_timers

logger = logging.getLogger(__name__)


class AttemptSessionService:
    """
    Service managing in-progress quiz attempts

    Lifecycle: in_progress -> graded (terminal). An attempt abandoned before
    submission is deleted, which releases the in-progress slot for the
    learner. Timed attempts carry a deadline; any mutation after it submits
    the attempt with whatever answers exist.
    """

    def __init__(
        self,
        grader: Optional[GradingService] = None,
        timers: Optional[AttemptTimerRegistry] = None,
        clock: Optional[Clock] = None,
        session_factory: Optional[Callable[[], Session]] = None
    ):
        self.grader = grader or grading_service
        self.timers = timers or attempt_timers
        self.clock = clock or self.timers.clock
        self.session_factory = session_factory or SessionLocal

    def start_attempt(self, db: Session, quiz_id: UUID, user_id: UUID) -> QuizAttempt:
        """
        Start a new attempt

        Raises:
            NotFoundError: unknown quiz
            ValidationError: quiz has no questions
            ConflictError: learner already has a live attempt for this quiz
        """
        quiz = quiz_catalog.get_quiz(db, quiz_id)
        if not quiz.questions:
            raise ValidationError(
                f"Quiz {quiz_id} has no questions and cannot be attempted",
                detail={"quiz_id": str(quiz_id)},
            )

        existing = attempt_store.find_active_attempt(db, quiz_id, user_id)
        if existing and not self._release_if_stale(db, existing):
            raise ConflictError(
                "An attempt is already in progress for this quiz",
                detail={"attempt_id": str(existing.id)},
            )

        now = self.clock()
        deadline = now + timedelta(minutes=quiz.time_limit) if quiz.time_limit else None

        attempt = QuizAttempt(
            quiz_id=quiz.id,
            course_id=quiz.course_id,
            user_id=user_id,
            attempt_number=attempt_store.next_attempt_number(db, quiz_id, user_id),
            status=IN_PROGRESS,
            quiz_snapshot=quiz.model_dump(mode="json"),
            responses={},
            current_index=0,
            started_at=now,
            deadline_at=deadline,
            last_activity_at=now,
        )

        try:
            attempt_store.save_attempt(db, attempt)
        except IntegrityError as e:
            # Lost the race against a concurrent start for the same learner
            db.rollback()
            raise ConflictError("An attempt is already in progress for this quiz") from e

        if deadline:
            self.timers.schedule(str(attempt.id), deadline, self.expire_attempt)

        logger.info(
            f"Attempt {attempt.id} started: user {user_id}, quiz {quiz_id}, "
            f"number {attempt.attempt_number}, deadline {deadline}"
        )
        return attempt

    def record_answer(
        self,
        db: Session,
        attempt_id: UUID,
        question_id: str,
        value: AnswerValue
    ) -> QuizAttempt:
        """
        Store (or overwrite) the answer to one question; the pointer does not move

        Past the deadline the attempt is auto-submitted with the answers it
        already had and returned graded; the late answer is not stored.

        Raises:
            NotFoundError: unknown attempt or question
            ConflictError: attempt already graded
            ValidationError: answer shape does not fit the question
        """
        attempt = attempt_store.get_attempt(db, attempt_id, lock=True)
        if self._guard_mutation(db, attempt):
            return attempt

        quiz = self.snapshot(attempt)
        question = quiz.question(question_id)
        if question is None:
            raise NotFoundError(
                f"Question {question_id} is not part of this quiz",
                detail={"question_id": question_id},
            )
        check_answer_shape(question, value)

        responses = dict(attempt.responses or {})
        responses[question_id] = list(value) if isinstance(value, (list, tuple, set)) else value
        attempt.responses = responses
        attempt.last_activity_at = self.clock()

        db.commit()
        db.refresh(attempt)
        return attempt

    def navigate(
        self,
        db: Session,
        attempt_id: UUID,
        direction: Optional[Direction] = None,
        index: Optional[int] = None
    ) -> QuizAttempt:
        """
        Move the current-question pointer

        next/previous stop at the first and last question; an explicit index
        must be in range.
        """
        attempt = attempt_store.get_attempt(db, attempt_id, lock=True)
        if self._guard_mutation(db, attempt):
            return attempt

        total = len(self.snapshot(attempt).questions)
        if index is not None:
            if not 0 <= index < total:
                raise ValidationError(
                    f"Question index {index} out of range (0-{total - 1})",
                    detail={"index": index, "total_questions": total},
                )
            attempt.current_index = index
        elif direction == Direction.NEXT:
            attempt.current_index = min(attempt.current_index + 1, total - 1)
        elif direction == Direction.PREVIOUS:
            attempt.current_index = max(attempt.current_index - 1, 0)
        else:
            raise ValidationError("Provide a direction or an index")

        attempt.last_activity_at = self.clock()
        db.commit()
        db.refresh(attempt)
        return attempt

    def submit_attempt(self, db: Session, attempt_id: UUID, auto: bool = False) -> QuizAttempt:
        """
        Grade and close an attempt

        A graded attempt is returned as stored. Manual submissions need every
        question answered; past the deadline the attempt is submitted as is.

        Raises:
            NotFoundError: unknown attempt
            ValidationError: unanswered questions on a manual submission
        """
        attempt = attempt_store.get_attempt(db, attempt_id, lock=True)
        if attempt.is_graded:
            logger.debug(f"Attempt {attempt_id} already graded; returning stored result")
            return attempt

        return self._finalize(db, attempt, auto=auto or self._deadline_passed(attempt))

    def abandon_attempt(self, db: Session, attempt_id: UUID) -> None:
        """
        Discard an in-progress attempt without persisting anything

        Raises:
            ConflictError: attempt already graded
        """
        attempt = attempt_store.get_attempt(db, attempt_id, lock=True)
        if attempt.is_graded:
            raise ConflictError("Graded attempts cannot be abandoned", detail={"attempt_id": str(attempt_id)})

        self.timers.cancel(str(attempt.id))
        attempt_store.delete_attempt(db, attempt)
        logger.info(f"Attempt {attempt_id} abandoned by user {attempt.user_id}")

    def get_attempt(self, db: Session, attempt_id: UUID) -> QuizAttempt:
        return attempt_store.get_attempt(db, attempt_id)

    def expire_attempt(self, attempt_id: str) -> None:
        """Timer callback: submit a timed-out attempt with the answers it has"""
        db = self.session_factory()
        try:
            attempt = attempt_store.get_attempt(db, UUID(attempt_id), lock=True)
            if attempt.status == IN_PROGRESS:
                self._finalize(db, attempt, auto=True)
        finally:
            db.close()

    @staticmethod
    def snapshot(attempt: QuizAttempt) -> QuizDefinition:
        """The quiz definition captured when the attempt started"""
        return QuizDefinition.model_validate(attempt.quiz_snapshot)

    def describe(self, attempt: QuizAttempt) -> AttemptResponse:
        """Learner-facing view of an attempt"""
        quiz = self.snapshot(attempt)
        responses = attempt.responses or {}

        current = None
        if attempt.status == IN_PROGRESS and quiz.questions:
            current = QuestionView.from_definition(quiz.questions[attempt.current_index])

        response = AttemptResponse(
            attempt_id=attempt.id,
            quiz_id=attempt.quiz_id,
            user_id=attempt.user_id,
            attempt_number=attempt.attempt_number,
            status=attempt.status,
            current_index=attempt.current_index,
            total_questions=len(quiz.questions),
            answered_question_ids=[q.id for q in quiz.questions if q.id in responses],
            current_question=current,
            started_at=attempt.started_at,
            deadline_at=attempt.deadline_at,
            completed_at=attempt.completed_at,
        )

        if attempt.is_graded:
            response.score = attempt.score
            response.raw_score = attempt.raw_score
            response.earned_weighted_points = attempt.earned_weighted_points
            response.total_weighted_points = attempt.total_weighted_points
            response.passed = attempt.passed
            response.ungradable = attempt.ungradable
            response.auto_submitted = attempt.auto_submitted
            response.time_spent = attempt.time_spent
            response.answers = [GradedAnswer.model_validate(a) for a in attempt.answers or []]

        return response

    def _guard_mutation(self, db: Session, attempt: QuizAttempt) -> bool:
        """
        Reject changes to graded attempts; close attempts past their deadline

        Returns True when the attempt was just auto-submitted, in which case
        the caller returns it unchanged instead of applying the mutation.
        """
        if attempt.is_graded:
            raise ConflictError("Attempt has already been submitted", detail={"attempt_id": str(attempt.id)})

        if self._deadline_passed(attempt):
            self._finalize(db, attempt, auto=True)
            return True
        return False

    def _deadline_passed(self, attempt: QuizAttempt) -> bool:
        if attempt.deadline_at is None:
            return False
        grace = timedelta(seconds=settings.DEADLINE_GRACE_SECONDS)
        return self.clock() > attempt.deadline_at + grace

    def _release_if_stale(self, db: Session, attempt: QuizAttempt) -> bool:
        """
        Clear an in-progress attempt that can no longer be continued

        Past the deadline it is submitted; untimed and idle past the
        inactivity window it is discarded.
        """
        if attempt.deadline_at is not None:
            if self._deadline_passed(attempt):
                self._finalize(db, attempt, auto=True)
                return True
            return False

        idle_limit = timedelta(minutes=settings.ATTEMPT_INACTIVITY_TIMEOUT_MINUTES)
        if self.clock() - attempt.last_activity_at > idle_limit:
            logger.info(f"Attempt {attempt.id} expired after inactivity; discarding")
            self.timers.cancel(str(attempt.id))
            attempt_store.delete_attempt(db, attempt)
            return True
        return False

    def _finalize(self, db: Session, attempt: QuizAttempt, auto: bool) -> QuizAttempt:
        """Grade the attempt against its snapshot and mark it graded"""
        quiz = self.snapshot(attempt)
        responses = attempt.responses or {}

        if not auto:
            missing = [q.id for q in quiz.questions if q.id not in responses]
            if missing:
                raise ValidationError(
                    f"{len(missing)} question(s) still unanswered",
                    detail={"unanswered_question_ids": missing},
                )

        result = self.grader.grade(quiz, answers_from_responses(responses))

        now = self.clock()
        elapsed = max(int((now - attempt.started_at).total_seconds()), 0)
        if quiz.time_limit:
            elapsed = min(elapsed, quiz.time_limit * 60)

        attempt.answers = [a.model_dump(mode="json") for a in result.answers]
        attempt.score = result.score
        attempt.raw_score = result.raw_score
        attempt.earned_points = result.earned_points
        attempt.total_points = result.total_points
        attempt.earned_weighted_points = result.earned_weighted_points
        attempt.total_weighted_points = result.total_weighted_points
        attempt.passed = result.passed
        attempt.ungradable = result.ungradable
        attempt.auto_submitted = auto
        attempt.time_spent = elapsed
        attempt.completed_at = now
        attempt.status = GRADED

        db.commit()
        db.refresh(attempt)
        self.timers.cancel(str(attempt.id))

        logger.info(
            f"Attempt {attempt.id} {'auto-submitted' if auto else 'submitted'}: "
            f"score={attempt.score}, passed={attempt.passed}, time_spent={elapsed}s"
        )
        return attempt


# Global instance
attempt_service = AttemptSessionService()
