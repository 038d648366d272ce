"""
Analytics service for quiz and learner performance
"""
import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID
from sqlalchemy.orm import Session

from assessment_engine.exceptions import ValidationError
from assessment_engine.models import QuizAttempt
from assessment_engine.repositories import attempt_store, quiz_catalog
from assessment_engine.schemas.quiz import QuizDefinition
from assessment_engine.services.grading_service import round_half_up
from assessment_engine.utils.attempt_timer import utc_now

logger = logging.getLogger(__name__)

SCORE_RANGES = [
    (0, 20, "0-20%"),
    (21, 40, "21-40%"),
    (41, 60, "41-60%"),
    (61, 80, "61-80%"),
    (81, 100, "81-100%"),
]

TIME_RANGES = [
    (0, 300, "0-5 min"),
    (301, 600, "5-10 min"),
    (601, 900, "10-15 min"),
    (901, 1200, "15-20 min"),
    (1201, None, "20+ min"),
]

TREND_WINDOW_DAYS = 30


def classify_difficulty(correct_rate: float) -> str:
    """easy above 80%, medium above 50%, hard otherwise"""
    if correct_rate > 80:
        return "easy"
    if correct_rate > 50:
        return "medium"
    return "hard"


def trend_direction(difference: float) -> str:
    if difference > 0:
        return "improving"
    if difference < 0:
        return "declining"
    return "stable"


def _percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class AnalyticsService:
    """
    Service for generating quiz analytics

    Every figure is recomputed from the graded attempts on each call, so
    deleting or backfilling attempts never leaves stale aggregates behind.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now, trend_days: int = TREND_WINDOW_DAYS):
        self.clock = clock
        self.trend_days = trend_days

    def get_quiz_analytics(
        self,
        db: Session,
        quiz_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Population statistics for one quiz

        Args:
            start, end: optional inclusive bounds on completion time. Weekly
                trends always cover the trailing window regardless of them.

        Raises:
            NotFoundError: unknown quiz
            ValidationError: start after end
        """
        start, end = _as_naive_utc(start), _as_naive_utc(end)
        if start is not None and end is not None and start > end:
            raise ValidationError(
                "Date range start must not be after its end",
                detail={"start": start.isoformat(), "end": end.isoformat()},
            )

        quiz = quiz_catalog.get_quiz(db, quiz_id)
        attempts = attempt_store.list_quiz_attempts(db, quiz_id, start=start, end=end)
        logger.info(f"Computing analytics for quiz {quiz_id} over {len(attempts)} attempts")

        recent = None
        if start is not None or end is not None:
            recent = attempt_store.list_quiz_attempts(db, quiz_id, start=self.clock() - timedelta(days=self.trend_days))
        return self.summarize_attempts(quiz, attempts, recent)

    def summarize_attempts(
        self,
        quiz: QuizDefinition,
        attempts: Sequence[QuizAttempt],
        trend_attempts: Optional[Sequence[QuizAttempt]] = None
    ) -> Dict[str, Any]:
        """
        Aggregate a collection of graded attempts for one quiz

        Trends are taken from trend_attempts when given, else from attempts.
        """
        total_attempts = len(attempts)
        unique_learners = len(set(str(a.user_id) for a in attempts))
        passed_attempts = sum(1 for a in attempts if a.passed)

        return {
            "quiz_id": str(quiz.id),
            "quiz_title": quiz.title,
            "total_attempts": total_attempts,
            "unique_learners": unique_learners,
            "pass_rate": _percentage(passed_attempts, total_attempts),
            "average_score": round(_mean([a.score or 0.0 for a in attempts]), 2),
            "average_time_spent": round(_mean([a.time_spent or 0 for a in attempts]), 2),
            "score_distribution": self._calculate_score_distribution(attempts),
            "question_statistics": self._calculate_question_statistics(quiz, attempts),
            "time_analytics": self._calculate_time_analytics(attempts),
            "learner_progress": self._calculate_learner_progress(quiz, attempts),
            "trends": self._calculate_trends(attempts if trend_attempts is None else trend_attempts),
        }

    def get_learner_quiz_history(self, db: Session, quiz_id: UUID, user_id: UUID) -> Dict[str, Any]:
        """
        A learner's graded attempts on one quiz with score trend

        Raises:
            NotFoundError: unknown quiz
        """
        quiz_catalog.get_quiz(db, quiz_id)
        attempts = attempt_store.list_learner_attempts(db, quiz_id, user_id)
        return self.build_history(quiz_id, user_id, attempts)

    def build_history(self, quiz_id: UUID, user_id: UUID, attempts: Sequence[QuizAttempt]) -> Dict[str, Any]:
        """History for attempts already sorted by attempt number"""
        scores = [a.score or 0.0 for a in attempts]

        difference = round(scores[-1] - scores[-2], 2) if len(scores) >= 2 else 0.0

        return {
            "quiz_id": str(quiz_id),
            "user_id": str(user_id),
            "attempts": [
                {
                    "attempt_id": str(a.id),
                    "attempt_number": a.attempt_number,
                    "score": a.score or 0.0,
                    "passed": bool(a.passed),
                    "time_spent": a.time_spent or 0,
                    "auto_submitted": bool(a.auto_submitted),
                }
                for a in attempts
            ],
            "best_score": max(scores) if scores else None,
            "latest_score": scores[-1] if scores else None,
            "average_score": round(_mean(scores), 2) if scores else None,
            "passed": any(a.passed for a in attempts),
            "trend": {
                "difference": difference,
                "direction": trend_direction(difference),
            },
        }

    def _calculate_question_statistics(
        self,
        quiz: QuizDefinition,
        attempts: Sequence[QuizAttempt]
    ) -> List[Dict[str, Any]]:
        """Correctness, partial credit and difficulty per question, in quiz order"""

        answers_by_question = defaultdict(list)
        for attempt in attempts:
            for answer in attempt.answers or []:
                answers_by_question[answer.get("question_id")].append(answer)

        statistics = []
        for question in quiz.questions:
            answers = answers_by_question.get(question.id, [])
            attempt_count = len(answers)
            correct_count = sum(1 for a in answers if a.get("is_correct"))
            partial_count = sum(1 for a in answers if 0.0 < a.get("partial_credit", 0.0) < 1.0)
            correct_rate = _percentage(correct_count, attempt_count)

            statistics.append({
                "question_id": question.id,
                "prompt": question.prompt,
                "attempt_count": attempt_count,
                "correct_count": correct_count,
                "partial_count": partial_count,
                "correct_rate": correct_rate,
                "average_points": round(_mean([a.get("points_earned", 0.0) for a in answers]), 2),
                "difficulty": classify_difficulty(correct_rate),
            })

        return statistics

    def _calculate_score_distribution(self, attempts: Sequence[QuizAttempt]) -> List[Dict[str, Any]]:
        """Attempts per score band"""
        total = len(attempts)
        distribution = []
        for low, high, label in SCORE_RANGES:
            # Bands are on whole percentages rounded half-up; 20.4 belongs to 0-20%, 20.5 to 21-40%
            count = sum(1 for a in attempts if low <= round_half_up(a.score or 0.0, 0) <= high)
            distribution.append({
                "range": label,
                "count": count,
                "percentage": _percentage(count, total),
            })
        return distribution

    def _calculate_trends(self, attempts: Sequence[QuizAttempt]) -> List[Dict[str, Any]]:
        """Attempts, average score and pass rate per week of the trailing window, oldest week first"""
        now = self.clock()
        window_start = now - timedelta(days=self.trend_days)
        recent = [
            a for a in attempts
            if a.completed_at is not None and window_start <= a.completed_at <= now
        ]

        trends = []
        for week in range(math.ceil(self.trend_days / 7)):
            week_start = window_start + timedelta(weeks=week)
            week_end = week_start + timedelta(weeks=1)
            in_week = [a for a in recent if week_start <= a.completed_at < week_end]
            trends.append({
                "period": f"Week {week + 1}",
                "start": week_start,
                "attempts": len(in_week),
                "average_score": round(_mean([a.score or 0.0 for a in in_week]), 2),
                "pass_rate": _percentage(sum(1 for a in in_week if a.passed), len(in_week)),
            })
        return trends

    def _calculate_time_analytics(self, attempts: Sequence[QuizAttempt]) -> Dict[str, Any]:
        """Average, fastest, slowest and banded time spent"""
        if not attempts:
            return {
                "average_time": 0.0,
                "fastest_time": 0,
                "slowest_time": 0,
                "time_distribution": [],
            }

        times = [a.time_spent or 0 for a in attempts]
        distribution = []
        for low, high, label in TIME_RANGES:
            count = sum(1 for t in times if t >= low and (high is None or t <= high))
            distribution.append({
                "range": label,
                "count": count,
                "percentage": _percentage(count, len(times)),
            })

        return {
            "average_time": round(_mean(times), 2),
            "fastest_time": min(times),
            "slowest_time": max(times),
            "time_distribution": distribution,
        }

    def _calculate_learner_progress(
        self,
        quiz: QuizDefinition,
        attempts: Sequence[QuizAttempt]
    ) -> List[Dict[str, Any]]:
        """Per-learner summary, best score first"""

        by_learner = defaultdict(list)
        for attempt in attempts:
            by_learner[str(attempt.user_id)].append(attempt)

        progress = []
        for user_id, learner_attempts in by_learner.items():
            learner_attempts.sort(key=lambda a: a.attempt_number)
            scores = [a.score or 0.0 for a in learner_attempts]
            weak, strong = self._analyze_learner_questions(quiz, learner_attempts)

            progress.append({
                "user_id": user_id,
                "attempts": len(learner_attempts),
                "best_score": max(scores),
                "latest_score": scores[-1],
                "average_score": round(_mean(scores), 2),
                "total_time_spent": sum(a.time_spent or 0 for a in learner_attempts),
                "passed": any(a.passed for a in learner_attempts),
                "improvement": round(scores[-1] - scores[0], 2),
                "weak_questions": weak,
                "strong_questions": strong,
            })

        progress.sort(key=lambda p: p["best_score"], reverse=True)
        return progress

    def _analyze_learner_questions(self, quiz: QuizDefinition, attempts: Sequence[QuizAttempt]):
        """Questions a learner mostly misses (< 50%) and mostly gets right (>= 80%)"""
        tally = defaultdict(lambda: {"correct": 0, "total": 0})
        for attempt in attempts:
            for answer in attempt.answers or []:
                entry = tally[answer.get("question_id")]
                entry["total"] += 1
                if answer.get("is_correct"):
                    entry["correct"] += 1

        weak, strong = [], []
        for question in quiz.questions:
            entry = tally.get(question.id)
            if not entry:
                continue
            rate = entry["correct"] / entry["total"] * 100
            if rate < 50:
                weak.append(question.id)
            elif rate >= 80:
                strong.append(question.id)
        return weak, strong


# Global instance
analytics_service = AnalyticsService()
