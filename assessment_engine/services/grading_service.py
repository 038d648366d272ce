"""
Quiz grading service
Single-value questions: exact match
Matching questions: partial credit with a penalty for wrong entries
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence

from assessment_engine.config import settings
from assessment_engine.exceptions import ValidationError
from assessment_engine.schemas.quiz import (
    AnswerSubmission,
    AnswerValue,
    GradedAnswer,
    GradedResult,
    QuestionDefinition,
    QuizDefinition,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float, places: int) -> float:
    """Round to a fixed number of decimal places, halves away from zero"""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def check_answer_shape(question: QuestionDefinition, value: AnswerValue) -> None:
    """
    Raise ValidationError unless value has the shape the question type expects

    Matching questions take a list of strings, every other type a single string.
    """
    if question.type.expects_set:
        if not isinstance(value, (list, tuple, set)) or not all(isinstance(v, str) for v in value):
            raise ValidationError(
                f"Question {question.id} expects a list of entries",
                detail={"question_id": question.id, "type": question.type.value},
            )
    elif not isinstance(value, str):
        raise ValidationError(
            f"Question {question.id} expects a single answer",
            detail={"question_id": question.id, "type": question.type.value},
        )


class GradingService:
    """
    Service for grading quiz submissions

    Strategy:
    - multiple_choice / true_false / fill_in_blank: case-sensitive exact match
    - matching: fraction of correct entries found, minus a penalty per wrong
      entry, clamped to [0, 1]

    Grading is deterministic: same quiz and answers, same result.
    """

    def __init__(self, penalty_weight: Optional[float] = None, precision: Optional[int] = None):
        self.penalty_weight = (
            settings.MATCHING_PENALTY_WEIGHT if penalty_weight is None else penalty_weight
        )
        self.precision = settings.SCORE_PRECISION if precision is None else precision

    def grade(
        self,
        quiz: QuizDefinition,
        answers: Sequence[AnswerSubmission]
    ) -> GradedResult:
        """
        Grade a complete set of answers

        Args:
            quiz: Quiz definition (the snapshot captured at attempt start)
            answers: Submitted answers; questions without one grade as incorrect

        Returns:
            GradedResult with per-question breakdown in quiz order
        """
        by_question = self._index_answers(quiz, answers)

        graded: List[GradedAnswer] = []
        earned_points = 0.0
        total_points = 0.0
        earned_weighted = 0.0
        total_weighted = 0.0

        for question in quiz.questions:
            value = by_question.get(question.id)
            fraction = self.grade_question(question, value)

            points_earned = self._round(fraction * question.points)
            weighted_points = self._round(points_earned * question.weight)

            earned_points += points_earned
            total_points += question.points
            earned_weighted += weighted_points
            total_weighted += question.points * question.weight

            graded.append(GradedAnswer(
                question_id=question.id,
                user_answer=value,
                is_correct=fraction == 1.0,
                points_earned=points_earned,
                max_points=question.points,
                weight=question.weight,
                weighted_points_earned=weighted_points,
                partial_credit=fraction,
            ))

        if total_weighted <= 0:
            logger.warning(f"Quiz {quiz.id} has no gradable points; marking result ungradable")
            return GradedResult(
                answers=graded,
                score=0.0,
                raw_score=0.0,
                earned_points=0.0,
                total_points=0.0,
                earned_weighted_points=0.0,
                total_weighted_points=0.0,
                passed=False,
                ungradable=True,
            )

        score = self._round(100 * earned_weighted / total_weighted)
        raw_score = self._round(100 * earned_points / total_points)

        logger.info(
            f"Quiz {quiz.id} graded: {earned_weighted:.1f}/{total_weighted:.1f} weighted, "
            f"score={score}, passing={quiz.passing_score}"
        )

        return GradedResult(
            answers=graded,
            score=score,
            raw_score=raw_score,
            earned_points=self._round(earned_points),
            total_points=self._round(total_points),
            earned_weighted_points=self._round(earned_weighted),
            total_weighted_points=self._round(total_weighted),
            passed=score >= quiz.passing_score,
        )

    def grade_question(self, question: QuestionDefinition, value: Optional[AnswerValue]) -> float:
        """Return the credit fraction (0.0 - 1.0) earned by one answer"""
        if value is None:
            return 0.0

        check_answer_shape(question, value)

        if question.type.expects_set:
            return self._grade_matching(question, value)
        return 1.0 if value == question.correct_answer else 0.0

    def _grade_matching(self, question: QuestionDefinition, value: List[str]) -> float:
        """
        Partial credit for set-valued answers

        fraction = hits / |correct| - penalty * misses / |correct|
        """
        correct = set(question.correct_answer)
        submitted = set(value)

        hits = len(submitted & correct)
        misses = len(submitted - correct)

        fraction = (hits - self.penalty_weight * misses) / len(correct)
        return min(max(fraction, 0.0), 1.0)

    def _index_answers(
        self,
        quiz: QuizDefinition,
        answers: Sequence[AnswerSubmission]
    ) -> Dict[str, Optional[AnswerValue]]:
        """Map answers by question id, rejecting unknown and duplicate entries"""
        by_question: Dict[str, Optional[AnswerValue]] = {}
        for answer in answers:
            if quiz.question(answer.question_id) is None:
                raise ValidationError(
                    f"Answer references unknown question {answer.question_id}",
                    detail={"question_id": answer.question_id},
                )
            if answer.question_id in by_question:
                raise ValidationError(
                    f"Question {answer.question_id} answered more than once",
                    detail={"question_id": answer.question_id},
                )
            by_question[answer.question_id] = answer.value
        return by_question

    def _round(self, value: float) -> float:
        return round_half_up(value, self.precision)


def answers_from_responses(responses: Dict[str, AnswerValue]) -> List[AnswerSubmission]:
    """Turn an attempt's recorded {question_id: value} map into submissions"""
    return [AnswerSubmission(question_id=q_id, value=value) for q_id, value in responses.items()]


# Global instance
grading_service = GradingService()
