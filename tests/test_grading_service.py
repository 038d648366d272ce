"""
Unit tests for the GradingService.
"""
from tests.test_fixtures import TestFixtures

import unittest

from assessment_engine.exceptions import ValidationError
from assessment_engine.schemas.quiz import AnswerSubmission, QuestionDefinition
from assessment_engine.services.grading_service import GradingService, round_half_up


def submissions(**values):
    return [AnswerSubmission(question_id=q_id, value=value) for q_id, value in values.items()]


class TestGradingScenario(unittest.TestCase):
    """Weighted scoring with partial credit."""

    def setUp(self):
        self.grader = GradingService(penalty_weight=1.0, precision=1)
        self.quiz = TestFixtures.quiz_definition(passing_score=70)

    def test_weighted_partial_credit_scenario(self):
        """One right answer plus half of a double-weighted matching question."""
        result = self.grader.grade(self.quiz, submissions(q1="B", q2=["x"]))

        q1, q2 = result.answers
        self.assertEqual(q1.partial_credit, 1.0)
        self.assertEqual(q1.points_earned, 10.0)
        self.assertTrue(q1.is_correct)

        self.assertEqual(q2.partial_credit, 0.5)
        self.assertEqual(q2.points_earned, 5.0)
        self.assertEqual(q2.weighted_points_earned, 10.0)
        self.assertFalse(q2.is_correct)

        self.assertEqual(result.total_weighted_points, 30.0)
        self.assertEqual(result.earned_weighted_points, 20.0)
        self.assertEqual(result.score, 66.7)
        self.assertEqual(result.raw_score, 75.0)
        self.assertFalse(result.passed)
        self.assertFalse(result.ungradable)

    def test_answers_follow_quiz_order(self):
        result = self.grader.grade(self.quiz, submissions(q2=["x", "y"], q1="B"))
        self.assertEqual([a.question_id for a in result.answers], ["q1", "q2"])
        self.assertEqual(result.score, 100.0)
        self.assertTrue(result.passed)

    def test_grading_is_repeatable(self):
        answers = submissions(q1="C", q2=["x", "z"])
        first = self.grader.grade(self.quiz, answers)
        second = self.grader.grade(self.quiz, answers)
        self.assertEqual(first.model_dump(), second.model_dump())

    def test_unanswered_questions_score_zero(self):
        result = self.grader.grade(self.quiz, submissions(q1="B"))
        self.assertIsNone(result.answers[1].user_answer)
        self.assertEqual(result.answers[1].points_earned, 0.0)
        self.assertEqual(result.score, 33.3)


class TestSingleValueQuestions(unittest.TestCase):
    """Exact-match grading for multiple choice, true/false and fill in the blank."""

    def setUp(self):
        self.grader = GradingService(penalty_weight=1.0, precision=1)
        self.quiz = TestFixtures.quiz_definition(TestFixtures.binary_questions(), passing_score=100)

    def test_all_correct_scores_full_marks(self):
        result = self.grader.grade(self.quiz, submissions(mc="Paris", tf="true", blank="4"))
        self.assertEqual(result.score, 100.0)
        self.assertTrue(result.passed)
        self.assertTrue(all(a.is_correct for a in result.answers))

    def test_comparison_is_case_sensitive(self):
        result = self.grader.grade(self.quiz, submissions(mc="paris", tf="True", blank="4"))
        credits = [a.partial_credit for a in result.answers]
        self.assertEqual(credits, [0.0, 0.0, 1.0])

    def test_more_correct_answers_never_lower_the_score(self):
        """Score grows monotonically as answers are corrected one at a time."""
        wrong = {"mc": "Rome", "tf": "false", "blank": "5"}
        right = {"mc": "Paris", "tf": "true", "blank": "4"}
        current = dict(wrong)
        previous_score = self.grader.grade(self.quiz, submissions(**current)).score

        for q_id in ["tf", "blank", "mc"]:
            current[q_id] = right[q_id]
            score = self.grader.grade(self.quiz, submissions(**current)).score
            self.assertGreaterEqual(score, previous_score)
            previous_score = score

        self.assertEqual(previous_score, 100.0)

    def test_weight_applies_to_single_value_questions(self):
        result = self.grader.grade(self.quiz, submissions(tf="true"))
        self.assertEqual(result.answers[1].weighted_points_earned, 4.5)
        # 4.5 of (5 + 4.5 + 2) weighted points
        self.assertEqual(result.score, 39.1)

    def test_list_answer_to_single_value_question_rejected(self):
        with self.assertRaises(ValidationError):
            self.grader.grade(self.quiz, submissions(mc=["Paris"]))


class TestMatchingPartialCredit(unittest.TestCase):
    """Fraction of correct entries minus a penalty for wrong ones."""

    def setUp(self):
        self.grader = GradingService(penalty_weight=1.0, precision=1)
        self.question = QuestionDefinition(
            id="m",
            prompt="Pick the primes",
            type="matching",
            options=["2", "3", "4"],
            correct_answer=["2", "3"],
            points=4,
        )

    def test_exact_set_is_full_credit(self):
        self.assertEqual(self.grader.grade_question(self.question, ["3", "2"]), 1.0)

    def test_empty_set_is_zero(self):
        self.assertEqual(self.grader.grade_question(self.question, []), 0.0)

    def test_one_right_one_wrong_cancels_out(self):
        self.assertEqual(self.grader.grade_question(self.question, ["2", "4"]), 0.0)

    def test_penalty_is_floored_at_zero(self):
        self.assertEqual(self.grader.grade_question(self.question, ["4", "5", "6"]), 0.0)

    def test_duplicate_entries_count_once(self):
        self.assertEqual(self.grader.grade_question(self.question, ["2", "2"]), 0.5)

    def test_penalty_weight_is_configurable(self):
        lenient = GradingService(penalty_weight=0.5, precision=1)
        self.assertEqual(lenient.grade_question(self.question, ["2", "3", "4"]), 0.75)

    def test_string_answer_rejected(self):
        with self.assertRaises(ValidationError):
            self.grader.grade_question(self.question, "2")


class TestGradingValidation(unittest.TestCase):

    def setUp(self):
        self.grader = GradingService(penalty_weight=1.0, precision=1)
        self.quiz = TestFixtures.quiz_definition()

    def test_unknown_question_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.grader.grade(self.quiz, submissions(q1="B", q9="A"))
        self.assertEqual(ctx.exception.detail["question_id"], "q9")

    def test_duplicate_answer_rejected(self):
        answers = [
            AnswerSubmission(question_id="q1", value="B"),
            AnswerSubmission(question_id="q1", value="C"),
        ]
        with self.assertRaises(ValidationError):
            self.grader.grade(self.quiz, answers)

    def test_quiz_without_questions_is_flagged_ungradable(self):
        empty = TestFixtures.quiz_definition(questions=[], passing_score=0)
        result = self.grader.grade(empty, [])
        self.assertTrue(result.ungradable)
        self.assertEqual(result.score, 0.0)
        self.assertFalse(result.passed)


class TestRounding(unittest.TestCase):

    def test_half_rounds_up(self):
        self.assertEqual(round_half_up(0.25, 1), 0.3)
        self.assertEqual(round_half_up(66.666666, 1), 66.7)
        self.assertEqual(round_half_up(2.675, 2), 2.68)


if __name__ == "__main__":
    unittest.main()
