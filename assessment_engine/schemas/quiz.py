"""
Pydantic schemas for quiz definitions and grading
"""
from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Union
from uuid import UUID

AnswerValue = Union[str, List[str]]


class QuestionType(str, Enum):
    """Supported question types"""
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    FILL_IN_BLANK = "fill_in_blank"
    MATCHING = "matching"

    @property
    def expects_set(self) -> bool:
        return self is QuestionType.MATCHING


class QuestionDefinition(BaseModel):
    """Individual quiz question, including its answer key"""
    id: str
    prompt: str
    type: QuestionType
    options: List[str] = Field(default_factory=list)
    correct_answer: AnswerValue
    points: int = Field(..., ge=1, description="Point value")
    weight: float = Field(1.0, gt=0, description="Weight multiplier")
    explanation: Optional[str] = None
    difficulty: Optional[str] = None

    @model_validator(mode="after")
    def check_answer_key_shape(self):
        if self.type.expects_set:
            if not isinstance(self.correct_answer, list) or not self.correct_answer:
                raise ValueError(f"Question {self.id}: matching questions need a non-empty list of correct entries")
        elif not isinstance(self.correct_answer, str):
            raise ValueError(f"Question {self.id}: {self.type.value} questions need a single correct answer")
        return self


class QuizDefinition(BaseModel):
    """Immutable quiz snapshot used by sessions and grading"""
    id: UUID
    course_id: UUID
    title: str
    description: Optional[str] = None
    questions: List[QuestionDefinition]
    passing_score: float = Field(70, ge=0, le=100)
    time_limit: Optional[int] = Field(None, ge=1, description="Time limit in minutes")
    is_required: bool = False

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def check_unique_question_ids(self):
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("Question ids must be unique within a quiz")
        return self

    def question(self, question_id: str) -> Optional[QuestionDefinition]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


class QuestionView(BaseModel):
    """Question as shown to a learner during an attempt (no answer key)"""
    id: str
    prompt: str
    type: QuestionType
    options: List[str]
    points: int
    weight: float

    @classmethod
    def from_definition(cls, question: QuestionDefinition) -> "QuestionView":
        return cls(
            id=question.id,
            prompt=question.prompt,
            type=question.type,
            options=question.options,
            points=question.points,
            weight=question.weight,
        )


class AnswerSubmission(BaseModel):
    """A learner's answer to one question"""
    question_id: str
    value: Optional[AnswerValue] = None


class GradedAnswer(BaseModel):
    """Grading details for a single question"""
    question_id: str
    user_answer: Optional[AnswerValue] = None
    is_correct: bool
    points_earned: float
    max_points: float
    weight: float
    weighted_points_earned: float
    partial_credit: float


class GradedResult(BaseModel):
    """Outcome of grading a full set of answers against a quiz"""
    answers: List[GradedAnswer]
    score: float
    raw_score: float
    earned_points: float
    total_points: float
    earned_weighted_points: float
    total_weighted_points: float
    passed: bool
    ungradable: bool = False


class GradeRequest(BaseModel):
    """Stand-alone grading request"""
    quiz: QuizDefinition
    answers: List[AnswerSubmission]
