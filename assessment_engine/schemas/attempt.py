"""
Pydantic schemas for attempt session requests and responses
"""
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from uuid import UUID

from assessment_engine.schemas.quiz import AnswerValue, GradedAnswer, QuestionView


class AttemptStartRequest(BaseModel):
    """Schema for starting an attempt"""
    user_id: UUID


class AnswerRecord(BaseModel):
    """Schema for recording an answer"""
    value: AnswerValue


class Direction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"


class NavigateRequest(BaseModel):
    """Move the current-question pointer by direction or to an explicit index"""
    direction: Optional[Direction] = None
    index: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_exactly_one(self):
        if (self.direction is None) == (self.index is None):
            raise ValueError("Provide exactly one of direction or index")
        return self


class AttemptResponse(BaseModel):
    """Attempt state as returned to the learner"""
    attempt_id: UUID
    quiz_id: UUID
    user_id: UUID
    attempt_number: int
    status: str
    current_index: int
    total_questions: int
    answered_question_ids: List[str]
    current_question: Optional[QuestionView] = None
    started_at: datetime
    deadline_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Present once graded
    score: Optional[float] = None
    raw_score: Optional[float] = None
    earned_weighted_points: Optional[float] = None
    total_weighted_points: Optional[float] = None
    passed: Optional[bool] = None
    ungradable: Optional[bool] = None
    auto_submitted: Optional[bool] = None
    time_spent: Optional[int] = None
    answers: Optional[List[GradedAnswer]] = None
