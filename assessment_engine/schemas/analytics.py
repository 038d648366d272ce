"""
Pydantic schemas for analytics endpoints
"""
from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID


class QuestionStatistics(BaseModel):
    """Aggregate performance for one question"""
    question_id: str
    prompt: str
    attempt_count: int
    correct_count: int
    partial_count: int
    correct_rate: float
    average_points: float
    difficulty: str


class DistributionBucket(BaseModel):
    """Count of attempts falling in a range"""
    range: str
    count: int
    percentage: float


class TimeAnalytics(BaseModel):
    """Time spent across attempts, in seconds"""
    average_time: float
    fastest_time: int
    slowest_time: int
    time_distribution: List[DistributionBucket]


class TrendBucket(BaseModel):
    """Graded attempts completed in one week of the trailing window"""
    period: str
    start: datetime
    attempts: int
    average_score: float
    pass_rate: float


class LearnerProgress(BaseModel):
    """Progress summary for one learner on one quiz"""
    user_id: UUID
    attempts: int
    best_score: float
    latest_score: float
    average_score: float
    total_time_spent: int
    passed: bool
    improvement: float
    weak_questions: List[str]
    strong_questions: List[str]


class QuizAnalytics(BaseModel):
    """Population statistics for a quiz"""
    quiz_id: UUID
    quiz_title: str
    total_attempts: int
    unique_learners: int
    pass_rate: float
    average_score: float
    average_time_spent: float
    score_distribution: List[DistributionBucket]
    question_statistics: List[QuestionStatistics]
    time_analytics: TimeAnalytics
    learner_progress: List[LearnerProgress]
    trends: List[TrendBucket]


class ScoreTrend(BaseModel):
    """Change between a learner's two most recent scores"""
    difference: float
    direction: str  # improving, declining, stable


class AttemptSummary(BaseModel):
    """One graded attempt in a learner's history"""
    attempt_id: UUID
    attempt_number: int
    score: float
    passed: bool
    time_spent: int
    auto_submitted: bool


class LearnerQuizHistory(BaseModel):
    """A learner's graded attempts on one quiz"""
    quiz_id: UUID
    user_id: UUID
    attempts: List[AttemptSummary]
    best_score: Optional[float] = None
    latest_score: Optional[float] = None
    average_score: Optional[float] = None
    passed: bool
    trend: ScoreTrend
