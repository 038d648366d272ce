"""
Quiz analytics API endpoints
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import logging

from assessment_engine.database import get_db
from assessment_engine.schemas.analytics import LearnerQuizHistory, QuizAnalytics
from assessment_engine.services.analytics_service import analytics_service

router = APIRouter(prefix="/api", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("/quizzes/{quiz_id}/analytics", response_model=QuizAnalytics)
async def get_quiz_analytics(
    quiz_id: UUID,
    start: Optional[datetime] = Query(None, description="Only attempts completed at or after this time"),
    end: Optional[datetime] = Query(None, description="Only attempts completed at or before this time"),
    db: Session = Depends(get_db)
):
    """
    Get analytics for a quiz

    Returns:
    - Total attempts, unique learners, pass rate
    - Average score and time spent
    - Per-question correct rate and difficulty
    - Score and time distributions
    - Per-learner progress
    - Weekly trends over the last 30 days

    start and end narrow every figure except the weekly trends.
    """
    logger.info(f"Fetching analytics for quiz {quiz_id}")
    analytics = analytics_service.get_quiz_analytics(db, quiz_id, start=start, end=end)
    return QuizAnalytics(**analytics)


@router.get("/quizzes/{quiz_id}/learners/{user_id}/history", response_model=LearnerQuizHistory)
async def get_learner_quiz_history(
    quiz_id: UUID,
    user_id: UUID,
    db: Session = Depends(get_db)
):
    """
    Get a learner's graded attempts on a quiz

    Includes best, latest and average score and the trend between the two
    most recent attempts.
    """
    history = analytics_service.get_learner_quiz_history(db, quiz_id, user_id)
    return LearnerQuizHistory(**history)
