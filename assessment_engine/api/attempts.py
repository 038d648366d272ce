"""
Attempt session API endpoints
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from assessment_engine.database import get_db
from assessment_engine.schemas.attempt import (
    AnswerRecord,
    AttemptResponse,
    AttemptStartRequest,
    NavigateRequest,
)
from assessment_engine.services.attempt_service import attempt_service

router = APIRouter(prefix="/api", tags=["attempts"])
logger = logging.getLogger(__name__)


@router.post("/quizzes/{quiz_id}/attempts", response_model=AttemptResponse, status_code=201)
async def start_attempt(
    quiz_id: UUID,
    request: AttemptStartRequest,
    db: Session = Depends(get_db)
):
    """
    Start a quiz attempt

    - Captures the quiz as it is now; later catalog changes do not affect grading
    - Starts the countdown when the quiz has a time limit
    - 409 if the learner already has an attempt in progress
    """
    attempt = attempt_service.start_attempt(db, quiz_id, request.user_id)
    return attempt_service.describe(attempt)


@router.get("/attempts/{attempt_id}", response_model=AttemptResponse)
async def get_attempt(attempt_id: UUID, db: Session = Depends(get_db)):
    """Current state of an attempt"""
    attempt = attempt_service.get_attempt(db, attempt_id)
    return attempt_service.describe(attempt)


@router.put("/attempts/{attempt_id}/answers/{question_id}", response_model=AttemptResponse)
async def record_answer(
    attempt_id: UUID,
    question_id: str,
    answer: AnswerRecord,
    db: Session = Depends(get_db)
):
    """
    Record or overwrite the answer to one question

    Matching questions take a list of entries, all other types a single string.
    """
    attempt = attempt_service.record_answer(db, attempt_id, question_id, answer.value)
    return attempt_service.describe(attempt)


@router.post("/attempts/{attempt_id}/navigate", response_model=AttemptResponse)
async def navigate(
    attempt_id: UUID,
    request: NavigateRequest,
    db: Session = Depends(get_db)
):
    """Move to the next/previous question or jump to an index"""
    attempt = attempt_service.navigate(db, attempt_id, direction=request.direction, index=request.index)
    return attempt_service.describe(attempt)


@router.post("/attempts/{attempt_id}/submit", response_model=AttemptResponse)
async def submit_attempt(attempt_id: UUID, db: Session = Depends(get_db)):
    """
    Submit an attempt for grading

    Returns the graded attempt. Submitting again returns the same result.
    """
    attempt = attempt_service.submit_attempt(db, attempt_id)
    return attempt_service.describe(attempt)


@router.delete("/attempts/{attempt_id}", status_code=204)
async def abandon_attempt(attempt_id: UUID, db: Session = Depends(get_db)):
    """Discard an in-progress attempt"""
    attempt_service.abandon_attempt(db, attempt_id)
    return Response(status_code=204)
