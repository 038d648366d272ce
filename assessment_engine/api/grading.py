"""
Stand-alone grading endpoint
"""
from fastapi import APIRouter

from assessment_engine.schemas.quiz import GradeRequest, GradedResult
from assessment_engine.services.grading_service import grading_service

router = APIRouter(prefix="/api", tags=["grading"])


@router.post("/grading", response_model=GradedResult)
async def grade_attempt(request: GradeRequest):
    """
    Grade answers against a quiz definition without any session state

    Quizzes with no points come back with ungradable=true instead of a score.
    """
    return grading_service.grade(request.quiz, request.answers)
