"""
Certificate eligibility and issuance API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from assessment_engine.database import get_db
from assessment_engine.schemas.certificate import CertificateResponse, EligibilityReport
from assessment_engine.services.eligibility_service import eligibility_service

router = APIRouter(prefix="/api/courses", tags=["certificates"])
logger = logging.getLogger(__name__)


@router.get("/{course_id}/learners/{user_id}/eligibility", response_model=EligibilityReport)
async def check_eligibility(
    course_id: UUID,
    user_id: UUID,
    db: Session = Depends(get_db)
):
    """
    Check certificate eligibility

    Always returns the itemized requirements; 503 only when a dependency
    could not be consulted.
    """
    return eligibility_service.check_eligibility(db, course_id, user_id)


@router.post("/{course_id}/learners/{user_id}/certificate", response_model=CertificateResponse, status_code=201)
async def generate_certificate(
    course_id: UUID,
    user_id: UUID,
    db: Session = Depends(get_db)
):
    """
    Issue a certificate if the learner is eligible

    422 with the missing requirements otherwise.
    """
    certificate = eligibility_service.generate_certificate_if_eligible(db, course_id, user_id)
    logger.info(f"Certificate {certificate.certificate_number} issued via API")
    return certificate
