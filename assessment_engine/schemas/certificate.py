"""
Pydantic schemas for certificate eligibility and issuance
"""
from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID


class EligibilityRequirements(BaseModel):
    """Itemized requirement flags"""
    has_valid_enrollment: bool
    course_completed: bool
    required_quizzes_passed: bool
    minimum_time_spent: bool
    no_duplicate_certificate: bool

    def all_met(self) -> bool:
        return all(self.model_dump().values())


class EligibilityDetails(BaseModel):
    """Supporting figures behind the verdict"""
    progress: float
    time_spent: int
    minimum_time_required: int
    average_score: float
    required_quizzes: int
    passed_quizzes: int


class EligibilityReport(BaseModel):
    """Certificate eligibility verdict for one learner and course"""
    course_id: UUID
    user_id: UUID
    eligible: bool
    requirements: EligibilityRequirements
    details: EligibilityDetails
    missing_requirements: List[str]


class CertificateResponse(BaseModel):
    """Issued certificate"""
    id: UUID
    course_id: UUID
    user_id: UUID
    certificate_number: str
    verification_code: str
    final_score: Optional[float] = None
    time_spent: Optional[int] = None
    issued_at: Optional[datetime] = None

    class Config:
        from_attributes = True
