"""
Error taxonomy for the assessment engine

Every error carries the HTTP status the API layer answers with, so services
can raise them without knowing about FastAPI.
"""
from typing import Any, Optional


class AssessmentError(Exception):
    """Base class for all expected engine failures"""

    status_code = 500
    error_code = "assessment_error"

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(AssessmentError):
    """Referenced quiz, attempt or question does not exist"""

    status_code = 404
    error_code = "not_found"


class ValidationError(AssessmentError):
    """Malformed answer, incomplete submission or ungradable input"""

    status_code = 422
    error_code = "validation_error"


class ConflictError(AssessmentError):
    """State conflict: attempt already in progress, already graded, duplicate certificate"""

    status_code = 409
    error_code = "conflict"


class UpstreamUnavailableError(AssessmentError):
    """A collaborator could not be reached or returned malformed data"""

    status_code = 503
    error_code = "upstream_unavailable"


class NotEligibleError(AssessmentError):
    """Certificate requested for a learner who does not meet the requirements"""

    status_code = 422
    error_code = "not_eligible"

    def __init__(self, report):
        reasons = "; ".join(report.missing_requirements)
        super().__init__(
            f"Learner is not eligible for a certificate: {reasons}",
            detail=report.model_dump(mode="json"),
        )
        self.report = report
