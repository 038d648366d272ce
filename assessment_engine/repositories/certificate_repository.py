"""
Certificate collaborator - lookup and issuance
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment_engine.exceptions import ConflictError
from assessment_engine.models import Certificate
from assessment_engine.repositories.base import upstream_call

logger = logging.getLogger(__name__)


class CertificateRepository:

    def find_certificate(self, db: Session, course_id: UUID, user_id: UUID) -> Optional[Certificate]:
        """The learner's valid certificate for a course, if any"""
        with upstream_call("Certificate service"):
            return db.query(Certificate).filter(
                Certificate.course_id == course_id,
                Certificate.user_id == user_id,
                Certificate.is_valid.is_(True),
            ).first()

    def issue_certificate(
        self,
        db: Session,
        course_id: UUID,
        user_id: UUID,
        final_score: Optional[float] = None,
        time_spent: int = 0
    ) -> Certificate:
        """
        Create a certificate record, or reinstate a revoked one

        A learner holds at most one certificate row per course. A revoked row
        is re-validated with fresh numbers instead of inserting a second one.

        Raises:
            ConflictError: if the learner already holds a valid certificate for the course
        """
        year = datetime.now(timezone.utc).year

        with upstream_call("Certificate service"):
            certificate = db.query(Certificate).filter(
                Certificate.course_id == course_id,
                Certificate.user_id == user_id,
            ).first()

            if certificate is not None and certificate.is_valid:
                raise ConflictError(
                    "Certificate already issued for this course",
                    detail={"course_id": str(course_id), "user_id": str(user_id)},
                )

            if certificate is None:
                certificate = Certificate(course_id=course_id, user_id=user_id)
                db.add(certificate)
            else:
                logger.info(f"Reinstating revoked certificate {certificate.certificate_number} for user {user_id}")

            certificate.certificate_number = f"CERT-{year}-{secrets.token_hex(3).upper()}"
            certificate.verification_code = f"WWT-{year}-{secrets.token_hex(4).upper()}"
            certificate.final_score = final_score
            certificate.time_spent = time_spent
            certificate.is_valid = True
            certificate.issued_at = datetime.now(timezone.utc).replace(tzinfo=None)

            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ConflictError(
                    "Certificate already issued for this course",
                    detail={"course_id": str(course_id), "user_id": str(user_id)},
                ) from e
            db.refresh(certificate)

        logger.info(f"Certificate {certificate.certificate_number} issued to user {user_id} for course {course_id}")
        return certificate


# Global instance
certificate_repository = CertificateRepository()
