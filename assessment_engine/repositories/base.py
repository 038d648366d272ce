"""
Shared helpers for collaborator repositories
"""
import logging
from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError

from assessment_engine.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


@contextmanager
def upstream_call(collaborator: str):
    """Translate storage failures of a collaborator into UpstreamUnavailableError"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"{collaborator} lookup failed: {str(e)}")
        raise UpstreamUnavailableError(
            f"{collaborator} is unavailable",
            detail={"collaborator": collaborator},
        ) from e
