"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Redis (empty string disables quiz caching)
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Assessment Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Quiz catalog
    DEFAULT_QUIZ_CACHE_TTL: int = 3600  # 1 hour

    # Grading
    MATCHING_PENALTY_WEIGHT: float = 1.0
    SCORE_PRECISION: int = 1  # decimal places

    # Attempt sessions
    ATTEMPT_INACTIVITY_TIMEOUT_MINUTES: int = 120
    DEADLINE_GRACE_SECONDS: int = 5

    # Certificate eligibility
    MIN_COURSE_TIME_SECONDS: int = 0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
