"""
Redis cache for published quiz definitions
"""
import redis
import json
import logging
from typing import Optional, Dict, Any
from assessment_engine.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "quiz"


class CacheService:
    """
    Redis-backed store of serialized quiz definitions

    A published quiz is never edited (a new version gets a new id), so an
    entry only leaves the cache by TTL. With Redis
    unconfigured or unreachable every lookup is a miss and writes are no-ops.
    """

    def __init__(self, url: Optional[str] = None, ttl: Optional[int] = None):
        url = settings.REDIS_URL if url is None else url
        self.ttl = ttl or settings.DEFAULT_QUIZ_CACHE_TTL
        self.redis_client = None
        if not url:
            logger.info("Redis URL not configured. Quiz caching disabled.")
            return

        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5
            )
            self.redis_client.ping()
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {str(e)}. Quiz caching disabled.")
            self.redis_client = None

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    @staticmethod
    def quiz_key(quiz_id: str) -> str:
        return f"{KEY_PREFIX}:{quiz_id}"

    def get_quiz(self, quiz_id: str) -> Optional[Dict[str, Any]]:
        """
        Cached definition for a quiz

        Returns:
            The JSON-decoded definition, or None on a miss or Redis error
        """
        if not self.enabled:
            return None

        key = self.quiz_key(quiz_id)
        try:
            payload = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Quiz cache read failed for {key}: {str(e)}")
            return None

        if payload is None:
            logger.info(f"Quiz cache miss: {key}")
            return None
        logger.debug(f"Quiz cache hit: {key}")
        return json.loads(payload)

    def put_quiz(self, quiz_id: str, definition: Dict[str, Any]) -> bool:
        """Store a JSON-serializable definition; returns whether it was written"""
        if not self.enabled:
            return False

        key = self.quiz_key(quiz_id)
        try:
            self.redis_client.setex(key, self.ttl, json.dumps(definition))
        except redis.RedisError as e:
            logger.error(f"Quiz cache write failed for {key}: {str(e)}")
            return False
        logger.debug(f"Quiz cached: {key} (TTL: {self.ttl}s)")
        return True


# Global instance
cache_service = CacheService()
