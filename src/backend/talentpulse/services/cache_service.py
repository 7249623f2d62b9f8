"""Redis caching for AI-derived score results.

Avoids re-scoring the same resume text against the same job text.
Cache keys include the prompt version so a prompt change invalidates old scores.
Fallback results are never written here.
"""

import hashlib
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from talentpulse.core.config import Settings
from talentpulse.models.schemas import ScoreResult
from talentpulse.prompts.resume_screening import PROMPT_VERSION

logger = logging.getLogger(__name__)


def hash_text(text: str) -> str:
    """Hash the text so the key changes when the content does."""
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()[:16]


def cache_key(resume_hash: str, job_hash: str) -> str:
    return f"score:{PROMPT_VERSION}:{resume_hash}:{job_hash}"


class ScoreCache:
    def __init__(self, settings: Settings, client: redis.Redis | None = None):
        self._settings = settings
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self._settings.redis_url, decode_responses=True)
        return self._client

    async def get(self, resume_text: str, job_text: str) -> ScoreResult | None:
        """Return the cached score, or None on a miss or any cache failure."""
        key = None
        try:
            key = cache_key(hash_text(resume_text), hash_text(job_text))
            data = await self.client.get(key)
            if data is None:
                return None
            return ScoreResult.model_validate_json(data)
        except (RedisError, OSError, ValueError):
            logger.warning("Score cache read failed for %s", key, exc_info=True)
            return None

    async def set(self, resume_text: str, job_text: str, result: ScoreResult) -> None:
        """Cache a score with TTL. Failures are logged, never raised."""
        key = None
        try:
            key = cache_key(hash_text(resume_text), hash_text(job_text))
            await self.client.set(
                key,
                result.model_dump_json(by_alias=True),
                ex=self._settings.result_cache_ttl,
            )
        except (RedisError, OSError, ValueError):
            logger.warning("Score cache write failed for %s", key, exc_info=True)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
