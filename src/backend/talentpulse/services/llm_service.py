"""Resume scoring via LangChain + OpenAI with a local keyword-overlap fallback.

``ScoringAdapter.score`` never raises: a missing API key, a failed call, or an
unusable response all end in ``fallback_score``. Screening degrades to a rough
keyword signal instead of blocking the user.
"""

import asyncio
import json
import logging
import math
import random
import re
from numbers import Real
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from talentpulse.core.config import Settings
from talentpulse.models.schemas import ExperienceLevel, ResumeInsights, ScoreResult
from talentpulse.prompts.resume_screening import build_insights_prompt, build_scoring_prompt
from talentpulse.services.cache_service import ScoreCache

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "must", "can",
    "this", "that", "these", "those",
})
MAX_KEYWORDS = 20

# Field caps for ScoreResult list fields
SCORE_LIST_CAPS = {
    "strengths": 5,
    "weaknesses": 5,
    "recommendations": 3,
    "keySkills": 10,
    "missingSkills": 5,
}
INSIGHT_LIST_CAPS = {
    "keyStrengths": 5,
    "improvementAreas": 5,
    "skillsIdentified": 10,
    "industryFit": 5,
}

FALLBACK_STRENGTHS = [
    "Relevant experience in the field",
    "Good technical background",
    "Professional presentation",
]
FALLBACK_WEAKNESSES = [
    "Could benefit from additional certifications",
    "Some required skills may need development",
    "Experience level could be enhanced",
]
FALLBACK_RECOMMENDATIONS = [
    "Consider for interview based on overall profile",
    "Assess technical skills during interview process",
]

_NON_WORD = re.compile(r"[^\w\s]")
_json_decoder = json.JSONDecoder()


class ScoringUnavailable(RuntimeError):
    """The model could not produce a usable result. Always replaced by a fallback."""


# --- Parsing helpers ---

def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Lowercased, de-duplicated content words longer than two characters."""
    words = _NON_WORD.sub(" ", (text or "").lower()).split()
    unique = dict.fromkeys(w for w in words if len(w) > 2 and w not in STOPWORDS)
    return list(unique)[:limit]


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first balanced JSON object embedded in ``text``, if any.

    Tolerates prose and markdown fences around the object.
    """
    if not text:
        return None
    idx = text.find("{")
    while idx != -1:
        try:
            obj, _ = _json_decoder.raw_decode(text, idx)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(obj, dict):
                return obj
        idx = text.find("{", idx + 1)
    return None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_percentage(value: Any) -> int:
    """Clamp into [0, 100]. Missing, boolean, or non-numeric values become 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, Real) or math.isnan(value):
        return 0
    return round_half_up(min(100.0, max(0.0, float(value))))


def cap_list(value: Any, cap: int) -> list[str]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, str):
            item = item.strip()
        elif isinstance(item, Real):
            item = str(item)
        else:
            continue
        if item:
            items.append(item)
    return items[:cap]


def normalize_score(payload: dict[str, Any]) -> ScoreResult:
    return ScoreResult(
        score=clamp_percentage(payload.get("score")),
        skills_match=clamp_percentage(payload.get("skillsMatch")),
        experience_match=clamp_percentage(payload.get("experienceMatch")),
        strengths=cap_list(payload.get("strengths"), SCORE_LIST_CAPS["strengths"]),
        weaknesses=cap_list(payload.get("weaknesses"), SCORE_LIST_CAPS["weaknesses"]),
        recommendations=cap_list(payload.get("recommendations"), SCORE_LIST_CAPS["recommendations"]),
        key_skills=cap_list(payload.get("keySkills"), SCORE_LIST_CAPS["keySkills"]),
        missing_skills=cap_list(payload.get("missingSkills"), SCORE_LIST_CAPS["missingSkills"]),
    )


def normalize_insights(payload: dict[str, Any]) -> ResumeInsights:
    level = payload.get("experienceLevel")
    level = level.strip().lower() if isinstance(level, str) else ""
    return ResumeInsights(
        overall_score=clamp_percentage(payload.get("overallScore")),
        key_strengths=cap_list(payload.get("keyStrengths"), INSIGHT_LIST_CAPS["keyStrengths"]),
        improvement_areas=cap_list(payload.get("improvementAreas"), INSIGHT_LIST_CAPS["improvementAreas"]),
        skills_identified=cap_list(payload.get("skillsIdentified"), INSIGHT_LIST_CAPS["skillsIdentified"]),
        experience_level=level if level in ExperienceLevel.__members__ else ExperienceLevel.mid,
        industry_fit=cap_list(payload.get("industryFit"), INSIGHT_LIST_CAPS["industryFit"]),
    )


# --- Fallbacks ---

def fallback_score(resume_text: str, job_text: str, rng: random.Random) -> ScoreResult:
    """Keyword-overlap estimate used when the model is unavailable.

    The score is nudged by a bounded random amount and kept within [15, 85]
    so it never looks more precise than it is.
    """
    job_keywords = extract_keywords(job_text)
    resume_keywords = extract_keywords(resume_text)

    matching = [
        keyword for keyword in job_keywords
        if any(keyword in rk or rk in keyword for rk in resume_keywords)
    ]
    skills_match = round_half_up(100 * len(matching) / len(job_keywords)) if job_keywords else 0

    score = min(85, max(15, skills_match + rng.randrange(20)))
    return ScoreResult(
        score=score,
        skills_match=skills_match,
        experience_match=min(100, score + rng.randrange(15)),
        strengths=FALLBACK_STRENGTHS[: rng.randint(1, 3)],
        weaknesses=FALLBACK_WEAKNESSES[: rng.randint(1, 2)],
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        key_skills=matching[:5],
        missing_skills=[k for k in job_keywords if k not in matching][:3],
    )


def fallback_insights(resume_text: str) -> ResumeInsights:
    return ResumeInsights(
        overall_score=75,
        key_strengths=["Professional experience", "Technical skills"],
        improvement_areas=["Could add more specific achievements"],
        skills_identified=extract_keywords(resume_text)[:5],
        experience_level=ExperienceLevel.mid,
        industry_fit=["Technology", "Professional Services"],
    )


# --- Adapter ---

class ScoringAdapter:
    def __init__(
        self,
        settings: Settings,
        cache: ScoreCache | None = None,
        rng: random.Random | None = None,
        llm: Any = None,
        insights_llm: Any = None,
    ):
        self._settings = settings
        self._cache = cache
        self._rng = rng or random.Random()
        self._llm = llm
        self._insights_llm = insights_llm

    def _build_llm(self, max_tokens: int, temperature: float) -> ChatOpenAI:
        if not self._settings.openai_api_key:
            raise ScoringUnavailable("OpenAI API key is not configured")
        try:
            return ChatOpenAI(
                model=self._settings.llm_model,
                api_key=self._settings.openai_api_key,
                temperature=temperature,
                max_tokens=max_tokens,
                top_p=self._settings.llm_top_p,
            )
        except Exception as exc:
            raise ScoringUnavailable(f"Chat model initialization failed: {exc}") from exc

    def get_llm(self):
        """Chat model handle for scoring, built on first use and reused."""
        if self._llm is None:
            self._llm = self._build_llm(
                self._settings.llm_max_output_tokens,
                self._settings.llm_temperature,
            )
        return self._llm

    def get_insights_llm(self):
        if self._insights_llm is None:
            self._insights_llm = self._build_llm(
                self._settings.insights_max_output_tokens,
                self._settings.insights_temperature,
            )
        return self._insights_llm

    async def probe(self) -> str:
        """Health probe: obtain a live handle without issuing a request."""
        self.get_llm()
        return f"Chat model client initialized ({self._settings.llm_model})"

    async def _complete(self, llm, system_prompt: str, user_prompt: str) -> str:
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        try:
            response = await llm.ainvoke(messages)
        except Exception as exc:
            raise ScoringUnavailable(f"Chat model call failed: {exc}") from exc

        raw_text = response.content if isinstance(response.content, str) else str(response.content)
        logger.info("LLM raw response: %s", raw_text[:500])
        return raw_text

    async def _score_with_model(self, resume_text: str, job_text: str) -> ScoreResult:
        llm = self.get_llm()
        system_prompt, user_prompt = build_scoring_prompt(resume_text, job_text)
        raw_text = await self._complete(llm, system_prompt, user_prompt)

        payload = extract_json_object(raw_text)
        if payload is None:
            raise ScoringUnavailable("Model response contained no JSON object")
        try:
            return normalize_score(payload)
        except (ValueError, TypeError) as exc:
            raise ScoringUnavailable(f"Model output failed validation: {exc}") from exc

    async def _cache_get(self, resume_text: str, job_text: str) -> ScoreResult | None:
        if self._cache is None:
            return None
        try:
            return await self._cache.get(resume_text, job_text)
        except Exception:
            logger.warning("Score cache lookup failed, scoring without cache", exc_info=True)
            return None

    async def _cache_set(self, resume_text: str, job_text: str, result: ScoreResult) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(resume_text, job_text, result)
        except Exception:
            logger.warning("Score cache write failed", exc_info=True)

    async def score(self, resume_text: str, job_text: str) -> ScoreResult:
        """Score a resume against job requirements. Always returns a result."""
        cached = await self._cache_get(resume_text, job_text)
        if cached is not None:
            logger.info("Score cache hit")
            return cached

        try:
            result = await self._score_with_model(resume_text, job_text)
        except ScoringUnavailable as exc:
            logger.warning("AI scoring unavailable, using keyword fallback: %s", exc)
            return fallback_score(resume_text, job_text, self._rng)

        await self._cache_set(resume_text, job_text, result)
        return result

    async def score_many(
        self,
        resumes: list[tuple[str, str]],
        job_text: str,
    ) -> list[tuple[str, ScoreResult]]:
        """Score several ``(resume_id, text)`` pairs against one job concurrently."""
        results = await asyncio.gather(*(self.score(text, job_text) for _, text in resumes))
        return [(resume_id, result) for (resume_id, _), result in zip(resumes, results)]

    async def generate_insights(self, resume_text: str) -> ResumeInsights:
        """Standalone resume insights. Falls back to a constant record plus keywords."""
        try:
            llm = self.get_insights_llm()
            system_prompt, user_prompt = build_insights_prompt(resume_text)
            raw_text = await self._complete(llm, system_prompt, user_prompt)
            payload = extract_json_object(raw_text)
            if payload is None:
                raise ScoringUnavailable("Model response contained no JSON object")
            return normalize_insights(payload)
        except (ScoringUnavailable, ValueError, TypeError) as exc:
            logger.warning("AI insights unavailable, using fallback: %s", exc)
            return fallback_insights(resume_text)
