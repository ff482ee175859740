from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from pydantic import ValidationError

from app.ai.types import AIJudge
from app.schemas.applications import JudgeScoringResponse, ScoringResult
from app.services.errors import ScoringUnavailable

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BASE_DELAY_S = 1.0
DEFAULT_ATTEMPT_TIMEOUT_S = 30.0

SYSTEM_PROMPT = (
    "You are an expert HR professional and resume analyzer. "
    "Analyze the candidate's resume against the job description and provide a comprehensive evaluation. "
    "Respond with valid JSON only, in exactly this shape: "
    '{"match_score": <integer 0-100>, '
    '"strengths": [<2-5 short strings>], '
    '"weaknesses": [<2-5 short strings>], '
    '"summary": "<2-3 sentences, at least 50 characters>", '
    '"interview_questions": [<3-4 strings>]}. '
    "Do not add any other keys. Be precise with scoring."
)

SCORING_SCHEMA_NAME = "scoring_result"
SCORING_RESPONSE_SCHEMA = JudgeScoringResponse.model_json_schema()

USER_PROMPT_TEMPLATE = """Job Description:
{job_description}

Resume:
{resume_text}

Please analyze this resume against the job description and provide:
1. A match score from 0-100 (where 100 is a perfect match) - be realistic and precise
2. A list of candidate strengths (2-5 items)
3. A list of areas for improvement or missing skills (2-5 items)
4. A brief summary of the candidate (2-3 sentences)
5. 3-4 relevant interview questions based on the analysis

Consider technical skills, experience level, cultural fit indicators, and overall qualification level.
Score conservatively but fairly - only exceptional matches should score above 90.
"""

FALLBACK_RESULT = ScoringResult(
    match_score=0,
    strengths=["Unable to analyze resume - please try again"],
    weaknesses=["AI analysis temporarily unavailable"],
    summary=(
        "Resume analysis failed due to technical issues. "
        "Please try uploading again or contact support."
    ),
    interview_questions=[
        "Can you walk me through your relevant experience for this role?",
        "What interests you most about this position?",
        "How do you approach learning new technologies?",
        "What are your career goals for the next few years?",
    ],
)


@dataclass(frozen=True)
class ScoringOutcome:
    result: ScoringResult
    fallback_used: bool
    attempts: int


def parse_judge_response(raw: str | None) -> ScoringResult:
    """Deserialize and validate one judge response, raising ScoringUnavailable on any defect."""
    if raw is None or not raw.strip():
        raise ScoringUnavailable("Empty response from AI judge")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ScoringUnavailable("Invalid JSON response from AI judge") from exc
    if not isinstance(payload, dict):
        raise ScoringUnavailable("AI judge response is not a JSON object")

    score = payload.get("match_score")
    # bool is an int subclass; floats like 85.0 are tolerated, 85.5 is not.
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ScoringUnavailable("Invalid match score in AI judge response")
    if isinstance(score, float) and not score.is_integer():
        raise ScoringUnavailable("Non-integer match score in AI judge response")
    if score < 0 or score > 100:
        raise ScoringUnavailable(f"Match score {score} outside 0-100")

    try:
        return ScoringResult.model_validate({**payload, "match_score": int(score)})
    except ValidationError as exc:
        raise ScoringUnavailable(f"AI judge response failed validation: {exc.error_count()} error(s)") from exc


class FitScorer:
    """Scores resume-to-job fit through an external judge with bounded retries.

    Never raises: after MAX_ATTEMPTS failed attempts the fixed FALLBACK_RESULT
    is returned so the caller can always reach a decision.
    """

    def __init__(
        self,
        judge: AIJudge,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay_s: float = BASE_DELAY_S,
        attempt_timeout_s: float = DEFAULT_ATTEMPT_TIMEOUT_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._judge = judge
        self._max_attempts = max(1, max_attempts)
        self._base_delay_s = base_delay_s
        self._attempt_timeout_s = attempt_timeout_s
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return self._base_delay_s * (2 ** (attempt - 1))

    async def _attempt(self, user_prompt: str) -> ScoringResult:
        try:
            raw = await asyncio.wait_for(
                self._judge.complete_json(
                    SYSTEM_PROMPT,
                    user_prompt,
                    schema=SCORING_RESPONSE_SCHEMA,
                    schema_name=SCORING_SCHEMA_NAME,
                ),
                timeout=self._attempt_timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise ScoringUnavailable(f"AI judge timed out after {self._attempt_timeout_s}s") from exc
        except ScoringUnavailable:
            raise
        except Exception as exc:  # noqa: BLE001 - any judge failure counts as a failed attempt
            raise ScoringUnavailable(f"AI judge call failed: {exc}") from exc
        return parse_judge_response(raw)

    async def evaluate(self, resume_text: str, job_description: str) -> ScoringOutcome:
        user_prompt = USER_PROMPT_TEMPLATE.format(
            job_description=job_description,
            resume_text=resume_text,
        )
        for attempt in range(1, self._max_attempts + 1):
            started = time.perf_counter()
            logger.info("fit_scorer_attempt attempt=%s/%s", attempt, self._max_attempts)
            try:
                result = await self._attempt(user_prompt)
            except ScoringUnavailable as exc:
                logger.warning(
                    "fit_scorer_attempt_failed attempt=%s latency_ms=%s: %s",
                    attempt,
                    int((time.perf_counter() - started) * 1000),
                    exc,
                )
                if attempt < self._max_attempts:
                    delay = self.backoff_delay(attempt)
                    logger.info("fit_scorer_backoff delay_s=%s", delay)
                    await self._sleep(delay)
                continue

            logger.info(
                "fit_scorer_success attempt=%s match_score=%s latency_ms=%s",
                attempt,
                result.match_score,
                int((time.perf_counter() - started) * 1000),
            )
            return ScoringOutcome(result=result, fallback_used=False, attempts=attempt)

        logger.error("fit_scorer_exhausted attempts=%s returning fallback", self._max_attempts)
        return ScoringOutcome(result=FALLBACK_RESULT, fallback_used=True, attempts=self._max_attempts)

    async def score(self, resume_text: str, job_description: str) -> ScoringResult:
        outcome = await self.evaluate(resume_text, job_description)
        return outcome.result
