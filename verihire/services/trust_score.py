"""Trust score computation.

Two strategies, tried in order and always tagged with their source:

1. primary: an OpenAI-compatible chat model scores the candidate and
   answers with a JSON object (bare, or fenced in a code block);
2. fallback: the deterministic weighted formula below.

``TrustScoreEngine.calculate`` never raises.  Every degradation is logged
and surfaced through ``TrustScore.source``.

Weighted composite (each factor 0-100):

  employment_verification_rate  x 0.40
  career_progression            x 0.20
  skill_consistency             x 0.15
  timeline_consistency          x 0.15
  verification_count_bonus      x 0.10

A candidate with no verification requests at all short-circuits to a
fixed baseline of 30.
"""

from __future__ import annotations

import json
import logging
import math
import re

import httpx
from pydantic import ValidationError as PydanticValidationError

from verihire.core.constants import (
    CAREER_BASE_SCORE,
    CAREER_PROMOTION_BONUS,
    CAREER_SINGLE_JOB_SCORE,
    NO_REQUESTS_BASELINE_SCORE,
    REASONING_MAX_TOKENS,
    REASONING_TEMPERATURE,
    SCORE_WEIGHTS,
    SENIORITY_LADDER,
    SKILL_BASE_SCORE,
    SKILL_MATCH_BONUS,
    SKILL_NO_SKILLS_SCORE,
    TECH_ROLE_KEYWORDS,
    TECH_SKILL_KEYWORDS,
    TIMELINE_BASE_SCORE,
    TIMELINE_EMPTY_SCORE,
    TIMELINE_SINGLE_JOB_SCORE,
    TIMELINE_TRANSITION_BONUS,
    VERIFICATION_COUNT_STEP,
)
from verihire.core.errors import NotFoundError, UpstreamUnavailable
from verihire.db.repository import Repository
from verihire.models.enums import ResponseShape, ScoreSource
from verihire.models.resume import WorkHistoryEntry
from verihire.models.trust_score import (
    CandidateData,
    ReasoningReply,
    ScoreBreakdown,
    TrustScore,
)

logger = logging.getLogger(__name__)

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_YEAR_RE = re.compile(r"(?:19|20)\d{2}")

SCORING_SYSTEM_PROMPT = """\
You are an employment-verification analyst. Score how trustworthy a
candidate's stated work history is, from 0 to 100, using exactly these
weighted factors (each factor scored 0-100):

- employment_verification_rate (40%): share of employer attestations that confirmed the claim
- career_progression (20%): plausible, upward title progression over time
- skill_consistency (15%): declared skills fit the roles held
- timeline_consistency (15%): no overlapping or contradictory employment dates
- verification_count_bonus (10%): more confirmed employers is stronger evidence

Online-presence signals, when given, may inform the analysis but do not add
a sixth factor.

Answer with ONLY a JSON object of this shape:

{
  "score": <0-100>,
  "breakdown": {
    "employment_verification_rate": <0-100>,
    "career_progression": <0-100>,
    "skill_consistency": <0-100>,
    "timeline_consistency": <0-100>,
    "verification_count_bonus": <0-100>
  },
  "analysis": "<two or three sentences>",
  "recommendations": ["..."],
  "risk_factors": ["..."],
  "strengths": ["..."]
}\
"""


# ---------------------------------------------------------------------------
# Reasoning collaborator
# ---------------------------------------------------------------------------


class ReasoningClient:
    """Chat-completions client for the primary scoring strategy."""

    def __init__(self, api_url: str, api_key: str, model: str, timeout: float = 10.0) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self.model = model
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._api_url)

    def complete(self, system_prompt: str, user_content: str) -> str:
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    self._api_url,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": user_content},
                        ],
                        "temperature": REASONING_TEMPERATURE,
                        "max_tokens": REASONING_MAX_TOKENS,
                    },
                )
                response.raise_for_status()
                return response.json()["choices"][0]["message"]["content"]
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            raise UpstreamUnavailable(f"reasoning call failed ({type(exc).__name__}): {exc}") from exc


def parse_reasoning_reply(content: str) -> tuple[ResponseShape, ReasoningReply | None]:
    """Decode a reply as bare JSON, then as a fenced JSON block.

    No looser repair is attempted; anything else is ``unparsable``.
    """
    candidates: list[tuple[ResponseShape, str]] = [(ResponseShape.direct_json, content.strip())]
    fenced = _FENCED_JSON_RE.search(content)
    if fenced:
        candidates.append((ResponseShape.fenced_json, fenced.group(1)))

    for shape, text in candidates:
        try:
            return shape, ReasoningReply.model_validate(json.loads(text))
        except (json.JSONDecodeError, PydanticValidationError, TypeError):
            continue
    return ResponseShape.unparsable, None


# ---------------------------------------------------------------------------
# Deterministic factors
# ---------------------------------------------------------------------------


def _clamp_round(value: float) -> int:
    return max(0, min(100, int(math.floor(value + 0.5))))


def _ladder_index(title: str) -> int:
    lowered = title.lower()
    for index, level in enumerate(SENIORITY_LADDER):
        if level in lowered:
            return index
    return -1


def _year(value: str | None) -> int | None:
    if not value:
        return None
    match = _YEAR_RE.search(value)
    return int(match.group(0)) if match else None


def career_progression(work_history: list[WorkHistoryEntry]) -> float:
    """+15 per upward title step, newest entry first."""
    if len(work_history) <= 1:
        return CAREER_SINGLE_JOB_SCORE
    score = CAREER_BASE_SCORE
    for i in range(1, len(work_history)):
        newer = _ladder_index(work_history[i - 1].position)
        older = _ladder_index(work_history[i].position)
        if newer > older:
            score += CAREER_PROMOTION_BONUS
    return min(score, 100)


def skill_consistency(skills: list[str], work_history: list[WorkHistoryEntry]) -> float:
    if not skills:
        return SKILL_NO_SKILLS_SCORE
    score = SKILL_BASE_SCORE
    has_tech_skill = any(
        keyword in skill.lower() for skill in skills for keyword in TECH_SKILL_KEYWORDS
    )
    has_tech_role = any(
        keyword in entry.position.lower() for entry in work_history for keyword in TECH_ROLE_KEYWORDS
    )
    if has_tech_skill and has_tech_role:
        score += SKILL_MATCH_BONUS
    return min(score, 100)


def timeline_consistency(work_history: list[WorkHistoryEntry]) -> float:
    """+5 per clean hand-over between adjacent jobs, newest entry first."""
    if not work_history:
        return TIMELINE_EMPTY_SCORE
    if len(work_history) == 1:
        return TIMELINE_SINGLE_JOB_SCORE
    score = TIMELINE_BASE_SCORE
    for i in range(1, len(work_history)):
        newer, older = work_history[i - 1], work_history[i]
        if (older.end_date or "").lower() == "present":
            continue
        older_end, newer_start = _year(older.end_date), _year(newer.start_date)
        if older_end is not None and newer_start is not None and older_end <= newer_start:
            score += TIMELINE_TRANSITION_BONUS
    return min(score, 100)


def compute_breakdown(data: CandidateData) -> ScoreBreakdown:
    return ScoreBreakdown(
        employment_verification_rate=max(0.0, min(data.verification_rate * 100, 100.0)),
        career_progression=career_progression(data.work_history),
        skill_consistency=skill_consistency(data.skills, data.work_history),
        timeline_consistency=timeline_consistency(data.work_history),
        verification_count_bonus=max(0, min(data.successful_verifications * VERIFICATION_COUNT_STEP, 100)),
    )


def weighted_score(breakdown: ScoreBreakdown) -> int:
    values = breakdown.model_dump()
    return _clamp_round(sum(values[factor] * weight for factor, weight in SCORE_WEIGHTS.items()))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TrustScoreEngine:
    def __init__(self, reasoning: ReasoningClient | None = None) -> None:
        self._reasoning = reasoning

    def calculate(self, data: CandidateData) -> TrustScore:
        """Primary strategy first, deterministic fallback on any failure."""
        if data.total_requests == 0:
            return self.fallback_score(data, ScoreSource.fallback_no_requests)
        if self._reasoning is None or not self._reasoning.configured:
            return self.fallback_score(data, ScoreSource.fallback_no_api_key)

        try:
            content = self._reasoning.complete(SCORING_SYSTEM_PROMPT, self._prompt(data))
        except UpstreamUnavailable as exc:
            logger.warning(
                "trust_score_primary_failed",
                extra={
                    "candidate_id": data.candidate_id,
                    "error_message": exc.message,
                },
            )
            return self.fallback_score(data, ScoreSource.fallback_api_error)
        except Exception as exc:
            logger.error(
                "trust_score_primary_crashed",
                extra={
                    "candidate_id": data.candidate_id,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
            )
            return self.fallback_score(data, ScoreSource.fallback_api_error)

        shape, reply = parse_reasoning_reply(content)
        if reply is None:
            logger.warning(
                "trust_score_reply_unparsable",
                extra={"candidate_id": data.candidate_id, "shape": shape.value},
            )
            return self.fallback_score(data, ScoreSource.fallback_parse_error)

        score = _clamp_round(reply.score) if reply.score is not None else weighted_score(reply.breakdown)
        logger.info(
            "trust_score_computed",
            extra={
                "candidate_id": data.candidate_id,
                "source": ScoreSource.primary.value,
                "shape": shape.value,
                "score": score,
            },
        )
        return TrustScore(
            candidate_id=data.candidate_id,
            score=score,
            breakdown=reply.breakdown,
            source=ScoreSource.primary,
            analysis=reply.analysis,
            recommendations=reply.recommendations,
            risk_factors=reply.risk_factors,
            strengths=reply.strengths,
        )

    def fallback_score(self, data: CandidateData, source: ScoreSource) -> TrustScore:
        """Deterministic formula. Pure arithmetic over validated inputs."""
        breakdown = compute_breakdown(data)
        if source == ScoreSource.fallback_no_requests:
            score = NO_REQUESTS_BASELINE_SCORE
        else:
            score = weighted_score(breakdown)
        strengths, risks, recommendations = self._insights(data, breakdown)
        logger.info(
            "trust_score_computed",
            extra={
                "candidate_id": data.candidate_id,
                "source": source.value,
                "score": score,
            },
        )
        return TrustScore(
            candidate_id=data.candidate_id,
            score=score,
            breakdown=breakdown,
            source=source,
            analysis=(
                f"Deterministic score from {data.successful_verifications} confirmed "
                f"of {data.total_outcomes} employer attestations "
                f"({data.total_requests} requests sent)."
            ),
            recommendations=recommendations,
            risk_factors=risks,
            strengths=strengths,
        )

    @staticmethod
    def _insights(
        data: CandidateData, breakdown: ScoreBreakdown
    ) -> tuple[list[str], list[str], list[str]]:
        strengths: list[str] = []
        risks: list[str] = []
        recommendations: list[str] = []

        if data.total_outcomes and data.verification_rate >= 0.8:
            strengths.append("High employment verification rate")
        elif data.total_outcomes and data.verification_rate < 0.5:
            risks.append("Most employer attestations did not confirm the claim")
        if breakdown.career_progression >= 80:
            strengths.append("Clear upward career progression")
        if breakdown.timeline_consistency < TIMELINE_BASE_SCORE + TIMELINE_TRANSITION_BONUS and len(data.work_history) > 1:
            risks.append("Employment dates overlap or are incomplete")

        if data.total_requests == 0:
            recommendations.append("Send verification requests to previous employers")
        elif data.successful_verifications < 3:
            recommendations.append("Request verification from more previous employers")
        if not data.github_profile:
            recommendations.append("Link a GitHub profile")
        if not data.linkedin_profile:
            recommendations.append("Link a LinkedIn profile")
        return strengths, risks, recommendations

    @staticmethod
    def _prompt(data: CandidateData) -> str:
        payload = {
            "verification": {
                "total_requests": data.total_requests,
                "total_outcomes": data.total_outcomes,
                "successful_verifications": data.successful_verifications,
                "verification_rate": round(data.verification_rate, 4),
            },
            "work_history": [entry.model_dump() for entry in data.work_history],
            "skills": data.skills,
            "profiles": {
                "github": data.github_profile,
                "linkedin": data.linkedin_profile,
            },
            "online_presence": (
                data.online_presence.model_dump() if data.online_presence else None
            ),
        }
        return f"Candidate data:\n{json.dumps(payload, ensure_ascii=False, indent=2)}"


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


def build_candidate_data(repository: Repository, candidate_id: str) -> CandidateData:
    candidate = repository.get_candidate(candidate_id)
    if candidate is None:
        raise NotFoundError(f"candidate {candidate_id} not found")
    resume = repository.get_latest_resume(candidate_id)
    outcomes = repository.list_outcomes(candidate_id)
    return CandidateData(
        candidate_id=candidate_id,
        total_requests=len(repository.list_requests(candidate_id)),
        total_outcomes=len(outcomes),
        successful_verifications=sum(1 for o in outcomes if o.verified),
        work_history=resume.resume.work_experience if resume else [],
        skills=resume.resume.skills if resume else [],
        online_presence=candidate.online_presence,
        github_profile=candidate.github_profile,
        linkedin_profile=candidate.linkedin_profile,
    )


class TrustScoreService:
    def __init__(self, repository: Repository, engine: TrustScoreEngine) -> None:
        self._repo = repository
        self._engine = engine

    def compute_and_store(self, candidate_id: str) -> TrustScore:
        score = self._engine.calculate(build_candidate_data(self._repo, candidate_id))
        return self._repo.append_trust_score(score)

    def latest(self, candidate_id: str) -> TrustScore:
        score = self._repo.latest_trust_score(candidate_id)
        if score is None:
            raise NotFoundError(f"no trust score for candidate {candidate_id}")
        return score

    def history(self, candidate_id: str) -> list[TrustScore]:
        if self._repo.get_candidate(candidate_id) is None:
            raise NotFoundError(f"candidate {candidate_id} not found")
        return self._repo.list_trust_scores(candidate_id)
