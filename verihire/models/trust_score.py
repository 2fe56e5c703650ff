"""Pydantic models for trust-score inputs and results."""

from datetime import datetime

from pydantic import BaseModel, Field

from verihire.models.candidate import OnlinePresence, utcnow
from verihire.models.enums import ScoreSource
from verihire.models.resume import WorkHistoryEntry


class ScoreBreakdown(BaseModel):
    """Per-factor sub-scores, each in [0, 100]."""
    employment_verification_rate: float = Field(..., ge=0, le=100)
    career_progression: float = Field(..., ge=0, le=100)
    skill_consistency: float = Field(..., ge=0, le=100)
    timeline_consistency: float = Field(..., ge=0, le=100)
    verification_count_bonus: float = Field(..., ge=0, le=100)


class CandidateData(BaseModel):
    """Everything the engine needs for one candidate."""
    candidate_id: str
    total_requests: int = 0
    total_outcomes: int = 0
    successful_verifications: int = 0
    work_history: list[WorkHistoryEntry] = []
    skills: list[str] = []
    online_presence: OnlinePresence | None = None
    github_profile: str | None = None
    linkedin_profile: str | None = None

    @property
    def verification_rate(self) -> float:
        if self.total_outcomes == 0:
            return 0.0
        return self.successful_verifications / self.total_outcomes


class ReasoningReply(BaseModel):
    """Schema the reasoning collaborator must answer with."""
    score: float | None = None
    breakdown: ScoreBreakdown
    analysis: str | None = None
    recommendations: list[str] = []
    risk_factors: list[str] = []
    strengths: list[str] = []


class TrustScore(BaseModel):
    """One entry of the append-only trust-score log."""
    candidate_id: str
    score: int = Field(..., ge=0, le=100)
    breakdown: ScoreBreakdown
    source: ScoreSource
    analysis: str | None = None
    recommendations: list[str] = []
    risk_factors: list[str] = []
    strengths: list[str] = []
    computed_at: datetime = Field(default_factory=utcnow)
