"""Pydantic models for the candidate status read."""

from pydantic import BaseModel

from verihire.models.candidate import Candidate
from verihire.models.credential import Credential
from verihire.models.resume import ParsedResume
from verihire.models.trust_score import TrustScore
from verihire.models.verification import RequestView, VerificationStats


class CandidateStatus(BaseModel):
    """Everything a polling client needs in one pure read."""
    candidate: Candidate
    resume: ParsedResume | None = None
    requests: list[RequestView] = []
    stats: VerificationStats
    latest_score: TrustScore | None = None
    credential: Credential | None = None
