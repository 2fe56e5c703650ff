"""Pydantic models for the ``candidates`` table.

A candidate is created on first résumé upload and never deleted.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OnlinePresence(BaseModel):
    """Externally supplied online-presence signals (all optional)."""
    combined_score: int | None = Field(default=None, ge=0, le=100)
    activity_score: int | None = Field(default=None, ge=0, le=100)
    reputation_score: int | None = Field(default=None, ge=0, le=100)
    consistency_score: int | None = Field(default=None, ge=0, le=100)
    analysis_summary: str | None = None


class Candidate(BaseModel):
    """Full candidate record."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    github_profile: str | None = None
    linkedin_profile: str | None = None
    wallet_address: str | None = None
    online_presence: OnlinePresence | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProfilesUpdate(BaseModel):
    """Payload for updating social profiles and presence signals."""
    github_profile: str | None = None
    linkedin_profile: str | None = None
    wallet_address: str | None = None
    online_presence: OnlinePresence | None = None
