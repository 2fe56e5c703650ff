"""Pydantic models for parsed résumés."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from verihire.models.candidate import utcnow


class WorkHistoryEntry(BaseModel):
    """One work-history claim.

    Frozen: once a verification request snapshots an entry, edits must
    produce a new entry instead of mutating this one.
    """
    model_config = ConfigDict(frozen=True)

    company: str
    position: str
    start_date: str
    end_date: str
    description: str | None = None
    location: str | None = None


class Education(BaseModel):
    """One education record."""
    institution: str
    degree: str
    field: str
    graduation_year: str


class ParsedResume(BaseModel):
    """Result of ``ResumeParser.parse``. Always carries >= 1 work entry."""
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    work_experience: list[WorkHistoryEntry] = Field(min_length=1)
    education: list[Education] = []
    skills: list[str] = []


class ResumeRecord(BaseModel):
    """Stored résumé for a candidate (newest supersedes older ones)."""
    candidate_id: str
    resume: ParsedResume
    created_at: datetime = Field(default_factory=utcnow)


class ResumeUpload(BaseModel):
    """Payload for résumé ingestion: already-extracted text."""
    text: str = Field(..., min_length=1, max_length=200_000)
