"""Pydantic models for verification requests, claims and outcomes."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from verihire.models.candidate import utcnow
from verihire.models.enums import EffectiveStatus, ItemStatus, RequestStatus
from verihire.models.resume import WorkHistoryEntry


class RequestClaim(BaseModel):
    """The claim embedded in a signed request token."""
    request_id: UUID
    candidate_id: str
    candidate_name: str
    candidate_email: str | None = None
    employer_email: str
    company: str
    position: str
    start_date: str | None = None
    end_date: str | None = None


class IssuedToken(BaseModel):
    """A signed request token with its expiry."""
    token: str
    request_id: UUID
    expires_at: datetime


class VerificationRequest(BaseModel):
    """Full verification_requests record."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    candidate_id: str
    candidate_name: str
    candidate_email: str | None = None
    employer_email: str
    entry: WorkHistoryEntry
    token: str
    expires_at: datetime
    status: RequestStatus = RequestStatus.pending
    delivery_id: str | None = None
    dispatch_error: str | None = None
    dispatch_attempts: int = 0
    last_dispatched_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def effective_status(self, now: datetime | None = None) -> EffectiveStatus:
        """Stored status, except ``sent`` past expiry reads as ``expired``."""
        if self.status == RequestStatus.sent and self.is_expired(now):
            return EffectiveStatus.expired
        return EffectiveStatus(self.status.value)


class RequestView(BaseModel):
    """Read-side projection for status polling."""
    id: UUID
    employer_email: str
    company: str
    position: str
    status: RequestStatus
    effective_status: EffectiveStatus
    expires_at: datetime
    dispatch_error: str | None = None
    created_at: datetime


class IssueItem(BaseModel):
    """One work entry to send for attestation."""
    employer_email: str
    entry: WorkHistoryEntry


class BatchIssueRequest(BaseModel):
    """Payload for batch issuance."""
    candidate_id: str = Field(..., min_length=1)
    candidate_name: str = Field(..., min_length=1)
    candidate_email: str | None = None
    items: list[IssueItem] = Field(..., min_length=1)


class IssueItemResult(BaseModel):
    """Per-item outcome of a batch issuance."""
    employer_email: str
    company: str
    status: ItemStatus
    request_id: UUID | None = None
    error: str | None = None


class BatchIssueResult(BaseModel):
    """Per-item outcomes; partial success is never escalated."""
    candidate_id: str
    results: list[IssueItemResult]

    @property
    def needs_resend(self) -> list[str]:
        return [r.employer_email for r in self.results if r.status != ItemStatus.sent]


class ProofResult(BaseModel):
    """Response of the identity-proof collaborator."""
    success: bool
    uniqueness_token: str | None = None
    detail: dict | None = None


class NullifierReservation(BaseModel):
    """A replay-guard row, unique on (candidate_id, nullifier)."""
    candidate_id: str
    nullifier: str
    request_id: UUID | None = None
    reserved_at: datetime = Field(default_factory=utcnow)


class VerificationOutcome(BaseModel):
    """An attestation outcome. Immutable once written."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    request_id: UUID
    candidate_id: str
    nullifier: str
    verified: bool
    company: str
    position: str
    attestation_digest: str
    timestamp: datetime = Field(default_factory=utcnow)


class AttestationSubmission(BaseModel):
    """Payload posted by a prover. Proof fields are checked by the service."""
    token: str | None = None
    answer: str | None = None
    proof: str | None = None
    merkle_root: str | None = None
    nullifier_hash: str | None = None
    verification_level: str | None = None


class VerificationStats(BaseModel):
    """Verified / pending / rejected counts for a candidate."""
    candidate_id: str
    verified: int = 0
    pending: int = 0
    rejected: int = 0
    expired: int = 0
