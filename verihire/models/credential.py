"""Pydantic models for the ``credentials`` table."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from verihire.models.candidate import utcnow


class MintReceipt(BaseModel):
    """Ledger response for a successful mint."""
    token_id: str
    tx_hash: str


class Credential(BaseModel):
    """The single credential issued for a candidate. Never mutated."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    candidate_id: str
    credential_hash: str
    score: int = Field(..., ge=0, le=100)
    trust_level: str
    verification_count: int = Field(..., ge=0)
    recipient: str
    token_id: str
    tx_hash: str
    issued_at: datetime = Field(default_factory=utcnow)


class CredentialIssueRequest(BaseModel):
    """Optional payload for issuance; falls back to the stored wallet."""
    wallet_address: str | None = None
