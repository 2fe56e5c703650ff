"""Repository contract shared by the storage backends.

Uniqueness guarantees are part of the contract, not of the callers:

- ``reservations``: unique on ``(candidate_id, nullifier)``
- ``outcomes``: unique on ``request_id`` and on ``(candidate_id, nullifier)``
- ``credential_claims`` and ``credentials``: unique on ``candidate_id``

Inserts that violate one of them raise ``DuplicateKeyError`` atomically,
so a read-then-write race can never produce two rows.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from verihire.models.candidate import Candidate
from verihire.models.credential import Credential
from verihire.models.enums import RequestStatus
from verihire.models.resume import ResumeRecord
from verihire.models.trust_score import TrustScore
from verihire.models.verification import (
    NullifierReservation,
    VerificationOutcome,
    VerificationRequest,
)


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the store cannot be reached."""


class DuplicateKeyError(RepositoryError):
    """Raised when an insert violates a uniqueness constraint."""


class Repository(Protocol):
    def ping(self) -> bool: ...

    # Candidates / résumés
    def get_candidate(self, candidate_id: str) -> Candidate | None: ...
    def upsert_candidate(self, candidate: Candidate) -> Candidate: ...
    def save_resume(self, record: ResumeRecord) -> ResumeRecord: ...
    def get_latest_resume(self, candidate_id: str) -> ResumeRecord | None: ...

    # Verification requests
    def insert_request(self, request: VerificationRequest) -> VerificationRequest: ...
    def get_request(self, request_id: UUID) -> VerificationRequest | None: ...
    def list_requests(self, candidate_id: str) -> list[VerificationRequest]: ...
    def list_requests_by_status(self, status: RequestStatus) -> list[VerificationRequest]: ...
    def advance_request(
        self,
        request_id: UUID,
        expected: RequestStatus,
        target: RequestStatus,
        **fields: object,
    ) -> VerificationRequest | None: ...
    def update_request_dispatch(self, request_id: UUID, **fields: object) -> VerificationRequest | None: ...

    # Replay guard / outcomes
    def insert_reservation(self, reservation: NullifierReservation) -> NullifierReservation: ...
    def get_reservation(self, candidate_id: str, nullifier: str) -> NullifierReservation | None: ...
    def insert_outcome(self, outcome: VerificationOutcome) -> VerificationOutcome: ...
    def get_outcome_for_request(self, request_id: UUID) -> VerificationOutcome | None: ...
    def list_outcomes(self, candidate_id: str) -> list[VerificationOutcome]: ...

    # Trust scores (append-only)
    def append_trust_score(self, score: TrustScore) -> TrustScore: ...
    def latest_trust_score(self, candidate_id: str) -> TrustScore | None: ...
    def list_trust_scores(self, candidate_id: str) -> list[TrustScore]: ...

    # Credentials
    def claim_credential(self, candidate_id: str) -> None: ...
    def release_credential_claim(self, candidate_id: str) -> None: ...
    def insert_credential(self, credential: Credential) -> Credential: ...
    def get_credential(self, candidate_id: str) -> Credential | None: ...
