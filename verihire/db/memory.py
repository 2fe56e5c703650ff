"""Thread-safe in-memory repository.

Every check-and-insert runs under one lock, which gives the same
all-or-nothing behaviour as the unique indexes of the relational store.
Used by the test-suite and for local runs (``STORAGE_BACKEND=memory``).
"""

from __future__ import annotations

import threading
from uuid import UUID

from verihire.db.repository import DuplicateKeyError
from verihire.models.candidate import Candidate, utcnow
from verihire.models.credential import Credential
from verihire.models.enums import REQUEST_STATUS_ORDER, RequestStatus
from verihire.models.resume import ResumeRecord
from verihire.models.trust_score import TrustScore
from verihire.models.verification import (
    NullifierReservation,
    VerificationOutcome,
    VerificationRequest,
)


class InMemoryRepository:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._candidates: dict[str, Candidate] = {}
        self._resumes: dict[str, list[ResumeRecord]] = {}
        self._requests: dict[UUID, VerificationRequest] = {}
        self._reservations: dict[tuple[str, str], NullifierReservation] = {}
        self._outcomes: dict[UUID, VerificationOutcome] = {}
        self._scores: dict[str, list[TrustScore]] = {}
        self._claims: set[str] = set()
        self._credentials: dict[str, Credential] = {}

    def ping(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Candidates / résumés
    # ------------------------------------------------------------------

    def get_candidate(self, candidate_id: str) -> Candidate | None:
        with self._lock:
            return self._candidates.get(candidate_id)

    def upsert_candidate(self, candidate: Candidate) -> Candidate:
        with self._lock:
            stored = candidate.model_copy(update={"updated_at": utcnow()})
            self._candidates[candidate.id] = stored
            return stored

    def save_resume(self, record: ResumeRecord) -> ResumeRecord:
        with self._lock:
            self._resumes.setdefault(record.candidate_id, []).append(record)
            return record

    def get_latest_resume(self, candidate_id: str) -> ResumeRecord | None:
        with self._lock:
            records = self._resumes.get(candidate_id)
            return records[-1] if records else None

    # ------------------------------------------------------------------
    # Verification requests
    # ------------------------------------------------------------------

    def insert_request(self, request: VerificationRequest) -> VerificationRequest:
        with self._lock:
            if request.id in self._requests:
                raise DuplicateKeyError(f"verification_requests.id={request.id}")
            self._requests[request.id] = request
            return request

    def get_request(self, request_id: UUID) -> VerificationRequest | None:
        with self._lock:
            return self._requests.get(request_id)

    def list_requests(self, candidate_id: str) -> list[VerificationRequest]:
        with self._lock:
            rows = [r for r in self._requests.values() if r.candidate_id == candidate_id]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    def list_requests_by_status(self, status: RequestStatus) -> list[VerificationRequest]:
        with self._lock:
            return [r for r in self._requests.values() if r.status == status]

    def advance_request(
        self,
        request_id: UUID,
        expected: RequestStatus,
        target: RequestStatus,
        **fields: object,
    ) -> VerificationRequest | None:
        """Compare-and-set: only moves ``expected`` -> ``target`` forward."""
        if REQUEST_STATUS_ORDER[target] <= REQUEST_STATUS_ORDER[expected]:
            raise ValueError(f"status may not move from {expected.value} to {target.value}")
        with self._lock:
            current = self._requests.get(request_id)
            if current is None or current.status != expected:
                return None
            updated = current.model_copy(update={"status": target, **fields})
            self._requests[request_id] = updated
            return updated

    def update_request_dispatch(self, request_id: UUID, **fields: object) -> VerificationRequest | None:
        with self._lock:
            current = self._requests.get(request_id)
            if current is None:
                return None
            updated = current.model_copy(update=fields)
            self._requests[request_id] = updated
            return updated

    # ------------------------------------------------------------------
    # Replay guard / outcomes
    # ------------------------------------------------------------------

    def insert_reservation(self, reservation: NullifierReservation) -> NullifierReservation:
        key = (reservation.candidate_id, reservation.nullifier)
        with self._lock:
            if key in self._reservations:
                raise DuplicateKeyError(f"nullifier_reservations{key}")
            self._reservations[key] = reservation
            return reservation

    def get_reservation(self, candidate_id: str, nullifier: str) -> NullifierReservation | None:
        with self._lock:
            return self._reservations.get((candidate_id, nullifier))

    def insert_outcome(self, outcome: VerificationOutcome) -> VerificationOutcome:
        with self._lock:
            if outcome.request_id in self._outcomes:
                raise DuplicateKeyError(f"verification_outcomes.request_id={outcome.request_id}")
            for existing in self._outcomes.values():
                if (existing.candidate_id, existing.nullifier) == (outcome.candidate_id, outcome.nullifier):
                    raise DuplicateKeyError(
                        f"verification_outcomes({outcome.candidate_id}, {outcome.nullifier})"
                    )
            self._outcomes[outcome.request_id] = outcome
            return outcome

    def get_outcome_for_request(self, request_id: UUID) -> VerificationOutcome | None:
        with self._lock:
            return self._outcomes.get(request_id)

    def list_outcomes(self, candidate_id: str) -> list[VerificationOutcome]:
        with self._lock:
            rows = [o for o in self._outcomes.values() if o.candidate_id == candidate_id]
        return sorted(rows, key=lambda o: o.timestamp, reverse=True)

    # ------------------------------------------------------------------
    # Trust scores
    # ------------------------------------------------------------------

    def append_trust_score(self, score: TrustScore) -> TrustScore:
        with self._lock:
            self._scores.setdefault(score.candidate_id, []).append(score)
            return score

    def latest_trust_score(self, candidate_id: str) -> TrustScore | None:
        history = self.list_trust_scores(candidate_id)
        return history[0] if history else None

    def list_trust_scores(self, candidate_id: str) -> list[TrustScore]:
        with self._lock:
            rows = list(self._scores.get(candidate_id, []))
        return sorted(rows, key=lambda s: s.computed_at, reverse=True)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def claim_credential(self, candidate_id: str) -> None:
        with self._lock:
            if candidate_id in self._claims:
                raise DuplicateKeyError(f"credential_claims.candidate_id={candidate_id}")
            self._claims.add(candidate_id)

    def release_credential_claim(self, candidate_id: str) -> None:
        with self._lock:
            self._claims.discard(candidate_id)

    def insert_credential(self, credential: Credential) -> Credential:
        with self._lock:
            if credential.candidate_id in self._credentials:
                raise DuplicateKeyError(f"credentials.candidate_id={credential.candidate_id}")
            self._credentials[credential.candidate_id] = credential
            return credential

    def get_credential(self, candidate_id: str) -> Credential | None:
        with self._lock:
            return self._credentials.get(candidate_id)
