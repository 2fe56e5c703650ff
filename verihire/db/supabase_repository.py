"""Supabase-backed repository.

Uniqueness is enforced by the Postgres schema (see ``REQUIRED_UNIQUE_INDEXES``);
a violated index surfaces as PostgREST error code ``23505`` and is
translated into ``DuplicateKeyError``.  Status advances are single
``UPDATE ... WHERE id = ? AND status = ?`` statements, so they are
compare-and-set at the database.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from verihire.db.repository import (
    DuplicateKeyError,
    RepositoryError,
    RepositoryUnavailableError,
)
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

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

REQUIRED_UNIQUE_INDEXES: dict[str, tuple[tuple[str, ...], ...]] = {
    "nullifier_reservations": (("candidate_id", "nullifier"),),
    "verification_outcomes": (("request_id",), ("candidate_id", "nullifier")),
    "credential_claims": (("candidate_id",),),
    "credentials": (("candidate_id",),),
}


class SupabaseRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        try:
            result = self._client.table(table).insert(row).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateKeyError(f"{table}: {exc.message}") from exc
            raise RepositoryError(f"{table}: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise RepositoryUnavailableError(str(exc)) from exc
        return result.data[0] if result.data else row

    def _select(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        try:
            query = self._client.table(table).select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            result = query.execute()
        except APIError as exc:
            raise RepositoryError(f"{table}: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise RepositoryUnavailableError(str(exc)) from exc
        return result.data or []

    def _update(self, table: str, values: dict[str, Any], **filters: Any) -> list[dict[str, Any]]:
        try:
            query = self._client.table(table).update(values)
            for column, value in filters.items():
                query = query.eq(column, value)
            result = query.execute()
        except APIError as exc:
            raise RepositoryError(f"{table}: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise RepositoryUnavailableError(str(exc)) from exc
        return result.data or []

    @staticmethod
    def _jsonable(fields: dict[str, object]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in fields.items():
            if hasattr(value, "isoformat"):
                out[key] = value.isoformat()  # type: ignore[union-attr]
            elif isinstance(value, RequestStatus):
                out[key] = value.value
            elif isinstance(value, UUID):
                out[key] = str(value)
            else:
                out[key] = value
        return out

    def ping(self) -> bool:
        self._client.table("candidates").select("id").limit(1).execute()
        return True

    # ------------------------------------------------------------------
    # Candidates / résumés
    # ------------------------------------------------------------------

    def get_candidate(self, candidate_id: str) -> Candidate | None:
        rows = self._select("candidates", id=candidate_id)
        return Candidate(**rows[0]) if rows else None

    def upsert_candidate(self, candidate: Candidate) -> Candidate:
        row = candidate.model_copy(update={"updated_at": utcnow()}).model_dump(mode="json")
        try:
            result = self._client.table("candidates").upsert(row, on_conflict="id").execute()
        except APIError as exc:
            raise RepositoryError(f"candidates: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise RepositoryUnavailableError(str(exc)) from exc
        return Candidate(**(result.data[0] if result.data else row))

    def save_resume(self, record: ResumeRecord) -> ResumeRecord:
        self._insert("resumes", record.model_dump(mode="json"))
        return record

    def get_latest_resume(self, candidate_id: str) -> ResumeRecord | None:
        rows = self._select("resumes", candidate_id=candidate_id)
        if not rows:
            return None
        records = sorted((ResumeRecord(**r) for r in rows), key=lambda r: r.created_at)
        return records[-1]

    # ------------------------------------------------------------------
    # Verification requests
    # ------------------------------------------------------------------

    def insert_request(self, request: VerificationRequest) -> VerificationRequest:
        self._insert("verification_requests", request.model_dump(mode="json"))
        return request

    def get_request(self, request_id: UUID) -> VerificationRequest | None:
        rows = self._select("verification_requests", id=str(request_id))
        return VerificationRequest(**rows[0]) if rows else None

    def list_requests(self, candidate_id: str) -> list[VerificationRequest]:
        rows = self._select("verification_requests", candidate_id=candidate_id)
        requests = [VerificationRequest(**r) for r in rows]
        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    def list_requests_by_status(self, status: RequestStatus) -> list[VerificationRequest]:
        rows = self._select("verification_requests", status=status.value)
        return [VerificationRequest(**r) for r in rows]

    def advance_request(
        self,
        request_id: UUID,
        expected: RequestStatus,
        target: RequestStatus,
        **fields: object,
    ) -> VerificationRequest | None:
        if REQUEST_STATUS_ORDER[target] <= REQUEST_STATUS_ORDER[expected]:
            raise ValueError(f"status may not move from {expected.value} to {target.value}")
        values = self._jsonable({"status": target, **fields})
        rows = self._update(
            "verification_requests",
            values,
            id=str(request_id),
            status=expected.value,
        )
        return VerificationRequest(**rows[0]) if rows else None

    def update_request_dispatch(self, request_id: UUID, **fields: object) -> VerificationRequest | None:
        rows = self._update("verification_requests", self._jsonable(fields), id=str(request_id))
        return VerificationRequest(**rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Replay guard / outcomes
    # ------------------------------------------------------------------

    def insert_reservation(self, reservation: NullifierReservation) -> NullifierReservation:
        self._insert("nullifier_reservations", reservation.model_dump(mode="json"))
        return reservation

    def get_reservation(self, candidate_id: str, nullifier: str) -> NullifierReservation | None:
        rows = self._select("nullifier_reservations", candidate_id=candidate_id, nullifier=nullifier)
        return NullifierReservation(**rows[0]) if rows else None

    def insert_outcome(self, outcome: VerificationOutcome) -> VerificationOutcome:
        self._insert("verification_outcomes", outcome.model_dump(mode="json"))
        return outcome

    def get_outcome_for_request(self, request_id: UUID) -> VerificationOutcome | None:
        rows = self._select("verification_outcomes", request_id=str(request_id))
        return VerificationOutcome(**rows[0]) if rows else None

    def list_outcomes(self, candidate_id: str) -> list[VerificationOutcome]:
        rows = self._select("verification_outcomes", candidate_id=candidate_id)
        outcomes = [VerificationOutcome(**r) for r in rows]
        return sorted(outcomes, key=lambda o: o.timestamp, reverse=True)

    # ------------------------------------------------------------------
    # Trust scores
    # ------------------------------------------------------------------

    def append_trust_score(self, score: TrustScore) -> TrustScore:
        self._insert("trust_scores", score.model_dump(mode="json"))
        return score

    def latest_trust_score(self, candidate_id: str) -> TrustScore | None:
        history = self.list_trust_scores(candidate_id)
        return history[0] if history else None

    def list_trust_scores(self, candidate_id: str) -> list[TrustScore]:
        rows = self._select("trust_scores", candidate_id=candidate_id)
        scores = [TrustScore(**r) for r in rows]
        return sorted(scores, key=lambda s: s.computed_at, reverse=True)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def claim_credential(self, candidate_id: str) -> None:
        self._insert(
            "credential_claims",
            {"candidate_id": candidate_id, "claimed_at": utcnow().isoformat()},
        )

    def release_credential_claim(self, candidate_id: str) -> None:
        try:
            self._client.table("credential_claims").delete().eq("candidate_id", candidate_id).execute()
        except APIError as exc:
            raise RepositoryError(f"credential_claims: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise RepositoryUnavailableError(str(exc)) from exc

    def insert_credential(self, credential: Credential) -> Credential:
        self._insert("credentials", credential.model_dump(mode="json"))
        return credential

    def get_credential(self, candidate_id: str) -> Credential | None:
        rows = self._select("credentials", candidate_id=candidate_id)
        return Credential(**rows[0]) if rows else None
