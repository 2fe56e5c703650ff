"""Persists attestation outcomes and completes their requests.

``record`` is idempotent: a retried identical call returns the outcome
already stored, while a call that disagrees with it is a conflict.  State
is only touched once every precondition holds.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from verihire.core.errors import (
    ExpiredTokenError,
    NotFoundError,
    ReplayConflict,
    ValidationError,
)
from verihire.db.repository import DuplicateKeyError, Repository
from verihire.models.candidate import utcnow
from verihire.models.enums import RequestStatus
from verihire.models.verification import VerificationOutcome, VerificationRequest
from verihire.services.digests import keyed_digest

logger = logging.getLogger(__name__)


def _same(outcome: VerificationOutcome, verified: bool, uniqueness_token: str) -> bool:
    return outcome.verified == verified and outcome.nullifier == uniqueness_token


class VerificationRecorder:
    def __init__(self, repository: Repository, digest_key: str) -> None:
        self._repo = repository
        self._digest_key = digest_key

    def record(
        self,
        request_id: UUID,
        verified: bool,
        uniqueness_token: str,
        now: datetime | None = None,
    ) -> VerificationOutcome:
        request = self._repo.get_request(request_id)
        if request is None:
            raise NotFoundError(f"verification request {request_id} not found")

        existing = self._repo.get_outcome_for_request(request_id)
        if existing is not None:
            return self._idempotent(request, existing, verified, uniqueness_token)

        if request.status != RequestStatus.sent:
            raise ValidationError(f"request is {request.status.value}, expected sent")
        now = now or utcnow()
        if request.is_expired(now):
            raise ExpiredTokenError("verification request has expired")

        outcome = self._build(request, verified, uniqueness_token, now)
        try:
            self._repo.insert_outcome(outcome)
        except DuplicateKeyError:
            stored = self._repo.get_outcome_for_request(request_id)
            if stored is None:
                # Same prover already attested another request of this candidate
                raise ReplayConflict("uniqueness token already used for this candidate")
            return self._idempotent(request, stored, verified, uniqueness_token)

        self._repo.advance_request(
            request_id,
            RequestStatus.sent,
            RequestStatus.completed,
            completed_at=now,
        )
        logger.info(
            "verification_recorded",
            extra={
                "request_id": str(request_id),
                "candidate_id": request.candidate_id,
                "verified": verified,
            },
        )
        return outcome

    def _build(
        self,
        request: VerificationRequest,
        verified: bool,
        uniqueness_token: str,
        now: datetime,
    ) -> VerificationOutcome:
        digest = keyed_digest(
            {
                "verified": verified,
                "candidate_id": request.candidate_id,
                "company": request.entry.company,
                "position": request.entry.position,
                "prover": uniqueness_token,
                "timestamp": now.isoformat(),
            },
            self._digest_key,
        )
        return VerificationOutcome(
            request_id=request.id,
            candidate_id=request.candidate_id,
            nullifier=uniqueness_token,
            verified=verified,
            company=request.entry.company,
            position=request.entry.position,
            attestation_digest=digest,
            timestamp=now,
        )

    def _idempotent(
        self,
        request: VerificationRequest,
        existing: VerificationOutcome,
        verified: bool,
        uniqueness_token: str,
    ) -> VerificationOutcome:
        if _same(existing, verified, uniqueness_token):
            if request.status == RequestStatus.sent:
                # Outcome stored by an attempt that stopped before completing the request
                repaired = self._repo.advance_request(
                    request.id,
                    RequestStatus.sent,
                    RequestStatus.completed,
                    completed_at=existing.timestamp,
                )
                if repaired is not None:
                    logger.info(
                        "verification_completion_repaired",
                        extra={"request_id": str(request.id), "candidate_id": request.candidate_id},
                    )
            return existing
        raise ReplayConflict("request already has a different recorded outcome")
