"""Prover submission flow.

Token resolution, request checks, identity proof, replay reservation and
recording, in that order.  Request state is checked before the external
proof call so a stale link never spends a verifier round-trip.  Proof and
replay failures always reject the submission.
"""

from __future__ import annotations

import logging

from verihire.core.errors import (
    ExpiredTokenError,
    NotFoundError,
    ProofRejected,
    ReplayConflict,
    ValidationError,
)
from verihire.db.repository import Repository
from verihire.models.enums import RequestStatus, Reservation
from verihire.models.verification import AttestationSubmission, VerificationOutcome
from verihire.services.identity_proof import ProofVerifier
from verihire.services.replay_guard import ReplayGuard
from verihire.services.request_tokens import RequestTokenSigner
from verihire.services.verification_recorder import VerificationRecorder

logger = logging.getLogger(__name__)

_ANSWERS = {"yes": True, "no": False}


class AttestationService:
    def __init__(
        self,
        repository: Repository,
        signer: RequestTokenSigner,
        verifier: ProofVerifier,
        guard: ReplayGuard,
        recorder: VerificationRecorder,
    ) -> None:
        self._repo = repository
        self._signer = signer
        self._verifier = verifier
        self._guard = guard
        self._recorder = recorder

    def submit(self, submission: AttestationSubmission) -> VerificationOutcome:
        if not (submission.proof and submission.merkle_root and submission.nullifier_hash):
            raise ProofRejected("identity proof is required")
        if not submission.token or not submission.answer:
            raise ValidationError("token and answer are required")
        answer = submission.answer.strip().lower()
        if answer not in _ANSWERS:
            raise ValidationError("answer must be 'yes' or 'no'")

        claim = self._signer.resolve(submission.token)
        request = self._repo.get_request(claim.request_id)
        if request is None:
            raise NotFoundError(f"verification request {claim.request_id} not found")
        if request.status != RequestStatus.sent:
            raise ValidationError(f"request is {request.status.value}, expected sent")
        if request.is_expired():
            raise ExpiredTokenError("verification request has expired")

        result = self._verifier.verify(
            proof=submission.proof,
            merkle_root=submission.merkle_root,
            nullifier_hash=submission.nullifier_hash,
            verification_level=submission.verification_level or "orb",
            signal=claim.employer_email,
        )
        if not result.success:
            logger.warning(
                "attestation_proof_rejected",
                extra={"request_id": str(request.id), "candidate_id": request.candidate_id},
            )
            raise ProofRejected("identity proof verification failed")
        uniqueness_token = result.uniqueness_token or submission.nullifier_hash

        if self._guard.reserve(request.candidate_id, uniqueness_token, request.id) == Reservation.conflict:
            raise ReplayConflict("this person has already attested for this candidate")

        outcome = self._recorder.record(request.id, _ANSWERS[answer], uniqueness_token)
        logger.info(
            "attestation_completed",
            extra={
                "request_id": str(request.id),
                "candidate_id": request.candidate_id,
                "verified": outcome.verified,
            },
        )
        return outcome
