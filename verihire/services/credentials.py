"""Idempotent credential issuance: at most one credential per candidate.

Two layers of exclusion:

- in-process, a per-candidate ``KeyedLock`` serialises concurrent callers so
  the second one sees the first one's credential;
- across processes, a ``credential_claims`` row unique on ``candidate_id``
  is inserted before the ledger is called, so only one process ever mints.

A ledger failure releases the claim so the caller may retry.  A failure to
persist after a successful mint keeps the claim: a retry must not mint twice.
"""

from __future__ import annotations

import logging
import re

from verihire.core.constants import TRUST_LEVELS
from verihire.core.errors import (
    DuplicateCredentialInProgress,
    InternalError,
    NotFoundError,
    ValidationError,
)
from verihire.db.repository import DuplicateKeyError, Repository, RepositoryError
from verihire.models.candidate import Candidate, utcnow
from verihire.models.credential import Credential
from verihire.scheduler.lock import KeyedLock
from verihire.services.digests import keyed_digest
from verihire.services.ledger import Ledger
from verihire.services.trust_score import TrustScoreService

logger = logging.getLogger(__name__)

_WALLET_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def trust_level(score: int) -> str:
    for minimum, label in TRUST_LEVELS:
        if score >= minimum:
            return label
    return TRUST_LEVELS[-1][1]


class CredentialIssuer:
    def __init__(
        self,
        repository: Repository,
        ledger: Ledger,
        scores: TrustScoreService,
        digest_key: str,
        locks: KeyedLock | None = None,
    ) -> None:
        self._repo = repository
        self._ledger = ledger
        self._scores = scores
        self._digest_key = digest_key
        self._locks = locks or KeyedLock()

    def get(self, candidate_id: str) -> Credential:
        credential = self._repo.get_credential(candidate_id)
        if credential is None:
            raise NotFoundError(f"no credential for candidate {candidate_id}")
        return credential

    def issue(self, candidate_id: str, wallet_address: str | None = None) -> Credential:
        """Return the candidate's credential, minting it on first call."""
        existing = self._repo.get_credential(candidate_id)
        if existing is not None:
            return existing

        candidate = self._repo.get_candidate(candidate_id)
        if candidate is None:
            raise NotFoundError(f"candidate {candidate_id} not found")
        recipient = wallet_address or candidate.wallet_address
        if not recipient or not _WALLET_RE.match(recipient):
            raise ValidationError("a valid 0x-prefixed wallet address is required")

        with self._locks.hold(candidate_id):
            existing = self._repo.get_credential(candidate_id)
            if existing is not None:
                return existing
            try:
                self._repo.claim_credential(candidate_id)
            except DuplicateKeyError:
                existing = self._repo.get_credential(candidate_id)
                if existing is not None:
                    return existing
                logger.info("credential_claim_held_elsewhere", extra={"candidate_id": candidate_id})
                raise DuplicateCredentialInProgress(
                    "credential issuance already in progress for this candidate"
                )
            return self._mint(candidate, recipient)

    def _mint(self, candidate: Candidate, recipient: str) -> Credential:
        try:
            score = self._repo.latest_trust_score(candidate.id) or self._scores.compute_and_store(candidate.id)
            verified = [o for o in self._repo.list_outcomes(candidate.id) if o.verified]
            resume = self._repo.get_latest_resume(candidate.id)
            issued_at = utcnow()
            credential_hash = keyed_digest(
                {
                    "candidate_id": candidate.id,
                    "work_history": (
                        [e.model_dump() for e in resume.resume.work_experience] if resume else []
                    ),
                    "verified_outcomes": sorted(
                        (
                            {
                                "request_id": str(o.request_id),
                                "company": o.company,
                                "position": o.position,
                                "attestation_digest": o.attestation_digest,
                            }
                            for o in verified
                        ),
                        key=lambda item: item["request_id"],
                    ),
                    "timestamp": issued_at.isoformat(),
                },
                self._digest_key,
            )
            receipt = self._ledger.mint(
                recipient,
                candidate.id,
                credential_hash,
                score.score,
                len(verified),
            )
        except Exception:
            self._repo.release_credential_claim(candidate.id)
            raise

        credential = Credential(
            candidate_id=candidate.id,
            credential_hash=credential_hash,
            score=score.score,
            trust_level=trust_level(score.score),
            verification_count=len(verified),
            recipient=recipient,
            token_id=receipt.token_id,
            tx_hash=receipt.tx_hash,
            issued_at=issued_at,
        )
        try:
            self._repo.insert_credential(credential)
        except DuplicateKeyError:
            stored = self._repo.get_credential(candidate.id)
            if stored is not None:
                return stored
            raise InternalError("credential vanished after a duplicate insert")
        except RepositoryError as exc:
            logger.error(
                "credential_persist_failed",
                extra={
                    "candidate_id": candidate.id,
                    "token_id": receipt.token_id,
                    "tx_hash": receipt.tx_hash,
                    "error_message": str(exc),
                },
            )
            raise InternalError("credential minted but could not be stored") from exc

        logger.info(
            "credential_issued",
            extra={
                "candidate_id": candidate.id,
                "token_id": receipt.token_id,
                "score": score.score,
                "trust_level": credential.trust_level,
            },
        )
        return credential
