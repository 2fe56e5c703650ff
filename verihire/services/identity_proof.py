"""Identity-proof verification against the World ID cloud verifier.

A 2xx answer means the proof is valid for this action and signal.  A 4xx
answer is an authoritative rejection (``success=False``).  Timeouts,
transport errors and 5xx answers are ``UpstreamUnavailable``.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from verihire.core.errors import UpstreamUnavailable
from verihire.models.verification import ProofResult

logger = logging.getLogger(__name__)


class ProofVerifier(Protocol):
    def verify(
        self,
        proof: str,
        merkle_root: str,
        nullifier_hash: str,
        verification_level: str,
        signal: str,
    ) -> ProofResult: ...


class WorldIdVerifier:
    def __init__(
        self,
        app_id: str,
        action: str,
        verify_url: str,
        timeout: float = 10.0,
    ) -> None:
        self._app_id = app_id
        self.action = action
        self._verify_url = verify_url.rstrip("/")
        self._timeout = timeout

    def verify(
        self,
        proof: str,
        merkle_root: str,
        nullifier_hash: str,
        verification_level: str,
        signal: str,
    ) -> ProofResult:
        if not self._app_id:
            raise UpstreamUnavailable("identity verification is not configured (WORLD_APP_ID)")
        payload = {
            "nullifier_hash": nullifier_hash,
            "merkle_root": merkle_root,
            "proof": proof,
            "verification_level": verification_level,
            "action": self.action,
            "signal": signal,
        }
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(f"{self._verify_url}/{self._app_id}", json=payload)
        except httpx.HTTPError as exc:
            logger.error(
                "identity_proof_unreachable",
                extra={
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
            )
            raise UpstreamUnavailable(f"identity verifier unreachable ({type(exc).__name__})") from exc

        if response.status_code >= 500:
            logger.error("identity_proof_upstream_error", extra={"status_code": response.status_code})
            raise UpstreamUnavailable(f"identity verifier returned {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text[:500]}

        if response.is_success:
            token = body.get("nullifier_hash") or nullifier_hash
            logger.info("identity_proof_accepted", extra={"action": self.action})
            return ProofResult(success=True, uniqueness_token=token, detail=body)

        logger.info(
            "identity_proof_rejected",
            extra={"status_code": response.status_code, "code": body.get("code")},
        )
        return ProofResult(success=False, detail=body)
