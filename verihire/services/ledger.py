"""Ledger/mint relay client.

Mints one credential token for a candidate.  The relay is expected to
refuse a second mint for the same candidate; callers check for an
existing credential before calling.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from verihire.core.errors import UpstreamUnavailable
from verihire.models.credential import MintReceipt

logger = logging.getLogger(__name__)


class Ledger(Protocol):
    def mint(
        self,
        recipient: str,
        candidate_id: str,
        credential_hash: str,
        score: int,
        verification_count: int,
    ) -> MintReceipt: ...


class LedgerClient:
    def __init__(self, mint_url: str, api_key: str = "", timeout: float = 10.0) -> None:
        self._mint_url = mint_url
        self._api_key = api_key
        self._timeout = timeout

    def mint(
        self,
        recipient: str,
        candidate_id: str,
        credential_hash: str,
        score: int,
        verification_count: int,
    ) -> MintReceipt:
        if not self._mint_url:
            raise UpstreamUnavailable("ledger is not configured (LEDGER_MINT_URL)")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    self._mint_url,
                    headers=headers,
                    json={
                        "recipient": recipient,
                        "candidateId": candidate_id,
                        "credentialHash": credential_hash,
                        "trustScore": score,
                        "verificationCount": verification_count,
                    },
                )
                response.raise_for_status()
                body = response.json()
            receipt = MintReceipt(
                token_id=str(body.get("tokenId") or body["token_id"]),
                tx_hash=str(body.get("txHash") or body["tx_hash"]),
            )
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            logger.error(
                "ledger_mint_failed",
                extra={
                    "candidate_id": candidate_id,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
            )
            raise UpstreamUnavailable(f"ledger mint failed ({type(exc).__name__})") from exc

        logger.info(
            "ledger_minted",
            extra={"candidate_id": candidate_id, "token_id": receipt.token_id, "tx_hash": receipt.tx_hash},
        )
        return receipt
