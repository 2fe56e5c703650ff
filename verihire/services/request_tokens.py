"""Signed, expiring request tokens (HS256 JWT).

A token carries the full claim an employer is asked to attest, plus the
request id that binds it to exactly one stored verification request.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

import jwt

from verihire.core.constants import REQUEST_TOKEN_ALGORITHM, REQUEST_TOKEN_TYPE
from verihire.core.errors import ConfigurationError, ExpiredTokenError, InvalidTokenError
from verihire.models.candidate import utcnow
from verihire.models.verification import IssuedToken, RequestClaim

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ("exp", "iat", "type", "verificationId", "candidateId", "employerEmail")


class RequestTokenSigner:
    def __init__(self, secret: str, ttl_days: int = 15) -> None:
        if not secret:
            raise ConfigurationError("REQUEST_TOKEN_SECRET is not set")
        self._secret = secret
        self.ttl = timedelta(days=ttl_days)

    def sign(self, claim: RequestClaim, now: datetime | None = None) -> IssuedToken:
        issued_at = now or utcnow()
        expires_at = issued_at + self.ttl
        payload = {
            "type": REQUEST_TOKEN_TYPE,
            "verificationId": str(claim.request_id),
            "candidateId": claim.candidate_id,
            "name": claim.candidate_name,
            "email": claim.candidate_email,
            "employerEmail": claim.employer_email,
            "company": claim.company,
            "position": claim.position,
            "startDate": claim.start_date,
            "endDate": claim.end_date,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=REQUEST_TOKEN_ALGORITHM)
        return IssuedToken(token=token, request_id=claim.request_id, expires_at=expires_at)

    def resolve(self, token: str) -> RequestClaim:
        """Verify *token* and return its claim.

        Raises ``ExpiredTokenError`` past ``exp`` and ``InvalidTokenError``
        for any signature, shape or type problem.
        """
        if not token:
            raise InvalidTokenError("token is required")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[REQUEST_TOKEN_ALGORITHM],
                options={"require": list(_REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError("verification link has expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("request_token_rejected", extra={"error_message": str(exc)})
            raise InvalidTokenError("invalid verification token") from exc

        if payload.get("type") != REQUEST_TOKEN_TYPE:
            raise InvalidTokenError("unexpected token type")
        try:
            return RequestClaim(
                request_id=UUID(payload["verificationId"]),
                candidate_id=payload["candidateId"],
                candidate_name=payload.get("name") or "",
                candidate_email=payload.get("email"),
                employer_email=payload["employerEmail"],
                company=payload.get("company") or "",
                position=payload.get("position") or "",
                start_date=payload.get("startDate"),
                end_date=payload.get("endDate"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("malformed token claim") from exc
