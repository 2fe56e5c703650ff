"""Unit tests for signed request tokens."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest

from verihire.core.errors import ConfigurationError, ExpiredTokenError, InvalidTokenError
from verihire.models.candidate import utcnow
from verihire.models.verification import RequestClaim
from verihire.services.request_tokens import RequestTokenSigner


def _claim() -> RequestClaim:
    return RequestClaim(
        request_id=uuid4(),
        candidate_id="cand-1",
        candidate_name="Jane Smith",
        candidate_email="jane@example.com",
        employer_email="hr@acme.example",
        company="Acme Corp",
        position="Software Engineer",
        start_date="2018",
        end_date="2021",
    )


class TestSignAndResolve:
    def test_resolve_returns_embedded_claim(self) -> None:
        """Given a fresh token, resolve returns the claim it was signed with."""
        signer = RequestTokenSigner("secret", ttl_days=15)
        claim = _claim()
        issued = signer.sign(claim)

        assert signer.resolve(issued.token) == claim
        assert issued.request_id == claim.request_id

    def test_expiry_is_ttl_days_after_issue(self) -> None:
        signer = RequestTokenSigner("secret", ttl_days=15)
        now = utcnow()
        issued = signer.sign(_claim(), now=now)
        assert issued.expires_at == now + timedelta(days=15)


class TestRejections:
    def test_expired_token(self) -> None:
        """Given a token issued 16 days ago, resolve raises ExpiredTokenError."""
        signer = RequestTokenSigner("secret", ttl_days=15)
        issued = signer.sign(_claim(), now=utcnow() - timedelta(days=16))
        with pytest.raises(ExpiredTokenError):
            signer.resolve(issued.token)

    def test_wrong_secret(self) -> None:
        issued = RequestTokenSigner("secret").sign(_claim())
        with pytest.raises(InvalidTokenError):
            RequestTokenSigner("other-secret").resolve(issued.token)

    def test_tampered_token(self) -> None:
        signer = RequestTokenSigner("secret")
        token = signer.sign(_claim()).token
        other = signer.sign(_claim()).token
        # Payload of one token with the signature of another
        tampered = ".".join(token.split(".")[:2] + other.split(".")[2:])
        with pytest.raises(InvalidTokenError):
            signer.resolve(tampered)

    def test_wrong_token_type(self) -> None:
        """Given a validly signed token of another type, it is rejected."""
        now = utcnow()
        token = jwt.encode(
            {
                "type": "password_reset",
                "verificationId": str(uuid4()),
                "candidateId": "cand-1",
                "employerEmail": "hr@acme.example",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(days=1)).timestamp()),
            },
            "secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            RequestTokenSigner("secret").resolve(token)

    def test_missing_claims(self) -> None:
        token = jwt.encode({"type": "employment_verification"}, "secret", algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            RequestTokenSigner("secret").resolve(token)

    @pytest.mark.parametrize("token", ["", "not-a-jwt"])
    def test_garbage(self, token: str) -> None:
        with pytest.raises(InvalidTokenError):
            RequestTokenSigner("secret").resolve(token)

    def test_empty_secret_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            RequestTokenSigner("")
