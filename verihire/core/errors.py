"""Error taxonomy for the verification pipeline.

Every error carries the HTTP status code the API layer answers with, so
routers never need to map exceptions by hand.
"""

from __future__ import annotations


class VerihireError(Exception):
    """Base class for all pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ConfigurationError(VerihireError):
    """Raised when settings do not describe a usable deployment."""


class ValidationError(VerihireError):
    """Malformed input, rejected before any state change."""

    status_code = 400


class InvalidTokenError(VerihireError):
    """Request token has a bad signature, shape or type."""

    status_code = 401


class ExpiredTokenError(VerihireError):
    """Request token (or its request) is past its validity window."""

    status_code = 401


class ProofRejected(VerihireError):
    """Identity proof missing or refused by the verifier. Terminal."""

    status_code = 401


class NotFoundError(VerihireError):
    """Unknown candidate, request or credential."""

    status_code = 404


class ReplayConflict(VerihireError):
    """Uniqueness token already reserved for this candidate. Terminal."""

    status_code = 409


class DuplicateCredentialInProgress(VerihireError):
    """Another process holds the mint claim for this candidate."""

    status_code = 409


class UpstreamUnavailable(VerihireError):
    """A collaborator timed out, errored or is not configured."""

    status_code = 502


class InternalError(VerihireError):
    """Unexpected failure inside the pipeline."""

    status_code = 500
