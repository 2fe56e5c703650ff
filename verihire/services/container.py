"""Wires the repository, collaborators and services for one application."""

from __future__ import annotations

from dataclasses import dataclass

from verihire.core.config import Settings, settings as default_settings
from verihire.core.errors import ConfigurationError
from verihire.db.factory import build_repository
from verihire.db.repository import Repository
from verihire.services.attestation import AttestationService
from verihire.services.candidates import CandidateService
from verihire.services.credentials import CredentialIssuer
from verihire.services.identity_proof import ProofVerifier, WorldIdVerifier
from verihire.services.ledger import Ledger, LedgerClient
from verihire.services.messaging import Messenger, ResendMessenger
from verihire.services.replay_guard import ReplayGuard
from verihire.services.request_tokens import RequestTokenSigner
from verihire.services.trust_score import (
    ReasoningClient,
    TrustScoreEngine,
    TrustScoreService,
)
from verihire.services.verification_recorder import VerificationRecorder
from verihire.services.verification_requests import VerificationRequestService

_PLACEHOLDER_KEYS = frozenset({"change-me", "changeme"})


def _require_keys(config: Settings) -> None:
    """Refuse to start with signing or digest keys that are unset or placeholders."""
    for name in ("REQUEST_TOKEN_SECRET", "CREDENTIAL_DIGEST_KEY"):
        value = getattr(config, name)
        if not value or value.strip().lower() in _PLACEHOLDER_KEYS:
            raise ConfigurationError(f"{name} must be set to a private value")


@dataclass
class ServiceContainer:
    repository: Repository
    signer: RequestTokenSigner
    requests: VerificationRequestService
    candidates: CandidateService
    attestations: AttestationService
    recorder: VerificationRecorder
    scores: TrustScoreService
    credentials: CredentialIssuer

    @classmethod
    def build(
        cls,
        config: Settings | None = None,
        repository: Repository | None = None,
        messenger: Messenger | None = None,
        verifier: ProofVerifier | None = None,
        reasoning: ReasoningClient | None = None,
        ledger: Ledger | None = None,
    ) -> ServiceContainer:
        """Build every service; explicit collaborators override the HTTP ones."""
        config = config or default_settings
        _require_keys(config)
        timeout = config.COLLABORATOR_TIMEOUT_SECONDS
        repository = repository or build_repository(config.STORAGE_BACKEND)

        signer = RequestTokenSigner(config.REQUEST_TOKEN_SECRET, config.REQUEST_TOKEN_TTL_DAYS)
        messenger = messenger or ResendMessenger(
            config.RESEND_API_KEY, config.RESEND_API_URL, config.MAIL_FROM, timeout=timeout
        )
        verifier = verifier or WorldIdVerifier(
            config.WORLD_APP_ID, config.WORLD_ACTION_ID, config.WORLD_VERIFY_URL, timeout=timeout
        )
        reasoning = reasoning or ReasoningClient(
            config.LLM_API_URL, config.LLM_API_KEY, config.LLM_MODEL, timeout=timeout
        )
        ledger = ledger or LedgerClient(config.LEDGER_MINT_URL, config.LEDGER_API_KEY, timeout=timeout)

        requests = VerificationRequestService(
            repository,
            signer,
            messenger,
            config.PUBLIC_BASE_URL,
            max_workers=config.DISPATCH_MAX_WORKERS,
        )
        recorder = VerificationRecorder(repository, config.CREDENTIAL_DIGEST_KEY)
        scores = TrustScoreService(repository, TrustScoreEngine(reasoning))
        return cls(
            repository=repository,
            signer=signer,
            requests=requests,
            candidates=CandidateService(repository, requests),
            attestations=AttestationService(
                repository, signer, verifier, ReplayGuard(repository), recorder
            ),
            recorder=recorder,
            scores=scores,
            credentials=CredentialIssuer(
                repository, ledger, scores, config.CREDENTIAL_DIGEST_KEY
            ),
        )
