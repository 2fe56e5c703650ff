"""Shared test fixtures.

Provides in-memory service containers wired with fake collaborators
(messenger, identity verifier, reasoning model, ledger), a FastAPI
``test_client`` bound to that container, and résumé / request helpers.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from verihire.core.config import Settings
from verihire.core.errors import UpstreamUnavailable
from verihire.db.memory import InMemoryRepository
from verihire.models.credential import MintReceipt
from verihire.models.resume import WorkHistoryEntry
from verihire.models.verification import ProofResult, VerificationRequest
from verihire.services.container import ServiceContainer

SAMPLE_RESUME = """\
Jane Smith
jane.smith@example.com
(555) 123-4567
EXPERIENCE
Senior Software Engineer at Acme Corp
2021 - Present
Led migration of payment services to Kubernetes.
Globex Inc - Software Engineer
2018 - 2021
Built internal APIs in Python and SQL.
EDUCATION
Stanford University
Bachelor of Science in Computer Science, 2018
SKILLS
Python, SQL, Docker, Kubernetes
"""

CANDIDATE_ID = "cand-1"
WALLET = "0x" + "ab" * 20


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeMessenger:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.failing: set[str] = set()
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, body: str) -> str:
        if to in self.failing:
            raise UpstreamUnavailable(f"mailbox {to} unreachable")
        with self._lock:
            self.sent.append((to, subject, body))
            return f"msg-{len(self.sent)}"


class FakeVerifier:
    def __init__(self) -> None:
        self.accept = True
        self.calls: list[dict[str, str]] = []

    def verify(self, proof, merkle_root, nullifier_hash, verification_level, signal) -> ProofResult:
        self.calls.append({"nullifier_hash": nullifier_hash, "signal": signal})
        if not self.accept:
            return ProofResult(success=False, detail={"code": "invalid_proof"})
        return ProofResult(success=True, uniqueness_token=nullifier_hash)


class FakeReasoning:
    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.configured = True
        self.calls = 0

    def complete(self, system_prompt: str, user_content: str) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reply or ""


class FakeLedger:
    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.fail = False
        self.mints: list[dict[str, object]] = []
        self._lock = threading.Lock()

    def mint(self, recipient, candidate_id, credential_hash, score, verification_count) -> MintReceipt:
        if self.fail:
            raise UpstreamUnavailable("ledger down")
        time.sleep(self.delay)
        with self._lock:
            self.mints.append(
                {
                    "recipient": recipient,
                    "candidate_id": candidate_id,
                    "credential_hash": credential_hash,
                    "score": score,
                    "verification_count": verification_count,
                }
            )
            return MintReceipt(token_id=str(len(self.mints)), tx_hash=f"0xtx{len(self.mints)}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(  # type: ignore[call-arg]
        STORAGE_BACKEND="memory",
        REQUEST_TOKEN_SECRET="test-secret",
        CREDENTIAL_DIGEST_KEY="test-digest-key",
        PUBLIC_BASE_URL="https://verihire.test",
        LLM_API_KEY="",
        SCHEDULER_ENABLED=False,
        DISPATCH_MAX_WORKERS=4,
    )


@pytest.fixture()
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture()
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture()
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture()
def container(
    test_settings: Settings,
    repository: InMemoryRepository,
    messenger: FakeMessenger,
    verifier: FakeVerifier,
    ledger: FakeLedger,
) -> ServiceContainer:
    """Container with fake collaborators; reasoning is left unconfigured."""
    return ServiceContainer.build(
        config=test_settings,
        repository=repository,
        messenger=messenger,
        verifier=verifier,
        ledger=ledger,
    )


@pytest.fixture()
def test_client(container: ServiceContainer) -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient bound to the test container."""
    from verihire.main import create_app

    yield TestClient(create_app(container))


@pytest.fixture()
def candidate_id(container: ServiceContainer) -> str:
    """A candidate created from ``SAMPLE_RESUME``."""
    container.candidates.ingest_resume(CANDIDATE_ID, SAMPLE_RESUME)
    return CANDIDATE_ID


@pytest.fixture()
def work_entry() -> WorkHistoryEntry:
    return WorkHistoryEntry(
        company="Acme Corp",
        position="Senior Software Engineer",
        start_date="2021",
        end_date="present",
    )


@pytest.fixture()
def sent_request(
    container: ServiceContainer, candidate_id: str, work_entry: WorkHistoryEntry
) -> VerificationRequest:
    """One request in ``sent`` state for the sample candidate."""
    return container.requests.issue(
        candidate_id, "Jane Smith", work_entry, "hr@acme.example"
    )


@pytest.fixture()
def sample_resume() -> str:
    return SAMPLE_RESUME
