"""Unit tests for the replay guard, outcome recording and the prover flow."""

from __future__ import annotations

import threading
from datetime import timedelta
from uuid import uuid4

import pytest

from verihire.core.errors import (
    ExpiredTokenError,
    NotFoundError,
    ProofRejected,
    ReplayConflict,
    ValidationError,
)
from verihire.db.memory import InMemoryRepository
from verihire.db.repository import RepositoryUnavailableError
from verihire.models.candidate import utcnow
from verihire.models.enums import RequestStatus, Reservation
from verihire.models.resume import WorkHistoryEntry
from verihire.models.verification import (
    AttestationSubmission,
    VerificationRequest,
)
from verihire.services.container import ServiceContainer
from verihire.services.replay_guard import ReplayGuard

from conftest import FakeVerifier


def _submission(token: str, answer: str = "yes", nullifier: str = "0xnull-1") -> AttestationSubmission:
    return AttestationSubmission(
        token=token,
        answer=answer,
        proof="0xproof",
        merkle_root="0xroot",
        nullifier_hash=nullifier,
        verification_level="orb",
    )


# ---------------------------------------------------------------------------
# ReplayGuard
# ---------------------------------------------------------------------------


class TestReplayGuard:
    def test_second_reservation_conflicts(self) -> None:
        guard = ReplayGuard(InMemoryRepository())
        assert guard.reserve("cand-1", "0xnull") == Reservation.reserved
        assert guard.reserve("cand-1", "0xnull") == Reservation.conflict

    def test_same_token_other_candidate_is_allowed(self) -> None:
        guard = ReplayGuard(InMemoryRepository())
        assert guard.reserve("cand-1", "0xnull") == Reservation.reserved
        assert guard.reserve("cand-2", "0xnull") == Reservation.reserved

    def test_concurrent_reservations(self) -> None:
        """Given 8 simultaneous reservations, exactly one wins."""
        guard = ReplayGuard(InMemoryRepository())
        barrier = threading.Barrier(8)
        results: list[Reservation] = []
        lock = threading.Lock()

        def attempt() -> None:
            barrier.wait()
            outcome = guard.reserve("cand-1", "0xnull")
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(Reservation.reserved) == 1
        assert results.count(Reservation.conflict) == 7

    def test_same_request_resumes_its_reservation(self) -> None:
        """Given a reservation held by a request, that request may take it again."""
        guard = ReplayGuard(InMemoryRepository())
        request_id, other_id = uuid4(), uuid4()
        assert guard.reserve("cand-1", "0xnull", request_id) == Reservation.reserved
        assert guard.reserve("cand-1", "0xnull", request_id) == Reservation.reserved
        assert guard.reserve("cand-1", "0xnull", other_id) == Reservation.conflict
        assert guard.reserve("cand-1", "0xnull") == Reservation.conflict


# ---------------------------------------------------------------------------
# VerificationRecorder
# ---------------------------------------------------------------------------


class TestRecorder:
    def test_record_completes_request(
        self, container: ServiceContainer, sent_request: VerificationRequest
    ) -> None:
        outcome = container.recorder.record(sent_request.id, True, "0xnull-1")

        assert outcome.verified is True
        assert outcome.company == "Acme Corp"
        assert len(outcome.attestation_digest) == 64
        stored = container.repository.get_request(sent_request.id)
        assert stored.status == RequestStatus.completed
        assert stored.completed_at is not None

    def test_identical_retry_returns_same_outcome(
        self, container: ServiceContainer, sent_request: VerificationRequest
    ) -> None:
        first = container.recorder.record(sent_request.id, True, "0xnull-1")
        second = container.recorder.record(sent_request.id, True, "0xnull-1")
        assert second == first
        assert len(container.repository.list_outcomes(sent_request.candidate_id)) == 1

    def test_retry_completes_request_left_sent(
        self,
        container: ServiceContainer,
        sent_request: VerificationRequest,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Given the outcome stored but the status update lost, a retry completes it."""
        original = container.repository.advance_request
        calls = {"n": 0}

        def flaky_advance(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RepositoryUnavailableError("connection reset")
            return original(*args, **kwargs)

        monkeypatch.setattr(container.repository, "advance_request", flaky_advance)

        with pytest.raises(RepositoryUnavailableError):
            container.recorder.record(sent_request.id, True, "0xnull-1")
        stored = container.repository.get_outcome_for_request(sent_request.id)
        assert stored is not None
        assert container.repository.get_request(sent_request.id).status == RequestStatus.sent

        retried = container.recorder.record(sent_request.id, True, "0xnull-1")
        assert retried == stored
        request = container.repository.get_request(sent_request.id)
        assert request.status == RequestStatus.completed
        assert request.completed_at == stored.timestamp

    def test_conflicting_retry(
        self, container: ServiceContainer, sent_request: VerificationRequest
    ) -> None:
        container.recorder.record(sent_request.id, True, "0xnull-1")
        with pytest.raises(ReplayConflict):
            container.recorder.record(sent_request.id, False, "0xnull-1")

    def test_pending_request_is_rejected(
        self, container: ServiceContainer, candidate_id: str, work_entry: WorkHistoryEntry
    ) -> None:
        """Given a request still pending, record fails and leaves state unchanged."""
        pending = container.repository.insert_request(
            VerificationRequest(
                candidate_id=candidate_id,
                candidate_name="Jane Smith",
                employer_email="hr@acme.example",
                entry=work_entry,
                token="unused",
                expires_at=utcnow() + timedelta(days=15),
            )
        )
        with pytest.raises(ValidationError):
            container.recorder.record(pending.id, True, "0xnull-1")
        assert container.repository.get_request(pending.id).status == RequestStatus.pending
        assert container.repository.get_outcome_for_request(pending.id) is None

    def test_expired_request_is_rejected(
        self, container: ServiceContainer, sent_request: VerificationRequest
    ) -> None:
        container.repository.update_request_dispatch(
            sent_request.id, expires_at=utcnow() - timedelta(seconds=1)
        )
        with pytest.raises(ExpiredTokenError):
            container.recorder.record(sent_request.id, True, "0xnull-1")
        assert container.repository.get_request(sent_request.id).status == RequestStatus.sent
        assert container.repository.get_outcome_for_request(sent_request.id) is None

    def test_unknown_request(self, container: ServiceContainer) -> None:
        with pytest.raises(NotFoundError):
            container.recorder.record(uuid4(), True, "0xnull-1")

    def test_same_prover_on_second_request(
        self,
        container: ServiceContainer,
        sent_request: VerificationRequest,
        work_entry: WorkHistoryEntry,
    ) -> None:
        """Then one prover never yields two outcomes for one candidate."""
        other = container.requests.issue(
            sent_request.candidate_id, "Jane Smith", work_entry, "cto@acme.example"
        )
        container.recorder.record(sent_request.id, True, "0xnull-1")
        with pytest.raises(ReplayConflict):
            container.recorder.record(other.id, True, "0xnull-1")
        assert container.repository.get_request(other.id).status == RequestStatus.sent


# ---------------------------------------------------------------------------
# AttestationService
# ---------------------------------------------------------------------------


class TestAttestationFlow:
    def test_yes_answer_records_verified_outcome(
        self,
        container: ServiceContainer,
        verifier: FakeVerifier,
        sent_request: VerificationRequest,
    ) -> None:
        outcome = container.attestations.submit(_submission(sent_request.token))

        assert outcome.verified is True
        assert outcome.nullifier == "0xnull-1"
        assert verifier.calls[0]["signal"] == "hr@acme.example"
        assert container.repository.get_request(sent_request.id).status == RequestStatus.completed

    def test_no_answer_records_rejection(
        self, container: ServiceContainer, sent_request: VerificationRequest
    ) -> None:
        outcome = container.attestations.submit(_submission(sent_request.token, answer="no"))
        assert outcome.verified is False

    def test_missing_proof(self, container: ServiceContainer, sent_request: VerificationRequest) -> None:
        submission = _submission(sent_request.token).model_copy(update={"proof": None})
        with pytest.raises(ProofRejected):
            container.attestations.submit(submission)

    @pytest.mark.parametrize("answer", [None, "maybe"])
    def test_bad_answer(
        self, container: ServiceContainer, sent_request: VerificationRequest, answer: str | None
    ) -> None:
        submission = _submission(sent_request.token).model_copy(update={"answer": answer})
        with pytest.raises(ValidationError):
            container.attestations.submit(submission)

    def test_rejected_proof_reserves_nothing(
        self,
        container: ServiceContainer,
        verifier: FakeVerifier,
        sent_request: VerificationRequest,
    ) -> None:
        """Given a refused proof, the nullifier stays free and the request open."""
        verifier.accept = False
        with pytest.raises(ProofRejected):
            container.attestations.submit(_submission(sent_request.token))

        assert container.repository.get_request(sent_request.id).status == RequestStatus.sent
        guard = ReplayGuard(container.repository)
        assert guard.reserve(sent_request.candidate_id, "0xnull-1") == Reservation.reserved

    def test_replayed_nullifier_conflicts(
        self,
        container: ServiceContainer,
        sent_request: VerificationRequest,
        work_entry: WorkHistoryEntry,
    ) -> None:
        """Given one prover attesting two requests of a candidate, the second is refused."""
        other = container.requests.issue(
            sent_request.candidate_id, "Jane Smith", work_entry, "cto@acme.example"
        )
        container.attestations.submit(_submission(sent_request.token))
        with pytest.raises(ReplayConflict):
            container.attestations.submit(_submission(other.token))
        assert len(container.repository.list_outcomes(sent_request.candidate_id)) == 1

    def test_completed_request_is_not_resubmitted(
        self,
        container: ServiceContainer,
        verifier: FakeVerifier,
        sent_request: VerificationRequest,
    ) -> None:
        """Then the verifier is not called again for a finished request."""
        container.attestations.submit(_submission(sent_request.token))
        with pytest.raises(ValidationError):
            container.attestations.submit(_submission(sent_request.token, nullifier="0xnull-2"))
        assert len(verifier.calls) == 1

    def test_concurrent_submissions_same_prover(
        self,
        container: ServiceContainer,
        sent_request: VerificationRequest,
        work_entry: WorkHistoryEntry,
    ) -> None:
        """Given two simultaneous submissions by one prover, one outcome is stored."""
        other = container.requests.issue(
            sent_request.candidate_id, "Jane Smith", work_entry, "cto@acme.example"
        )
        barrier = threading.Barrier(2)
        errors: list[Exception] = []

        def submit(token: str) -> None:
            barrier.wait()
            try:
                container.attestations.submit(_submission(token))
            except ReplayConflict as exc:
                errors.append(exc)

        threads = [
            threading.Thread(target=submit, args=(sent_request.token,)),
            threading.Thread(target=submit, args=(other.token,)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 1
        assert len(container.repository.list_outcomes(sent_request.candidate_id)) == 1

    def test_retry_after_failed_recording_succeeds(
        self,
        container: ServiceContainer,
        sent_request: VerificationRequest,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Given the outcome write failed once, the same prover can submit again."""
        original = container.repository.insert_outcome
        calls = {"n": 0}

        def flaky_insert(outcome):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RepositoryUnavailableError("connection reset")
            return original(outcome)

        monkeypatch.setattr(container.repository, "insert_outcome", flaky_insert)

        with pytest.raises(RepositoryUnavailableError):
            container.attestations.submit(_submission(sent_request.token))
        assert container.repository.get_request(sent_request.id).status == RequestStatus.sent

        outcome = container.attestations.submit(_submission(sent_request.token))
        assert outcome.verified is True
        assert container.repository.get_request(sent_request.id).status == RequestStatus.completed
        assert len(container.repository.list_outcomes(sent_request.candidate_id)) == 1
