"""Unit tests for trust scoring: factors, reply parsing and strategy fallbacks."""

from __future__ import annotations

import json

import pytest

from verihire.core.errors import NotFoundError, UpstreamUnavailable
from verihire.models.enums import ResponseShape, ScoreSource
from verihire.models.resume import WorkHistoryEntry
from verihire.models.trust_score import CandidateData
from verihire.services.container import ServiceContainer
from verihire.services.trust_score import (
    TrustScoreEngine,
    TrustScoreService,
    career_progression,
    parse_reasoning_reply,
    timeline_consistency,
)

from conftest import FakeReasoning

BREAKDOWN = {
    "employment_verification_rate": 100,
    "career_progression": 70,
    "skill_consistency": 90,
    "timeline_consistency": 90,
    "verification_count_bonus": 40,
}


def _job(position: str, start: str = "2019", end: str = "2021") -> WorkHistoryEntry:
    return WorkHistoryEntry(company="Acme Corp", position=position, start_date=start, end_date=end)


def _verified_single_job() -> CandidateData:
    return CandidateData(
        candidate_id="cand-1",
        total_requests=2,
        total_outcomes=2,
        successful_verifications=2,
        work_history=[_job("Software Engineer")],
        skills=["Python", "React"],
    )


class TestFallbackFormula:
    def test_fully_verified_single_job(self) -> None:
        """Given 2/2 verified, one job and matching skills, the score is 85."""
        result = TrustScoreEngine().calculate(_verified_single_job())

        assert result.source == ScoreSource.fallback_no_api_key
        assert result.breakdown.employment_verification_rate == 100
        assert result.breakdown.career_progression == 70
        assert result.breakdown.skill_consistency == 90
        assert result.breakdown.timeline_consistency == 90
        assert result.breakdown.verification_count_bonus == 40
        assert result.score == 85

    def test_no_requests_is_baseline(self) -> None:
        result = TrustScoreEngine().calculate(CandidateData(candidate_id="cand-1"))
        assert result.score == 30
        assert result.source == ScoreSource.fallback_no_requests

    def test_no_work_history_defaults(self) -> None:
        data = CandidateData(candidate_id="cand-1", total_requests=1, total_outcomes=1)
        result = TrustScoreEngine().calculate(data)
        assert result.breakdown.career_progression == 70
        assert result.breakdown.timeline_consistency == 80
        assert result.breakdown.skill_consistency == 50
        assert 0 <= result.score <= 100

    def test_career_progression_counts_promotions(self) -> None:
        """Given newest-first titles, each upward step adds 15."""
        history = [_job("Engineering Manager"), _job("Senior Engineer"), _job("Junior Developer")]
        assert career_progression(history) == 80

    def test_timeline_penalises_open_ended_older_job(self) -> None:
        history = [
            _job("Senior Engineer", "2021", "present"),
            _job("Engineer", "2018", "present"),
            _job("Junior Engineer", "2015", "2018"),
        ]
        assert timeline_consistency(history) == 85

    def test_inconsistent_counts_stay_in_range(self) -> None:
        """Given more successes than outcomes, sub-scores are still clamped."""
        data = CandidateData(
            candidate_id="cand-1", total_requests=1, total_outcomes=1, successful_verifications=9
        )
        result = TrustScoreEngine().calculate(data)
        assert result.breakdown.employment_verification_rate == 100
        assert result.breakdown.verification_count_bonus == 100
        assert 0 <= result.score <= 100


class TestReplyParsing:
    def test_direct_json(self) -> None:
        shape, reply = parse_reasoning_reply(json.dumps({"score": 77, "breakdown": BREAKDOWN}))
        assert shape == ResponseShape.direct_json
        assert reply.score == 77

    def test_fenced_json(self) -> None:
        content = "Here you go:\n```json\n" + json.dumps({"breakdown": BREAKDOWN}) + "\n```\nThanks."
        shape, reply = parse_reasoning_reply(content)
        assert shape == ResponseShape.fenced_json
        assert reply.breakdown.career_progression == 70

    @pytest.mark.parametrize(
        "content",
        [
            "I would rate this candidate about 80.",
            "{'score': 80}",
            json.dumps({"score": 80}),
            json.dumps({"breakdown": {**BREAKDOWN, "career_progression": 140}}),
        ],
    )
    def test_unparsable(self, content: str) -> None:
        shape, reply = parse_reasoning_reply(content)
        assert shape == ResponseShape.unparsable
        assert reply is None


class TestStrategies:
    def test_primary_reply_is_used(self) -> None:
        reasoning = FakeReasoning(reply=json.dumps({"score": 72, "breakdown": BREAKDOWN, "analysis": "ok"}))
        result = TrustScoreEngine(reasoning).calculate(_verified_single_job())
        assert result.source == ScoreSource.primary
        assert result.score == 72
        assert result.analysis == "ok"

    def test_primary_without_score_uses_weights(self) -> None:
        reasoning = FakeReasoning(reply=json.dumps({"breakdown": BREAKDOWN}))
        result = TrustScoreEngine(reasoning).calculate(_verified_single_job())
        assert result.source == ScoreSource.primary
        assert result.score == 85

    def test_primary_score_is_clamped(self) -> None:
        reasoning = FakeReasoning(reply=json.dumps({"score": 140, "breakdown": BREAKDOWN}))
        assert TrustScoreEngine(reasoning).calculate(_verified_single_job()).score == 100

    def test_api_error_falls_back(self) -> None:
        reasoning = FakeReasoning(error=UpstreamUnavailable("timeout"))
        result = TrustScoreEngine(reasoning).calculate(_verified_single_job())
        assert result.source == ScoreSource.fallback_api_error
        assert result.score == 85

    def test_unexpected_error_falls_back(self) -> None:
        reasoning = FakeReasoning(error=RuntimeError("boom"))
        result = TrustScoreEngine(reasoning).calculate(_verified_single_job())
        assert result.source == ScoreSource.fallback_api_error

    def test_unparsable_reply_falls_back(self) -> None:
        reasoning = FakeReasoning(reply="Strong candidate, 9/10.")
        result = TrustScoreEngine(reasoning).calculate(_verified_single_job())
        assert result.source == ScoreSource.fallback_parse_error
        assert result.score == 85

    def test_no_requests_skips_primary(self) -> None:
        reasoning = FakeReasoning(reply=json.dumps({"score": 99, "breakdown": BREAKDOWN}))
        result = TrustScoreEngine(reasoning).calculate(CandidateData(candidate_id="cand-1"))
        assert result.score == 30
        assert reasoning.calls == 0


class TestTrustScoreService:
    def test_compute_appends_to_history(self, container: ServiceContainer, candidate_id: str) -> None:
        first = container.scores.compute_and_store(candidate_id)
        second = container.scores.compute_and_store(candidate_id)

        history = container.scores.history(candidate_id)
        assert len(history) == 2
        assert container.scores.latest(candidate_id).computed_at == max(first.computed_at, second.computed_at)

    def test_scores_from_stored_resume_and_outcomes(
        self, container: ServiceContainer, sent_request
    ) -> None:
        container.recorder.record(sent_request.id, True, "0xnull-1")
        result = container.scores.compute_and_store(sent_request.candidate_id)

        # Sample résumé: promotion, tech skills, clean hand-over, 1/1 verified
        assert result.source == ScoreSource.fallback_no_api_key
        assert result.breakdown.employment_verification_rate == 100
        assert result.breakdown.career_progression == 65
        assert result.breakdown.skill_consistency == 90
        assert result.breakdown.timeline_consistency == 85
        assert result.breakdown.verification_count_bonus == 20
        assert result.score == 81

    def test_unknown_candidate(self, container: ServiceContainer) -> None:
        with pytest.raises(NotFoundError):
            container.scores.compute_and_store("nobody")

    def test_latest_without_scores(self, container: ServiceContainer, candidate_id: str) -> None:
        with pytest.raises(NotFoundError):
            container.scores.latest(candidate_id)

    def test_engine_reasoning_is_injected(self, container: ServiceContainer, candidate_id: str) -> None:
        service = TrustScoreService(
            container.repository,
            TrustScoreEngine(FakeReasoning(reply=json.dumps({"score": 64, "breakdown": BREAKDOWN}))),
        )
        # No requests yet, so the baseline applies regardless of the model
        assert service.compute_and_store(candidate_id).score == 30
