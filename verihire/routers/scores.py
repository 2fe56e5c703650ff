"""Trust score endpoints.

POST computes and appends a new score; GET returns the latest; /history
returns the append-only log, newest first.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from verihire.models.trust_score import TrustScore
from verihire.routers.deps import get_container
from verihire.services.container import ServiceContainer

router = APIRouter()


@router.post("/{candidate_id}", response_model=TrustScore)
def compute_score(
    candidate_id: str,
    container: ServiceContainer = Depends(get_container),
) -> TrustScore:
    return container.scores.compute_and_store(candidate_id)


@router.get("/{candidate_id}", response_model=TrustScore)
def latest_score(
    candidate_id: str,
    container: ServiceContainer = Depends(get_container),
) -> TrustScore:
    return container.scores.latest(candidate_id)


@router.get("/{candidate_id}/history", response_model=list[TrustScore])
def score_history(
    candidate_id: str,
    container: ServiceContainer = Depends(get_container),
) -> list[TrustScore]:
    return container.scores.history(candidate_id)
