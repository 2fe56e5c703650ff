"""Verification request and attestation endpoints.

POST /requests issues one request per work entry and answers 200 with
per-item results: partial success is not a failure.
GET /resolve is a pure read for the prover page.  POST /attest runs the
proof, replay and recording flow.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from verihire.models.verification import (
    AttestationSubmission,
    BatchIssueRequest,
    BatchIssueResult,
    RequestClaim,
    RequestView,
    VerificationOutcome,
    VerificationStats,
)
from verihire.routers.deps import get_container
from verihire.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/requests", response_model=BatchIssueResult)
def issue_requests(
    body: BatchIssueRequest,
    container: ServiceContainer = Depends(get_container),
) -> BatchIssueResult:
    return container.requests.issue_batch(body)


@router.post("/requests/{request_id}/resend", response_model=RequestView)
def resend_request(
    request_id: UUID,
    container: ServiceContainer = Depends(get_container),
) -> RequestView:
    return container.requests.view(container.requests.resend(request_id))


@router.get("/requests", response_model=list[RequestView])
def list_requests(
    candidate_id: str = Query(..., min_length=1),
    container: ServiceContainer = Depends(get_container),
) -> list[RequestView]:
    """Newest first, with ``effective_status`` showing expired links."""
    return container.requests.list_views(candidate_id)


@router.get("/resolve", response_model=RequestClaim)
def resolve_token(
    token: str = Query(..., min_length=1),
    container: ServiceContainer = Depends(get_container),
) -> RequestClaim:
    return container.requests.resolve(token)


@router.post("/attest", response_model=VerificationOutcome)
def submit_attestation(
    body: AttestationSubmission,
    container: ServiceContainer = Depends(get_container),
) -> VerificationOutcome:
    return container.attestations.submit(body)


@router.get("/stats", response_model=VerificationStats)
def verification_stats(
    candidate_id: str = Query(..., min_length=1),
    container: ServiceContainer = Depends(get_container),
) -> VerificationStats:
    return container.requests.stats(candidate_id)
