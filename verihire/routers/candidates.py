"""Candidate endpoints: résumé ingestion, profiles and status polling."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from verihire.models.candidate import Candidate, ProfilesUpdate
from verihire.models.resume import ResumeRecord, ResumeUpload
from verihire.models.status import CandidateStatus
from verihire.routers.deps import get_container
from verihire.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{candidate_id}/resume", status_code=201, response_model=ResumeRecord)
def upload_resume(
    candidate_id: str,
    body: ResumeUpload,
    container: ServiceContainer = Depends(get_container),
) -> ResumeRecord:
    """Parse already-extracted résumé text and store the result."""
    return container.candidates.ingest_resume(candidate_id, body.text)


@router.put("/{candidate_id}/profiles", response_model=Candidate)
def update_profiles(
    candidate_id: str,
    body: ProfilesUpdate,
    container: ServiceContainer = Depends(get_container),
) -> Candidate:
    return container.candidates.update_profiles(candidate_id, body)


@router.get("/{candidate_id}/status", response_model=CandidateStatus)
def candidate_status(
    candidate_id: str,
    container: ServiceContainer = Depends(get_container),
) -> CandidateStatus:
    """Pure read for polling clients: requests, stats, score and credential."""
    return container.candidates.status(candidate_id)
