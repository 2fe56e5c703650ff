"""Credential endpoints. Issuance is idempotent per candidate."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from verihire.models.credential import Credential, CredentialIssueRequest
from verihire.routers.deps import get_container
from verihire.services.container import ServiceContainer

router = APIRouter()


@router.post("/{candidate_id}", response_model=Credential)
def issue_credential(
    candidate_id: str,
    body: CredentialIssueRequest | None = None,
    container: ServiceContainer = Depends(get_container),
) -> Credential:
    wallet = body.wallet_address if body else None
    return container.credentials.issue(candidate_id, wallet_address=wallet)


@router.get("/{candidate_id}", response_model=Credential)
def get_credential(
    candidate_id: str,
    container: ServiceContainer = Depends(get_container),
) -> Credential:
    return container.credentials.get(candidate_id)
