"""Candidate records: résumé ingestion, social profiles and status reads."""

from __future__ import annotations

import logging
import re

from verihire.core.errors import NotFoundError, ValidationError
from verihire.db.repository import Repository
from verihire.models.candidate import Candidate, ProfilesUpdate
from verihire.models.resume import ResumeRecord
from verihire.models.status import CandidateStatus
from verihire.services.resume_parser import ResumeParser
from verihire.services.verification_requests import VerificationRequestService

logger = logging.getLogger(__name__)

_GITHUB_RE = re.compile(r"^https?://(www\.)?github\.com/[A-Za-z0-9-]{1,39}/?$")
_LINKEDIN_RE = re.compile(r"^https?://([a-z]{2,3}\.)?linkedin\.com/in/[\w%-]{3,100}/?$")
_WALLET_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class CandidateService:
    def __init__(
        self,
        repository: Repository,
        requests: VerificationRequestService,
        parser: ResumeParser | None = None,
    ) -> None:
        self._repo = repository
        self._requests = requests
        self._parser = parser or ResumeParser()

    def get(self, candidate_id: str) -> Candidate:
        candidate = self._repo.get_candidate(candidate_id)
        if candidate is None:
            raise NotFoundError(f"candidate {candidate_id} not found")
        return candidate

    def ingest_resume(self, candidate_id: str, text: str) -> ResumeRecord:
        """Parse *text*, store it, and create or refresh the candidate."""
        if not candidate_id or not candidate_id.strip():
            raise ValidationError("candidate_id is required")
        parsed = self._parser.parse(text)

        existing = self._repo.get_candidate(candidate_id) or Candidate(id=candidate_id)
        self._repo.upsert_candidate(
            existing.model_copy(
                update={
                    "name": parsed.name or existing.name,
                    "email": parsed.email or existing.email,
                    "phone": parsed.phone or existing.phone,
                }
            )
        )
        record = self._repo.save_resume(ResumeRecord(candidate_id=candidate_id, resume=parsed))
        logger.info(
            "resume_ingested",
            extra={
                "candidate_id": candidate_id,
                "work_entries": len(parsed.work_experience),
                "education_entries": len(parsed.education),
                "skills": len(parsed.skills),
            },
        )
        return record

    def update_profiles(self, candidate_id: str, update: ProfilesUpdate) -> Candidate:
        candidate = self.get(candidate_id)
        if update.github_profile and not _GITHUB_RE.match(update.github_profile):
            raise ValidationError("github_profile must be a github.com profile URL")
        if update.linkedin_profile and not _LINKEDIN_RE.match(update.linkedin_profile):
            raise ValidationError("linkedin_profile must be a linkedin.com/in/ profile URL")
        if update.wallet_address and not _WALLET_RE.match(update.wallet_address):
            raise ValidationError("wallet_address must be a 0x-prefixed 40-hex address")

        changes = update.model_dump(exclude_none=True)
        if update.online_presence is not None:
            changes["online_presence"] = update.online_presence
        stored = self._repo.upsert_candidate(candidate.model_copy(update=changes))
        logger.info(
            "candidate_profiles_updated",
            extra={"candidate_id": candidate_id, "fields": sorted(changes)},
        )
        return stored

    def status(self, candidate_id: str) -> CandidateStatus:
        candidate = self.get(candidate_id)
        resume = self._repo.get_latest_resume(candidate_id)
        return CandidateStatus(
            candidate=candidate,
            resume=resume.resume if resume else None,
            requests=self._requests.list_views(candidate_id),
            stats=self._requests.stats(candidate_id),
            latest_score=self._repo.latest_trust_score(candidate_id),
            credential=self._repo.get_credential(candidate_id),
        )
