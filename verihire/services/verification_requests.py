"""Verification request lifecycle.

Each work-history claim becomes one stored ``VerificationRequest`` with a
signed, expiring token.  The request is persisted before dispatch, and a
failed dispatch never rolls it back: the request still advances to
``sent`` with ``dispatch_error`` set, and is picked up again by ``resend``
or by the periodic resend job.

Batch issuance is per-item independent.  Items run on a thread pool and
each one reports its own outcome.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from uuid import UUID, uuid4

from verihire.core.errors import (
    ExpiredTokenError,
    NotFoundError,
    UpstreamUnavailable,
    ValidationError,
    VerihireError,
)
from verihire.db.repository import Repository, RepositoryError
from verihire.models.candidate import utcnow
from verihire.models.enums import EffectiveStatus, ItemStatus, RequestStatus
from verihire.models.resume import WorkHistoryEntry
from verihire.models.verification import (
    BatchIssueRequest,
    BatchIssueResult,
    IssueItem,
    IssueItemResult,
    RequestClaim,
    RequestView,
    VerificationRequest,
    VerificationStats,
)
from verihire.services.messaging import (
    Messenger,
    render_verification_email,
    verification_link,
)
from verihire.services.request_tokens import RequestTokenSigner

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def _claim_of(request: VerificationRequest) -> RequestClaim:
    return RequestClaim(
        request_id=request.id,
        candidate_id=request.candidate_id,
        candidate_name=request.candidate_name,
        candidate_email=request.candidate_email,
        employer_email=request.employer_email,
        company=request.entry.company,
        position=request.entry.position,
        start_date=request.entry.start_date,
        end_date=request.entry.end_date,
    )


class VerificationRequestService:
    def __init__(
        self,
        repository: Repository,
        signer: RequestTokenSigner,
        messenger: Messenger,
        public_base_url: str,
        max_workers: int = 4,
    ) -> None:
        self._repo = repository
        self._signer = signer
        self._messenger = messenger
        self._base_url = public_base_url
        self._max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue(
        self,
        candidate_id: str,
        candidate_name: str,
        entry: WorkHistoryEntry,
        employer_email: str,
        candidate_email: str | None = None,
    ) -> VerificationRequest:
        """Persist one request and dispatch its token to *employer_email*."""
        if not candidate_id:
            raise ValidationError("candidate_id is required")
        if not _EMAIL_RE.match(employer_email or ""):
            raise ValidationError(f"invalid employer email: {employer_email!r}")

        claim = RequestClaim(
            request_id=uuid4(),
            candidate_id=candidate_id,
            candidate_name=candidate_name,
            candidate_email=candidate_email,
            employer_email=employer_email,
            company=entry.company,
            position=entry.position,
            start_date=entry.start_date,
            end_date=entry.end_date,
        )
        issued = self._signer.sign(claim)
        request = self._repo.insert_request(
            VerificationRequest(
                id=claim.request_id,
                candidate_id=candidate_id,
                candidate_name=candidate_name,
                candidate_email=candidate_email,
                employer_email=employer_email,
                entry=entry,
                token=issued.token,
                expires_at=issued.expires_at,
            )
        )
        logger.info(
            "verification_request_created",
            extra={
                "request_id": str(request.id),
                "candidate_id": candidate_id,
                "company": entry.company,
            },
        )
        return self._dispatch(request)

    def issue_batch(self, batch: BatchIssueRequest) -> BatchIssueResult:
        """Issue one request per item; failures are reported per item."""
        if self._repo.get_candidate(batch.candidate_id) is None:
            raise NotFoundError(f"candidate {batch.candidate_id} not found")

        def run(item: IssueItem) -> IssueItemResult:
            try:
                request = self.issue(
                    batch.candidate_id,
                    batch.candidate_name,
                    item.entry,
                    item.employer_email,
                    candidate_email=batch.candidate_email,
                )
            except ValidationError as exc:
                return IssueItemResult(
                    employer_email=item.employer_email,
                    company=item.entry.company,
                    status=ItemStatus.rejected,
                    error=exc.message,
                )
            except (VerihireError, RepositoryError) as exc:
                logger.error(
                    "verification_request_issue_failed",
                    extra={
                        "candidate_id": batch.candidate_id,
                        "employer_email": item.employer_email,
                        "error_type": type(exc).__name__,
                        "error_message": str(exc),
                    },
                )
                return IssueItemResult(
                    employer_email=item.employer_email,
                    company=item.entry.company,
                    status=ItemStatus.dispatch_failed,
                    error=str(exc),
                )

            return IssueItemResult(
                employer_email=item.employer_email,
                company=item.entry.company,
                request_id=request.id,
                status=ItemStatus.dispatch_failed if request.dispatch_error else ItemStatus.sent,
                error=request.dispatch_error,
            )

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            results = list(pool.map(run, batch.items))

        outcome = BatchIssueResult(candidate_id=batch.candidate_id, results=results)
        logger.info(
            "verification_batch_issued",
            extra={
                "candidate_id": batch.candidate_id,
                "items": len(results),
                "needs_resend": len(outcome.needs_resend),
            },
        )
        return outcome

    # ------------------------------------------------------------------
    # Dispatch / resend
    # ------------------------------------------------------------------

    def _dispatch(self, request: VerificationRequest) -> VerificationRequest:
        claim = _claim_of(request)
        subject, body = render_verification_email(
            claim,
            verification_link(self._base_url, request.token),
            ttl_days=self._signer.ttl.days,
        )
        delivery_id: str | None = None
        error: str | None = None
        try:
            delivery_id = self._messenger.send(request.employer_email, subject, body)
        except UpstreamUnavailable as exc:
            error = exc.message
        except Exception as exc:
            logger.exception(
                "verification_dispatch_crashed",
                extra={"request_id": str(request.id), "error_type": type(exc).__name__},
            )
            error = f"{type(exc).__name__}: {exc}"

        fields = {
            "delivery_id": delivery_id,
            "dispatch_error": error,
            "dispatch_attempts": request.dispatch_attempts + 1,
            "last_dispatched_at": utcnow(),
        }
        if request.status == RequestStatus.pending:
            updated = self._repo.advance_request(
                request.id, RequestStatus.pending, RequestStatus.sent, **fields
            )
        else:
            updated = self._repo.update_request_dispatch(request.id, **fields)

        if error:
            logger.warning(
                "verification_dispatch_failed",
                extra={
                    "request_id": str(request.id),
                    "attempt": fields["dispatch_attempts"],
                    "error_message": error,
                },
            )
        else:
            logger.info(
                "verification_dispatched",
                extra={"request_id": str(request.id), "delivery_id": delivery_id},
            )
        return updated or self._repo.get_request(request.id) or request

    def resend(self, request_id: UUID) -> VerificationRequest:
        request = self.get(request_id)
        if request.status != RequestStatus.sent:
            raise ValidationError(f"request is {request.status.value}, only sent requests can be resent")
        if request.is_expired():
            raise ExpiredTokenError("verification request has expired")
        return self._dispatch(request)

    def resend_failed_dispatches(self, now: datetime | None = None) -> int:
        """Re-dispatch sent, unexpired requests whose last dispatch failed."""
        now = now or utcnow()
        retried = 0
        for request in self._repo.list_requests_by_status(RequestStatus.sent):
            if not request.dispatch_error or request.is_expired(now):
                continue
            self._dispatch(request)
            retried += 1
        logger.info("verification_resend_sweep", extra={"retried": retried})
        return retried

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, request_id: UUID) -> VerificationRequest:
        request = self._repo.get_request(request_id)
        if request is None:
            raise NotFoundError(f"verification request {request_id} not found")
        return request

    def resolve(self, token: str) -> RequestClaim:
        """Verify *token* and return its claim. Pure read."""
        claim = self._signer.resolve(token)
        self.get(claim.request_id)
        return claim

    @staticmethod
    def view(request: VerificationRequest, now: datetime | None = None) -> RequestView:
        return RequestView(
            id=request.id,
            employer_email=request.employer_email,
            company=request.entry.company,
            position=request.entry.position,
            status=request.status,
            effective_status=request.effective_status(now),
            expires_at=request.expires_at,
            dispatch_error=request.dispatch_error,
            created_at=request.created_at,
        )

    def list_views(self, candidate_id: str, now: datetime | None = None) -> list[RequestView]:
        now = now or utcnow()
        return [self.view(r, now) for r in self._repo.list_requests(candidate_id)]

    def stats(self, candidate_id: str, now: datetime | None = None) -> VerificationStats:
        now = now or utcnow()
        outcomes = self._repo.list_outcomes(candidate_id)
        stats = VerificationStats(
            candidate_id=candidate_id,
            verified=sum(1 for o in outcomes if o.verified),
            rejected=sum(1 for o in outcomes if not o.verified),
        )
        for request in self._repo.list_requests(candidate_id):
            effective = request.effective_status(now)
            if effective == EffectiveStatus.expired:
                stats.expired += 1
            elif effective != EffectiveStatus.completed:
                stats.pending += 1
        return stats
