"""Atomic reservation of a prover's uniqueness token against a candidate.

The reservation is a single insert into a table with a unique index on
``(candidate_id, nullifier)``.  There is no read-before-write: the store
decides, so concurrent reservations yield exactly one ``reserved``.

A duplicate held by the same request is that request's own reservation
from an earlier attempt whose recording did not finish; it is handed back
as ``reserved`` so the retry can complete.  Recording is idempotent, so a
second pass never produces a second outcome.
"""

from __future__ import annotations

import logging
from uuid import UUID

from verihire.db.repository import DuplicateKeyError, Repository
from verihire.models.enums import Reservation
from verihire.models.verification import NullifierReservation

logger = logging.getLogger(__name__)


class ReplayGuard:
    def __init__(self, repository: Repository) -> None:
        self._repo = repository

    def reserve(
        self,
        candidate_id: str,
        uniqueness_token: str,
        request_id: UUID | None = None,
    ) -> Reservation:
        try:
            self._repo.insert_reservation(
                NullifierReservation(
                    candidate_id=candidate_id,
                    nullifier=uniqueness_token,
                    request_id=request_id,
                )
            )
        except DuplicateKeyError:
            held = self._repo.get_reservation(candidate_id, uniqueness_token)
            if request_id is not None and held is not None and held.request_id == request_id:
                logger.info(
                    "replay_reservation_resumed",
                    extra={"candidate_id": candidate_id, "request_id": str(request_id)},
                )
                return Reservation.reserved
            logger.warning(
                "replay_conflict_detected",
                extra={"candidate_id": candidate_id, "request_id": str(request_id)},
            )
            return Reservation.conflict
        return Reservation.reserved
