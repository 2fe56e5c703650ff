"""Enum types mirroring the persisted status and tag columns."""

from enum import Enum


class RequestStatus(str, Enum):
    """Lifecycle of a verification request. Transitions only move forward."""
    pending = "pending"
    sent = "sent"
    completed = "completed"


# Forward-only ordering used by compare-and-set status advances
REQUEST_STATUS_ORDER: dict[RequestStatus, int] = {
    RequestStatus.pending: 0,
    RequestStatus.sent: 1,
    RequestStatus.completed: 2,
}


class EffectiveStatus(str, Enum):
    """Read-side status that also surfaces elapsed token validity."""
    pending = "pending"
    sent = "sent"
    completed = "completed"
    expired = "expired"


class ScoreSource(str, Enum):
    """Which scoring strategy produced a trust score."""
    primary = "primary"
    fallback_no_requests = "fallback_no_requests"
    fallback_no_api_key = "fallback_no_api_key"
    fallback_api_error = "fallback_api_error"
    fallback_parse_error = "fallback_parse_error"


class ResponseShape(str, Enum):
    """How a reasoning-collaborator reply was (or was not) decoded."""
    direct_json = "direct_json"
    fenced_json = "fenced_json"
    unparsable = "unparsable"


class Reservation(str, Enum):
    """Outcome of a replay-guard reservation."""
    reserved = "reserved"
    conflict = "conflict"


class ItemStatus(str, Enum):
    """Per-item result of a batch verification-request issuance."""
    sent = "sent"
    dispatch_failed = "dispatch_failed"
    rejected = "rejected"
