"""
Shared entities and outcome types.

Persisted subscriber record plus the outcome vocabulary components use to
report results back to the HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from newsletter.domain.subscriber import SubscriberEmail, ValidationError


class SubscriptionStatus(str, Enum):
    """
    Subscriber status.

    pending_confirmation -> confirmed (via confirmation link).
    Confirming again is a no-op.
    """

    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class Subscriber:
    """
    Persisted subscriber row.

    email and name are the raw stored strings and are not re-validated on read.
    """

    id: UUID
    email: str
    name: str
    subscribed_at: datetime
    status: SubscriptionStatus


class Outcome(Enum):
    """Result of a component operation, mapped to HTTP status by the routes."""

    OK = "ok"  # 200
    INVALID = "invalid"  # 400
    UNKNOWN_TOKEN = "unknown_token"  # 401
    UNEXPECTED = "unexpected"  # 500


@dataclass(frozen=True)
class ErrorDetail:
    """Error detail attached to a failed outcome."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ConfirmedRecipient:
    """
    One confirmed row as seen by the broadcast reader.

    Exactly one of ``email`` / ``error`` is set: the stored address either
    re-parsed cleanly or it did not (rows written before stricter validation).
    """

    subscriber_id: str
    raw_email: str
    email: SubscriberEmail | None = None
    error: ValidationError | None = None

    @property
    def is_valid(self) -> bool:
        return self.email is not None
