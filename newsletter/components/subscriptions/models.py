"""
Subscription component models.

Inputs/outputs for signup and confirmation, plus component configuration.

State machine: pending_confirmation -> confirmed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from newsletter.core.entities import ErrorDetail, Outcome

# --- Input Models ---


@dataclass(frozen=True)
class SubscribeInput:
    """Raw signup form fields."""

    email: str
    name: str


@dataclass(frozen=True)
class ConfirmInput:
    """Token taken from the confirmation link."""

    subscription_token: str


# --- Output Models ---


@dataclass(frozen=True)
class SubscribeOutput:
    """Output from a signup attempt."""

    outcome: Outcome
    subscriber_id: UUID | None = None
    errors: list[ErrorDetail] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.OK


@dataclass(frozen=True)
class ConfirmOutput:
    """Output from a confirmation attempt. Repeat confirmations are OK."""

    outcome: Outcome
    subscriber_id: UUID | None = None
    errors: list[ErrorDetail] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.OK


# --- Configuration ---


@dataclass(frozen=True)
class SubscriptionConfig:
    """Subscription component configuration."""

    base_url: str = "http://127.0.0.1:8000"
    confirmation_path: str = "/subscriptions/confirm"
    confirmation_subject: str = "Welcome!"
