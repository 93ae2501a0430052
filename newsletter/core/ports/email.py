"""
Email transport interface.

Used by the subscription coordinator (confirmation emails) and the broadcast
engine (newsletter issues).

Implementations:
1. EmailClient: HTTP email API (production)
2. DevEmailAdapter: logs and records emails (local development, tests)

Adapters report delivery failures through EmailResult instead of raising, so
callers decide whether a failure aborts their operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol

from newsletter.domain.subscriber import SubscriberEmail


class EmailStatus(Enum):
    """Email send result status."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"  # Dev adapter: logged, not delivered


@dataclass
class EmailResult:
    """Result of an email send attempt."""

    status: EmailStatus
    recipient: str = ""
    message_id: str | None = None
    error: str | None = None
    sent_at: datetime | None = None

    @property
    def failed(self) -> bool:
        return self.status is EmailStatus.FAILED

    @classmethod
    def success(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        """Create a successful send result."""
        return cls(
            status=EmailStatus.SENT,
            recipient=recipient,
            message_id=message_id,
            sent_at=datetime.now(UTC),
        )

    @classmethod
    def skipped(cls, recipient: str, message_id: str | None = None, reason: str = "Dev mode") -> EmailResult:
        """Create a skipped result (dev adapter)."""
        return cls(
            status=EmailStatus.SKIPPED,
            recipient=recipient,
            message_id=message_id,
            error=reason,
        )

    @classmethod
    def failure(cls, recipient: str, error: str) -> EmailResult:
        """Create a failed result."""
        return cls(status=EmailStatus.FAILED, recipient=recipient, error=error)


class EmailPort(Protocol):
    """Email sending interface."""

    async def send_email(
        self,
        recipient: SubscriberEmail,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> EmailResult:
        """
        Send one email.

        Args:
            recipient: Recipient (already validated)
            subject: Subject line
            html_body: HTML body
            text_body: Plain text body

        Returns:
            EmailResult; FAILED on transport errors (never raises for those)
        """
        ...
