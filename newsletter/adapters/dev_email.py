"""
Dev Email Adapter.

Logs emails instead of sending them. Selected with
``email_client.backend: dev`` for local runs, and used by the tests to
inspect what would have been sent.

Key behaviors:
- Logs recipient/subject (and a body preview) at the configured level
- Returns SKIPPED status (not SENT)
- Stores emails in memory for test assertions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from newsletter.core.ports.email import EmailResult
from newsletter.domain.subscriber import SubscriberEmail

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """Record of a logged email for test assertions."""

    id: str
    recipient: str
    subject: str
    html_body: str
    text_body: str
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    """Email adapter that logs instead of sending. Implements EmailPort."""

    sent_emails: list[SentEmail] = field(default_factory=list)

    log_level: int = logging.INFO
    log_body: bool = True
    body_preview_length: int = 100

    async def send_email(
        self,
        recipient: SubscriberEmail,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> EmailResult:
        message_id = f"dev-{uuid4().hex[:12]}"
        self.sent_emails.append(
            SentEmail(
                id=message_id,
                recipient=str(recipient),
                subject=subject,
                html_body=html_body,
                text_body=text_body,
                logged_at=datetime.now(UTC),
            )
        )
        self._log_email(str(recipient), subject, text_body, message_id)
        return EmailResult.skipped(
            str(recipient),
            message_id=message_id,
            reason="Dev mode - email logged, not sent",
        )

    def _log_email(self, recipient: str, subject: str, body: str, message_id: str) -> None:
        parts = [f"EMAIL (dev): To={recipient}", f"Subject={subject}"]

        if self.log_body and body:
            preview = body[: self.body_preview_length]
            if len(body) > self.body_preview_length:
                preview += "..."
            parts.append(f"Body={preview}")

        parts.append(f"MessageID={message_id}")
        logger.log(self.log_level, ", ".join(parts))

    # --- Test Helper Methods ---

    def get_last_email(self) -> SentEmail | None:
        """Get the most recently logged email."""
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        """Get all emails logged to a specific recipient."""
        return [e for e in self.sent_emails if e.recipient == recipient]

    def clear(self) -> None:
        self.sent_emails.clear()

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)
