"""
Broadcast component.

Sends one newsletter issue to every confirmed subscriber.

Key behaviors:
- Confirmed rows whose stored email no longer parses are logged and skipped
- The first delivery failure aborts the publish; recipients before it have
  already been emailed, the failing one and everyone after it have not
- No delivery ledger: publishing again resends to every confirmed subscriber
"""

from __future__ import annotations

import logging

from newsletter.components.broadcast.models import PublishInput, PublishOutput
from newsletter.core.entities import ErrorDetail, Outcome
from newsletter.core.ports.db import ConfirmedSubscriberReaderPort, StorageError
from newsletter.core.ports.email import EmailPort

logger = logging.getLogger(__name__)


async def run_publish(
    inp: PublishInput,
    reader: ConfirmedSubscriberReaderPort,
    email_sender: EmailPort,
) -> PublishOutput:
    """Publish an issue to all confirmed subscribers, in storage order."""
    try:
        recipients = await reader.list_confirmed()
    except StorageError:
        logger.exception("Failed to retrieve confirmed subscribers")
        return PublishOutput(
            outcome=Outcome.UNEXPECTED,
            errors=[ErrorDetail("STORAGE_ERROR", "Failed to retrieve confirmed subscribers")],
        )

    delivered = 0
    skipped = 0
    for recipient in recipients:
        if recipient.email is None:
            skipped += 1
            logger.warning(
                f"Skipping a confirmed subscriber ({recipient.subscriber_id}). "
                f"Their stored contact details are invalid: {recipient.error}"
            )
            continue

        result = await email_sender.send_email(recipient.email, inp.title, inp.html, inp.text)
        if result.failed:
            logger.error(f"Failed to send newsletter issue to {recipient.email}: {result.error}")
            return PublishOutput(
                outcome=Outcome.UNEXPECTED,
                delivered=delivered,
                skipped=skipped,
                errors=[
                    ErrorDetail(
                        "EMAIL_ERROR",
                        "Failed to send the newsletter issue",
                        None,
                    )
                ],
            )
        delivered += 1

    logger.info(f"Newsletter issue '{inp.title}' sent to {delivered} subscribers ({skipped} skipped)")
    return PublishOutput(outcome=Outcome.OK, delivered=delivered, skipped=skipped)


async def run(
    inp: PublishInput,
    *,
    reader: ConfirmedSubscriberReaderPort,
    email_sender: EmailPort,
) -> PublishOutput:
    """Main component entry point."""
    if not isinstance(inp, PublishInput):
        raise ValueError(f"Unknown input type: {type(inp)}")
    return await run_publish(inp, reader, email_sender)
