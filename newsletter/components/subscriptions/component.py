"""
Subscription component.

Signup and confirmation for the double opt-in flow.

Key behaviors:
- Signup input is parsed into value types before storage is touched
- Subscriber row and confirmation token are written in one transaction
- Confirmation email is sent only after the transaction commits
- Confirmation is idempotent; unknown tokens are reported separately from
  storage failures

Known limitation: if the confirmation email fails after commit, the
subscriber stays pending with a token that was never delivered. Nothing
retries it.
"""

from __future__ import annotations

import logging
import secrets
import string
from urllib.parse import urlencode

from newsletter.components.subscriptions.models import (
    ConfirmInput,
    ConfirmOutput,
    SubscribeInput,
    SubscribeOutput,
    SubscriptionConfig,
)
from newsletter.core.entities import ErrorDetail, Outcome
from newsletter.core.ports.db import StorageError, SubscriptionStorePort
from newsletter.core.ports.email import EmailPort
from newsletter.domain.subscriber import NewSubscriber, ValidationError

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 25
TOKEN_ALPHABET = string.ascii_letters + string.digits


# --- Pure Functions ---


def generate_subscription_token(length: int = TOKEN_LENGTH) -> str:
    """
    Generate a random alphanumeric confirmation token.

    62 symbols, 25 characters by default. Uniqueness is not checked against
    stored tokens.
    """
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def build_confirmation_url(base_url: str, token: str, path: str = "/subscriptions/confirm") -> str:
    """Build the full confirmation link for a token."""
    base = base_url.rstrip("/")
    path = path if path.startswith("/") else f"/{path}"
    return f"{base}{path}?{urlencode({'subscription_token': token})}"


def render_confirmation_email(confirmation_url: str) -> tuple[str, str]:
    """
    Render the confirmation email bodies.

    Each body contains the link exactly once.

    Returns:
        (html_body, text_body)
    """
    html_body = (
        "Welcome to our newsletter!<br />"
        f'Click <a href="{confirmation_url}">here</a> to confirm your subscription.'
    )
    text_body = (
        "Welcome to our newsletter!\n"
        f"Visit {confirmation_url} to confirm your subscription."
    )
    return html_body, text_body


def _unexpected(code: str, message: str) -> list[ErrorDetail]:
    return [ErrorDetail(code, message, None)]


# --- Atomic Handlers ---


async def run_subscribe(
    inp: SubscribeInput,
    store: SubscriptionStorePort,
    email_sender: EmailPort,
    *,
    config: SubscriptionConfig | None = None,
) -> SubscribeOutput:
    """
    Handle a signup request.

    1. Parse email and name
    2. Insert subscriber + token in one transaction, commit
    3. Send the confirmation email
    """
    cfg = config or SubscriptionConfig()

    try:
        new_subscriber = NewSubscriber.parse(inp.email, inp.name)
    except ValidationError as e:
        return SubscribeOutput(
            outcome=Outcome.INVALID,
            errors=[ErrorDetail(e.code, e.message, e.field)],
        )

    token = generate_subscription_token()
    try:
        async with store.begin() as tx:
            subscriber_id = await store.insert_subscriber(tx, new_subscriber)
            await store.store_token(tx, subscriber_id, token)
            await tx.commit()
    except StorageError:
        logger.exception(f"Failed to store new subscriber {new_subscriber.email}")
        return SubscribeOutput(
            outcome=Outcome.UNEXPECTED,
            errors=_unexpected("STORAGE_ERROR", "Failed to store the new subscriber"),
        )

    confirmation_url = build_confirmation_url(cfg.base_url, token, cfg.confirmation_path)
    html_body, text_body = render_confirmation_email(confirmation_url)
    result = await email_sender.send_email(
        new_subscriber.email,
        cfg.confirmation_subject,
        html_body,
        text_body,
    )
    if result.failed:
        logger.error(
            f"Failed to send confirmation email to {new_subscriber.email} "
            f"(subscriber {subscriber_id}): {result.error}"
        )
        return SubscribeOutput(
            outcome=Outcome.UNEXPECTED,
            subscriber_id=subscriber_id,
            errors=_unexpected("EMAIL_ERROR", "Failed to send the confirmation email"),
        )

    return SubscribeOutput(outcome=Outcome.OK, subscriber_id=subscriber_id)


async def run_confirm(inp: ConfirmInput, store: SubscriptionStorePort) -> ConfirmOutput:
    """
    Handle a confirmation request.

    Already-confirmed subscribers confirm again without error.
    """
    try:
        subscriber_id = await store.resolve_token(inp.subscription_token)
    except StorageError:
        logger.exception("Failed to retrieve subscriber id from token")
        return ConfirmOutput(
            outcome=Outcome.UNEXPECTED,
            errors=_unexpected("STORAGE_ERROR", "Failed to look up the subscription token"),
        )

    if subscriber_id is None:
        return ConfirmOutput(
            outcome=Outcome.UNKNOWN_TOKEN,
            errors=[
                ErrorDetail(
                    "UNKNOWN_TOKEN",
                    "There is no subscriber associated with the provided token.",
                    "subscription_token",
                )
            ],
        )

    try:
        await store.confirm_subscriber(subscriber_id)
    except StorageError:
        logger.exception(f"Failed to confirm subscriber {subscriber_id}")
        return ConfirmOutput(
            outcome=Outcome.UNEXPECTED,
            subscriber_id=subscriber_id,
            errors=_unexpected("STORAGE_ERROR", "Failed to confirm the subscriber"),
        )

    return ConfirmOutput(outcome=Outcome.OK, subscriber_id=subscriber_id)


async def run(
    inp: SubscribeInput | ConfirmInput,
    *,
    store: SubscriptionStorePort,
    email_sender: EmailPort | None = None,
    config: SubscriptionConfig | None = None,
) -> SubscribeOutput | ConfirmOutput:
    """
    Main component entry point.

    Args:
        inp: Input command
        store: Subscription store (Required)
        email_sender: Email port (Required for signup)
        config: Configuration (Optional)
    """
    if isinstance(inp, SubscribeInput):
        if email_sender is None:
            raise ValueError("email_sender is required for signup")
        return await run_subscribe(inp, store, email_sender, config=config)
    elif isinstance(inp, ConfirmInput):
        return await run_confirm(inp, store)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
