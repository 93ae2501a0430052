"""
Subscription endpoints.

Endpoints:
- POST /subscriptions - Sign up (form fields: email, name)
- GET /subscriptions/confirm - Redeem a confirmation token
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Form
from pydantic import BaseModel

from newsletter.adapters.sqlite_db import SQLiteSubscriptionStore
from newsletter.api.deps import get_email_sender, get_subscription_config, get_subscription_store
from newsletter.api.routes._errors import ErrorResponse, raise_for_outcome
from newsletter.components.subscriptions import (
    ConfirmInput,
    SubscribeInput,
    SubscriptionConfig,
    run_confirm,
    run_subscribe,
)
from newsletter.core.ports.email import EmailPort

router = APIRouter()


# --- Response Models ---


class SubscribeResponse(BaseModel):
    """Response for a signup request."""

    success: bool
    message: str


class ConfirmResponse(BaseModel):
    """Response for a confirmation request."""

    success: bool
    message: str


# --- Subscribe Endpoint ---


@router.post(
    "/subscriptions",
    response_model=SubscribeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid email or name"},
        500: {"model": ErrorResponse, "description": "Subscriber could not be stored or emailed"},
    },
    summary="Subscribe to the newsletter",
    description="Start the double opt-in flow. Sends a confirmation email.",
)
async def subscribe(
    email: Annotated[str, Form()],
    name: Annotated[str, Form()],
    store: SQLiteSubscriptionStore = Depends(get_subscription_store),
    email_sender: EmailPort = Depends(get_email_sender),
    config: SubscriptionConfig = Depends(get_subscription_config),
) -> SubscribeResponse:
    """
    Subscribe to the newsletter.

    1. Validate email and name
    2. Store the pending subscriber and its token (one transaction)
    3. Send the confirmation email
    """
    result = await run_subscribe(
        SubscribeInput(email=email, name=name),
        store,
        email_sender,
        config=config,
    )
    if not result.success:
        raise_for_outcome(result.outcome, result.errors, "Unable to process subscription")

    return SubscribeResponse(
        success=True,
        message="Please check your email to confirm your subscription",
    )


# --- Confirm Endpoint ---


@router.get(
    "/subscriptions/confirm",
    response_model=ConfirmResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unknown token"},
        500: {"model": ErrorResponse, "description": "Subscription could not be confirmed"},
    },
    summary="Confirm a subscription",
    description="Confirm a subscription with the token from the confirmation email.",
)
async def confirm(
    subscription_token: str,
    store: SQLiteSubscriptionStore = Depends(get_subscription_store),
) -> ConfirmResponse:
    """Confirm a pending subscription. Repeat confirmations also succeed."""
    result = await run_confirm(ConfirmInput(subscription_token=subscription_token), store)
    if not result.success:
        raise_for_outcome(result.outcome, result.errors, "Unable to confirm subscription")

    return ConfirmResponse(success=True, message="Your subscription is confirmed")
