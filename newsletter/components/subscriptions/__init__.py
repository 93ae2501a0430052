"""
Subscription component.

Double opt-in signup and confirmation.
"""

from newsletter.components.subscriptions.component import (
    TOKEN_ALPHABET,
    TOKEN_LENGTH,
    build_confirmation_url,
    generate_subscription_token,
    render_confirmation_email,
    run,
    run_confirm,
    run_subscribe,
)
from newsletter.components.subscriptions.models import (
    ConfirmInput,
    ConfirmOutput,
    SubscribeInput,
    SubscribeOutput,
    SubscriptionConfig,
)

__all__ = [
    # Component
    "run",
    "run_subscribe",
    "run_confirm",
    # Pure functions
    "generate_subscription_token",
    "build_confirmation_url",
    "render_confirmation_email",
    # Constants
    "TOKEN_ALPHABET",
    "TOKEN_LENGTH",
    # Input/Output
    "SubscribeInput",
    "SubscribeOutput",
    "ConfirmInput",
    "ConfirmOutput",
    "SubscriptionConfig",
]
