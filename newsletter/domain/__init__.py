from newsletter.domain.subscriber import (
    FORBIDDEN_NAME_CHARACTERS,
    MAX_NAME_GRAPHEMES,
    NewSubscriber,
    SubscriberEmail,
    SubscriberName,
    ValidationError,
    parse_email,
    parse_name,
)

__all__ = [
    "FORBIDDEN_NAME_CHARACTERS",
    "MAX_NAME_GRAPHEMES",
    "NewSubscriber",
    "SubscriberEmail",
    "SubscriberName",
    "ValidationError",
    "parse_email",
    "parse_name",
]
