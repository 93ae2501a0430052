"""
Subscriber value types.

Raw form input is parsed into these types once, at the boundary. Holding a
SubscriberEmail or SubscriberName means the value has already been checked.

Rules:
- Email: syntactically valid address. No DNS lookups and no policy on the
  domain: single-label, reserved and bracketed IP domains are accepted.
  The original string is kept as typed, no normalisation.
- Name: non-blank, at most 256 grapheme clusters, none of / ( ) " < > \\ { }
"""

from __future__ import annotations

from dataclasses import dataclass

import regex
from email_validator import EmailNotValidError, validate_email

MAX_NAME_GRAPHEMES = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')

_GRAPHEME = regex.compile(r"\X")


class ValidationError(ValueError):
    """Raw subscriber input failed validation."""

    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        self.code = code
        self.message = message
        self.field = field
        super().__init__(message)


def count_graphemes(s: str) -> int:
    """Count user-perceived characters (extended grapheme clusters)."""
    return len(_GRAPHEME.findall(s))


@dataclass(frozen=True)
class SubscriberEmail:
    """An email address that passed syntax validation."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> SubscriberEmail:
        if not raw:
            raise ValidationError("EMPTY_EMAIL", "Email address is required", "email")
        try:
            validate_email(
                raw,
                check_deliverability=False,
                globally_deliverable=False,
                allow_domain_literal=True,
            )
        except EmailNotValidError as e:
            raise ValidationError(
                "INVALID_EMAIL", f"'{raw}' is not a valid email address: {e}", "email"
            ) from e
        return cls(raw)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SubscriberName:
    """A display name safe to store and render."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> SubscriberName:
        if not raw or not raw.strip():
            raise ValidationError("EMPTY_NAME", "Name cannot be empty or whitespace", "name")
        if count_graphemes(raw) > MAX_NAME_GRAPHEMES:
            raise ValidationError(
                "NAME_TOO_LONG",
                f"Name cannot be longer than {MAX_NAME_GRAPHEMES} characters",
                "name",
            )
        if any(c in FORBIDDEN_NAME_CHARACTERS for c in raw):
            raise ValidationError("FORBIDDEN_CHARACTERS", "Name contains forbidden characters", "name")
        return cls(raw)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NewSubscriber:
    """A validated signup request, not yet persisted."""

    email: SubscriberEmail
    name: SubscriberName

    @classmethod
    def parse(cls, email: str, name: str) -> NewSubscriber:
        return cls(email=SubscriberEmail.parse(email), name=SubscriberName.parse(name))


def parse_email(raw: str) -> SubscriberEmail:
    return SubscriberEmail.parse(raw)


def parse_name(raw: str) -> SubscriberName:
    return SubscriberName.parse(raw)
