"""
Subscriber value type tests.

Email: syntax only, raw string kept.
Name: non-blank, at most 256 graphemes, no forbidden characters.
"""

import pytest

from newsletter.domain.subscriber import (
    FORBIDDEN_NAME_CHARACTERS,
    MAX_NAME_GRAPHEMES,
    NewSubscriber,
    SubscriberEmail,
    SubscriberName,
    ValidationError,
    count_graphemes,
    parse_email,
    parse_name,
)


class TestSubscriberEmail:
    @pytest.mark.parametrize(
        "raw",
        [
            "ursula_le_guin@gmail.com",
            "john.doe+news@example.org",
            "x@sub.example.co.uk",
            "First.Last@Example.com",
            "user@localhost",
            "user@example.test",
            "user@[127.0.0.1]",
        ],
    )
    def test_valid_emails_are_accepted_unchanged(self, raw: str) -> None:
        email = SubscriberEmail.parse(raw)
        assert str(email) == raw
        assert email.value == raw

    def test_empty_string_is_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc:
            SubscriberEmail.parse("")
        assert exc.value.code == "EMPTY_EMAIL"
        assert exc.value.field == "email"

    @pytest.mark.parametrize(
        "raw",
        ["ursuladomain.com", "@domain.com", "ursula@", "ursula le guin@gmail.com", " "],
    )
    def test_invalid_emails_are_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationError) as exc:
            SubscriberEmail.parse(raw)
        assert exc.value.code == "INVALID_EMAIL"

    def test_validation_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_email("not-an-email")


class TestSubscriberName:
    @pytest.mark.parametrize(
        "raw",
        ["le guin", "José María", "李小明", "O'Connor", "user@domain", "Anne-Marie"],
    )
    def test_valid_names_are_accepted_unchanged(self, raw: str) -> None:
        assert str(SubscriberName.parse(raw)) == raw

    def test_256_grapheme_name_is_valid(self) -> None:
        assert SubscriberName.parse("a" * MAX_NAME_GRAPHEMES)

    def test_257_grapheme_name_is_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc:
            SubscriberName.parse("a" * (MAX_NAME_GRAPHEMES + 1))
        assert exc.value.code == "NAME_TOO_LONG"

    def test_length_counts_graphemes_not_code_points(self) -> None:
        # "e" + combining acute accent: 2 code points, 1 grapheme
        name = "e\u0301" * MAX_NAME_GRAPHEMES
        assert len(name) == 2 * MAX_NAME_GRAPHEMES
        assert count_graphemes(name) == MAX_NAME_GRAPHEMES
        assert SubscriberName.parse(name)

    def test_multibyte_name_at_limit_is_valid(self) -> None:
        assert SubscriberName.parse("李" * MAX_NAME_GRAPHEMES)

    @pytest.mark.parametrize("raw", ["", " ", "\t\n  "])
    def test_blank_names_are_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationError) as exc:
            SubscriberName.parse(raw)
        assert exc.value.code == "EMPTY_NAME"
        assert exc.value.field == "name"

    @pytest.mark.parametrize("char", sorted(FORBIDDEN_NAME_CHARACTERS))
    def test_forbidden_characters_are_rejected(self, char: str) -> None:
        with pytest.raises(ValidationError) as exc:
            parse_name(f"le{char}guin")
        assert exc.value.code == "FORBIDDEN_CHARACTERS"


class TestNewSubscriber:
    def test_parse_builds_both_fields(self) -> None:
        subscriber = NewSubscriber.parse("ursula_le_guin@gmail.com", "le guin")
        assert str(subscriber.email) == "ursula_le_guin@gmail.com"
        assert str(subscriber.name) == "le guin"

    def test_email_is_checked_first(self) -> None:
        with pytest.raises(ValidationError) as exc:
            NewSubscriber.parse("", "")
        assert exc.value.field == "email"
