"""
Subscription API tests.

Full stack: FastAPI app over a migrated SQLite file, with the dev email
adapter standing in for the email API.
"""

import re
import sqlite3
from collections.abc import Iterator
from urllib.parse import urlsplit

import pytest
from fastapi.testclient import TestClient

from newsletter.adapters.dev_email import DevEmailAdapter
from newsletter.api.deps import get_email_sender
from newsletter.api.main import create_app
from newsletter.config.models import AppConfig
from newsletter.core.ports.email import EmailResult
from newsletter.domain.subscriber import SubscriberEmail

URL_PATTERN = re.compile(r"https?://[^\s\"'<>]+")
VALID_FORM = {"name": "le guin", "email": "ursula_le_guin@gmail.com"}


class FailingEmailSender:
    async def send_email(
        self,
        recipient: SubscriberEmail,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> EmailResult:
        return EmailResult.failure(str(recipient), "500 Internal Server Error")


@pytest.fixture
def dev_email() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def client(app_config: AppConfig, dev_email: DevEmailAdapter) -> Iterator[TestClient]:
    with TestClient(create_app(app_config, email_sender=dev_email)) as client:
        yield client


def fetch_all(db_path: str, sql: str) -> list[tuple]:
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


def confirmation_link(dev_email: DevEmailAdapter) -> str:
    email = dev_email.get_last_email()
    assert email is not None
    links = URL_PATTERN.findall(email.text_body)
    assert len(links) == 1
    parts = urlsplit(links[0])
    return f"{parts.path}?{parts.query}"


class TestSubscribeEndpoint:
    """Tests for POST /subscriptions."""

    def test_valid_form_returns_200_and_stores_pending_subscriber(
        self, client: TestClient, db_path: str
    ) -> None:
        response = client.post("/subscriptions", data=VALID_FORM)

        assert response.status_code == 200
        assert response.json()["success"] is True
        rows = fetch_all(db_path, "SELECT email, name, status FROM subscriptions")
        assert rows == [("ursula_le_guin@gmail.com", "le guin", "pending_confirmation")]
        tokens = fetch_all(db_path, "SELECT subscription_token FROM subscription_tokens")
        assert len(tokens) == 1
        assert len(tokens[0][0]) == 25

    def test_sends_confirmation_email_with_one_link(
        self, client: TestClient, dev_email: DevEmailAdapter, db_path: str
    ) -> None:
        client.post("/subscriptions", data=VALID_FORM)

        assert dev_email.email_count == 1
        email = dev_email.get_last_email()
        assert email is not None
        assert email.recipient == "ursula_le_guin@gmail.com"
        html_links = URL_PATTERN.findall(email.html_body)
        text_links = URL_PATTERN.findall(email.text_body)
        assert len(html_links) == 1
        assert html_links == text_links
        token = fetch_all(db_path, "SELECT subscription_token FROM subscription_tokens")[0][0]
        assert text_links[0] == (
            f"http://127.0.0.1:8000/subscriptions/confirm?subscription_token={token}"
        )

    @pytest.mark.parametrize(
        "form",
        [
            {"name": "le guin"},
            {"email": "ursula_le_guin@gmail.com"},
            {},
            {"name": "", "email": "ursula_le_guin@gmail.com"},
            {"name": "Ursula", "email": ""},
            {"name": "Ursula", "email": "definitely-not-an-email"},
            {"name": " ", "email": "ursula_le_guin@gmail.com"},
            {"name": "<script>", "email": "ursula_le_guin@gmail.com"},
            {"name": "a" * 257, "email": "ursula_le_guin@gmail.com"},
        ],
    )
    def test_invalid_form_returns_400(
        self,
        client: TestClient,
        dev_email: DevEmailAdapter,
        db_path: str,
        form: dict[str, str],
    ) -> None:
        response = client.post("/subscriptions", data=form)

        assert response.status_code == 400
        assert fetch_all(db_path, "SELECT id FROM subscriptions") == []
        assert dev_email.email_count == 0

    def test_duplicate_email_returns_500(self, client: TestClient) -> None:
        assert client.post("/subscriptions", data=VALID_FORM).status_code == 200

        response = client.post("/subscriptions", data=VALID_FORM)

        assert response.status_code == 500

    def test_storage_failure_returns_500_without_email(
        self, client: TestClient, dev_email: DevEmailAdapter, db_path: str
    ) -> None:
        conn = sqlite3.connect(db_path)
        conn.execute("DROP TABLE subscription_tokens")
        conn.commit()
        conn.close()

        response = client.post("/subscriptions", data=VALID_FORM)

        assert response.status_code == 500
        assert fetch_all(db_path, "SELECT id FROM subscriptions") == []
        assert dev_email.email_count == 0

    def test_email_failure_returns_500_but_keeps_subscriber(
        self, client: TestClient, db_path: str
    ) -> None:
        client.app.dependency_overrides[get_email_sender] = lambda: FailingEmailSender()

        response = client.post("/subscriptions", data=VALID_FORM)

        assert response.status_code == 500
        assert "500 Internal Server Error" not in response.text
        rows = fetch_all(db_path, "SELECT status FROM subscriptions")
        assert rows == [("pending_confirmation",)]


class TestConfirmEndpoint:
    """Tests for GET /subscriptions/confirm."""

    def test_link_from_email_confirms_subscriber(
        self, client: TestClient, dev_email: DevEmailAdapter, db_path: str
    ) -> None:
        client.post("/subscriptions", data=VALID_FORM)

        response = client.get(confirmation_link(dev_email))

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert fetch_all(db_path, "SELECT status FROM subscriptions") == [("confirmed",)]

    def test_clicking_twice_is_ok(
        self, client: TestClient, dev_email: DevEmailAdapter, db_path: str
    ) -> None:
        client.post("/subscriptions", data=VALID_FORM)
        link = confirmation_link(dev_email)

        assert client.get(link).status_code == 200
        assert client.get(link).status_code == 200
        assert fetch_all(db_path, "SELECT status FROM subscriptions") == [("confirmed",)]

    def test_missing_token_returns_400(self, client: TestClient) -> None:
        response = client.get("/subscriptions/confirm")

        assert response.status_code == 400

    def test_unknown_token_returns_401(self, client: TestClient) -> None:
        response = client.get(
            "/subscriptions/confirm", params={"subscription_token": "does-not-exist"}
        )

        assert response.status_code == 401

    def test_storage_failure_returns_500(self, client: TestClient, db_path: str) -> None:
        conn = sqlite3.connect(db_path)
        conn.execute("DROP TABLE subscription_tokens")
        conn.commit()
        conn.close()

        response = client.get("/subscriptions/confirm", params={"subscription_token": "abc"})

        assert response.status_code == 500
