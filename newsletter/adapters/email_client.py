"""
HTTP email API client.

Delivers email through a Postmark-compatible HTTP API:

    POST {base_url}/email
    X-Postmark-Server-Token: <authorization token>
    {"From": ..., "To": ..., "Subject": ..., "HtmlBody": ..., "TextBody": ...}

One client (and one underlying httpx.AsyncClient connection pool) is shared
by all requests of the process. Non-2xx responses, timeouts and connection
errors come back as FAILED results. There are no retries.
"""

from __future__ import annotations

import logging

import httpx

from newsletter.core.ports.email import EmailResult
from newsletter.domain.subscriber import SubscriberEmail

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Postmark-Server-Token"


class EmailClient:
    """Implements EmailPort over HTTP."""

    def __init__(
        self,
        base_url: str,
        sender: SubscriberEmail,
        authorization_token: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self._authorization_token = authorization_token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self.timeout = timeout

    async def send_email(
        self,
        recipient: SubscriberEmail,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> EmailResult:
        payload = {
            "From": str(self.sender),
            "To": str(recipient),
            "Subject": subject,
            "HtmlBody": html_body,
            "TextBody": text_body,
        }
        try:
            response = await self._http.post(
                f"{self.base_url}/email",
                json=payload,
                headers={TOKEN_HEADER: self._authorization_token},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Email API request for {recipient} failed", exc_info=True)
            return EmailResult.failure(str(recipient), f"{type(e).__name__}: {e}")

        return EmailResult.success(str(recipient), message_id=self._message_id(response))

    @staticmethod
    def _message_id(response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("MessageID") if isinstance(body, dict) else None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
