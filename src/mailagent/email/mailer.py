"""Deliver replies through the Resend HTTP API."""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from mailagent.email.models import EmailReply
from mailagent.resilience.retry import resilient_api_call

logger = structlog.get_logger()

RESEND_API_URL = "https://api.resend.com/emails"


class Mailer(Protocol):
    def send(self, reply: EmailReply, from_email: str) -> None: ...


def build_payload(reply: EmailReply, from_email: str) -> dict[str, Any]:
    """Return the Resend request body for *reply*."""
    payload: dict[str, Any] = {
        "from": from_email,
        "to": [reply.to],
        "subject": reply.subject,
        "text": reply.text,
    }
    if reply.html:
        payload["html"] = reply.html
    if reply.in_reply_to:
        payload["headers"] = {
            "In-Reply-To": reply.in_reply_to,
            "References": reply.in_reply_to,
        }
    return payload


class ResendMailer:
    """Send replies with a bearer-authenticated POST to Resend.

    Args:
        api_key: Resend API key.
        client: Optional ``httpx.Client``; one is created if omitted.
        api_url: Endpoint override, for tests.
    """

    def __init__(
        self,
        api_key: str,
        *,
        client: httpx.Client | None = None,
        api_url: str = RESEND_API_URL,
    ) -> None:
        self._api_key = api_key
        self._client = client or httpx.Client(timeout=30.0)
        self._api_url = api_url

    @resilient_api_call("resend")
    def send(self, reply: EmailReply, from_email: str) -> None:
        """Send *reply*.

        Raises:
            httpx.HTTPError: If every attempt fails.
        """
        response = self._client.post(
            self._api_url,
            json=build_payload(reply, from_email),
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        response.raise_for_status()
        logger.info("Reply sent", to=reply.to, subject=reply.subject)

    def close(self) -> None:
        self._client.close()
