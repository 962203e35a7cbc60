"""Pydantic v2 model for outbound replies."""

from pydantic import BaseModel, ConfigDict


class EmailReply(BaseModel):
    """A reply threaded under the sender's original email.

    When ``in_reply_to`` is set it is sent as both ``In-Reply-To`` and
    ``References`` so mail clients keep the conversation together.
    """

    model_config = ConfigDict(frozen=True)

    to: str
    subject: str
    text: str
    in_reply_to: str | None = None  # RFC 2822 Message-ID
    html: str | None = None
