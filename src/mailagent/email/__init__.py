"""Outbound email: reply models, plain-text formatting and the Resend mailer."""

from mailagent.email.formatting import from_address, reply_subject
from mailagent.email.mailer import Mailer, ResendMailer
from mailagent.email.models import EmailReply

__all__ = [
    "EmailReply",
    "Mailer",
    "ResendMailer",
    "from_address",
    "reply_subject",
]
