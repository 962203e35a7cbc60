"""Intent classification for inbound emails: subject commands and phrase triggers."""

from mailagent.commands.intent import (
    detect_approval,
    detect_cancellation,
    detect_plan_trigger,
    detect_revision,
)
from mailagent.commands.parser import parse_command, strip_command_tokens

__all__ = [
    "detect_approval",
    "detect_cancellation",
    "detect_plan_trigger",
    "detect_revision",
    "parse_command",
    "strip_command_tokens",
]
