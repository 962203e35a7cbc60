"""Coding agent adapter: prompts, streamed-output models and the CLI runner."""

from mailagent.agent.extract import build_result
from mailagent.agent.models import AgentMessage, AgentResult
from mailagent.agent.runner import AgentRunner, ClaudeCodeRunner, collect_messages

__all__ = [
    "AgentMessage",
    "AgentResult",
    "AgentRunner",
    "ClaudeCodeRunner",
    "build_result",
    "collect_messages",
]
