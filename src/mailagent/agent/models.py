"""Pydantic models for the coding agent's streamed output.

The agent emits one JSON object per line.  Only the fields the worker reads
are modelled; anything else is kept as extra data.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentBlock(BaseModel):
    """One block of a nested ``message.content`` array."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    text: str | None = None


class NestedMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    content: list[ContentBlock] | str | None = None


class AgentMessage(BaseModel):
    """A single streamed agent event (``system``, ``assistant``, ``tool_use``,
    ``tool_result``, ``result`` or ``error``)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str
    sender: str | None = Field(default=None, alias="from")
    content: Any = None
    result: str | None = None
    error: str | None = None
    session_id: str | None = None
    tool_name: str | None = None
    tool_input: dict[str, Any] | None = None
    message: NestedMessage | None = None

    @property
    def is_assistant(self) -> bool:
        return self.type == "assistant" or self.sender == "assistant"

    def text(self) -> str | None:
        """Return the message's text: direct content first, then nested blocks."""
        if isinstance(self.content, str) and self.content:
            return self.content
        if self.message is not None:
            if isinstance(self.message.content, str) and self.message.content:
                return self.message.content
            if isinstance(self.message.content, list):
                for block in self.message.content:
                    if block.type == "text" and block.text:
                        return block.text
        return None

    def all_text(self) -> str:
        """Return every text fragment of the message joined by spaces."""
        parts: list[str] = []
        if isinstance(self.content, str):
            parts.append(self.content)
        if self.message is not None and isinstance(self.message.content, list):
            parts.extend(b.text for b in self.message.content if b.type == "text" and b.text)
        if self.result:
            parts.append(self.result)
        return " ".join(parts)


class AgentResult(BaseModel):
    """What the worker keeps from one agent run."""

    summary: str
    files_changed: list[str] = Field(default_factory=list)
    preview_urls: list[str] = Field(default_factory=list)
    agent_session_id: str | None = None
