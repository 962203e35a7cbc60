"""Derive an ``AgentResult`` from the agent's ordered message stream."""

from __future__ import annotations

import re

from mailagent.agent.models import AgentMessage, AgentResult

DEFAULT_SUMMARY = "Task completed."

WRITE_TOOL_MARKERS: tuple[str, ...] = ("write", "edit", "create", "str_replace_editor")
FILE_PATH_KEYS: tuple[str, ...] = ("file_path", "path", "filename", "target_file", "destination")

DEPLOYMENT_DOMAINS: tuple[str, ...] = (
    "vercel.app",
    "netlify.app",
    "pages.dev",
    "fly.dev",
    "railway.app",
    "render.com",
    "herokuapp.com",
)

_URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+")
_TRAILING_PUNCT_RE = re.compile(r"[.,;:!?)]+$")
_TOOL_RESULT_FILE_RE = re.compile(
    r"(?:wrote|created|modified|updated|edited)\b.*?[\"']?([^\s\"']+\.[a-z]{1,10})\b[\"']?",
    re.IGNORECASE,
)


def extract_summary(messages: list[AgentMessage]) -> str:
    """Return the ``result`` message text, else the last assistant text."""
    for msg in messages:
        if msg.type == "result" and msg.result:
            return msg.result

    for msg in reversed(messages):
        if msg.is_assistant:
            text = msg.text()
            if text:
                return text

    return DEFAULT_SUMMARY


def extract_files_changed(messages: list[AgentMessage]) -> list[str]:
    """Return files the agent wrote or edited, de-duplicated, in first-seen order."""
    files: dict[str, None] = {}

    for msg in messages:
        if msg.type == "tool_use" and msg.tool_input and msg.tool_name:
            tool = msg.tool_name.lower()
            if any(marker in tool for marker in WRITE_TOOL_MARKERS):
                for key in FILE_PATH_KEYS:
                    path = msg.tool_input.get(key)
                    if isinstance(path, str) and path:
                        files[path] = None
                        break

        if msg.type == "tool_result" and msg.content:
            for match in _TOOL_RESULT_FILE_RE.finditer(str(msg.content)):
                files[match.group(1)] = None

    return list(files)


def extract_preview_urls(messages: list[AgentMessage]) -> list[str]:
    """Return deployment preview URLs mentioned by the agent."""
    urls: dict[str, None] = {}

    for msg in messages:
        if not (msg.is_assistant or msg.type == "result"):
            continue
        for url in _URL_RE.findall(msg.all_text()):
            if any(domain in url for domain in DEPLOYMENT_DOMAINS):
                urls[_TRAILING_PUNCT_RE.sub("", url)] = None

    return list(urls)


def extract_continuation_token(messages: list[AgentMessage]) -> str | None:
    """Return the first ``session_id`` the agent reported, for resuming later."""
    for msg in messages:
        if msg.session_id:
            return msg.session_id
    return None


def build_result(messages: list[AgentMessage]) -> AgentResult:
    """Assemble the full ``AgentResult`` for a completed run."""
    return AgentResult(
        summary=extract_summary(messages),
        files_changed=extract_files_changed(messages),
        preview_urls=extract_preview_urls(messages),
        agent_session_id=extract_continuation_token(messages),
    )
