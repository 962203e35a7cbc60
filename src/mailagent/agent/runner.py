"""Adapter driving the external coding agent CLI.

The CLI prints one JSON event per line.  A reader thread parses each line and
puts it on a ``queue.Queue`` channel, followed by a completion sentinel when
stdout closes; the caller drains the channel in order.  An ``error`` event
aborts the run with ``AgentError``.
"""

from __future__ import annotations

import queue
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Protocol

import structlog
from pydantic import ValidationError

from mailagent.agent.extract import build_result
from mailagent.agent.models import AgentMessage, AgentResult
from mailagent.domain.errors import AgentError

logger = structlog.get_logger()

# Marks the end of the agent's output on a channel.
COMPLETE = object()

Channel = queue.Queue  # of AgentMessage | COMPLETE


class AgentRunner(Protocol):
    """Anything that can run the coding agent against a checkout."""

    def run(
        self,
        prompt: str,
        cwd: Path,
        *,
        resume_token: str | None = None,
        plan_only: bool = False,
    ) -> AgentResult: ...


def collect_messages(channel: Channel, timeout: float | None = None) -> list[AgentMessage]:
    """Drain *channel* until the completion sentinel, preserving order.

    Args:
        channel: Queue fed by the agent's reader thread.
        timeout: Overall deadline in seconds, or ``None`` to wait forever.

    Returns:
        Every message received before completion.

    Raises:
        AgentError: On an ``error`` event or when the deadline passes.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    messages: list[AgentMessage] = []

    while True:
        remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
        try:
            item = channel.get(timeout=remaining)
        except queue.Empty as exc:
            msg = f"Agent did not finish within {timeout} seconds"
            raise AgentError(msg) from exc

        if item is COMPLETE:
            return messages

        if item.type == "error":
            detail = item.text() or item.error or "Unknown error"
            raise AgentError(f"Agent error: {detail}")
        messages.append(item)


def _pump_stdout(stream: IO[str], channel: Channel) -> None:
    try:
        for line in stream:
            line = line.strip()
            if not line:
                continue
            try:
                channel.put(AgentMessage.model_validate_json(line))
            except ValidationError:
                logger.warning("Skipping unparseable agent output", line=line[:200])
    finally:
        channel.put(COMPLETE)


def _pump_stderr(stream: IO[str], sink: list[str]) -> None:
    for line in stream:
        sink.append(line)


class ClaudeCodeRunner:
    """Runs the ``claude`` CLI in print mode with streamed JSON output.

    Args:
        command: Executable to launch.
        model: Optional model override passed as ``--model``.
        timeout_seconds: Deadline for one run; ``None`` disables it.
    """

    def __init__(
        self,
        command: str = "claude",
        *,
        model: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._command = command
        self._model = model
        self._timeout = timeout_seconds

    def build_args(
        self, prompt: str, *, resume_token: str | None = None, plan_only: bool = False
    ) -> list[str]:
        """Return the full argv for one run."""
        args = [self._command, "-p", "--verbose", "--output-format", "stream-json"]
        if self._model:
            args += ["--model", self._model]
        args += ["--permission-mode", "plan" if plan_only else "bypassPermissions"]
        if resume_token:
            args += ["--resume", resume_token]
        args.append(prompt)
        return args

    def stream(
        self,
        prompt: str,
        cwd: Path,
        *,
        resume_token: str | None = None,
        plan_only: bool = False,
    ) -> tuple[subprocess.Popen[str], Channel, list[str]]:
        """Start the agent and return ``(process, channel, stderr_lines)``."""
        args = self.build_args(prompt, resume_token=resume_token, plan_only=plan_only)
        logger.info(
            "Starting agent",
            cwd=str(cwd),
            resume=resume_token is not None,
            plan_only=plan_only,
        )
        try:
            process = subprocess.Popen(
                args,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as exc:
            raise AgentError(f"Could not start agent: {exc}") from exc

        channel: Channel = queue.Queue()
        stderr_lines: list[str] = []
        threading.Thread(
            target=_pump_stdout, args=(process.stdout, channel), daemon=True
        ).start()
        threading.Thread(
            target=_pump_stderr, args=(process.stderr, stderr_lines), daemon=True
        ).start()
        return process, channel, stderr_lines

    def run(
        self,
        prompt: str,
        cwd: Path,
        *,
        resume_token: str | None = None,
        plan_only: bool = False,
    ) -> AgentResult:
        """Run the agent to completion and summarize its output.

        Raises:
            AgentError: If the agent reports an error, exits non-zero, or
                overruns the timeout.
        """
        process, channel, stderr_lines = self.stream(
            prompt, cwd, resume_token=resume_token, plan_only=plan_only
        )
        try:
            messages = collect_messages(channel, timeout=self._timeout)
        except AgentError:
            process.kill()
            process.wait()
            raise

        returncode = process.wait()
        if returncode != 0:
            tail = "".join(stderr_lines[-20:]).strip() or f"exit code {returncode}"
            raise AgentError(f"Agent exited with {returncode}: {tail}")

        result = build_result(messages)
        logger.info(
            "Agent finished",
            files_changed=len(result.files_changed),
            agent_session_id=result.agent_session_id,
        )
        return result
