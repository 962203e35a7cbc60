"""Write inbound email attachments into the project checkout."""

from __future__ import annotations

import base64
from pathlib import Path

import structlog

from mailagent.jobs.models import EmailAttachment

logger = structlog.get_logger()

ATTACHMENTS_DIR = ".attachments"


def save_attachments(
    attachments: list[EmailAttachment] | None, session_id: str, project_path: Path
) -> list[str]:
    """Decode *attachments* to ``<project>/.attachments/<session_id>/``.

    Only the base name of each filename is used, so an attachment cannot
    write outside its directory.

    Returns:
        The saved file paths, in attachment order.
    """
    if not attachments:
        return []

    target_dir = project_path / ATTACHMENTS_DIR / session_id
    target_dir.mkdir(parents=True, exist_ok=True)

    saved: list[str] = []
    for attachment in attachments:
        path = target_dir / (Path(attachment.filename).name or "attachment")
        path.write_bytes(base64.b64decode(attachment.content))
        saved.append(str(path))
        logger.info("Saved attachment", path=str(path))
    return saved
