"""Per-job orchestration: session resolution, agent runs and replies."""

from mailagent.handlers.attachments import save_attachments
from mailagent.handlers.email_job import EmailJobHandler, JobContext

__all__ = ["EmailJobHandler", "JobContext", "save_attachments"]
