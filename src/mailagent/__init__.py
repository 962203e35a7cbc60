"""Email-driven coding agent worker."""
