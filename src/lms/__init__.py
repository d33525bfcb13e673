"""lms: operator CLI for a local model server, with a paste-aware chat input."""

__version__ = "0.1.0"
