"""Objective document lifecycle: workspaces, objectives, versioned documents and sessions."""

__version__ = "1.0.0"
