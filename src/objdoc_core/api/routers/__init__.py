"""API routers for the Objective Documents API."""

from . import workspaces, objectives, sessions, documents

__all__ = ["workspaces", "objectives", "sessions", "documents"]
