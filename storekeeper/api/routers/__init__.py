"""API routers."""

from . import backup, collections, health, jobs, management, sequence

__all__ = ["backup", "collections", "health", "jobs", "management", "sequence"]
