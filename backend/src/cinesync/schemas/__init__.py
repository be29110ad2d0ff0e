"""Pydantic schemas for API responses."""

from cinesync.schemas.sync import SyncError, SyncReport

__all__ = ["SyncError", "SyncReport"]
