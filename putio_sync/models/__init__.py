"""
Data Models Layer.

This package contains the Pydantic models for the records kept by the store:
the per-user sync configuration and per-file download states.
"""

from .config import SyncConfig
from .state import DownloadState, DownloadStatus

__all__ = ["DownloadState", "DownloadStatus", "SyncConfig"]
