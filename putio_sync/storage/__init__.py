"""
Storage Layer.

This package handles all data persistence: the bucket engine on top of a single
SQLite file, the record codec, and the per-user Store.
"""

from .engine import BucketDB
from .store import Store

__all__ = ["BucketDB", "Store"]
