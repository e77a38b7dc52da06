"""
putio-sync store.

Per-user persistence of sync agent configuration and download states.
"""

__version__ = "0.3.0"
