"""
Defines custom exceptions for the store to allow for more specific error handling.
"""


class PutioSyncError(Exception):
    """Base exception for all application-specific errors."""


class StorageUnavailableError(PutioSyncError):
    """
    Raised when the database file cannot be opened or locked in time, or when an
    operation is attempted on a store that is not open.
    """


class BucketNotFoundError(PutioSyncError):
    """Raised when writing to a user whose namespaces were never provisioned."""


class StateNotFoundError(PutioSyncError):
    """Raised when no download state exists for the given user and file ID."""


class ConfigNotFoundError(PutioSyncError):
    """Raised internally when a user has no stored configuration."""


class SerializationError(PutioSyncError):
    """Raised when a record cannot be encoded or decoded."""


class EnvironmentResolutionError(PutioSyncError):
    """Raised when the host account's home directory cannot be determined."""
