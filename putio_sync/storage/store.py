"""
Per-user persistent storage for the sync agent's configuration, download states
and the current-user pointer.

Layout inside the database file:

    defaults/
        current-user        -> user name
    <user>/
        download-items/     -> file ID key -> DownloadState
        watched-torrents/   -> owned by the torrent watcher
        config              -> SyncConfig
"""

import logging
from pathlib import Path

from putio_sync.exceptions import (
    BucketNotFoundError,
    ConfigNotFoundError,
    EnvironmentResolutionError,
    StateNotFoundError,
)
from putio_sync.models.config import SyncConfig, default_config
from putio_sync.models.state import DownloadState

from .codec import decode_record, encode_id, encode_record
from .engine import DEFAULT_OPEN_TIMEOUT, Bucket, BucketDB, Transaction

log = logging.getLogger(__name__)

DEFAULTS_BUCKET = b"defaults"
DOWNLOAD_ITEMS_BUCKET = b"download-items"
WATCHED_TORRENTS_BUCKET = b"watched-torrents"
USER_BUCKETS = (DOWNLOAD_ITEMS_BUCKET, WATCHED_TORRENTS_BUCKET)

CONFIG_KEY = b"config"
CURRENT_USER_KEY = b"current-user"


class Store:
    """
    Persistent storage for user configuration and download states.

    Every save runs in exactly one write transaction and every lookup in one
    read transaction; nothing is cached between calls.
    """

    def __init__(self, path: Path | str, timeout: float = DEFAULT_OPEN_TIMEOUT):
        self._path = Path(path)
        self._db = BucketDB(self._path, timeout=timeout)

    @property
    def path(self) -> Path:
        """The full path of the database file."""
        return self._path

    def open(self) -> None:
        """
        Acquires the database handle and creates the default bucket.

        Raises:
            StorageUnavailableError: If the file cannot be opened or locked.
        """
        self._db.open()
        try:
            with self._db.update() as tx:
                tx.create_bucket_if_not_exists(DEFAULTS_BUCKET)
        except Exception:
            self._db.close()
            raise
        log.debug(f"Store opened at '{self._path}'.")

    def close(self) -> None:
        """Releases the database handle. Closing twice is a no-op."""
        self._db.close()

    def __enter__(self) -> "Store":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # --- Provisioning ---

    def create_buckets(self, user: str) -> None:
        """Creates the user's bucket and its child buckets if they don't exist."""
        with self._db.update() as tx:
            user_bkt = tx.create_bucket_if_not_exists(_user_key(user))
            for name in USER_BUCKETS:
                user_bkt.create_bucket_if_not_exists(name)
        log.debug(f"Provisioned buckets for user '{user}'.")

    def buckets(self, user: str) -> list[str]:
        """Returns the names of the user's child buckets."""
        if not user:
            return []
        with self._db.view() as tx:
            user_bkt = tx.bucket(_user_key(user))
            if user_bkt is None:
                return []
            return [name.decode("utf-8") for name in user_bkt.bucket_names()]

    # --- Download states ---

    def save_state(self, state: DownloadState, user: str) -> None:
        """
        Inserts or updates the given state.

        Raises:
            BucketNotFoundError: If the user's buckets were never created.
        """
        value = encode_record(state)
        with self._db.update() as tx:
            downloads_bkt = _require_bucket(tx, user, DOWNLOAD_ITEMS_BUCKET)
            downloads_bkt.put(encode_id(state.file_id), value)
        log.debug(f"Saved state of file {state.file_id} for user '{user}'.")

    def get_state(self, file_id: int, user: str) -> DownloadState:
        """
        Returns the state of the given file.

        Raises:
            StateNotFoundError: If no state is stored for the file.
            SerializationError: If the stored record cannot be decoded.
        """
        with self._db.view() as tx:
            downloads_bkt = _find_bucket(tx, user, DOWNLOAD_ITEMS_BUCKET)
            value = downloads_bkt.get(encode_id(file_id)) if downloads_bkt else None
            if value is None:
                raise StateNotFoundError(
                    f"No state for file {file_id} of user '{user}'."
                )
            return decode_record(DownloadState, value)

    def list_states(self, user: str) -> list[DownloadState]:
        """
        Returns the user's visible states in ascending file ID order.

        Hidden states are skipped. A record that fails to decode aborts the
        whole listing.
        """
        states: list[DownloadState] = []
        if not user:
            return states

        with self._db.view() as tx:
            downloads_bkt = _find_bucket(tx, user, DOWNLOAD_ITEMS_BUCKET)
            if downloads_bkt is None:
                return states
            for _, value in downloads_bkt.items():
                state = decode_record(DownloadState, value)
                if state.is_hidden:
                    continue
                states.append(state)
        return states

    # --- Configuration ---

    def get_config(self, user: str) -> SyncConfig:
        """
        Returns the user's configuration, or the default configuration when the
        user is empty or has nothing stored.
        """
        if not user:
            return self.default_config()

        try:
            return self._load_config(user)
        except ConfigNotFoundError:
            log.debug(f"No stored configuration for '{user}', using defaults.")
            return self.default_config()

    def _load_config(self, user: str) -> SyncConfig:
        with self._db.view() as tx:
            user_bkt = tx.bucket(_user_key(user))
            value = user_bkt.get(CONFIG_KEY) if user_bkt else None
            if value is None:
                raise ConfigNotFoundError(f"No configuration for user '{user}'.")
            return decode_record(SyncConfig, value)

    def save_config(self, config: SyncConfig, user: str) -> None:
        """
        Stores the configuration of the given user.

        Raises:
            BucketNotFoundError: If the user's buckets were never created.
        """
        value = encode_record(config)
        with self._db.update() as tx:
            user_bkt = tx.bucket(_user_key(user)) if user else None
            if user_bkt is None:
                raise BucketNotFoundError(
                    f"Buckets for user '{user}' do not exist. Provision the user first."
                )
            user_bkt.put(CONFIG_KEY, value)
        log.debug(f"Saved configuration for user '{user}'.")

    def default_config(self) -> SyncConfig:
        """
        Computes the default configuration from the current account's home
        directory.

        Raises:
            EnvironmentResolutionError: If the home directory cannot be resolved.
        """
        try:
            home = Path.home()
        except (RuntimeError, KeyError, OSError) as e:
            raise EnvironmentResolutionError(
                f"Could not determine the home directory: {e}"
            ) from e
        return default_config(home)

    # --- Current user ---

    def get_current_user(self) -> str:
        """Returns the last logged-in user, or an empty string if none."""
        with self._db.view() as tx:
            defaults_bkt = tx.bucket(DEFAULTS_BUCKET)
            value = defaults_bkt.get(CURRENT_USER_KEY) if defaults_bkt else None
        return value.decode("utf-8") if value else ""

    def save_current_user(self, user: str) -> None:
        """
        Stores the last logged-in user, which decides whose buckets are active.
        """
        with self._db.update() as tx:
            defaults_bkt = tx.create_bucket_if_not_exists(DEFAULTS_BUCKET)
            defaults_bkt.put(CURRENT_USER_KEY, user.encode("utf-8"))
        log.debug(f"Current user set to '{user}'.")


def _user_key(user: str) -> bytes:
    return user.encode("utf-8")


def _find_bucket(tx: Transaction, user: str, name: bytes) -> Bucket | None:
    """Looks up a child bucket of the user's bucket."""
    if not user:
        return None
    user_bkt = tx.bucket(_user_key(user))
    return user_bkt.bucket(name) if user_bkt else None


def _require_bucket(tx: Transaction, user: str, name: bytes) -> Bucket:
    bucket = _find_bucket(tx, user, name)
    if bucket is None:
        raise BucketNotFoundError(
            f"Bucket '{name.decode()}' for user '{user}' does not exist. "
            "Provision the user first."
        )
    return bucket
