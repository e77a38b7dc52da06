"""
Pydantic model for the sync agent's per-user configuration.
Provides validation for all settings and the built-in defaults.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
)

from putio_sync.exceptions import SerializationError
from putio_sync.utils.duration import format_duration, parse_duration

APP_DIR_NAME = "putio-sync"

# Built-in defaults
DEFAULT_SEGMENTS_PER_FILE = 3
DEFAULT_MAX_PARALLEL_FILES = 2
DEFAULT_DOWNLOAD_FROM = -1  # -1 means "no folder filter"
DEFAULT_POLL_INTERVAL = timedelta(minutes=2)

LIMIT_SEGMENTS_PER_FILE = 8
LIMIT_PARALLEL_FILES = 8


class SyncConfig(BaseModel):
    """A validated configuration model for one user's sync agent."""

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
    )

    # Walk the download_from folder every poll_interval
    poll_interval: timedelta = Field(DEFAULT_POLL_INTERVAL, alias="poll-interval")

    # Local destination directory
    download_to: str = Field("", alias="download-to")

    # Only download files under this remote folder ID
    download_from: int = Field(DEFAULT_DOWNLOAD_FROM, alias="download-from")

    # Parallelism
    segments_per_file: int = Field(
        DEFAULT_SEGMENTS_PER_FILE, alias="segments-per-file"
    )
    max_parallel_files: int = Field(
        DEFAULT_MAX_PARALLEL_FILES, alias="max-parallel-files"
    )

    oauth2_token: str = Field("", alias="oauth2-token", repr=False)

    # Watch a local folder for new .torrent files
    watch_torrents_folder: bool = Field(False, alias="watch-torrents-folder")
    torrents_folder: str = Field("", alias="torrents-folder")

    is_paused: bool = Field(False, alias="is-paused")
    delete_remote_file: bool = Field(False, alias="delete-remotefile")

    @field_validator("poll_interval", mode="before")
    @classmethod
    def parse_poll_interval(cls, v: Any) -> Any:
        """Accepts Go-style duration strings in addition to timedelta values."""
        if isinstance(v, str):
            if not v.strip():
                return DEFAULT_POLL_INTERVAL
            return parse_duration(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            try:
                return timedelta(seconds=v)
            except OverflowError as e:
                raise ValueError(f"Poll interval {v} is out of range.") from e
        return v

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: timedelta) -> timedelta:
        """Ensures the poll interval is not negative."""
        if v < timedelta(0):
            raise ValueError("Poll interval cannot be negative.")
        return v

    @field_validator("segments_per_file")
    @classmethod
    def validate_segments(cls, v: int) -> int:
        """Ensures a reasonable number of connections per file."""
        if v < 1 or v > LIMIT_SEGMENTS_PER_FILE:
            raise ValueError(
                f"Segments per file must be between 1 and {LIMIT_SEGMENTS_PER_FILE}."
            )
        return v

    @field_validator("max_parallel_files")
    @classmethod
    def validate_parallel_files(cls, v: int) -> int:
        """Ensures a reasonable number of parallel file downloads."""
        if v < 1 or v > LIMIT_PARALLEL_FILES:
            raise ValueError(
                f"Max parallel files must be between 1 and {LIMIT_PARALLEL_FILES}."
            )
        return v

    @field_serializer("poll_interval", when_used="json")
    def serialize_poll_interval(self, v: timedelta) -> str:
        return format_duration(v)

    def to_json(self) -> str:
        """Returns the hyphenated JSON form used by the agent's front end."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "SyncConfig":
        """
        Parses the hyphenated JSON form.

        Raises:
            SerializationError: If the document is malformed or fails validation.
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise SerializationError(f"Invalid configuration document:\n{e}") from e


def default_config(home_dir: Path) -> SyncConfig:
    """Builds the configuration used when a user has nothing stored."""
    return SyncConfig(
        poll_interval=DEFAULT_POLL_INTERVAL,
        download_to=str(home_dir / APP_DIR_NAME),
        download_from=DEFAULT_DOWNLOAD_FROM,
        segments_per_file=DEFAULT_SEGMENTS_PER_FILE,
        max_parallel_files=DEFAULT_MAX_PARALLEL_FILES,
        is_paused=True,
        watch_torrents_folder=False,
        torrents_folder="",
    )
