import json
from datetime import timedelta

import pytest
from pydantic import ValidationError

from putio_sync.exceptions import SerializationError
from putio_sync.models.config import SyncConfig, default_config
from putio_sync.models.state import DownloadState, DownloadStatus


def test_config_accepts_duration_strings() -> None:
    assert SyncConfig(poll_interval="1h30m").poll_interval == timedelta(minutes=90)
    assert SyncConfig(poll_interval=45).poll_interval == timedelta(seconds=45)
    assert SyncConfig(poll_interval="").poll_interval == timedelta(minutes=2)


def test_config_rejects_bad_duration() -> None:
    with pytest.raises(ValidationError):
        SyncConfig(poll_interval="soon")
    with pytest.raises(ValidationError):
        SyncConfig(poll_interval="-1m")


@pytest.mark.parametrize("field", ["segments_per_file", "max_parallel_files"])
@pytest.mark.parametrize("value", [0, 9])
def test_config_limits(field: str, value: int) -> None:
    with pytest.raises(ValidationError):
        SyncConfig(**{field: value})


def test_config_validates_assignment() -> None:
    config = SyncConfig()
    with pytest.raises(ValidationError):
        config.segments_per_file = 20


def test_config_json_uses_hyphenated_keys() -> None:
    config = SyncConfig(
        poll_interval=timedelta(minutes=3),
        download_to="/data",
        oauth2_token="tok",
        delete_remote_file=True,
    )
    document = json.loads(config.to_json())

    assert document["poll-interval"] == "3m0s"
    assert document["download-to"] == "/data"
    assert document["oauth2-token"] == "tok"
    assert document["delete-remotefile"] is True
    assert SyncConfig.from_json(config.to_json()) == config


def test_config_from_json_fills_missing_keys() -> None:
    config = SyncConfig.from_json('{"download-to": "/x", "is-paused": true}')

    assert config.download_to == "/x"
    assert config.is_paused is True
    assert config.segments_per_file == 3
    assert config.download_from == -1


def test_config_from_invalid_json() -> None:
    with pytest.raises(SerializationError):
        SyncConfig.from_json('{"segments-per-file": 100}')
    with pytest.raises(SerializationError):
        SyncConfig.from_json("not json")


def test_config_repr_hides_token() -> None:
    assert "secret" not in repr(SyncConfig(oauth2_token="secret"))


def test_default_config_uses_home(tmp_path) -> None:
    config = default_config(tmp_path)
    assert config.download_to == str(tmp_path / "putio-sync")
    assert config.is_paused is True


def test_state_requires_int64_id() -> None:
    with pytest.raises(ValidationError):
        DownloadState(file_id=2**63)
    with pytest.raises(ValidationError):
        DownloadState(file_id=-(2**63) - 1)


def test_state_progress() -> None:
    assert DownloadState(file_id=1, size=200, downloaded=50).progress == 0.25
    assert DownloadState(file_id=1, size=0).progress == 0.0
    assert (
        DownloadState(file_id=1, size=0, status=DownloadStatus.COMPLETED).progress
        == 1.0
    )


def test_config_rejects_out_of_range_poll_interval() -> None:
    with pytest.raises(ValidationError):
        SyncConfig(poll_interval=1e300)
    with pytest.raises(ValidationError):
        SyncConfig(poll_interval="3000000h")
    with pytest.raises(SerializationError):
        SyncConfig.from_json('{"poll-interval": 1e300}')
    with pytest.raises(SerializationError):
        SyncConfig.from_json('{"poll-interval": "99999999999999h"}')


def test_config_keeps_surrounding_whitespace() -> None:
    config = SyncConfig(
        download_to=" /data/my files ",
        torrents_folder="/torrents\t",
        oauth2_token=" tok ",
    )
    assert config.download_to == " /data/my files "
    assert config.torrents_folder == "/torrents\t"
    assert config.oauth2_token == " tok "
    assert SyncConfig.from_json(config.to_json()) == config
