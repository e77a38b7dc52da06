import json
from pathlib import Path

from typer.testing import CliRunner

from putio_sync.cli.app import app
from putio_sync.exceptions import BucketNotFoundError
from putio_sync.models.config import SyncConfig
from putio_sync.models.state import DownloadState, DownloadStatus
from putio_sync.storage.store import Store

runner = CliRunner()


def _invoke(db_path: Path, *args: str):
    return runner.invoke(app, ["--db", str(db_path), *args])


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "putio-sync" in result.output


def test_current_user_set_and_show(db_path: Path, home: Path) -> None:
    result = _invoke(db_path, "current-user")
    assert result.exit_code == 0
    assert "No current user" in result.output

    result = _invoke(db_path, "current-user", "--set", "alice")
    assert result.exit_code == 0

    result = _invoke(db_path, "current-user")
    assert result.exit_code == 0
    assert result.output.strip() == "alice"


def test_db_path_from_environment(
    db_path: Path, home: Path, monkeypatch
) -> None:
    monkeypatch.setenv("PUTIO_SYNC_DB", str(db_path))
    result = runner.invoke(app, ["current-user", "--set", "carol"])
    assert result.exit_code == 0

    with Store(db_path) as store:
        assert store.get_current_user() == "carol"


def test_provision_lists_buckets(db_path: Path, home: Path) -> None:
    result = _invoke(db_path, "provision", "alice")
    assert result.exit_code == 0
    assert "download-items" in result.output
    assert "watched-torrents" in result.output


def test_config_json_falls_back_to_defaults(db_path: Path, home: Path) -> None:
    result = _invoke(db_path, "config", "alice", "--json")
    assert result.exit_code == 0

    document = json.loads(result.output)
    assert document["download-to"] == str(home / "putio-sync")
    assert document["is-paused"] is True
    assert document["poll-interval"] == "2m0s"


def test_config_uses_current_user(db_path: Path, home: Path) -> None:
    with Store(db_path) as store:
        store.save_current_user("alice")
        store.create_buckets("alice")
        store.save_config(
            SyncConfig(download_to="/srv/putio", oauth2_token="secret"), "alice"
        )

    result = _invoke(db_path, "config")
    assert result.exit_code == 0
    assert "/srv/putio" in result.output
    assert "secret" not in result.output


def test_states_table(db_path: Path, home: Path) -> None:
    with Store(db_path) as store:
        store.create_buckets("alice")
        store.save_state(
            DownloadState(
                file_id=42,
                name="visible.mkv",
                size=100,
                downloaded=100,
                status=DownloadStatus.COMPLETED,
            ),
            "alice",
        )
        store.save_state(
            DownloadState(file_id=43, name="hidden.mkv", is_hidden=True), "alice"
        )

    result = _invoke(db_path, "states", "alice")
    assert result.exit_code == 0
    assert "visible.mkv" in result.output
    assert "hidden.mkv" not in result.output


def test_states_without_user(db_path: Path, home: Path) -> None:
    result = _invoke(db_path, "states")
    assert result.exit_code == 0
    assert "No downloads" in result.output


def test_info(db_path: Path, home: Path) -> None:
    with Store(db_path) as store:
        store.save_current_user("alice")
        store.create_buckets("alice")

    result = _invoke(db_path, "info")
    assert result.exit_code == 0
    assert "alice" in result.output
    assert "download-items" in result.output


def test_store_errors_propagate(db_path: Path, home: Path, monkeypatch) -> None:
    def refuse(self, user: str) -> None:
        raise BucketNotFoundError(f"no buckets for {user}")

    monkeypatch.setattr(Store, "create_buckets", refuse)
    result = _invoke(db_path, "provision", "alice")

    assert result.exit_code == 1
    assert isinstance(result.exception, BucketNotFoundError)


def test_commands_open_the_store_once(
    db_path: Path, home: Path, monkeypatch
) -> None:
    calls = []
    original_open = Store.open

    def counting_open(self) -> None:
        calls.append(self.path)
        original_open(self)

    monkeypatch.setattr(Store, "open", counting_open)
    result = _invoke(db_path, "current-user", "--set", "alice")

    assert result.exit_code == 0
    assert calls == [db_path]
