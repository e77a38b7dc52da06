from collections.abc import Iterator
from pathlib import Path

import pytest

from putio_sync.storage.store import Store


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "putio-sync.db"


@pytest.fixture
def store(db_path: Path, home: Path) -> Iterator[Store]:
    s = Store(db_path)
    s.open()
    yield s
    s.close()
