"""Candidate list persistence tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from envsync.state import CandidateStore, MissingStateError, StateError


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    """Ensure saved paths come back in order with the scanned root."""
    store = CandidateStore(tmp_path / "state" / "env-files.json")
    files = [tmp_path / "b" / ".env", tmp_path / "a" / ".env.local"]

    store.save(files, scanned_root=tmp_path)
    loaded = store.load()

    assert loaded.files == [str(path) for path in files]
    assert loaded.scanned_root == str(tmp_path)
    assert store.paths() == files


def test_file_format_keeps_files_key(tmp_path: Path) -> None:
    """The JSON document exposes the list under ``files``."""
    store = CandidateStore(tmp_path / "env-files.json")

    store.save([tmp_path / ".env"])

    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data["files"] == [str(tmp_path / ".env")]


def test_legacy_document_without_metadata_loads(tmp_path: Path) -> None:
    """Lists written with only a ``files`` key remain readable."""
    path = tmp_path / "env-files.json"
    path.write_text(json.dumps({"files": ["/srv/app/.env"]}), encoding="utf-8")

    assert CandidateStore(path).paths() == [Path("/srv/app/.env")]


def test_missing_file(tmp_path: Path) -> None:
    """A missing list is empty for ``paths`` and an error for ``load``."""
    store = CandidateStore(tmp_path / "absent.json")

    assert store.paths() == []
    with pytest.raises(MissingStateError):
        store.load()


@pytest.mark.parametrize("content", ["{not json", json.dumps({"files": "nope"}), "[]"])
def test_invalid_data_raises_state_error(tmp_path: Path, content: str) -> None:
    """Corrupted lists surface as ``StateError``."""
    path = tmp_path / "env-files.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StateError):
        CandidateStore(path).paths()


def test_default_location_follows_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    assert CandidateStore().path == tmp_path / ".env-sync" / "env-files.json"
