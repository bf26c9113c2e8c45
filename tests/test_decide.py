"""Decision rule tests for the reconciliation engine."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from envsync.identity import FileIdentity
from envsync.reconcile import (
    DRY_RUN_SUFFIX,
    LocalFile,
    SyncAction,
    decide,
    describe,
    format_outcome_line,
)
from envsync.store import FileRecord, TimestampParseError, format_timestamp

PROPERTY_SETTINGS = settings(
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

_IDENTITY = FileIdentity("github.com/acme/api", ".env")
_BASE = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
_HASH = st.text(alphabet="abcdef0123456789", min_size=4, max_size=12)
_MOMENT = st.datetimes(
    min_value=datetime(2000, 1, 1), max_value=datetime(2100, 1, 1), timezones=st.just(timezone.utc)
).map(lambda value: value.replace(microsecond=0))


def _local(content_hash: str, modified_at: datetime) -> LocalFile:
    return LocalFile(
        absolute_path=Path("/work/api/.env"),
        identity=_IDENTITY,
        plaintext=b"",
        content_hash=content_hash,
        modified_at=modified_at,
    )


def _remote(content_hash: str, modified_at: datetime | str) -> FileRecord:
    stamp = modified_at if isinstance(modified_at, str) else format_timestamp(modified_at)
    return FileRecord(
        scope_key=_IDENTITY.scope_key,
        relative_path=_IDENTITY.relative_path,
        content_hash=content_hash,
        content_modified_at=stamp,
    )


def test_missing_remote_uploads() -> None:
    assert decide(_local("aaa", _BASE), None) is SyncAction.UPLOAD


def test_equal_hash_skips_even_when_timestamps_differ() -> None:
    remote = _remote("aaa", _BASE - timedelta(days=30))

    assert decide(_local("aaa", _BASE), remote) is SyncAction.SKIP


@pytest.mark.parametrize(
    ("offset_ms", "expected"),
    [
        (1001, SyncAction.UPLOAD),
        (5000, SyncAction.UPLOAD),
        (-1001, SyncAction.DOWNLOAD),
        (-3600_000, SyncAction.DOWNLOAD),
        (1000, SyncAction.UPLOAD_CONFLICT),
        (-1000, SyncAction.UPLOAD_CONFLICT),
        (0, SyncAction.UPLOAD_CONFLICT),
        (999, SyncAction.UPLOAD_CONFLICT),
    ],
)
def test_timestamp_arbitration(offset_ms: int, expected: SyncAction) -> None:
    local = _local("new", _BASE + timedelta(milliseconds=offset_ms))

    assert decide(local, _remote("old", _BASE)) is expected


def test_iso_timestamps_are_accepted() -> None:
    remote = _remote("old", "2024-05-01T12:00:00Z")

    assert decide(_local("new", _BASE + timedelta(hours=1)), remote) is SyncAction.UPLOAD


def test_unparseable_timestamp_raises() -> None:
    remote = _remote("old", "yesterday-ish")

    with pytest.raises(TimestampParseError):
        decide(_local("new", _BASE), remote)


def test_custom_tolerance_widens_conflict_window() -> None:
    local = _local("new", _BASE + timedelta(seconds=5))

    action = decide(local, _remote("old", _BASE), tolerance=timedelta(seconds=10))

    assert action is SyncAction.UPLOAD_CONFLICT


def test_outcome_lines() -> None:
    name = _IDENTITY.display_name

    assert format_outcome_line(SyncAction.UPLOAD, name, "new") == f"↑ Uploaded: {name} (new)"
    assert (
        format_outcome_line(SyncAction.DOWNLOAD, name, "remote newer", dry_run=True)
        == f"↓ Downloaded: {name} (remote newer){DRY_RUN_SUFFIX}"
    )
    assert format_outcome_line(SyncAction.SKIP, name, "identical", dry_run=True) == (
        f"= Skipped: {name} (identical)"
    )
    assert "timestamps similar" in format_outcome_line(
        SyncAction.UPLOAD_CONFLICT, name, describe(SyncAction.UPLOAD_CONFLICT)
    )


def test_describe_reasons() -> None:
    assert describe(SyncAction.UPLOAD, is_new=True) == "new"
    assert describe(SyncAction.UPLOAD) == "local newer"
    assert describe(SyncAction.UPLOAD, forced=True) == "forced"
    assert describe(SyncAction.DOWNLOAD) == "remote newer"
    assert describe(SyncAction.SKIP) == "identical"


class TestDecisionProperties:
    @PROPERTY_SETTINGS
    @given(content_hash=_HASH, moment=_MOMENT)
    def test_new_file_always_uploads(self, content_hash: str, moment: datetime) -> None:
        assert decide(_local(content_hash, moment), None) is SyncAction.UPLOAD

    @PROPERTY_SETTINGS
    @given(content_hash=_HASH, local_at=_MOMENT, remote_at=_MOMENT)
    def test_equal_hash_always_skips(
        self, content_hash: str, local_at: datetime, remote_at: datetime
    ) -> None:
        assert decide(_local(content_hash, local_at), _remote(content_hash, remote_at)) is (
            SyncAction.SKIP
        )

    @PROPERTY_SETTINGS
    @given(
        local_hash=_HASH,
        remote_hash=_HASH,
        remote_at=_MOMENT,
        offset_ms=st.integers(min_value=-10_000, max_value=10_000),
    )
    def test_differing_hash_follows_timestamps(
        self, local_hash: str, remote_hash: str, remote_at: datetime, offset_ms: int
    ) -> None:
        if local_hash == remote_hash:
            return
        local = _local(local_hash, remote_at + timedelta(milliseconds=offset_ms))

        action = decide(local, _remote(remote_hash, remote_at))

        if offset_ms > 1000:
            assert action is SyncAction.UPLOAD
        elif offset_ms < -1000:
            assert action is SyncAction.DOWNLOAD
        else:
            assert action is SyncAction.UPLOAD_CONFLICT

    @PROPERTY_SETTINGS
    @given(local_hash=_HASH, remote_hash=_HASH, local_at=_MOMENT, remote_at=_MOMENT)
    def test_decision_is_deterministic(
        self, local_hash: str, remote_hash: str, local_at: datetime, remote_at: datetime
    ) -> None:
        local = _local(local_hash, local_at)
        remote = _remote(remote_hash, remote_at)

        assert decide(local, remote) is decide(local, remote)
