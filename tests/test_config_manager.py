"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from envsync.config import (
    ConfigError,
    ConfigManager,
    EnvSyncConfig,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env={})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".env-sync" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "env-sync configuration file" in text
    assert "Last updated:" in text
    assert "password" not in text.split("\n", 3)[-1]

    config = manager.load(include_env=False)
    assert isinstance(config, EnvSyncConfig)
    assert config.sync.workers == 10
    assert config.crypto.kdf_memory_kib == 65536


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"sync": {"workers": 4, "strict": True}, "daemon": {"interval_seconds": 600}})

    env = {"ENV_SYNC__SYNC__WORKERS": "6", "ENV_SYNC__DAEMON__WATCH_FILES": "true"}
    cli = {"sync.workers": 2}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.sync.strict is True
    assert config.daemon.interval_seconds == pytest.approx(600)
    assert config.daemon.watch_files is True
    # CLI overrides take precedence over environment
    assert config.sync.workers == 2


def test_plain_env_variables_are_not_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    config = manager.load(env_overrides={"ENV_SYNC_DB": "sqlite:///x.db", "ENV_SYNC_PASSWORD": "p"})

    assert config.database.url is None


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"sync": {"wrokers": 3}})

    with pytest.raises(ConfigError):
        manager.load(include_env=False)


def test_flatten_for_env_round_trips_defaults(tmp_path: Path) -> None:
    flat = flatten_for_env(EnvSyncConfig())

    assert flat["ENV_SYNC__SYNC__WORKERS"] == "10"
    assert flat["ENV_SYNC__DATABASE__URL"] == "null"
    assert flat["ENV_SYNC__SCAN__SKIP_DIRS"] == "[node_modules, vendor]"

    manager = ConfigManager(config_path=tmp_path / "absent.yaml", env=flat)
    config = manager.load(ensure_file=False)
    assert config == resolve_with_precedence(defaults=EnvSyncConfig())


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=EnvSyncConfig(),
            file_overrides={"sync": {"workers": "not-an-int"}},
        )


def test_zero_workers_is_invalid() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=EnvSyncConfig(), cli_overrides={"sync.workers": 0})
