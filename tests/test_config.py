"""Tests for frece.toml loading."""

from datetime import UTC, datetime

import pytest

from frece.config import FreceConfig, default_config_path, init_config, load_config
from frece.errors import ConfigError
from frece.models import EPOCH


def test_defaults_when_no_file():
    cfg = load_config()
    assert cfg == FreceConfig()
    assert cfg.path is None
    assert cfg.store.lock_timeout == 10.0
    assert cfg.store.epoch == EPOCH
    assert cfg.print.sort == "frecency"
    assert cfg.print.verbose is False
    assert cfg.logging.level == "WARNING"


def test_explicit_path(tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text(
        '[store]\nlock_timeout = 0\nepoch = "2020-01-01T00:00:00Z"\n'
        '[print]\nsort = "recency"\nverbose = true\n'
        '[logging]\nlevel = "debug"\n'
    )
    cfg = load_config(path)
    assert cfg.path == path
    assert cfg.store.lock_timeout == 0.0
    assert cfg.store.epoch == datetime(2020, 1, 1, tzinfo=UTC)
    assert cfg.print.sort == "recency"
    assert cfg.print.verbose is True
    assert cfg.logging.level == "DEBUG"


def test_toml_datetime_epoch(tmp_path):
    path = tmp_path / "frece.toml"
    path.write_text("[store]\nepoch = 2021-06-01T00:00:00+02:00\n")
    assert load_config(path).store.epoch == datetime(2021, 5, 31, 22, tzinfo=UTC)


def test_env_var_path(tmp_path, monkeypatch):
    path = tmp_path / "env.toml"
    path.write_text('[print]\nsort = "alphabetical"\n')
    monkeypatch.setenv("FRECE_CONFIG", str(path))
    assert default_config_path() == path
    assert load_config().print.sort == "alphabetical"


def test_xdg_config_home(tmp_path, monkeypatch):
    monkeypatch.delenv("FRECE_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    path = tmp_path / "frece" / "frece.toml"
    assert default_config_path() == path
    path.parent.mkdir()
    path.write_text("[store]\nlock_timeout = 2.5\n")
    assert load_config().store.lock_timeout == 2.5


def test_explicit_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")


@pytest.mark.parametrize(
    "content",
    [
        "[store\n",
        '[print]\nsort = "random"\n',
        "[store]\nlock_timeout = -1\n",
        '[store]\nlock_timeout = "soon"\n',
        '[store]\nepoch = "not a date"\n',
        '[logging]\nlevel = "LOUD"\n',
        '[print]\nverbose = "false"\n',
        "[print]\nverbose = 1\n",
    ],
)
def test_invalid_config(tmp_path, content):
    path = tmp_path / "frece.toml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(path)


def test_init_config_round_trips_to_defaults(tmp_path):
    path = init_config(tmp_path / "sub" / "frece.toml")
    assert path.exists()
    cfg = load_config(path)
    assert cfg.store == FreceConfig().store
    assert cfg.print == FreceConfig().print
    assert cfg.logging == FreceConfig().logging


def test_init_config_refuses_overwrite(tmp_path):
    path = tmp_path / "frece.toml"
    path.write_text("")
    with pytest.raises(FileExistsError):
        init_config(path)
