"""FreceConfig: optional user config for the frece CLI.

Lookup order:

    --config PATH                       # explicit; must exist
    $FRECE_CONFIG                       # optional
    $XDG_CONFIG_HOME/frece/frece.toml   # optional, default ~/.config/frece/frece.toml

frece.toml example:

    [store]
    lock_timeout = 10.0          # seconds to wait for the database lock; 0 = fail fast
    lock_poll_interval = 0.05
    epoch = "1970-01-01T00:00:00+00:00"   # last-access time given to new entries

    [print]
    sort = "frecency"            # none | alphabetical | frecency | frequency | recency
    verbose = false

    [logging]
    level = "WARNING"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from frece.errors import ConfigError
from frece.models import EPOCH, format_time, parse_time
from frece.scoring import SORT_MODES
from frece.store import DEFAULT_LOCK_POLL_INTERVAL, DEFAULT_LOCK_TIMEOUT

_CONFIG_FILENAME = "frece.toml"
_ENV_VAR = "FRECE_CONFIG"
_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class StoreConfig:
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT
    lock_poll_interval: float = DEFAULT_LOCK_POLL_INTERVAL
    epoch: datetime = EPOCH


@dataclass
class PrintConfig:
    sort: str = "frecency"
    verbose: bool = False


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class FreceConfig:
    """Resolved configuration. ``path`` is None when no file was found."""

    path: Path | None = None
    store: StoreConfig = field(default_factory=StoreConfig)
    print: PrintConfig = field(default_factory=PrintConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def default_config_path() -> Path:
    """$FRECE_CONFIG, else the XDG user config location."""
    env = os.environ.get(_ENV_VAR)
    if env:
        return Path(env).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(xdg) / "frece" / _CONFIG_FILENAME


def load_config(path: Path | str | None = None) -> FreceConfig:
    """Load frece.toml. An explicit ``path`` must exist; the default may be absent."""
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    else:
        config_path = default_config_path()
        if not config_path.exists():
            return FreceConfig()

    try:
        with config_path.open("rb") as f:
            raw: dict[str, Any] = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        msg = f"{config_path}: {exc}"
        raise ConfigError(msg) from exc

    try:
        return _from_dict(raw, config_path)
    except (TypeError, ValueError) as exc:
        msg = f"{config_path}: {exc}"
        raise ConfigError(msg) from exc


def _from_dict(raw: dict[str, Any], config_path: Path) -> FreceConfig:
    store_section = raw.get("store", {})
    print_section = raw.get("print", {})
    log_section = raw.get("logging", {})

    lock_timeout = float(store_section.get("lock_timeout", DEFAULT_LOCK_TIMEOUT))
    lock_poll_interval = float(store_section.get("lock_poll_interval", DEFAULT_LOCK_POLL_INTERVAL))
    if lock_timeout < 0 or lock_poll_interval <= 0:
        msg = "[store] lock_timeout must be >= 0 and lock_poll_interval > 0"
        raise ValueError(msg)

    epoch_raw = store_section.get("epoch")
    if epoch_raw is None:
        epoch = EPOCH
    elif isinstance(epoch_raw, datetime):
        epoch = parse_time(epoch_raw.isoformat())
    else:
        epoch = parse_time(str(epoch_raw))

    sort = str(print_section.get("sort", "frecency"))
    if sort not in SORT_MODES:
        msg = f"[print] sort must be one of {', '.join(SORT_MODES)}, got {sort!r}"
        raise ValueError(msg)

    verbose = print_section.get("verbose", False)
    if not isinstance(verbose, bool):
        msg = f"[print] verbose must be true or false, got {verbose!r}"
        raise ValueError(msg)

    level = str(log_section.get("level", "WARNING")).upper()
    if level not in _LOG_LEVELS:
        msg = f"[logging] level must be one of {', '.join(_LOG_LEVELS)}, got {level!r}"
        raise ValueError(msg)

    return FreceConfig(
        path=config_path,
        store=StoreConfig(
            lock_timeout=lock_timeout,
            lock_poll_interval=lock_poll_interval,
            epoch=epoch,
        ),
        print=PrintConfig(
            sort=sort,
            verbose=verbose,
        ),
        logging=LoggingConfig(level=level),
    )


def init_config(path: Path | None = None) -> Path:
    """Write a commented default frece.toml. Raises if one already exists."""
    config_path = path or default_config_path()
    if config_path.exists():
        msg = f"frece.toml already exists at {config_path}"
        raise FileExistsError(msg)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    modes = " | ".join(SORT_MODES)
    content = f"""\
[store]
# lock_timeout = {DEFAULT_LOCK_TIMEOUT}          # seconds to wait for the database lock; 0 = fail fast
# lock_poll_interval = {DEFAULT_LOCK_POLL_INTERVAL}
# epoch = "{format_time(EPOCH)}"   # last-access time given to new entries

[print]
# sort = "frecency"            # {modes}
# verbose = false

[logging]
# level = "WARNING"
"""
    config_path.write_text(content)
    return config_path
