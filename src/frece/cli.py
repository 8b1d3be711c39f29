"""frece CLI: frecency-indexed database for shell completion.

Commands:
    frece init DB_FILE ENTRY_FILE          create a database from a list of entries
    frece add DB_FILE ENTRY                append one entry (count 0)
    frece increment DB_FILE ENTRY          count one access to ENTRY now
    frece set DB_FILE ENTRY [--count N] [--time T]
    frece print DB_FILE [--sort MODE] [-v]
    frece update DB_FILE ENTRY_FILE [--purge-old]
    frece config [--write]                 show or create frece.toml
"""

from __future__ import annotations

import contextlib
import logging
import sys
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import click

from frece.config import FreceConfig, default_config_path, init_config, load_config
from frece.errors import FreceError
from frece.models import format_time, parse_time
from frece.reconcile import read_entry_list
from frece.scoring import SORT_MODES, format_info, sort_entries
from frece.store import EntryStore

if TYPE_CHECKING:
    from collections.abc import Iterator

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = logging.getLogger("frece.cli")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@dataclass
class Invocation:
    """Per-process state shared by every subcommand."""

    cfg: FreceConfig
    config_path: Path | None
    now: datetime


def _load_cfg(path: Path | None) -> FreceConfig:
    try:
        return load_config(path)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


@contextlib.contextmanager
def _reported() -> Iterator[None]:
    """Turn store and filesystem failures into a one-line error and exit 1."""
    try:
        yield
    except FreceError as exc:
        raise click.ClickException(str(exc)) from exc
    except OSError as exc:
        detail = f"{exc.strerror}: {exc.filename}" if exc.strerror and exc.filename else str(exc)
        raise click.ClickException(detail) from exc


def _store(inv: Invocation, db_file: Path) -> EntryStore:
    return EntryStore(
        db_file,
        lock_timeout=inv.cfg.store.lock_timeout,
        lock_poll_interval=inv.cfg.store.lock_poll_interval,
    )


def _parse_time_option(ctx: click.Context, param: click.Parameter, value: str | None) -> datetime | None:  # noqa: ARG001
    if value is None:
        return None
    try:
        return parse_time(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


db_file_arg = click.argument("db_file", type=click.Path(dir_okay=False, path_type=Path))
entry_file_arg = click.argument(
    "entry_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
entry_arg = click.argument("entry")

# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="frece")
@click.option(
    "--config", "config_path", default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: $FRECE_CONFIG or ~/.config/frece/frece.toml)",
)
@click.option(
    "--log-level", default=None, type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log verbosity on stderr (default from config: WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """Frecency indexed database."""
    cfg = _load_cfg(config_path)
    logging.basicConfig(
        level=(log_level or cfg.logging.level).upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    ctx.obj = Invocation(cfg=cfg, config_path=config_path, now=datetime.now(UTC))
    logger.debug("config=%s now=%s", cfg.path, format_time(ctx.obj.now))


# ---------------------------------------------------------------------------
# frece init / frece update
# ---------------------------------------------------------------------------


@cli.command()
@db_file_arg
@entry_file_arg
@click.pass_obj
def init(inv: Invocation, db_file: Path, entry_file: Path) -> None:
    """Create a database file from ENTRY_FILE (one entry per line)."""
    with _reported():
        names = read_entry_list(entry_file)
        _store(inv, db_file).init(names, inv.cfg.store.epoch)


@cli.command()
@db_file_arg
@entry_file_arg
@click.option("--purge-old", is_flag=True, help="Purge any entries *not* in ENTRY_FILE")
@click.pass_obj
def update(inv: Invocation, db_file: Path, entry_file: Path, purge_old: bool) -> None:
    """Update a database file from ENTRY_FILE, keeping counts of known entries.

    Creates the database if it does not exist yet.
    """
    with _reported():
        names = read_entry_list(entry_file)
        _store(inv, db_file).update(names, inv.cfg.store.epoch, purge_old=purge_old)


# ---------------------------------------------------------------------------
# frece add / increment / set
# ---------------------------------------------------------------------------


@cli.command()
@db_file_arg
@entry_arg
@click.pass_obj
def add(inv: Invocation, db_file: Path, entry: str) -> None:
    """Add ENTRY to the database."""
    with _reported():
        _store(inv, db_file).add(entry, inv.cfg.store.epoch)


@cli.command()
@db_file_arg
@entry_arg
@click.pass_obj
def increment(inv: Invocation, db_file: Path, entry: str) -> None:
    """Increase ENTRY's count and reset its timer."""
    with _reported():
        _store(inv, db_file).increment(entry, inv.now)


@click.command()
@db_file_arg
@entry_arg
@click.option("--count", type=click.IntRange(min=0), default=None, help="Frequency count")
@click.option(
    "--time", "time_", default=None, callback=_parse_time_option,
    help="Last access time, e.g. 2023-01-01T00:00:00+00:00",
)
@click.pass_obj
def set_cmd(inv: Invocation, db_file: Path, entry: str, count: int | None, time_: datetime | None) -> None:
    """Set ENTRY's frequency count and/or last access time."""
    with _reported():
        _store(inv, db_file).set(entry, count=count, time=time_)


cli.add_command(set_cmd, name="set")


# ---------------------------------------------------------------------------
# frece print
# ---------------------------------------------------------------------------


@click.command()
@db_file_arg
@click.option(
    "--sort", "sort_mode", default=None, type=click.Choice(SORT_MODES),
    help="Sort method  [default: frecency]",
)
@click.option(
    "-v", "--verbose/--no-verbose", default=None,
    help="Outputs frecency, counts, date, and entries  [default: from config]",
)
@click.pass_obj
def print_cmd(inv: Invocation, db_file: Path, sort_mode: str | None, verbose: bool | None) -> None:
    """Print entries, most frecent first by default."""
    sort_mode = sort_mode or inv.cfg.print.sort
    if verbose is None:
        verbose = inv.cfg.print.verbose
    with _reported():
        entries = sort_entries(_store(inv, db_file).read().entries, sort_mode, inv.now)

    if not entries:
        return
    if verbose:
        lines = [format_info(e, inv.now) for e in entries]
    else:
        lines = [e.data for e in entries]
    click.echo("\n".join(lines))


cli.add_command(print_cmd, name="print")


# ---------------------------------------------------------------------------
# frece config
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--write", is_flag=True, help="Write a default frece.toml if none exists")
@click.pass_obj
def config(inv: Invocation, write: bool) -> None:
    """Show the resolved configuration."""
    if write:
        target = inv.config_path or default_config_path()
        try:
            click.echo(f"Created {init_config(target)}")
        except FileExistsError:
            click.echo(f"{target} already exists, skipping")
        return

    cfg = inv.cfg
    click.echo(f"Config file        : {cfg.path or '(none, using defaults)'}")
    click.echo(f"lock_timeout       : {cfg.store.lock_timeout:g}s")
    click.echo(f"lock_poll_interval : {cfg.store.lock_poll_interval:g}s")
    click.echo(f"epoch              : {format_time(cfg.store.epoch)}")
    click.echo(f"print.sort         : {cfg.print.sort}")
    click.echo(f"print.verbose      : {str(cfg.print.verbose).lower()}")
    click.echo(f"logging.level      : {cfg.logging.level}")


if __name__ == "__main__":
    cli()
