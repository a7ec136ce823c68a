"""Configuration for sysgraph.

Run defaults and logging settings come from a TOML file merged over built-in
defaults. Search order: explicit --config=PATH → ~/.config/sysgraph/config.toml
→ defaults only. Command-line values are applied on top by sysgraph.cli.
"""

from __future__ import annotations

import logging
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

DEFAULT_SAMPLES = 20
DEFAULT_TDELAY = 500_000  # microseconds

DEFAULT_CONFIG: dict[str, Any] = {
    "samples": DEFAULT_SAMPLES,
    "tdelay": DEFAULT_TDELAY,
    "logging": {
        "level": "WARNING",
        "file": "",
    },
}

_DEFAULT_PATH = Path.home() / ".config" / "sysgraph" / "config.toml"


class ConfigError(Exception):
    """Bad or conflicting configuration. Fatal before rendering starts."""


@dataclass(frozen=True)
class RunConfig:
    """Validated settings for one dashboard run."""

    samples: int = DEFAULT_SAMPLES
    tdelay: int = DEFAULT_TDELAY
    show_memory: bool = True
    show_cpu: bool = True
    show_cores: bool = True

    def __post_init__(self) -> None:
        if self.samples <= 0:
            raise ConfigError(f"samples must be a positive integer, got {self.samples}")
        if self.tdelay <= 0:
            raise ConfigError(f"tdelay must be a positive integer, got {self.tdelay}")

    @property
    def delay_seconds(self) -> float:
        return self.tdelay / 1_000_000


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base. Nested dicts are merged at the first level only."""
    merged = dict(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    Args:
        path: Explicit config file path (from --config=PATH). If None, tries
              the default location ~/.config/sysgraph/config.toml.

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: If an explicit path doesn't exist or can't be parsed.
    """
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        try:
            user_config = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML in {path}: {e}") from e
        return _deep_merge(DEFAULT_CONFIG, user_config)

    # Try default location silently
    if _DEFAULT_PATH.is_file():
        try:
            user_config = tomllib.loads(_DEFAULT_PATH.read_text(encoding="utf-8"))
            return _deep_merge(DEFAULT_CONFIG, user_config)
        except tomllib.TOMLDecodeError:
            print(
                f"sysgraph: warning: ignoring invalid TOML in {_DEFAULT_PATH}",
                file=sys.stderr,
            )

    return dict(DEFAULT_CONFIG)


def positive_int(value: Any, name: str) -> int:
    """Validate a file-supplied count or delay."""
    # bool is an int subclass; `samples = true` is not a count
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return value


def setup_logging(config: dict[str, Any]) -> None:
    """Configure the root logger from the [logging] table."""
    settings = config.get("logging", DEFAULT_CONFIG["logging"])
    if not isinstance(settings, dict):
        raise ConfigError(f"[logging] must be a table, got {settings!r}")
    level_name = str(settings.get("level", "WARNING")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError(f"unknown log level: {level_name}")

    # Open the file up front so a bad path is a config error, not a traceback
    handlers: list[logging.Handler] | None = None
    filename = settings.get("file") or None
    if filename is not None:
        try:
            handlers = [logging.FileHandler(filename)]
        except OSError as e:
            raise ConfigError(f"cannot open log file {filename}: {e}") from e

    logging.basicConfig(
        level=level,
        handlers=handlers,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log.debug("logging configured at %s", level_name)
