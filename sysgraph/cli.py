"""Command-line parsing for sysgraph.

Syntax:
    sysgraph [samples [tdelay]] [--memory] [--cpu] [--cores]
             [--samples=N] [--tdelay=T] [--config=PATH]

Positional values must come before every flag. Each token is first classified
into one of the token types below, then a small state machine walks the
classified tokens and enforces ordering and duplicate rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from sysgraph.config import ConfigError, RunConfig, positive_int

PANELS = ("memory", "cpu", "cores")

_DIGITS = re.compile(r"[0-9]+")
_FLAG_VALUE = re.compile(r"\+?[0-9]+")


# ── Token types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Positional:
    text: str


@dataclass(frozen=True)
class PanelFlag:
    panel: str  # one of PANELS


@dataclass(frozen=True)
class SamplesFlag:
    text: str  # everything after "--samples="


@dataclass(frozen=True)
class TdelayFlag:
    text: str  # everything after "--tdelay="


@dataclass(frozen=True)
class ConfigFlag:
    path: str


@dataclass(frozen=True)
class Unknown:
    text: str


Token = Positional | PanelFlag | SamplesFlag | TdelayFlag | ConfigFlag | Unknown


def classify(arg: str) -> Token:
    """Map one raw argument to its token type."""
    if _DIGITS.fullmatch(arg):
        return Positional(arg)
    if arg.startswith("--") and arg[2:] in PANELS:
        return PanelFlag(arg[2:])
    if arg.startswith("--samples="):
        return SamplesFlag(arg[len("--samples="):])
    if arg.startswith("--tdelay="):
        return TdelayFlag(arg[len("--tdelay="):])
    if arg.startswith("--config="):
        return ConfigFlag(arg[len("--config="):])
    return Unknown(arg)


# ── State machine ───────────────────────────────────────────────────────────


class _State(Enum):
    EXPECT_SAMPLES = "expect_samples"
    EXPECT_TDELAY = "expect_tdelay"
    FLAGS = "flags"


@dataclass
class ParsedArgs:
    """Command-line values before they are merged with file defaults."""

    samples: int | None = None
    tdelay: int | None = None
    panels: set[str] = field(default_factory=lambda: set[str]())
    config_path: Path | None = None


def _flag_value(text: str, flag: str) -> int:
    value = text.lstrip()
    if not value:
        raise ConfigError(f"missing value for --{flag}")
    if not _FLAG_VALUE.fullmatch(value) or int(value) <= 0:
        raise ConfigError(f"invalid value for --{flag}: {text!r}")
    return int(value)


def _positional_value(text: str, name: str) -> int:
    value = int(text)
    if value <= 0:
        raise ConfigError(f"invalid value for {name}: {text!r}")
    return value


def parse_args(argv: Sequence[str]) -> ParsedArgs:
    """Parse raw arguments (without the program name).

    Raises:
        ConfigError: On unknown tokens, misplaced positionals, invalid or
            duplicate values.
    """
    parsed = ParsedArgs()
    state = _State.EXPECT_SAMPLES

    for arg in argv:
        token = classify(arg)
        match token:
            case Positional(text) if state is _State.EXPECT_SAMPLES:
                parsed.samples = _positional_value(text, "samples")
                state = _State.EXPECT_TDELAY
            case Positional(text) if state is _State.EXPECT_TDELAY:
                parsed.tdelay = _positional_value(text, "tdelay")
                state = _State.FLAGS
            case Positional(text):
                raise ConfigError(
                    f"positional argument {text!r} must precede all flags"
                )
            case PanelFlag(panel):
                parsed.panels.add(panel)
                state = _State.FLAGS
            case SamplesFlag(text):
                if parsed.samples is not None:
                    raise ConfigError("cannot have multiple sample values")
                parsed.samples = _flag_value(text, "samples")
                state = _State.FLAGS
            case TdelayFlag(text):
                if parsed.tdelay is not None:
                    raise ConfigError("cannot have multiple tdelay values")
                parsed.tdelay = _flag_value(text, "tdelay")
                state = _State.FLAGS
            case ConfigFlag(path):
                if not path:
                    raise ConfigError("missing value for --config")
                if parsed.config_path is not None:
                    raise ConfigError("cannot have multiple config files")
                parsed.config_path = Path(path)
                state = _State.FLAGS
            case Unknown(text):
                raise ConfigError(f"unknown argument: {text!r}")

    return parsed


def build_run_config(parsed: ParsedArgs, file_config: dict[str, Any]) -> RunConfig:
    """Combine command-line values with file defaults into a RunConfig.

    No panel flag at all means every panel is shown.
    """
    samples = parsed.samples
    if samples is None:
        samples = positive_int(file_config.get("samples"), "samples")
    tdelay = parsed.tdelay
    if tdelay is None:
        tdelay = positive_int(file_config.get("tdelay"), "tdelay")

    panels = parsed.panels or set(PANELS)
    return RunConfig(
        samples=samples,
        tdelay=tdelay,
        show_memory="memory" in panels,
        show_cpu="cpu" in panels,
        show_cores="cores" in panels,
    )
