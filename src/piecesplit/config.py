"""Engine configuration: piece-size limits, piece suffix and YAML loading."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from .utils import parse_size

__all__ = ["MAX_PIECE_SIZE", "PIECE_SUFFIX", "ConfigError", "PieceConfig", "load_config"]

# Each piece is buffered whole in memory, so this bounds a single allocation.
MAX_PIECE_SIZE = 2**31 - 1
PIECE_SUFFIX = ".piece"
DEFAULT_PIECE_SIZE = 8 * 1000**2


class ConfigError(Exception):
    """Raised when a configuration file is invalid."""


@dataclass(frozen=True, slots=True)
class PieceConfig:
    max_piece_size: int = MAX_PIECE_SIZE
    piece_suffix: str = PIECE_SUFFIX
    default_piece_size: int = DEFAULT_PIECE_SIZE

    def __post_init__(self) -> None:
        if self.max_piece_size <= 0:
            raise ConfigError("max_piece_size must be positive.")
        if not self.piece_suffix or "/" in self.piece_suffix or "\\" in self.piece_suffix:
            raise ConfigError(f"Invalid piece_suffix: {self.piece_suffix!r}")
        if not 0 < self.default_piece_size <= self.max_piece_size:
            raise ConfigError(
                f"default_piece_size must be in (0, {self.max_piece_size}], "
                f"got {self.default_piece_size}."
            )


_SIZE_KEYS = {"max_piece_size", "default_piece_size"}


def load_config(config_path: Path) -> PieceConfig:
    """Load a :class:`PieceConfig` from a YAML mapping.

    Size keys accept integers or strings such as ``"8MB"``; unspecified keys
    keep their defaults.
    """
    try:
        raw = yaml.safe_load(config_path.read_text())
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {config_path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse YAML: {exc}") from exc

    if raw is None:
        return PieceConfig()
    if not isinstance(raw, dict):
        raise ConfigError("Configuration must be a mapping.")

    known = {f.name for f in fields(PieceConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(map(str, unknown))}")

    values: dict[str, object] = {}
    for key, value in raw.items():
        if key in _SIZE_KEYS:
            try:
                values[key] = parse_size(value)
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {key}: {exc}") from exc
        else:
            if not isinstance(value, str):
                raise ConfigError(f"{key} must be a string.")
            values[key] = value
    return PieceConfig(**values)
