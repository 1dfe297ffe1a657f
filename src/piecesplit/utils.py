"""Byte-size parsing and formatting for command-line piece sizes."""

from __future__ import annotations

import re

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$")

SIZE_UNITS = {
    "": 1,
    "b": 1,
    "kb": 1000,
    "mb": 1000**2,
    "gb": 1000**3,
    "tb": 1000**4,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
    "tib": 1024**4,
}


def parse_size(value: str | int) -> int:
    """Return a byte count for ``value``.

    Accepts plain integers or strings such as ``"8MB"`` or ``"1.5GiB"``.
    Decimal units (KB, MB, ...) are powers of 1000, binary units (KiB, MiB, ...)
    powers of 1024.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        return value
    match = _SIZE_RE.match(str(value))
    if match is None:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    factor = SIZE_UNITS.get(unit.lower())
    if factor is None:
        raise ValueError(f"Unknown size unit {unit!r} in {value!r}")
    return int(float(number) * factor)


def format_size(num_bytes: int) -> str:
    """Render a byte count with a binary unit, e.g. ``"7.6 MiB"``."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    size = float(num_bytes)
    for unit in ("KiB", "MiB", "GiB"):
        size /= 1024
        if size < 1024:
            break
    return f"{size:.1f} {unit}"
