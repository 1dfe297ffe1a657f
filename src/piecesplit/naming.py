"""Piece-size arithmetic and piece file naming.

Pieces are named by their zero-based index, left-padded with ``0`` so that
sorting names lexicographically gives the same order as sorting indices.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path

from .config import PIECE_SUFFIX
from .errors import PieceSequenceError, PreconditionError

__all__ = [
    "pad_width",
    "piece_name",
    "expected_piece_names",
    "piece_count",
    "iter_piece_lengths",
    "find_pieces",
    "check_piece_sequence",
    "is_valid_piece_size",
    "joined_file_name",
]


def pad_width(count: int) -> int:
    """Return ``max(1, ceil(log10(count)))`` for a piece count.

    Computed as the digit count of the largest index (``count - 1``), which is
    the same value without floating point rounding.
    """
    if count < 1:
        raise ValueError(f"Piece count must be at least 1, got {count}")
    return len(str(count - 1))


def piece_name(index: int, count: int, suffix: str = PIECE_SUFFIX) -> str:
    if not 0 <= index < count:
        raise ValueError(f"Piece index {index} out of range for {count} pieces")
    return f"{index:0{pad_width(count)}d}{suffix}"


def expected_piece_names(count: int, suffix: str = PIECE_SUFFIX) -> list[str]:
    width = pad_width(count)
    return [f"{index:0{width}d}{suffix}" for index in range(count)]


def piece_count(file_size: int, piece_size: int) -> int:
    """Number of pieces a file of ``file_size`` bytes splits into.

    A zero-byte file still yields one (empty) piece.
    """
    count, remainder = divmod(file_size, piece_size)
    if remainder or file_size == 0:
        count += 1
    return count


def iter_piece_lengths(file_size: int, piece_size: int) -> Iterator[int]:
    """Yield the byte length of each piece in order; only the last may be short."""
    count = piece_count(file_size, piece_size)
    for _ in range(count - 1):
        yield piece_size
    yield file_size - piece_size * (count - 1)


def find_pieces(folder: Path, suffix: str = PIECE_SUFFIX) -> list[Path]:
    """Return the regular files in ``folder`` ending in ``suffix``, sorted by name."""
    return sorted(
        (path for path in folder.iterdir() if path.is_file() and path.name.endswith(suffix)),
        key=lambda path: path.name,
    )


def check_piece_sequence(pieces: Sequence[Path], suffix: str = PIECE_SUFFIX) -> None:
    """Ensure ``pieces`` (sorted by name) is exactly ``0..len(pieces)-1``.

    A single positional comparison catches gaps, stray files and names padded
    to the wrong width; the first mismatch raises :class:`PieceSequenceError`.
    """
    if not pieces:
        raise ValueError("No pieces to check")
    for expected, actual in zip(expected_piece_names(len(pieces), suffix), pieces):
        if actual.name != expected:
            raise PieceSequenceError(str(actual.parent / expected), str(actual))


def is_valid_piece_size(size: int, count: int, max_piece_size: int) -> bool:
    """Whether an on-disk piece of ``size`` bytes may be joined.

    Pieces must be non-empty and at most ``max_piece_size`` bytes, except the
    lone piece of a one-piece set, which is empty when the original file was.
    """
    if count == 1 and size == 0:
        return True
    return 0 < size <= max_piece_size


def joined_file_name(output_name: str, output_extension: str) -> str:
    """Return ``name.extension`` for a join destination.

    A leading dot on the extension is dropped; an empty extension yields the
    bare name. Names that would escape the output folder are rejected.
    """
    if not output_name or output_name in {".", ".."} or any(
        sep in output_name for sep in ("/", "\\")
    ):
        raise PreconditionError(f"Invalid output file name ({output_name}).")
    extension = output_extension.lstrip(".")
    if any(sep in extension for sep in ("/", "\\")):
        raise PreconditionError(f"Invalid output extension ({output_extension}).")
    return f"{output_name}.{extension}" if extension else output_name
