from __future__ import annotations

from pathlib import Path

import pytest

from piecesplit.errors import PieceSequenceError, PreconditionError
from piecesplit.naming import (
    check_piece_sequence,
    expected_piece_names,
    find_pieces,
    is_valid_piece_size,
    iter_piece_lengths,
    joined_file_name,
    pad_width,
    piece_count,
    piece_name,
)


@pytest.mark.parametrize(
    ("count", "width"),
    [(1, 1), (2, 1), (9, 1), (10, 1), (11, 2), (100, 2), (101, 3), (1000, 3), (1001, 4)],
)
def test_pad_width(count: int, width: int) -> None:
    assert pad_width(count) == width


def test_pad_width_rejects_empty_sets() -> None:
    with pytest.raises(ValueError):
        pad_width(0)


def test_piece_names() -> None:
    assert piece_name(0, 1) == "0.piece"
    assert expected_piece_names(10) == [f"{i}.piece" for i in range(10)]
    names = expected_piece_names(11)
    assert names[0] == "00.piece"
    assert names[-1] == "10.piece"
    assert names == sorted(names)
    assert piece_name(7, 200, ".part") == "007.part"


def test_piece_name_rejects_out_of_range_index() -> None:
    with pytest.raises(ValueError):
        piece_name(3, 3)


@pytest.mark.parametrize(
    ("file_size", "piece_size", "lengths"),
    [
        (0, 10, [0]),
        (10, 10, [10]),
        (10, 3, [3, 3, 3, 1]),
        (9, 3, [3, 3, 3]),
        (1, 1000, [1]),
    ],
)
def test_piece_lengths(file_size: int, piece_size: int, lengths: list[int]) -> None:
    assert piece_count(file_size, piece_size) == len(lengths)
    assert list(iter_piece_lengths(file_size, piece_size)) == lengths
    assert sum(lengths) == file_size


def _touch(folder: Path, *names: str) -> list[Path]:
    for name in names:
        (folder / name).write_bytes(b"x")
    return find_pieces(folder)


def test_find_pieces_sorts_and_filters(tmp_path: Path) -> None:
    (tmp_path / "nested.piece").mkdir()
    (tmp_path / "notes.txt").write_text("hi")
    pieces = _touch(tmp_path, "2.piece", "0.piece", "1.piece")
    assert [p.name for p in pieces] == ["0.piece", "1.piece", "2.piece"]


def test_check_piece_sequence_accepts_complete_set(tmp_path: Path) -> None:
    check_piece_sequence(_touch(tmp_path, *expected_piece_names(12)))


def test_check_piece_sequence_reports_gap(tmp_path: Path) -> None:
    names = [n for n in expected_piece_names(20) if n != "03.piece"]
    with pytest.raises(PieceSequenceError) as excinfo:
        check_piece_sequence(_touch(tmp_path, *names))
    assert excinfo.value.expected == str(tmp_path / "03.piece")
    assert excinfo.value.actual == str(tmp_path / "04.piece")


def test_check_piece_sequence_reports_stray_file(tmp_path: Path) -> None:
    pieces = _touch(tmp_path, "0.piece", "1.piece", "2.piece", "extra.piece")
    with pytest.raises(PieceSequenceError, match="extra.piece"):
        check_piece_sequence(pieces)


def test_check_piece_sequence_reports_wrong_padding(tmp_path: Path) -> None:
    pieces = _touch(tmp_path, "00.piece", "01.piece")
    with pytest.raises(PieceSequenceError) as excinfo:
        check_piece_sequence(pieces)
    assert Path(excinfo.value.expected).name == "0.piece"
    assert Path(excinfo.value.actual).name == "00.piece"


def test_is_valid_piece_size() -> None:
    assert is_valid_piece_size(0, 1, 100)
    assert not is_valid_piece_size(0, 5, 100)
    assert is_valid_piece_size(100, 5, 100)
    assert not is_valid_piece_size(101, 5, 100)


def test_joined_file_name() -> None:
    assert joined_file_name("movie", "mp4") == "movie.mp4"
    assert joined_file_name("movie", ".mp4") == "movie.mp4"
    assert joined_file_name("movie", "") == "movie"
    for bad_name in ("", "..", "a/b"):
        with pytest.raises(PreconditionError):
            joined_file_name(bad_name, "mp4")
