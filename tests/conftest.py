from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from piecesplit.engine import PieceEngine
from piecesplit.status import EngineStatus


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    def _make(size: int, name: str = "source.bin") -> Path:
        path = tmp_path / name
        path.write_bytes(os.urandom(size))
        return path

    return _make


@pytest.fixture
def pieces_dir(tmp_path: Path) -> Path:
    path = tmp_path / "pieces"
    path.mkdir()
    return path


@pytest.fixture
def joined_dir(tmp_path: Path) -> Path:
    path = tmp_path / "joined"
    path.mkdir()
    return path


@pytest.fixture
def recorded() -> list[EngineStatus]:
    return []


@pytest.fixture
def engine(recorded: list[EngineStatus]) -> PieceEngine:
    return PieceEngine(listener=recorded.append)
