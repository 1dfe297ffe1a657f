"""Split files into numbered pieces and join piece sets back together.

The engine works purely with local files; it does no compression, encryption
or checksumming, only byte partitioning and concatenation.
"""

from .config import MAX_PIECE_SIZE, PIECE_SUFFIX, ConfigError, PieceConfig, load_config
from .engine import PieceEngine
from .status import EngineStatus, Outcome

__all__ = [
    "MAX_PIECE_SIZE",
    "PIECE_SUFFIX",
    "ConfigError",
    "EngineStatus",
    "Outcome",
    "PieceConfig",
    "PieceEngine",
    "load_config",
]
