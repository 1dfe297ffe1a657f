"""Split a file into fixed-size pieces and join pieces back into one file.

Both operations are synchronous and are meant to run on a worker thread while
another thread polls :attr:`PieceEngine.status`. Every status change replaces
the published :class:`EngineStatus` snapshot with a new object, so readers
never observe a mix of fields from two different moments or runs.

Expected failures (missing paths, bad piece sizes, malformed piece sets, I/O
errors, cancellation) never raise out of :meth:`PieceEngine.split` or
:meth:`PieceEngine.join`; they end the run with ``finished=True`` and the
reason in ``status.message``.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Callable, Optional

from .config import PieceConfig
from .errors import OperationCancelled, PieceError, PieceSizeError, PreconditionError
from .naming import (
    check_piece_sequence,
    find_pieces,
    is_valid_piece_size,
    joined_file_name,
    iter_piece_lengths,
    piece_count,
    piece_name,
)
from .status import EngineStatus

__all__ = ["PieceEngine", "StatusListener"]

LOGGER = logging.getLogger("piecesplit.engine")

StatusListener = Callable[[EngineStatus], None]
PathLike = str | os.PathLike[str]


class PieceEngine:
    """Runs one split or join at a time and publishes its progress."""

    def __init__(
        self,
        config: Optional[PieceConfig] = None,
        *,
        listener: Optional[StatusListener] = None,
    ) -> None:
        self._config = config if config is not None else PieceConfig()
        self._listener = listener
        self._status = EngineStatus()
        self._busy = threading.Lock()

    @property
    def config(self) -> PieceConfig:
        return self._config

    @property
    def status(self) -> EngineStatus:
        return self._status

    def reset(self) -> None:
        self._publish(EngineStatus())

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def split(
        self,
        input_file: PathLike,
        output_folder: PathLike,
        piece_size: int,
        *,
        cancel_token: Optional[threading.Event] = None,
    ) -> EngineStatus:
        """Split ``input_file`` into ``piece_size`` byte pieces inside ``output_folder``.

        Pieces already written are left in place if the run fails or is
        cancelled. Returns the final status snapshot.
        """
        return self._run(
            "split",
            lambda: self._split(Path(input_file), Path(output_folder), piece_size, cancel_token),
        )

    def join(
        self,
        input_folder: PathLike,
        output_folder: PathLike,
        output_name: str,
        output_extension: str,
        *,
        cancel_token: Optional[threading.Event] = None,
    ) -> EngineStatus:
        """Concatenate the piece set in ``input_folder`` into ``output_name.output_extension``.

        The destination is removed again if anything goes wrong after it was
        opened. Returns the final status snapshot.
        """
        return self._run(
            "join",
            lambda: self._join(
                Path(input_folder),
                Path(output_folder),
                output_name,
                output_extension,
                cancel_token,
            ),
        )

    # ------------------------------------------------------------------
    # Status plumbing
    # ------------------------------------------------------------------

    def _publish(self, status: EngineStatus) -> None:
        self._status = status
        if self._listener is not None:
            self._listener(status)

    def _update(self, **changes: object) -> None:
        self._publish(self._status.evolve(**changes))

    def _run(self, operation: str, body: Callable[[], None]) -> EngineStatus:
        if not self._busy.acquire(blocking=False):
            raise RuntimeError("Another operation is already running on this engine.")
        try:
            self.reset()
            try:
                body()
            except OperationCancelled as exc:
                LOGGER.warning(
                    "%s cancelled after %d/%d pieces",
                    operation,
                    self._status.processed,
                    self._status.total,
                )
                self._update(finished=True, cancelled=True, message=str(exc))
            except (PieceError, OSError) as exc:
                LOGGER.warning("%s failed: %s", operation, exc)
                self._update(finished=True, errored=True, message=str(exc))
            else:
                LOGGER.info("%s finished: %d pieces", operation, self._status.processed)
                self._update(finished=True)
            return self._status
        finally:
            self._busy.release()

    @staticmethod
    def _check_cancelled(cancel_token: Optional[threading.Event]) -> None:
        if cancel_token is not None and cancel_token.is_set():
            raise OperationCancelled()

    # ------------------------------------------------------------------
    # Split
    # ------------------------------------------------------------------

    def _split(
        self,
        input_file: Path,
        output_folder: Path,
        piece_size: int,
        cancel_token: Optional[threading.Event],
    ) -> None:
        if not input_file.is_file():
            raise PreconditionError(f"Input file ({input_file}) does not exist.")
        if not output_folder.is_dir():
            raise PreconditionError(f"Output folder path ({output_folder}) does not exist.")
        max_size = self._config.max_piece_size
        if (
            isinstance(piece_size, bool)
            or not isinstance(piece_size, int)
            or not 0 < piece_size <= max_size
        ):
            raise PreconditionError(
                f"The file piece size must be greater than 0 and at most {max_size} bytes."
            )

        file_size = input_file.stat().st_size
        total = piece_count(file_size, piece_size)
        self._update(validated=True, total=total)
        LOGGER.info(
            "Splitting %s (%d bytes) into %d pieces of %d bytes in %s",
            input_file,
            file_size,
            total,
            piece_size,
            output_folder,
        )

        suffix = self._config.piece_suffix
        with input_file.open("rb") as src:
            for index, length in enumerate(iter_piece_lengths(file_size, piece_size)):
                self._check_cancelled(cancel_token)
                piece_path = output_folder / piece_name(index, total, suffix)
                buffer = src.read(length)
                if len(buffer) != length:
                    raise PieceError(
                        f"Input file ({input_file}) ended early while writing {piece_path.name}: "
                        f"expected {length} bytes, read {len(buffer)}."
                    )
                with piece_path.open("wb") as dst:
                    dst.write(buffer)
                LOGGER.debug("Wrote %s (%d bytes)", piece_path, length)
                self._update(processed=self._status.processed + 1)

    # ------------------------------------------------------------------
    # Join
    # ------------------------------------------------------------------

    def _join(
        self,
        input_folder: Path,
        output_folder: Path,
        output_name: str,
        output_extension: str,
        cancel_token: Optional[threading.Event],
    ) -> None:
        if not input_folder.is_dir():
            raise PreconditionError(f"Input folder path ({input_folder}) does not exist.")
        if not output_folder.is_dir():
            raise PreconditionError(f"Output folder path ({output_folder}) does not exist.")
        destination = output_folder / joined_file_name(output_name, output_extension)

        suffix = self._config.piece_suffix
        pieces = find_pieces(input_folder, suffix)
        if not pieces:
            raise PreconditionError(f"No {suffix} files found in ({input_folder}).")
        check_piece_sequence(pieces, suffix)
        if destination.resolve() in {piece.resolve() for piece in pieces}:
            raise PreconditionError(
                f"Output file ({destination}) would overwrite one of its own pieces."
            )
        total = len(pieces)
        self._update(validated=True, total=total)
        LOGGER.info("Joining %d pieces from %s into %s", total, input_folder, destination)

        max_size = self._config.max_piece_size
        try:
            with destination.open("wb") as dst:
                for piece in pieces:
                    self._check_cancelled(cancel_token)
                    with piece.open("rb") as src:
                        size = os.fstat(src.fileno()).st_size
                        if not is_valid_piece_size(size, total, max_size):
                            raise PieceSizeError(
                                f"Joining failed! {piece} is of bad size ({size} bytes)."
                            )
                        shutil.copyfileobj(src, dst)
                    LOGGER.debug("Appended %s (%d bytes)", piece, size)
                    self._update(processed=self._status.processed + 1)
        except Exception:
            LOGGER.warning("Removing partially joined file %s", destination)
            destination.unlink(missing_ok=True)
            raise
