"""Typer-based CLI entry point for splitting and joining piece files."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from .config import ConfigError, PieceConfig, load_config
from .engine import PieceEngine
from .errors import PieceSequenceError, PreconditionError
from .naming import check_piece_sequence, find_pieces, is_valid_piece_size, joined_file_name
from .rich_console import console
from .status import EngineStatus, Outcome
from .utils import format_size, parse_size

LOGGER = logging.getLogger("piecesplit.cli")

PROGRESS_COLUMNS = (
    SpinnerColumn(),
    TextColumn("[progress.description]{task.description}"),
    BarColumn(),
    TextColumn("{task.completed}/{task.total}"),
    TimeElapsedColumn(),
    TimeRemainingColumn(),
)

PROGRESS_OPTS = {"console": console}

POLL_INTERVAL = 0.05

app = typer.Typer(
    no_args_is_help=True,
    help="Split files into numbered .piece files and join them back together.",
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _config(ctx: typer.Context) -> PieceConfig:
    return ctx.obj if isinstance(ctx.obj, PieceConfig) else PieceConfig()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        envvar="PIECESPLIT_CONFIG",
        help="Optional YAML file with max_piece_size, piece_suffix and default_piece_size.",
    ),
) -> None:
    """Split files into pieces and join piece sets."""
    _setup_logging(verbose)
    if config_path is None:
        ctx.obj = PieceConfig()
        return
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(2) from exc
    LOGGER.debug("Loaded configuration from %s: %s", config_path, ctx.obj)


def _wait_until(future: Future, predicate: Callable[[], bool]) -> None:
    while not future.done() and not predicate():
        concurrent.futures.wait([future], timeout=POLL_INTERVAL)


def _run_with_progress(
    engine: PieceEngine,
    description: str,
    operation: Callable[[threading.Event], EngineStatus],
) -> EngineStatus:
    """Run ``operation`` on a worker thread and render the engine's progress."""
    cancel_token = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(operation, cancel_token)
        try:
            typer.echo("Validating...")
            _wait_until(future, lambda: engine.status.validated)
            status = engine.status
            if status.validated:
                typer.echo(f"Validation successful. Total number of pieces: {status.total}")
                console.line()  # Spacer above progress bar
                with Progress(*PROGRESS_COLUMNS, **PROGRESS_OPTS) as progress:
                    task_id = progress.add_task(description, total=status.total)
                    while not future.done():
                        concurrent.futures.wait([future], timeout=POLL_INTERVAL)
                        progress.update(task_id, completed=engine.status.processed)
                    progress.update(task_id, completed=engine.status.processed)
                console.line()  # Spacer below progress bar
        except KeyboardInterrupt:
            cancel_token.set()
            console.print("[bold red]\nStopping... (Ctrl+C detected)")
        return future.result()


def _report(status: EngineStatus, label: str, started: float) -> None:
    if status.outcome is Outcome.CANCELLED:
        typer.echo(f"{label} cancelled after {status.processed}/{status.total} pieces.", err=True)
        raise typer.Exit(130)
    if status.outcome is Outcome.FAILED:
        typer.echo(f"ERROR: {status.message}", err=True)
        raise typer.Exit(1)
    elapsed_ms = int((time.monotonic() - started) * 1000)
    typer.echo(f"{label.upper()} COMPLETE! Took {elapsed_ms} milliseconds.")


@app.command("split")
def split_command(
    ctx: typer.Context,
    input_file: Path = typer.Argument(
        ...,
        help="Path to the file to split.",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory to write pieces into (defaults to the input's directory).",
    ),
    piece_size: Optional[str] = typer.Option(
        None,
        "--piece-size",
        "-s",
        help="Piece size in bytes or with a unit, e.g. 8MB or 1.5GiB (default from config: 8MB).",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Remove existing piece files in the output directory before splitting.",
    ),
) -> None:
    """Split a file into fixed-size numbered pieces."""
    config = _config(ctx)
    if piece_size is None:
        size_bytes = config.default_piece_size
    else:
        try:
            size_bytes = parse_size(piece_size)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--piece-size") from exc

    # Stale pieces are only removed once the split itself can start.
    if not input_file.is_file():
        typer.echo(f"ERROR: Input file ({input_file}) does not exist.", err=True)
        raise typer.Exit(1)
    if not 0 < size_bytes <= config.max_piece_size:
        typer.echo(
            f"ERROR: The file piece size must be greater than 0 and at most "
            f"{config.max_piece_size} bytes.",
            err=True,
        )
        raise typer.Exit(1)

    if output_dir is not None:
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            typer.echo(f"ERROR: Cannot create output folder ({output_dir}): {exc}", err=True)
            raise typer.Exit(1) from exc
    target_dir = output_dir if output_dir is not None else input_file.parent

    existing = find_pieces(target_dir, config.piece_suffix) if target_dir.is_dir() else []
    if existing:
        if not force:
            typer.echo(
                f"Refusing to overwrite {len(existing)} existing {config.piece_suffix} file(s) "
                f"in {target_dir}. Pass --force to overwrite.",
                err=True,
            )
            raise typer.Exit(1)
        for stale in existing:
            stale.unlink()
        LOGGER.info("Removed %d stale piece files from %s", len(existing), target_dir)

    typer.echo(f"Input file: {input_file}")
    typer.echo(f"Output folder: {target_dir}")
    typer.echo(f"Piece size: {format_size(size_bytes)} ({size_bytes} bytes)")

    engine = PieceEngine(config)
    started = time.monotonic()
    status = _run_with_progress(
        engine,
        "Creating pieces",
        lambda token: engine.split(input_file, target_dir, size_bytes, cancel_token=token),
    )
    _report(status, "Split", started)
    typer.echo(f"Wrote {status.processed} piece file(s) to {target_dir}")


@app.command("join")
def join_command(
    ctx: typer.Context,
    input_dir: Path = typer.Argument(
        ...,
        help="Directory containing the .piece files.",
    ),
    name: str = typer.Option(
        ...,
        "--name",
        "-n",
        help="Base name of the joined file.",
    ),
    extension: str = typer.Option(
        ...,
        "--extension",
        "-e",
        help="Extension of the joined file (without the leading dot).",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory to write the joined file into (defaults to the piece directory).",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite the destination file if it already exists.",
    ),
) -> None:
    """Join a complete piece set back into a single file."""
    config = _config(ctx)
    target_dir = output_dir if output_dir is not None else input_dir
    try:
        destination = target_dir / joined_file_name(name, extension)
    except PreconditionError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if destination.exists() and not force:
        typer.echo(
            f"Refusing to overwrite existing file: {destination}. Pass --force to overwrite.",
            err=True,
        )
        raise typer.Exit(1)

    typer.echo(f"Input folder: {input_dir}")
    typer.echo(f"Output file: {destination}")

    engine = PieceEngine(config)
    started = time.monotonic()
    status = _run_with_progress(
        engine,
        "Joining pieces",
        lambda token: engine.join(input_dir, target_dir, name, extension, cancel_token=token),
    )
    _report(status, "Join", started)
    typer.echo(f"Reassembled {status.processed} piece file(s) into {destination}")


@app.command("verify")
def verify_command(
    ctx: typer.Context,
    input_dir: Path = typer.Argument(
        ...,
        help="Directory containing the .piece files.",
    ),
) -> None:
    """Check that a piece directory holds a complete, joinable piece set."""
    config = _config(ctx)
    if not input_dir.is_dir():
        typer.echo(f"ERROR: Input folder path ({input_dir}) does not exist.", err=True)
        raise typer.Exit(1)
    pieces = find_pieces(input_dir, config.piece_suffix)
    if not pieces:
        typer.echo(f"ERROR: No {config.piece_suffix} files found in ({input_dir}).", err=True)
        raise typer.Exit(1)
    try:
        check_piece_sequence(pieces, config.piece_suffix)
    except PieceSequenceError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(1) from exc

    total_bytes = 0
    bad: list[tuple[Path, int]] = []
    for piece in pieces:
        size = piece.stat().st_size
        total_bytes += size
        if not is_valid_piece_size(size, len(pieces), config.max_piece_size):
            bad.append((piece, size))
    for piece, size in bad:
        typer.echo(f"ERROR: {piece} is of bad size ({size} bytes).", err=True)
    if bad:
        raise typer.Exit(1)
    typer.echo(
        f"OK: {len(pieces)} piece file(s), {format_size(total_bytes)} ({total_bytes} bytes) in total."
    )


if __name__ == "__main__":
    app()
