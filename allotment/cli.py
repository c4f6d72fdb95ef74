# allotment/cli.py — command line front-end ("allotment" / "python -m allotment")
from __future__ import annotations

import asyncio
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any, List

import typer

from .bridges import live_total
from .channel import ChannelClosed, Reader
from .integrations import copy_file, hash_file
from .logging_config import setup_logging
from .node import Progress
from .progress_ux import format_amount, percent_spinner

LOGGER = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    help="Nested progress allocations folded into one shared total.",
)

_MODES = {"thread", "async"}


@app.callback()
def _init() -> None:
    setup_logging()


def _drive(sub: Progress[Any, Any], steps: int, delay: float) -> None:
    with sub:
        for _ in range(steps):
            if delay:
                time.sleep(delay)
            sub.advance(1)


def _run_threads(root: Progress[Any, Any], tasks: int, steps: int, delay: float) -> None:
    subs = [root.allocate_fraction(tasks, internal_max=steps) for _ in range(tasks)]
    workers: List[threading.Thread] = [
        threading.Thread(target=_drive, args=(sub, steps, delay), name=f"allotment-task-{i}", daemon=True)
        for i, sub in enumerate(subs)
    ]
    with live_total(root, prefix="DEMO", label=f"{tasks} threads"):
        for w in workers:
            w.start()
        for w in workers:
            w.join()


async def _observe(reader: Reader[Any], on_value: Any) -> None:
    while True:
        try:
            await reader.changed()
        except ChannelClosed:
            return
        on_value(reader.read())


async def _run_async(root: Progress[Any, Any], tasks: int, steps: int, delay: float) -> None:
    async def drive(sub: Progress[Any, Any]) -> None:
        with sub:
            for _ in range(steps):
                await asyncio.sleep(delay)
                sub.advance(1)

    subs = [root.allocate_fraction(tasks, internal_max=steps) for _ in range(tasks)]
    with percent_spinner("DEMO") as sp:
        sp.update(total=root.allocation, label=f"{tasks} tasks")
        observer = asyncio.create_task(_observe(root.subscribe(), lambda v: sp.update(count=v)))
        try:
            await asyncio.gather(*(drive(sub) for sub in subs))
        finally:
            observer.cancel()
            try:
                await observer
            except asyncio.CancelledError:
                pass
        sp.update(count=root.channel.value)


@app.command()
def demo(
    total: int = typer.Option(10000, "--total", min=1, help="Root allocation (absolute range)."),
    tasks: int = typer.Option(4, "--tasks", "-n", min=1, help="Number of even subtasks."),
    steps: int = typer.Option(100, "--steps", min=1, help="Internal steps per subtask."),
    mode: str = typer.Option("thread", "--mode", metavar="[thread|async]", help="Drive subtasks on threads or asyncio tasks."),
    delay: float = typer.Option(0.01, "--delay", min=0.0, help="Seconds to sleep between steps."),
) -> None:
    """Split a root range into subtasks and watch the shared total."""
    mode_norm = mode.strip().lower()
    if mode_norm not in _MODES:
        typer.echo(f"Unknown mode {mode!r}; expected one of: {', '.join(sorted(_MODES))}", err=True)
        raise typer.Exit(2)

    root: Progress[int, int] = Progress(total)
    reader = root.subscribe()
    LOGGER.debug("demo start total=%d tasks=%d steps=%d mode=%s", total, tasks, steps, mode_norm)
    if mode_norm == "async":
        asyncio.run(_run_async(root, tasks, steps, delay))
    else:
        _run_threads(root, tasks, steps, delay)
    typer.echo(f"total={format_amount(reader.read())}/{format_amount(total)}")


def _require_file(path: Path) -> None:
    if not path.is_file():
        typer.echo(f"No such file: {path}", err=True)
        raise typer.Exit(2)


@app.command()
def copy(
    src: Path = typer.Argument(..., help="File to copy."),
    dst: Path = typer.Argument(..., help="Destination path."),
    total: int = typer.Option(10000, "--total", min=1, help="Absolute range shown on the spinner."),
) -> None:
    """Copy a file, reporting bytes through a progress node."""
    _require_file(src)
    root: Progress[int, int] = Progress(total)
    reader = root.subscribe()
    with live_total(root, prefix="COPY", label=src.name):
        copy_file(src, dst, root)
    typer.echo(f"{dst} total={format_amount(reader.read())}/{format_amount(total)}")


@app.command(name="hash")
def hash_cmd(
    path: Path = typer.Argument(..., help="File to hash."),
    total: int = typer.Option(10000, "--total", min=1, help="Absolute range shown on the spinner."),
) -> None:
    """SHA-256 a file, reporting bytes through a progress node."""
    _require_file(path)
    root: Progress[int, int] = Progress(total)
    with live_total(root, prefix="HASH", label=path.name):
        digest = hash_file(path, root)
    typer.echo(f"{digest}  {path}")


def main() -> None:  # pragma: no cover
    try:
        app()
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("cli.run.error")
        typer.echo(f"Unhandled error: {exc}", err=True)
        sys.exit(1)
