# progress_ux.py — terminal UX for the shared total (Halo spinner, colorama colours)
from __future__ import annotations

import itertools
import os
import re
import sys
import threading
from types import TracebackType
from typing import Any, Callable, Dict, List, Optional, Protocol, Type

from colorama import Fore, Style
from colorama import init as colorama_init
from halo import Halo

from . import numeric

colorama_init(autoreset=True)

DEFAULT_COLORS: List[str] = [
    Fore.GREEN, Fore.CYAN, Fore.BLUE, Fore.MAGENTA, Fore.YELLOW, Fore.WHITE,
    Fore.LIGHTGREEN_EX, Fore.LIGHTCYAN_EX, Fore.LIGHTBLUE_EX, Fore.LIGHTMAGENTA_EX,
]

ACTIVE_ENV = "ALLOTMENT_PROGRESS_ACTIVE"
FORCE_ENV = "ALLOTMENT_PROGRESS_FORCE"

TextFn = Callable[[Dict[str, Any], str], str]


class Spinner(Protocol):
    def __enter__(self) -> "Spinner": ...
    def __exit__(self, exc_type: Optional[Type[BaseException]], exc: Optional[BaseException], tb: Optional[TracebackType]) -> None: ...
    def start(self) -> "Spinner": ...
    def stop(self) -> None: ...
    def update(self, **kwargs: Any) -> "Spinner": ...


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


def should_enable_spinners(stream: Any | None = None) -> bool:
    """Whether a live spinner may be drawn on *stream* (default stderr)."""
    # Suppress nested spinners unless forced.
    if os.environ.get(ACTIVE_ENV) == "1" and not _truthy(os.environ.get(FORCE_ENV)):
        return False
    if os.environ.get("CI"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    target = stream or sys.stderr
    isatty = getattr(target, "isatty", None)
    try:
        return bool(isatty()) if callable(isatty) else False
    except (OSError, ValueError):
        return False


class NullSpinner:
    """Renders nothing; stands in when the terminal cannot host a spinner."""

    def __init__(self, *_: Any, **__: Any) -> None:
        self.state: Dict[str, Any] = {}

    def __enter__(self) -> "NullSpinner":
        return self

    def __exit__(self, exc_type: Optional[Type[BaseException]], exc: Optional[BaseException], tb: Optional[TracebackType]) -> None:
        self.stop()

    def start(self) -> "NullSpinner":
        return self

    def stop(self) -> None:
        return None

    def update(self, **kwargs: Any) -> "NullSpinner":
        self.state.update(kwargs)
        return self


class DynamicSpinner:
    """
    Single-line Halo spinner whose text is recomputed from a state dict on
    every tick, with the prefix colour cycling through ``DEFAULT_COLORS``.
    """

    def __init__(
        self,
        text_fn: TextFn,
        state: Optional[Dict[str, Any]] = None,
        *,
        interval: float = 0.05,
        spinner_type: str = "dots",
        stream: Any | None = None,
        final_newline: bool = False,
    ) -> None:
        self._text_fn = text_fn
        self.state: Dict[str, Any] = dict(state or {})
        self._interval = interval
        self._colors = itertools.cycle(DEFAULT_COLORS)
        self._stop = threading.Event()
        self._stream = stream or sys.stderr
        self._final_newline = final_newline
        self._spinner = Halo(text="", spinner=spinner_type, stream=self._stream)
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "DynamicSpinner":
        os.environ[ACTIVE_ENV] = "1"
        return self.start()

    def __exit__(self, exc_type: Optional[Type[BaseException]], exc: Optional[BaseException], tb: Optional[TracebackType]) -> None:
        try:
            self.stop()
        finally:
            os.environ.pop(ACTIVE_ENV, None)

    def render(self, color: str = "") -> str:
        return self._text_fn(self.state, color)

    def start(self) -> "DynamicSpinner":
        self._stop.clear()
        self._spinner.text = self.render(next(self._colors))
        self._spinner.start()

        def _loop() -> None:
            while not self._stop.wait(self._interval):
                self._spinner.text = self.render(next(self._colors))

        self._thread = threading.Thread(target=_loop, name="allotment-spinner", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        # Leave the final frame on screen.
        self._spinner.stop_and_persist(symbol=" ", text=self.render())
        if self._final_newline:
            self._stream.write("\n")
            self._stream.flush()

    def update(self, **kwargs: Any) -> "DynamicSpinner":
        # Accepts keys: total, count, label
        self.state.update(kwargs)
        return self


_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def visible_len(s: str) -> int:
    return len(_ANSI_RE.sub("", s))


def _ellipsize(s: str, n: int) -> str:
    if n <= 0:
        return ""
    if len(s) <= n:
        return s
    if n == 1:
        return "…"
    return s[: n - 1].rstrip() + "…"


def format_amount(value: Any) -> str:
    """Integers print as-is; every other numeric type gets two decimals."""
    if numeric.is_integral(value):
        return str(int(value))
    return f"{float(value):.2f}"


def percent_of(count: Any, total: Any) -> float:
    """Share of *total* reached, in percent. Overshoot is shown as-is."""
    try:
        return max(0.0, 100.0 * float(count) / float(total))
    except ZeroDivisionError:
        return 0.0


def percent_spinner(
    prefix: str = "PROGRESS",
    *,
    enabled: bool = True,
    spinner_type: str | None = None,
    stream: Any | None = None,
    final_newline: bool | None = None,
    interval: float | None = None,
) -> Spinner:
    """
    Fixed-width single line:  <PREFIX> [Task: …]  [count/total] [zz.zz%]

    Width, tail style, glyph, refresh interval and the trailing newline honour
    the ALLOTMENT_PROGRESS_* / ALLOTMENT_SPINNER* environment knobs. Returns a
    ``NullSpinner`` when the stream cannot host a spinner.
    """
    try:
        cols = max(20, int(os.environ.get("ALLOTMENT_PROGRESS_WIDTH", "100")))
    except ValueError:
        cols = 100
    tail_mode = (os.environ.get("ALLOTMENT_PROGRESS_TAIL") or "full").lower()
    spinner_type = spinner_type or os.environ.get("ALLOTMENT_SPINNER", "dots")
    if final_newline is None:
        final_newline = _truthy(os.environ.get("ALLOTMENT_PROGRESS_FINAL_NEWLINE"))
    if interval is None:
        try:
            interval = float(os.environ.get("ALLOTMENT_SPINNER_INTERVAL", "0.05"))
        except ValueError:
            interval = 0.05

    target = stream or sys.stderr
    if not (enabled and should_enable_spinners(target)):
        return NullSpinner()

    text_fn = make_percent_text(prefix, cols=cols, tail_mode=tail_mode)
    return DynamicSpinner(
        text_fn,
        {"count": 0, "total": 1, "label": ""},
        interval=interval,
        spinner_type=spinner_type,
        stream=target,
        final_newline=final_newline,
    )


def make_percent_text(prefix: str, *, cols: int = 100, tail_mode: str = "full") -> TextFn:
    """Build the text function used by ``percent_spinner``."""

    def text_fn(state: Dict[str, Any], color: str) -> str:
        count = state.get("count", 0)
        total = state.get("total", 1)
        label = str(state.get("label") or "")
        pct = percent_of(count, total)
        done_s, total_s = format_amount(count), format_amount(total)

        head = f"{color}{Style.BRIGHT}{prefix}{Style.RESET_ALL} "
        if tail_mode == "min":
            tail = f"{Fore.MAGENTA}{Style.BRIGHT} [{int(round(pct))}%]{Style.RESET_ALL}"
        elif tail_mode == "short":
            tail = f"{Fore.MAGENTA}{Style.BRIGHT} [{done_s}/{total_s}] [{pct:5.1f}%]{Style.RESET_ALL}"
        else:
            w = len(total_s)
            tail = f"{Fore.MAGENTA}{Style.BRIGHT} [{done_s:>{w}}/{total_s}] [{pct:6.2f}%]{Style.RESET_ALL}"

        budget = max(3, cols - visible_len(head) - visible_len(tail))
        mid = ""
        if label:
            open_ = f"{Fore.CYAN}{Style.BRIGHT}[Task:{Style.RESET_ALL}{Fore.RED}{Style.BRIGHT}"
            close = f"{Style.RESET_ALL}{Fore.CYAN}{Style.BRIGHT}]{Style.RESET_ALL}"
            room = budget - visible_len(open_) - visible_len(close)
            mid = open_ + _ellipsize(label, room) + close
        mid += " " * max(0, budget - visible_len(mid))
        return f"{head}{mid}{tail}"

    return text_fn
