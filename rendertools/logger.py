"""Small leveled logger with console and file outputs and progress bars."""

from __future__ import annotations

import abc
import enum
import math
import os
import shutil
import sys
import time
from datetime import timedelta
from typing import IO, Iterable, Optional, Union

DurationLike = Union[timedelta, float, int]

ESC = "\033"
RESET = ESC + "[0m"
LINE_BEGIN = ESC + "[0G"
ERASE_TO_END_OF_LINE = ESC + "[K"

BLACK = ESC + "[0;30m"
RED = ESC + "[0;31m"
GREEN = ESC + "[0;32m"
YELLOW = ESC + "[0;33m"
BLUE = ESC + "[0;34m"
MAGENTA = ESC + "[0;35m"
CYAN = ESC + "[0;36m"
WHITE = ESC + "[0;37m"

BOLD_BLACK = ESC + "[1;30m"
BOLD_RED = ESC + "[1;31m"
BOLD_GREEN = ESC + "[1;32m"
BOLD_YELLOW = ESC + "[1;33m"
BOLD_BLUE = ESC + "[1;34m"
BOLD_MAGENTA = ESC + "[1;35m"
BOLD_CYAN = ESC + "[1;36m"
BOLD_WHITE = ESC + "[1;37m"

HIDE_CURSOR = ESC + "[?25l"
SHOW_CURSOR = ESC + "[?25h"


class Severity(enum.Enum):
    """How important a log line is."""

    NONE = enum.auto()
    INFO = enum.auto()
    DEBUG = enum.auto()
    WARNING = enum.auto()
    ERROR = enum.auto()
    SUCCESS = enum.auto()
    PROGRESS = enum.auto()


_SEVERITY_NAMES = {
    Severity.SUCCESS: "SUCCESS",
    Severity.INFO: "INFO",
    Severity.WARNING: "WARNING",
    Severity.DEBUG: "DEBUG",
    Severity.ERROR: "ERROR",
    Severity.PROGRESS: "PROGRESS",
}

_SEVERITY_COLORS = {
    Severity.SUCCESS: GREEN,
    Severity.INFO: CYAN,
    Severity.WARNING: BOLD_YELLOW,
    Severity.DEBUG: MAGENTA,
    Severity.ERROR: BOLD_RED,
    Severity.PROGRESS: BLUE,
}


def pad_from_left(text: str, length: int, padding_char: str = " ") -> str:
    """Left-pad ``text`` with ``padding_char`` up to ``length`` characters."""
    if length > len(text):
        return padding_char * (length - len(text)) + text
    return text


def pad_from_right(text: str, length: int, padding_char: str = " ") -> str:
    """Right-pad ``text`` with ``padding_char`` up to ``length`` characters."""
    if length > len(text):
        return text + padding_char * (length - len(text))
    return text


def time_to_string(fmt: str, timestamp: float) -> str:
    """Format a POSIX timestamp in local time with ``strftime`` syntax."""
    rendered = time.strftime(fmt, time.localtime(timestamp))
    if not rendered:
        raise RuntimeError("Could not render local time.")
    return rendered


def now_to_string(fmt: str) -> str:
    """Format the current local time with ``strftime`` syntax."""
    return time_to_string(fmt, time.time())


def _as_timedelta(duration: DurationLike) -> timedelta:
    if isinstance(duration, timedelta):
        return duration
    return timedelta(seconds=duration)


def duration_to_string(duration: DurationLike) -> str:
    """Render a duration compactly, e.g. ``3s``, ``17m03s`` or ``2d04h00m09s``."""
    total = int(_as_timedelta(duration).total_seconds())
    sign = -1 if total < 0 else 1
    days, rest = divmod(abs(total), 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    days, hours, minutes, seconds = (sign * v for v in (days, hours, minutes, seconds))

    def two(value: int) -> str:
        return pad_from_left(str(value), 2, "0")

    if days > 0:
        return f"{days}d{two(hours)}h{two(minutes)}m{two(seconds)}s"
    if hours > 0:
        return f"{hours}h{two(minutes)}m{two(seconds)}s"
    if minutes > 0:
        return f"{minutes}m{two(seconds)}s"
    return f"{seconds}s"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def progress_bar(current: int, total: int, duration: DurationLike, width: int) -> str:
    """Build a text progress bar with percentage, counts and time estimate."""
    if total == 0:
        raise ValueError("Progress: total must not be zero.")
    if current > total:
        raise ValueError("Progress: current must not be larger than total")

    elapsed = _as_timedelta(duration)
    fraction = current / total

    percentage_str = pad_from_left(f"{_round_half_up(fraction * 100)}%", 4)

    total_str = str(total)
    fraction_str = pad_from_left(f"{current}/{total_str}", len(total_str) * 2 + 1)

    if current == 0:
        projected_str = "inf"
    else:
        projected_str = duration_to_string(elapsed / fraction)
    time_str = pad_from_left(
        f"{duration_to_string(elapsed)}/{projected_str}", len(projected_str) * 2 + 1
    )

    label = f"{percentage_str} ({fraction_str}) {time_str}"

    usable_width = max(0, width - 2 - 1 - len(label))
    filled = _round_half_up(usable_width * fraction)

    if filled > 0:
        body = "=" * filled
        if filled < usable_width:
            body += ">"
        body = body.ljust(usable_width)
    else:
        body = " " * usable_width

    return f"[{body}] {label}"


def severity_to_string(severity: Severity) -> str:
    """Upper-case name of a severity; empty for ``Severity.NONE``."""
    return _SEVERITY_NAMES.get(severity, "")


class Output(abc.ABC):
    """A destination that log lines and progress reports are written to."""

    @abc.abstractmethod
    def write_line(self, scope: str, severity: Severity, line: str) -> None:
        """Write one log line."""

    @abc.abstractmethod
    def write_progress(
        self, scope: str, current: int, total: int, duration: DurationLike
    ) -> None:
        """Write one progress report."""


def _ansi_supported() -> bool:
    return not os.environ.get("NO_COLOR")


class ConsoleOutput(Output):
    """Writes to the terminal, colouring lines when ANSI sequences are allowed.

    Warnings and errors go to ``stderr``; everything else to ``stdout``.
    """

    def __init__(
        self,
        stdout: Optional[IO[str]] = None,
        stderr: Optional[IO[str]] = None,
        use_ansi: Optional[bool] = None,
        width: Optional[int] = None,
    ) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self.use_ansi = _ansi_supported() if use_ansi is None else use_ansi
        self._width = width
        if self.use_ansi:
            self.stdout.write(RESET)

    @property
    def stdout(self) -> IO[str]:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self) -> IO[str]:
        return self._stderr if self._stderr is not None else sys.stderr

    def _console_width(self) -> int:
        if self._width is not None:
            return self._width
        return shutil.get_terminal_size().columns

    def write_line(self, scope: str, severity: Severity, line: str) -> None:
        parts = []
        if severity is not Severity.NONE:
            parts.append(now_to_string("%H:%M:%S "))

        if self.use_ansi:
            parts.append(_SEVERITY_COLORS.get(severity, ""))

        severity_str = severity_to_string(severity)
        if severity is not Severity.NONE:
            severity_str = pad_from_right(severity_str, 9)
        parts.append(severity_str)

        if scope:
            if self.use_ansi:
                parts.append(BOLD_WHITE)
            parts.append(f"[{scope}] ")

        if self.use_ansi and severity is not Severity.NONE:
            parts.append(RESET)

        parts.append(line)

        if self.use_ansi:
            parts.append(ERASE_TO_END_OF_LINE + RESET)

        if self.use_ansi and severity is Severity.PROGRESS:
            parts.append(LINE_BEGIN)
        else:
            parts.append("\n")

        stream = (
            self.stderr
            if severity in (Severity.WARNING, Severity.ERROR)
            else self.stdout
        )
        stream.write("".join(parts))
        stream.flush()

    def write_progress(
        self, scope: str, current: int, total: int, duration: DurationLike
    ) -> None:
        # 18 is the width of the time string and the severity.
        bar_width = self._console_width() - 18
        if scope:
            bar_width -= 3 + len(scope)
        # Windows consoles erase the last column on clear-to-end-of-line.
        if os.name == "nt" and self.use_ansi:
            bar_width -= 1
        bar_width = max(0, bar_width)
        self.write_line(
            scope, Severity.PROGRESS, progress_bar(current, total, duration, bar_width)
        )


class FileOutput(Output):
    """Appends plain, uncoloured log lines to a file."""

    def __init__(self, target: Union[str, os.PathLike, IO[str]]) -> None:
        if isinstance(target, (str, os.PathLike)):
            self._file: IO[str] = open(target, "w", encoding="utf-8")
            self._owned = True
        else:
            self._file = target
            self._owned = False

    def write_line(self, scope: str, severity: Severity, line: str) -> None:
        parts = []
        if severity is not Severity.NONE:
            parts.append(now_to_string("%H:%M:%S "))
        if scope:
            parts.append(f"[{scope}] ")
        parts.append(severity_to_string(severity))
        if severity is not Severity.NONE:
            parts.append(" ")
        parts.append(line + "\n")
        self._file.write("".join(parts))

    def write_progress(
        self, scope: str, current: int, total: int, duration: DurationLike
    ) -> None:
        self.write_line(
            scope, Severity.PROGRESS, progress_bar(current, total, duration, 80)
        )

    def close(self) -> None:
        """Close the file if this output opened it, otherwise flush it."""
        if self._owned:
            self._file.close()
        else:
            self._file.flush()

    def __enter__(self) -> "FileOutput":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Progress:
    """Tracks a running task and reports its progress through a logger."""

    def __init__(self, logger: "Logger", total: int) -> None:
        self._logger = logger
        self._start = time.monotonic()
        self.total = total
        self.current = 0
        self.update(0)

    def update(self, current: int) -> None:
        """Record the current count and report it."""
        self.current = current
        self._logger.report_progress(current, self.total, self.duration())

    def duration(self) -> timedelta:
        """Time elapsed since the progress was started."""
        elapsed = time.monotonic() - self._start
        return timedelta(microseconds=int(elapsed * 1_000_000))


_console: Optional[ConsoleOutput] = None


def _global_console() -> ConsoleOutput:
    global _console
    if _console is None:
        _console = ConsoleOutput()
    return _console


class Logger:
    """Sends log lines to a set of outputs, skipping hidden severities."""

    def __init__(self, scope: str = "", outputs: Optional[Iterable[Output]] = None) -> None:
        if outputs is None:
            outputs = [_global_console()]
        self._outputs: dict[Output, None] = dict.fromkeys(outputs)
        self.scope = scope
        self._hidden: set[Severity] = set()
        if not __debug__:
            self.hide_severity(Severity.DEBUG)

    @property
    def outputs(self) -> tuple[Output, ...]:
        return tuple(self._outputs)

    @property
    def hidden_severities(self) -> frozenset[Severity]:
        return frozenset(self._hidden)

    def log(self, severity: Severity, line: str) -> None:
        if severity in self._hidden:
            return
        for output in self._outputs:
            output.write_line(self.scope, severity, line)

    def none(self, line: str) -> None:
        self.log(Severity.NONE, line)

    def info(self, line: str) -> None:
        self.log(Severity.INFO, line)

    def debug(self, line: str) -> None:
        self.log(Severity.DEBUG, line)

    def warning(self, line: str) -> None:
        self.log(Severity.WARNING, line)

    def error(self, line: str) -> None:
        self.log(Severity.ERROR, line)

    def success(self, line: str) -> None:
        self.log(Severity.SUCCESS, line)

    def progress(self, total: int) -> Progress:
        """Start a progress tracker; it reports 0 immediately."""
        return Progress(self, total)

    def report_progress(self, current: int, total: int, duration: DurationLike) -> None:
        if Severity.PROGRESS in self._hidden:
            return
        for output in self._outputs:
            output.write_progress(self.scope, current, total, duration)

    def hide_severity(self, severity: Severity) -> None:
        self._hidden.add(severity)

    def show_severity(self, severity: Severity) -> None:
        self._hidden.discard(severity)

    def add_output(self, output: Output) -> None:
        self._outputs[output] = None

    def remove_output(self, output: Output) -> None:
        self._outputs.pop(output, None)


_global: Optional[Logger] = None


def global_logger() -> Logger:
    """The process-wide logger, writing to the console."""
    global _global
    if _global is None:
        _global = Logger(outputs=[_global_console()])
    return _global


def log(severity: Severity, line: str) -> None:
    global_logger().log(severity, line)


def info(line: str) -> None:
    global_logger().info(line)


def debug(line: str) -> None:
    global_logger().debug(line)


def warning(line: str) -> None:
    global_logger().warning(line)


def error(line: str) -> None:
    global_logger().error(line)


def success(line: str) -> None:
    global_logger().success(line)


def progress(total: int) -> Progress:
    return global_logger().progress(total)