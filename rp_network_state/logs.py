"""Progress and diagnostic line logging."""

import sys
from typing import Any, Protocol

from tqdm import tqdm


class LineLogger(Protocol):
    """Sink for formatted progress lines."""

    def log_line(self, fmt: str, *args: Any) -> None: ...


class NullLogger:
    """Discards everything."""

    def log_line(self, fmt: str, *args: Any) -> None:
        pass


class StderrLogger:
    """Writes lines to stderr without breaking active tqdm progress bars."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def log_line(self, fmt: str, *args: Any) -> None:
        line = fmt % args if args else fmt
        tqdm.write(f"{self.prefix}{line}", file=sys.stderr)


def ensure_logger(logger: LineLogger | None) -> LineLogger:
    """Return `logger`, or a NullLogger if none was given."""
    return logger if logger is not None else NullLogger()
