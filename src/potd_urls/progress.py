"""Progress reporting for thumbnail downloads.

Downloads report written byte counts through a :class:`ByteCounter`. The counter
forwards each advance to a reporter built by the registered factory; the CLI
registers a tqdm-backed one, everything else stays silent.
"""

from __future__ import annotations

from contextlib import contextmanager, nullcontext
from typing import Callable, ContextManager, Iterator, Optional, Protocol


class ProgressReporter(Protocol):
    """Receives the number of bytes written since the previous call."""

    def update(self, advance: int) -> None: ...


# (total bytes or None when unknown, description) -> reporter context
ProgressFactory = Callable[[Optional[int], str], ContextManager[ProgressReporter]]


class _SilentReporter:
    def update(self, advance: int) -> None:
        return None


def _silent_factory(total: Optional[int], description: str) -> ContextManager[ProgressReporter]:
    return nullcontext(_SilentReporter())


_factory: ProgressFactory = _silent_factory


def set_progress_factory(factory: Optional[ProgressFactory]) -> None:
    """Register the factory used for download reporters; None silences reporting."""
    global _factory
    _factory = _silent_factory if factory is None else factory


class ByteCounter:
    """Running byte total for one download."""

    def __init__(self, reporter: ProgressReporter) -> None:
        self._reporter = reporter
        self.transferred = 0

    def update(self, advance: int) -> None:
        if advance <= 0:
            return
        self.transferred += advance
        self._reporter.update(advance)


@contextmanager
def download_progress(total_bytes: Optional[int], filename: str) -> Iterator[ByteCounter]:
    """Yield a counter for a download of ``filename``.

    Args:
        total_bytes: Expected size from Content-Length, or None when unknown
        filename: Name shown next to the bar; may be empty
    """
    description = f"Downloading {filename}" if filename else "Downloading"
    with _factory(total_bytes, description) as reporter:
        yield ByteCounter(reporter)


__all__ = [
    "ByteCounter",
    "ProgressFactory",
    "ProgressReporter",
    "download_progress",
    "set_progress_factory",
]
