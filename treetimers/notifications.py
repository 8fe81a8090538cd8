"""Completion notifications.

The timer tree only needs a ``notify(title, body)`` callable; anything
matching that shape can be injected.  :class:`TerminalNotifier` is the one
the command line uses.
"""

from __future__ import annotations

import sys
from typing import Callable, TextIO

Notifier = Callable[[str, str], None]

FINISHED_TITLE = "Timer finished"


class TerminalNotifier:
    """Ring the terminal bell and print ``title: body``."""

    def __init__(self, stream: TextIO | None = None, *, bell: bool = True) -> None:
        self._stream = stream
        self._bell = bell

    def __call__(self, title: str, body: str) -> None:
        stream = self._stream or sys.stderr
        prefix = "\a" if self._bell else ""
        stream.write(f"{prefix}{title}: {body}\n")
        stream.flush()
