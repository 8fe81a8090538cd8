"""Timer package."""

from .evaluation import COMPLETION_THRESHOLD, Correction, Derived, Evaluation, evaluate
from .node import NO_CHILD, ROOT, RuntimeState, TimerNode, TimerState
from .protocol import Command, CommandKind, Transition, apply
from .repository import TimerRepository
from .tree import DEFAULT_INTERVAL_MS, TimerSnapshot, TimerTree

__all__ = [
    "COMPLETION_THRESHOLD",
    "Correction",
    "Derived",
    "Evaluation",
    "evaluate",
    "NO_CHILD",
    "ROOT",
    "RuntimeState",
    "TimerNode",
    "TimerState",
    "Command",
    "CommandKind",
    "Transition",
    "apply",
    "TimerRepository",
    "DEFAULT_INTERVAL_MS",
    "TimerSnapshot",
    "TimerTree",
]
