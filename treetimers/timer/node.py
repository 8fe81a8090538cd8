"""Timer records: persisted configuration and persisted run state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


ROOT = "root"          # parent_id of top-level timers (informational only)
NO_CHILD = "__NONE__"  # child_running: "explicitly no child", distinct from unset
DEFAULT_NAME = "unnamed"
ZERO = timedelta(0)


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class TimerNode:
    """Identity and configuration of one timer.

    ``parent_id`` is kept for compatibility with stored data; the tree is
    only ever discovered through ``children_ids`` starting at the root
    registry.
    """

    id: str
    name: str = DEFAULT_NAME
    total_time: timedelta = ZERO
    parent_id: str = ROOT
    children_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuntimeState:
    """Mutable run state of one timer (replaced, never mutated in place)."""

    started: datetime | None = None
    elapsed: timedelta = ZERO
    finished: bool = False
    child_running: str | None = None
    cascaded: bool = False   # current segment opened by a child's start

    @property
    def running(self) -> bool:
        return self.started is not None

    @property
    def tracked_child(self) -> str | None:
        """The child id this timer treats as running, ignoring sentinels."""
        if self.child_running in (None, NO_CHILD):
            return None
        return self.child_running

    @property
    def timer_state(self) -> TimerState:
        if self.started is not None:
            return TimerState.RUNNING
        if self.finished:
            return TimerState.FINISHED
        return TimerState.IDLE
