"""Per-tick evaluation of a single timer.

``evaluate`` is a pure function: given a node, its stored run state, the
shared ``now`` and the sibling its parent currently lets run, it returns
the derived quantities plus a corrected run state.  Two invariants are
repaired on every pass, not only when the user clicks something:

Completion
    A running timer with less than :data:`COMPLETION_THRESHOLD` left
    becomes FINISHED.  The caller notifies and cascades a stop upward.
Sibling exclusion
    A running timer that is not the sibling its parent authorises is
    stopped, with the open segment folded into ``elapsed``.

In both cases a timer that was tracking a running child switches its
``child_running`` to the ``NO_CHILD`` sentinel, so the children it still
has running get preempted when they are evaluated next.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from .allocator import is_startable, unallocated_time
from .node import NO_CHILD, ZERO, RuntimeState, TimerNode, TimerState

COMPLETION_THRESHOLD = timedelta(milliseconds=10)


class Correction(Enum):
    COMPLETED = "completed"
    PREEMPTED = "preempted"


@dataclass(frozen=True)
class Derived:
    current_segment: timedelta
    time_remaining: timedelta
    children_time: timedelta
    unallocated_time: timedelta
    startable: bool
    state: TimerState

    @property
    def running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def finished(self) -> bool:
        return self.state is TimerState.FINISHED


@dataclass(frozen=True)
class Evaluation:
    derived: Derived
    state: RuntimeState
    corrections: tuple[Correction, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.corrections)

    def percent_remaining(self, total_time: timedelta) -> float:
        """0.0 → 1.0 share of the budget still left."""
        if total_time <= ZERO:
            return 0.0
        return max(0.0, min(1.0, self.derived.time_remaining / total_time))


def current_segment(state: RuntimeState, now: datetime) -> timedelta:
    return now - state.started if state.started is not None else ZERO


def time_remaining(
    total_time: timedelta, state: RuntimeState, now: datetime
) -> timedelta:
    return total_time - (current_segment(state, now) + state.elapsed)


def close_segment(state: RuntimeState, now: datetime, **changes) -> RuntimeState:
    """Fold the open run segment into ``elapsed`` and stop."""
    child = NO_CHILD if state.tracked_child is not None else state.child_running
    return replace(
        state,
        elapsed=state.elapsed + current_segment(state, now),
        started=None,
        cascaded=False,
        child_running=child,
        **changes,
    )


def derive(
    node: TimerNode,
    state: RuntimeState,
    now: datetime,
    children_time: timedelta,
) -> Derived:
    return Derived(
        current_segment=current_segment(state, now),
        time_remaining=time_remaining(node.total_time, state, now),
        children_time=children_time,
        unallocated_time=unallocated_time(node.total_time, children_time),
        startable=is_startable(node.total_time, children_time),
        state=state.timer_state,
    )


def evaluate(
    node: TimerNode,
    state: RuntimeState,
    now: datetime,
    sibling_running: str | None,
    children_time: timedelta,
) -> Evaluation:
    corrections: list[Correction] = []

    if (
        state.started is not None
        and time_remaining(node.total_time, state, now) < COMPLETION_THRESHOLD
    ):
        state = close_segment(state, now, finished=True)
        corrections.append(Correction.COMPLETED)

    if (
        sibling_running is not None
        and sibling_running != node.id
        and state.started is not None
    ):
        state = close_segment(state, now)
        corrections.append(Correction.PREEMPTED)

    return Evaluation(
        derived=derive(node, state, now, children_time),
        state=state,
        corrections=tuple(corrections),
    )
