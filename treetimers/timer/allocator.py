"""Time budget allocation between a parent timer and its children.

A child may only be given what its parent has not already handed out to
its other children.  The check happens once, at creation: totals are
immutable afterwards, so the budget can never be overdrawn later.
"""

from __future__ import annotations

from datetime import timedelta

from .node import ZERO


def clamp_duration(
    requested: timedelta, maximum: timedelta | None = None
) -> timedelta:
    """Clamp *requested* into ``[0, maximum]`` (no upper bound if ``None``)."""
    if maximum is not None:
        requested = min(requested, max(maximum, ZERO))
    return max(requested, ZERO)


def unallocated_time(total_time: timedelta, children_time: timedelta) -> timedelta:
    return total_time - children_time


def is_startable(total_time: timedelta, children_time: timedelta) -> bool:
    """A timer whose whole budget is subdivided only runs via its children."""
    return unallocated_time(total_time, children_time) > ZERO
