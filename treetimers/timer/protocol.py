"""Run control protocol: start/stop/reset and the cascades between levels.

Transitions
-----------
IDLE → RUNNING       START (user)  or  CHILD_STARTED (cascade)
RUNNING → IDLE       STOP (user)   or  CHILD_STOPPED, if the run was cascaded
RUNNING → FINISHED   completion, detected by the evaluation engine
FINISHED/IDLE → IDLE RESET (a running timer is restarted at ``now``)

Cascades are explicit messages.  :func:`apply` handles one command for one
timer and returns the commands addressed to its parent; the composition
root keeps feeding them back in until the outbox is empty.

Start cascade
    A starting timer tells its parent ``CHILD_STARTED``.  The parent
    records the child as its running one and, if idle, starts too with
    the same timestamp, marking the run as ``cascaded`` and forwarding
    the message to its own parent.
Stop cascade
    A stopping (or completing) timer tells its parent ``CHILD_STOPPED``.
    The parent forgets its running child and, if its run was only there
    because of the cascade, stops as well.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from .evaluation import close_segment
from .node import ZERO, RuntimeState


class CommandKind(Enum):
    START = "start"
    STOP = "stop"
    RESET = "reset"
    CHILD_STARTED = "child_started"
    CHILD_STOPPED = "child_stopped"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    target: str
    at: datetime
    child: str | None = None   # sender of CHILD_* messages


@dataclass(frozen=True)
class Transition:
    state: RuntimeState
    outbox: list[Command] = field(default_factory=list)
    started: bool = False
    stopped: bool = False


def child_started(parent_id: str | None, child_id: str, at: datetime) -> list[Command]:
    if parent_id is None:
        return []
    return [Command(CommandKind.CHILD_STARTED, parent_id, at, child=child_id)]


def child_stopped(parent_id: str | None, child_id: str, at: datetime) -> list[Command]:
    if parent_id is None:
        return []
    return [Command(CommandKind.CHILD_STOPPED, parent_id, at, child=child_id)]


def _start(command: Command, state: RuntimeState, parent_id: str | None,
           *, cascaded: bool) -> Transition:
    state = replace(state, started=command.at, cascaded=cascaded)
    return Transition(
        state, child_started(parent_id, command.target, command.at), started=True
    )


def _stop(command: Command, state: RuntimeState, parent_id: str | None) -> Transition:
    state = close_segment(state, command.at)
    return Transition(
        state, child_stopped(parent_id, command.target, command.at), stopped=True
    )


def apply(command: Command, state: RuntimeState, parent_id: str | None) -> Transition:
    """Apply *command* to the timer it targets, whose owner is *parent_id*."""
    kind = command.kind

    if kind is CommandKind.START:
        if state.running or state.finished:
            return Transition(state)
        return _start(command, state, parent_id, cascaded=False)

    if kind is CommandKind.STOP:
        if not state.running:
            return Transition(state)
        return _stop(command, state, parent_id)

    if kind is CommandKind.RESET:
        started = command.at if state.running else None
        return Transition(replace(state, elapsed=ZERO, finished=False, started=started))

    if kind is CommandKind.CHILD_STARTED:
        state = replace(state, child_running=command.child)
        if state.running or state.finished:
            return Transition(state)
        return _start(command, state, parent_id, cascaded=True)

    if kind is CommandKind.CHILD_STOPPED:
        state = replace(state, child_running=None)
        if state.running and state.cascaded:
            return _stop(command, state, parent_id)
        return Transition(state)

    raise ValueError(f"unknown command kind: {kind!r}")
