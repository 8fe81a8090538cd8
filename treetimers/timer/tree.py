"""The timer forest: repository + evaluation engine + run control protocol.

``TimerTree`` owns the shared clock.  On every tick, and after every user
action, it walks the forest top-down and evaluates each timer against the
same ``now``, handing every child its parent's current ``child_running``
as the authorised sibling.  Corrections found on the way (completions,
preemptions) are persisted immediately and their cascades drained before
the walk moves on; the walk is repeated until a pass comes back clean, so
the snapshots it returns always satisfy the run invariants.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from ..notifications import FINISHED_TITLE, Notifier
from .evaluation import Correction, Evaluation, evaluate
from .node import ZERO, TimerNode
from .protocol import Command, CommandKind, apply, child_stopped
from .repository import TimerRepository

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000


@dataclass(frozen=True)
class TimerSnapshot:
    """One timer as seen by the last evaluation pass."""

    node: TimerNode
    parent_id: str | None
    depth: int
    evaluation: Evaluation

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def time_remaining(self) -> timedelta:
        return self.evaluation.derived.time_remaining

    @property
    def unallocated_time(self) -> timedelta:
        return self.evaluation.derived.unallocated_time

    @property
    def startable(self) -> bool:
        return self.evaluation.derived.startable

    @property
    def running(self) -> bool:
        return self.evaluation.derived.running

    @property
    def finished(self) -> bool:
        return self.evaluation.derived.finished

    @property
    def percent_remaining(self) -> float:
        return self.evaluation.percent_remaining(self.node.total_time)


class TimerTree(QObject):
    """Composition root for the whole forest of timers.

    Signals
    -------
    tick(now: datetime)
        Emitted after each clock-driven evaluation pass.
    timer_started(timer_id: str)
        A timer opened a run segment (directly or through the cascade).
    timer_stopped(timer_id: str)
        A timer closed its run segment for any reason.
    timer_finished(timer_id: str)
        A timer ran out of time.
    tree_changed()
        A timer was added or deleted.
    """

    tick = pyqtSignal(object)
    timer_started = pyqtSignal(str)
    timer_stopped = pyqtSignal(str)
    timer_finished = pyqtSignal(str)
    tree_changed = pyqtSignal()

    def __init__(
        self,
        repository: TimerRepository | None = None,
        parent: QObject | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        notifier: Notifier | None = None,
        notify_when_finished: bool = False,
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)

        self._repo = repository if repository is not None else TimerRepository()
        self._clock = clock
        self._notifier = notifier
        self._notify_when_finished = notify_when_finished
        self._snapshots: dict[str, TimerSnapshot] = {}

        self._qt_timer = QTimer(self)
        self._qt_timer.timeout.connect(self._on_tick)
        self.interval_ms = interval_ms

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def repository(self) -> TimerRepository:
        return self._repo

    @property
    def interval_ms(self) -> int:
        return self._qt_timer.interval()

    @interval_ms.setter
    def interval_ms(self, value: int) -> None:
        self._qt_timer.setInterval(max(1, value))

    @property
    def notify_when_finished(self) -> bool:
        return self._notify_when_finished

    @notify_when_finished.setter
    def notify_when_finished(self, value: bool) -> None:
        self._notify_when_finished = value

    @property
    def is_ticking(self) -> bool:
        return self._qt_timer.isActive()

    def now(self) -> datetime:
        return self._clock()

    def snapshot(self, timer_id: str) -> TimerSnapshot | None:
        """The timer as of the last evaluation pass."""
        return self._snapshots.get(timer_id)

    def snapshots(self) -> list[TimerSnapshot]:
        return list(self._snapshots.values())

    def max_child_duration(self, parent_id: str) -> timedelta:
        """Largest duration a new child of *parent_id* may be given."""
        return max(self._repo.unallocated_time(parent_id), ZERO)

    # ══════════════════════════════════════════════════════════════════
    #  CLOCK
    # ══════════════════════════════════════════════════════════════════

    def start_clock(self) -> None:
        self._qt_timer.start()

    def stop_clock(self) -> None:
        self._qt_timer.stop()

    def _on_tick(self) -> None:
        now = self.now()
        self.evaluate_all(now)
        self.tick.emit(now)

    # ══════════════════════════════════════════════════════════════════
    #  STRUCTURE
    # ══════════════════════════════════════════════════════════════════

    def add_timer(
        self, name: str, total_time: timedelta, parent_id: str | None = None
    ) -> TimerNode | None:
        """Create a timer; ``None`` if *parent_id* is not in the forest."""
        if parent_id is not None and parent_id not in self._repo.owners():
            logger.debug("Cannot add %r: unknown parent %s", name, parent_id)
            return None
        node = self._repo.create(parent_id, name, total_time)
        self.tree_changed.emit()
        self.evaluate_all()
        return node

    def delete_timer(self, timer_id: str) -> bool:
        """Stop *timer_id* (unwinding its ancestors), then delete its subtree."""
        found, _ = self._repo.find_owner(timer_id)
        if not found:
            return False
        now = self.now()
        self._dispatch(Command(CommandKind.STOP, timer_id, now))
        self._repo.delete(timer_id)
        self.tree_changed.emit()
        self.evaluate_all(now)
        return True

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self, timer_id: str) -> bool:
        """Start a timer from IDLE.  Returns ``False`` if refused."""
        now = self.now()
        self.evaluate_all(now)
        snap = self.snapshot(timer_id)
        if snap is None or snap.running or snap.finished:
            return False
        if not snap.startable:
            logger.debug("Timer %s has no unallocated time to run", timer_id)
            return False
        if any(self._snapshots[aid].finished for aid in self._ancestors(timer_id)):
            logger.debug("Timer %s sits under a finished timer", timer_id)
            return False
        self._dispatch(Command(CommandKind.START, timer_id, now))
        self.evaluate_all(now)
        return True

    def stop(self, timer_id: str) -> bool:
        """Pause a running timer.  Returns ``False`` if it was not running."""
        now = self.now()
        self.evaluate_all(now)
        snap = self.snapshot(timer_id)
        if snap is None or not snap.running:
            return False
        self._dispatch(Command(CommandKind.STOP, timer_id, now))
        self.evaluate_all(now)
        return True

    def reset(self, timer_id: str) -> bool:
        """Clear elapsed time and the finished flag; keeps a running timer running."""
        now = self.now()
        self.evaluate_all(now)
        if self.snapshot(timer_id) is None:
            return False
        self._dispatch(Command(CommandKind.RESET, timer_id, now))
        self.evaluate_all(now)
        return True

    def _ancestors(self, timer_id: str) -> list[str]:
        result = []
        owner = self._snapshots[timer_id].parent_id
        while owner is not None:
            result.append(owner)
            owner = self._snapshots[owner].parent_id
        return result

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — command interpreter
    # ══════════════════════════════════════════════════════════════════

    def _dispatch(self, *commands: Command) -> None:
        """Apply *commands* and everything they cascade into."""
        owners = self._repo.owners()
        queue = deque(commands)
        while queue:
            command = queue.popleft()
            if command.target not in owners:
                logger.debug("Dropping %s for unknown timer %s",
                             command.kind.value, command.target)
                continue
            state = self._repo.load_state(command.target)
            transition = apply(command, state, owners[command.target])
            if transition.state != state:
                self._repo.save_state(command.target, transition.state)
            if transition.started:
                self.timer_started.emit(command.target)
            if transition.stopped:
                self.timer_stopped.emit(command.target)
            queue.extend(transition.outbox)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — evaluation
    # ══════════════════════════════════════════════════════════════════

    def evaluate_all(self, now: datetime | None = None) -> list[TimerSnapshot]:
        """Evaluate every timer at *now* until no corrections remain."""
        now = now if now is not None else self.now()
        while True:
            snapshots, corrected = self._evaluation_pass(now)
            self._snapshots = {snap.id: snap for snap in snapshots}
            if not corrected:
                return snapshots

    def _evaluation_pass(self, now: datetime) -> tuple[list[TimerSnapshot], bool]:
        snapshots: list[TimerSnapshot] = []
        corrected = False
        for node, owner, depth in list(self._repo.walk()):
            sibling = (
                self._repo.load_state(owner).child_running if owner is not None else None
            )
            evaluation = evaluate(
                node,
                self._repo.load_state(node.id),
                now,
                sibling,
                self._repo.children_total_time(node.children_ids),
            )
            if evaluation.changed:
                corrected = True
                self._repo.save_state(node.id, evaluation.state)
                self._apply_corrections(node, owner, evaluation, now)
            snapshots.append(TimerSnapshot(node, owner, depth, evaluation))
        return snapshots, corrected

    def _apply_corrections(
        self, node: TimerNode, owner: str | None, evaluation: Evaluation, now: datetime
    ) -> None:
        self.timer_stopped.emit(node.id)
        if Correction.COMPLETED in evaluation.corrections:
            logger.info("Timer %s (%r) finished", node.id, node.name)
            if self._notify_when_finished and self._notifier is not None:
                self._notifier(FINISHED_TITLE, node.name)
            self.timer_finished.emit(node.id)
            self._dispatch(*child_stopped(owner, node.id, now))
        else:
            logger.debug("Timer %s preempted by a sibling", node.id)
