"""Timer records on top of the key-value store.

Key layout
----------
root-timers          ordered ids of the top-level timers
<id>-name            <id>-totalTime      <id>-parentID      <id>-childrenIDs
<id>-started         <id>-elapsed        <id>-finished      <id>-childRunning
<id>-cascaded

Reads never fail: a missing or unreadable key yields the field's default.
The tree is discovered only by walking ``childrenIDs`` from the root
registry; ``parentID`` is written but never read for traversal.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Iterator, TypeVar
from uuid import uuid4

from ..database.store import KeyValueStore
from . import codecs
from .allocator import clamp_duration
from .codecs import Codec
from .node import DEFAULT_NAME, ROOT, ZERO, RuntimeState, TimerNode

logger = logging.getLogger(__name__)

T = TypeVar("T")

ROOT_KEY = "root-timers"

CONFIG_FIELDS = ("name", "totalTime", "parentID", "childrenIDs")
STATE_FIELDS = ("started", "elapsed", "finished", "childRunning", "cascaded")


def _key(timer_id: str, field: str) -> str:
    return f"{timer_id}-{field}"


def new_timer_id() -> str:
    return str(uuid4())


class TimerRepository:
    """CRUD over persisted timer nodes, their run state and the root list."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        id_factory: Callable[[], str] = new_timer_id,
    ) -> None:
        self._store = store if store is not None else KeyValueStore()
        self._new_id = id_factory

    @property
    def store(self) -> KeyValueStore:
        return self._store

    # ══════════════════════════════════════════════════════════════════
    #  RAW ACCESS
    # ══════════════════════════════════════════════════════════════════

    def _read(self, key: str, codec: Codec[T], default: T) -> T:
        raw = self._store.get(key)
        if raw is None:
            return default
        try:
            return codec.parse(raw)
        except (ValueError, TypeError) as exc:
            logger.debug("Unreadable value for %s (%r): %s", key, raw, exc)
            return default

    def _write(self, key: str, codec: Codec[T], value: T) -> None:
        self._store.set(key, codec.stringify(value))

    # ══════════════════════════════════════════════════════════════════
    #  ROOT REGISTRY
    # ══════════════════════════════════════════════════════════════════

    def root_ids(self) -> tuple[str, ...]:
        return self._read(ROOT_KEY, codecs.ID_LIST, ())

    def _set_root_ids(self, ids: tuple[str, ...] | list[str]) -> None:
        self._write(ROOT_KEY, codecs.ID_LIST, tuple(ids))

    # ══════════════════════════════════════════════════════════════════
    #  NODES
    # ══════════════════════════════════════════════════════════════════

    def exists(self, timer_id: str) -> bool:
        return any(_key(timer_id, f) in self._store for f in ("name", "totalTime"))

    def get(self, timer_id: str) -> TimerNode | None:
        """Load a node, or ``None`` when nothing at all is stored for it."""
        if not self.exists(timer_id):
            return None
        return TimerNode(
            id=timer_id,
            name=self._read(_key(timer_id, "name"), codecs.TEXT, DEFAULT_NAME),
            total_time=self.total_time(timer_id),
            parent_id=self._read(_key(timer_id, "parentID"), codecs.TEXT, ROOT),
            children_ids=self.children_ids(timer_id),
        )

    def total_time(self, timer_id: str) -> timedelta:
        return self._read(_key(timer_id, "totalTime"), codecs.DURATION, ZERO)

    def children_ids(self, timer_id: str) -> tuple[str, ...]:
        return self._read(_key(timer_id, "childrenIDs"), codecs.ID_LIST, ())

    def children_total_time(self, ids) -> timedelta:
        """Sum of the configured totals of *ids* (no recursion)."""
        return sum((self.total_time(cid) for cid in ids), ZERO)

    def unallocated_time(self, timer_id: str) -> timedelta:
        return self.total_time(timer_id) - self.children_total_time(
            self.children_ids(timer_id)
        )

    def save(self, node: TimerNode) -> None:
        self._write(_key(node.id, "name"), codecs.TEXT, node.name)
        self._write(_key(node.id, "totalTime"), codecs.DURATION, node.total_time)
        self._write(_key(node.id, "parentID"), codecs.TEXT, node.parent_id)
        self._write(_key(node.id, "childrenIDs"), codecs.ID_LIST, node.children_ids)

    def create(
        self, parent_id: str | None, name: str, total_time: timedelta
    ) -> TimerNode:
        """Allocate a new timer under *parent_id* (``None`` for a root).

        The requested duration is clamped to ``[0, unallocated]`` of the
        parent, so a parent's children never outgrow it.
        """
        maximum = None if parent_id is None else self.unallocated_time(parent_id)
        node = TimerNode(
            id=self._new_id(),
            name=name,
            total_time=clamp_duration(total_time, maximum),
            parent_id=ROOT if parent_id is None else parent_id,
        )
        self.save(node)
        if parent_id is None:
            self._set_root_ids(self.root_ids() + (node.id,))
        else:
            self.append_child(parent_id, node.id)
        logger.info(
            "Created timer %s (%r, %d ms) under %s",
            node.id, node.name, codecs.duration_to_ms(node.total_time), node.parent_id,
        )
        return node

    def append_child(self, parent_id: str, child_id: str) -> None:
        children = self.children_ids(parent_id)
        if child_id in children:
            return
        self._write(
            _key(parent_id, "childrenIDs"), codecs.ID_LIST, children + (child_id,)
        )

    # ══════════════════════════════════════════════════════════════════
    #  TRAVERSAL
    # ══════════════════════════════════════════════════════════════════

    def walk(self) -> Iterator[tuple[TimerNode, str | None, int]]:
        """Pre-order ``(node, owner_id, depth)`` over the whole forest.

        ``owner_id`` is ``None`` for roots.  Ids with no stored record are
        skipped, and a node reached twice is only visited once.
        """
        seen: set[str] = set()

        def visit(timer_id: str, owner: str | None, depth: int):
            if timer_id in seen:
                return
            seen.add(timer_id)
            node = self.get(timer_id)
            if node is None:
                logger.debug("Skipping dangling timer id %s", timer_id)
                return
            yield node, owner, depth
            for cid in node.children_ids:
                yield from visit(cid, timer_id, depth + 1)

        for rid in self.root_ids():
            yield from visit(rid, None, 0)

    def owners(self) -> dict[str, str | None]:
        """Map every reachable id to its owner (``None`` for roots)."""
        return {node.id: owner for node, owner, _ in self.walk()}

    def find_owner(self, timer_id: str) -> tuple[bool, str | None]:
        """Return ``(found, owner_id)`` by walking from the root registry."""
        if timer_id in self.root_ids():
            return True, None
        owners = self.owners()
        if timer_id in owners:
            return True, owners[timer_id]
        return False, None

    def subtree_ids(self, timer_id: str) -> list[str]:
        """*timer_id* followed by all its descendants, pre-order."""
        result: list[str] = []
        stack = [timer_id]
        while stack:
            current = stack.pop()
            if current in result:
                continue
            result.append(current)
            stack.extend(reversed(self.children_ids(current)))
        return result

    # ══════════════════════════════════════════════════════════════════
    #  DELETION
    # ══════════════════════════════════════════════════════════════════

    def delete(self, timer_id: str) -> None:
        """Detach *timer_id* from its owner and purge its whole subtree.

        Unknown ids are a no-op.
        """
        found, owner = self.find_owner(timer_id)
        if found and owner is None:
            self._set_root_ids(tuple(i for i in self.root_ids() if i != timer_id))
        elif found:
            self._write(
                _key(owner, "childrenIDs"),
                codecs.ID_LIST,
                tuple(i for i in self.children_ids(owner) if i != timer_id),
            )
        purged = self.subtree_ids(timer_id)
        for tid in purged:
            self._purge(tid)
        if found:
            logger.info("Deleted timer %s (%d records)", timer_id, len(purged))

    def _purge(self, timer_id: str) -> None:
        for field in CONFIG_FIELDS + STATE_FIELDS:
            self._store.delete(_key(timer_id, field))

    # ══════════════════════════════════════════════════════════════════
    #  RUN STATE
    # ══════════════════════════════════════════════════════════════════

    def load_state(self, timer_id: str) -> RuntimeState:
        return RuntimeState(
            started=self._read(_key(timer_id, "started"), codecs.MAYBE_TIMESTAMP, None),
            elapsed=self._read(_key(timer_id, "elapsed"), codecs.DURATION, ZERO),
            finished=self._read(_key(timer_id, "finished"), codecs.FLAG, False),
            child_running=self._read(
                _key(timer_id, "childRunning"), codecs.CHILD_RUNNING, None
            ),
            cascaded=self._read(_key(timer_id, "cascaded"), codecs.FLAG, False),
        )

    def save_state(self, timer_id: str, state: RuntimeState) -> None:
        self._write(_key(timer_id, "started"), codecs.MAYBE_TIMESTAMP, state.started)
        self._write(_key(timer_id, "elapsed"), codecs.DURATION, state.elapsed)
        self._write(_key(timer_id, "finished"), codecs.FLAG, state.finished)
        self._write(_key(timer_id, "childRunning"), codecs.CHILD_RUNNING, state.child_running)
        self._write(_key(timer_id, "cascaded"), codecs.FLAG, state.cascaded)
