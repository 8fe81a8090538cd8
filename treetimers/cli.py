"""Command line interface for Tree Timers.

Every command loads the forest from the store, brings it up to date with
the current time, performs its action and prints the resulting tree::

    treetimers add Work 1:00:00
    treetimers add Email 20:00 --parent 5f0c
    treetimers start 9a1e
    treetimers watch --notify

Timer ids can be abbreviated to any unique prefix.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Sequence

from PyQt6.QtCore import QCoreApplication

from .database.db import configure_engine, init_db
from .notifications import TerminalNotifier
from .settings import Settings, load_settings
from .timer.durations import format_duration, parse_duration
from .timer.tree import TimerSnapshot, TimerTree

_STATE_MARKS = {"running": ">", "finished": "x", "idle": " "}


class IdLookupError(LookupError):
    pass


def resolve_id(tree: TimerTree, prefix: str) -> str:
    """Expand a unique id prefix into a full timer id."""
    known = [snap.id for snap in tree.snapshots()]
    if prefix in known:
        return prefix
    matches = [tid for tid in known if tid.startswith(prefix)]
    if not matches:
        raise IdLookupError(f"no timer with id {prefix!r}")
    if len(matches) > 1:
        raise IdLookupError(f"id prefix {prefix!r} is ambiguous ({len(matches)} timers)")
    return matches[0]


def render_line(snap: TimerSnapshot) -> str:
    remaining = "00:00:00" if snap.finished else format_duration(snap.time_remaining)
    mark = _STATE_MARKS[snap.evaluation.derived.state.value]
    line = f"{'  ' * snap.depth}[{mark}] {snap.name}  {remaining}"
    if snap.node.children_ids:
        line += f"  (unallocated {format_duration(snap.unallocated_time)})"
    return f"{snap.id[:8]}  {line}"


def render_tree(snapshots: Sequence[TimerSnapshot]) -> str:
    if not snapshots:
        return "No timers yet.  Add one with: treetimers add NAME DURATION"
    return "\n".join(render_line(snap) for snap in snapshots)


# ══════════════════════════════════════════════════════════════════════
#  COMMANDS
# ══════════════════════════════════════════════════════════════════════


def cmd_add(tree: TimerTree, args: argparse.Namespace) -> int:
    parent_id = resolve_id(tree, args.parent) if args.parent else None
    requested = args.duration
    if parent_id is not None:
        maximum = tree.max_child_duration(parent_id)
        if requested > maximum:
            print(f"Requested {format_duration(requested)} capped to "
                  f"{format_duration(maximum)} (parent's unallocated time)")
    node = tree.add_timer(args.name, requested, parent_id)
    print(f"Added {node.name} ({node.id})")
    return 0


def _control(action: str):
    def command(tree: TimerTree, args: argparse.Namespace) -> int:
        timer_id = resolve_id(tree, args.id)
        if not getattr(tree, action)(timer_id):
            print(f"Cannot {action} {tree.snapshot(timer_id).name} right now")
            return 1
        return 0
    return command


def cmd_delete(tree: TimerTree, args: argparse.Namespace) -> int:
    timer_id = resolve_id(tree, args.id)
    name = tree.snapshot(timer_id).name
    tree.delete_timer(timer_id)
    print(f"Deleted {name}")
    return 0


def cmd_list(tree: TimerTree, args: argparse.Namespace) -> int:
    return 0


def cmd_watch(tree: TimerTree, args: argparse.Namespace) -> int:
    """Redraw the tree on every clock tick until interrupted."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)

    if args.interval:
        tree.interval_ms = args.interval
    if args.notify:
        tree.notify_when_finished = True

    def redraw(_now) -> None:
        sys.stdout.write("\x1b[2J\x1b[H" + render_tree(tree.snapshots()) + "\n")
        sys.stdout.flush()

    # Python signal handlers only run between Qt events; the ticks provide them.
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    tree.tick.connect(redraw)
    redraw(tree.now())
    tree.start_clock()
    try:
        app.exec()
    finally:
        tree.stop_clock()
    return 0


COMMANDS = {
    "add": cmd_add,
    "list": cmd_list,
    "start": _control("start"),
    "stop": _control("stop"),
    "reset": _control("reset"),
    "delete": cmd_delete,
    "watch": cmd_watch,
}


# ══════════════════════════════════════════════════════════════════════
#  ENTRY POINT
# ══════════════════════════════════════════════════════════════════════


def _duration_arg(text: str):
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treetimers",
        description="Nested countdown timers sharing one time budget.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="create a timer")
    add.add_argument("name")
    add.add_argument("duration", type=_duration_arg, help="hh:mm:ss, mm:ss or seconds")
    add.add_argument("--parent", help="id (or prefix) of the parent timer")

    sub.add_parser("list", help="show all timers")
    for name, text in (("start", "start a timer"), ("stop", "pause a timer"),
                       ("reset", "clear a timer's elapsed time"),
                       ("delete", "delete a timer and its children")):
        cmd = sub.add_parser(name, help=text)
        cmd.add_argument("id", help="timer id or unique prefix")

    watch = sub.add_parser("watch", help="live view, refreshed on every tick")
    watch.add_argument("--interval", type=int, help="tick interval in milliseconds")
    watch.add_argument("--notify", action="store_true", help="notify when a timer finishes")
    return parser


def log_level(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.INFO


def build_tree(settings: Settings) -> TimerTree:
    if settings.database_url:
        configure_engine(settings.database_url)
    init_db()
    return TimerTree(
        notifier=TerminalNotifier(),
        notify_when_finished=settings.notifications_enabled,
        interval_ms=settings.tick_interval_ms,
    )


def main(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=log_level(args.verbose),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    tree = build_tree(settings if settings is not None else load_settings())
    tree.evaluate_all()
    try:
        status = COMMANDS[args.command](tree, args)
    except IdLookupError as exc:
        parser.error(str(exc))
    if args.command != "watch":
        print(render_tree(tree.snapshots()))
    return status
