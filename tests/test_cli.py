"""Tests for the command line interface.

Every test runs against the in-memory database set up by ``conftest``.
"""

import logging
import pytest
from datetime import timedelta

from treetimers.cli import main, resolve_id, log_level, IdLookupError
from treetimers.notifications import TerminalNotifier
from treetimers.settings import Settings
from treetimers.timer.repository import TimerRepository


def run(capsys, *argv):
    status = main(list(argv), settings=Settings())
    return status, capsys.readouterr().out


def _ids():
    return [node.id for node, _, _ in TimerRepository().walk()]


class TestCommands:

    def test_empty_list(self, capsys):
        status, out = run(capsys, "list")
        assert status == 0
        assert "No timers yet" in out

    def test_add_root_and_child(self, capsys):
        run(capsys, "add", "Work", "1:00:00")
        work_id = _ids()[0]
        status, out = run(capsys, "add", "Email", "20:00", "--parent", work_id[:6])
        assert status == 0
        assert "Email" in out
        assert "(unallocated 00:40:00)" in out

    def test_add_caps_to_parent(self, capsys):
        run(capsys, "add", "Work", "10:00")
        work_id = _ids()[0]
        _, out = run(capsys, "add", "Greedy", "1:00:00", "--parent", work_id)
        assert "capped to 00:10:00" in out

    def test_start_stop(self, capsys):
        run(capsys, "add", "Work", "10:00")
        work_id = _ids()[0]
        status, out = run(capsys, "start", work_id)
        assert status == 0
        assert "[>] Work" in out
        status, out = run(capsys, "stop", work_id)
        assert status == 0
        assert "[ ] Work" in out

    def test_refused_action_exit_code(self, capsys):
        run(capsys, "add", "Work", "10:00")
        status, out = run(capsys, "stop", _ids()[0])
        assert status == 1
        assert "Cannot stop Work" in out

    def test_reset(self, capsys):
        run(capsys, "add", "Work", "10:00")
        status, _ = run(capsys, "reset", _ids()[0])
        assert status == 0

    def test_delete(self, capsys):
        run(capsys, "add", "Work", "10:00")
        status, out = run(capsys, "delete", _ids()[0])
        assert status == 0
        assert "Deleted Work" in out
        assert _ids() == []

    def test_unknown_id_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["start", "nope"], settings=Settings())
        assert exc.value.code == 2

    def test_bad_duration_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["add", "Work", "soon"], settings=Settings())
        assert exc.value.code == 2

    def test_log_level_info_unless_verbose(self):
        assert log_level(False) == logging.INFO
        assert log_level(True) == logging.DEBUG


class TestResolveId:

    def test_ambiguous_prefix(self, tree):
        tree.add_timer("A", timedelta(minutes=1))
        tree.add_timer("B", timedelta(minutes=1))
        with pytest.raises(IdLookupError):
            resolve_id(tree, "")

    def test_exact_id(self, tree):
        node = tree.add_timer("A", timedelta(minutes=1))
        assert resolve_id(tree, node.id) == node.id


class TestTerminalNotifier:

    def test_writes_title_and_body(self, capsys):
        TerminalNotifier(bell=False)("Timer finished", "Email")
        assert capsys.readouterr().err == "Timer finished: Email\n"
