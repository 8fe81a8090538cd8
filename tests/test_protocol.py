"""Tests for the run control protocol (commands and cascades)."""

from datetime import timedelta

from treetimers.timer.node import NO_CHILD, RuntimeState
from treetimers.timer.protocol import Command, CommandKind, apply

from helpers import T0, ms

LATER = T0 + timedelta(minutes=5)


def _cmd(kind, target="me", at=T0, child=None):
    return Command(kind, target, at, child=child)


class TestStart:

    def test_start_sets_started_and_informs_parent(self):
        t = apply(_cmd(CommandKind.START), RuntimeState(), "mum")
        assert t.state.started == T0
        assert t.state.cascaded is False
        assert t.started is True
        assert t.outbox == [_cmd(CommandKind.CHILD_STARTED, "mum", child="me")]

    def test_root_start_has_empty_outbox(self):
        t = apply(_cmd(CommandKind.START), RuntimeState(), None)
        assert t.state.started == T0
        assert t.outbox == []

    def test_start_when_running_is_noop(self):
        state = RuntimeState(started=T0)
        t = apply(_cmd(CommandKind.START, at=LATER), state, "mum")
        assert t.state == state
        assert t.outbox == []

    def test_start_when_finished_is_noop(self):
        state = RuntimeState(finished=True)
        t = apply(_cmd(CommandKind.START), state, "mum")
        assert t.state == state
        assert not t.started


class TestStop:

    def test_stop_accrues_elapsed(self):
        state = RuntimeState(started=T0, elapsed=ms(250))
        t = apply(_cmd(CommandKind.STOP, at=LATER), state, "mum")
        assert t.state.started is None
        assert t.state.elapsed == timedelta(minutes=5) + ms(250)
        assert t.stopped is True
        assert t.outbox == [_cmd(CommandKind.CHILD_STOPPED, "mum", at=LATER, child="me")]

    def test_stop_when_idle_is_noop(self):
        t = apply(_cmd(CommandKind.STOP), RuntimeState(), "mum")
        assert t.state == RuntimeState()
        assert t.outbox == []

    def test_stop_marks_tracked_child_with_sentinel(self):
        state = RuntimeState(started=T0, child_running="kid")
        t = apply(_cmd(CommandKind.STOP, at=LATER), state, None)
        assert t.state.child_running == NO_CHILD

    def test_stop_without_child_leaves_field_alone(self):
        state = RuntimeState(started=T0)
        t = apply(_cmd(CommandKind.STOP, at=LATER), state, None)
        assert t.state.child_running is None


class TestReset:

    def test_reset_idle(self):
        state = RuntimeState(elapsed=ms(900), finished=True)
        t = apply(_cmd(CommandKind.RESET, at=LATER), state, None)
        assert t.state == RuntimeState()
        assert t.outbox == []

    def test_reset_running_restarts_window(self):
        state = RuntimeState(started=T0, elapsed=ms(900), child_running="kid")
        t = apply(_cmd(CommandKind.RESET, at=LATER), state, "mum")
        assert t.state.started == LATER
        assert t.state.elapsed == timedelta(0)
        assert t.state.child_running == "kid"
        assert t.outbox == []


class TestCascade:

    def test_child_started_wakes_idle_parent(self):
        t = apply(_cmd(CommandKind.CHILD_STARTED, child="kid"), RuntimeState(), "gran")
        assert t.state.child_running == "kid"
        assert t.state.started == T0
        assert t.state.cascaded is True
        assert t.outbox == [_cmd(CommandKind.CHILD_STARTED, "gran", child="me")]

    def test_child_started_on_running_parent_only_records(self):
        state = RuntimeState(started=T0)
        t = apply(_cmd(CommandKind.CHILD_STARTED, at=LATER, child="kid"), state, "gran")
        assert t.state.started == T0
        assert t.state.child_running == "kid"
        assert t.state.cascaded is False
        assert t.outbox == []

    def test_child_started_does_not_revive_finished_parent(self):
        state = RuntimeState(finished=True)
        t = apply(_cmd(CommandKind.CHILD_STARTED, child="kid"), state, "gran")
        assert t.state.started is None
        assert t.outbox == []

    def test_child_stopped_unwinds_cascaded_parent(self):
        state = RuntimeState(started=T0, child_running="kid", cascaded=True)
        t = apply(_cmd(CommandKind.CHILD_STOPPED, at=LATER, child="kid"), state, "gran")
        assert t.state.started is None
        assert t.state.child_running is None
        assert t.state.elapsed == timedelta(minutes=5)
        assert t.outbox == [_cmd(CommandKind.CHILD_STOPPED, "gran", at=LATER, child="me")]

    def test_child_stopped_keeps_user_started_parent(self):
        state = RuntimeState(started=T0, child_running="kid", cascaded=False)
        t = apply(_cmd(CommandKind.CHILD_STOPPED, at=LATER, child="kid"), state, "gran")
        assert t.state.started == T0
        assert t.state.child_running is None
        assert t.outbox == []
