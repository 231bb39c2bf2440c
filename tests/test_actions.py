"""Tests for ActionCollector and ManualStepSink."""
from slather.core.actions import ActionCollector, ActionStatus
from slather.core.declarations import ActionRef
from slather.core.manual_steps import ManualStepSink


def make_action(name, calls, disruptive=False, fail=False):
    def _run():
        calls.append(name)
        if fail:
            raise RuntimeError("killall: no matching processes")

    return ActionRef(name=name, run_fn=_run, disruptive=disruptive, command=("killall", name))


class TestActionCollector:
    def test_enqueue_dedups_by_name(self):
        calls = []
        collector = ActionCollector()

        collector.enqueue(make_action("restart-dock", calls))
        collector.enqueue(make_action("restart-dock", calls))
        collector.enqueue(make_action("restart-finder", calls))

        assert len(collector) == 2
        assert [a.name for a in collector.pending] == ["restart-dock", "restart-finder"]

    def test_flush_runs_once_in_order_and_empties(self):
        calls = []
        collector = ActionCollector()
        for name in ("restart-finder", "restart-dock", "restart-finder"):
            collector.enqueue(make_action(name, calls))

        outcomes = collector.flush()

        assert calls == ["restart-finder", "restart-dock"]
        assert [o.status for o in outcomes] == [ActionStatus.RAN, ActionStatus.RAN]
        assert len(collector) == 0
        assert collector.flush() == []

    def test_failure_is_recorded_and_rest_still_run(self):
        calls = []
        collector = ActionCollector()
        collector.enqueue(make_action("restart-dock", calls, fail=True))
        collector.enqueue(make_action("restart-finder", calls))

        outcomes = collector.flush()

        assert calls == ["restart-dock", "restart-finder"]
        assert outcomes[0].status == ActionStatus.FAILED
        assert "no matching processes" in outcomes[0].error
        assert outcomes[1].status == ActionStatus.RAN

    def test_dry_run_plans_without_running(self):
        calls = []
        collector = ActionCollector(dry_run=True)
        collector.enqueue(make_action("restart-dock", calls))

        outcomes = collector.flush()

        assert calls == []
        assert outcomes[0].status == ActionStatus.PLANNED
        assert outcomes[0].command == ("killall", "restart-dock")

    def test_tame_suppresses_only_disruptive(self):
        calls = []
        collector = ActionCollector(tame=True)
        collector.enqueue(make_action("restart-dock", calls, disruptive=True))
        collector.enqueue(make_action("restart-systemuiserver", calls))

        outcomes = collector.flush()

        assert calls == ["restart-systemuiserver"]
        assert [o.status for o in outcomes] == [ActionStatus.SUPPRESSED, ActionStatus.RAN]


class TestManualStepSink:
    def test_drain_keeps_order_and_repeats(self):
        sink = ManualStepSink()
        sink.record("Appearance: Dark")
        sink.record("Pin apps")
        sink.record("Appearance: Dark")

        assert len(sink) == 3
        assert sink.drain() == ["Appearance: Dark", "Pin apps", "Appearance: Dark"]

    def test_drain_empties(self):
        sink = ManualStepSink()
        sink.record("Pin apps")
        sink.drain()

        assert sink.drain() == []
        assert len(sink) == 0
