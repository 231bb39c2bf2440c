"""Tests for the --count command tally."""
from slather.core.actions import ActionOutcome, ActionStatus
from slather.core.counts import CommandTally
from slather.core.reconciler import Change, RunReport


def test_tally_from_report():
    report = RunReport(
        changes=(
            Change(0, "jq", "jq", (("brew", "install", "jq"),)),
            Change(1, "com.apple.dock/autohide", "autohide",
                   (("defaults", "write", "com.apple.dock", "autohide", "-bool", "true"),)),
            Change(2, "com.apple.dock/orientation", "orientation",
                   (("defaults", "write", "com.apple.dock", "orientation", "-string", "left"),)),
            Change(3, "NSGlobalDomain/KeyRepeat", "KeyRepeat",
                   (("defaults", "write", "NSGlobalDomain", "KeyRepeat", "-int", "1"),)),
            Change(4, "/u/.local/bin/date", "date", (("ln", "-sf", "/opt/homebrew/bin/gdate", "/u/.local/bin/date"),)),
        ),
        setup=(
            ActionOutcome("close-system-settings", ActionStatus.PLANNED,
                          command=("osascript", "-e", 'tell application "System Settings" to quit')),
        ),
        actions=(
            ActionOutcome("restart-dock", ActionStatus.PLANNED, command=("killall", "Dock")),
            ActionOutcome("rewire-hotkeys", ActionStatus.PLANNED,
                          command=("/System/Library/PrivateFrameworks/SystemAdministration.framework"
                                   "/Resources/activateSettings", "-u")),
        ),
        manual_steps=("Dark mode", "Pin apps"),
        dry_run=True,
    )

    tally = CommandTally.from_report(report)
    rows = tally.as_rows()

    assert tally.defaults_calls == 3
    assert rows["defaults write"] == 3
    assert rows["defaults other"] == 0
    assert rows["domains"] == 2
    assert tally.defaults_domains["com.apple.dock"] == 2
    assert rows["brew"] == 1
    assert rows["killall"] == 1
    assert rows["osascript"] == 1
    assert rows["ln"] == 1
    assert rows["reminders"] == 2
    assert tally.by_program["activateSettings"] == 1


def test_suppressed_actions_are_not_counted():
    report = RunReport(
        actions=(ActionOutcome("restart-dock", ActionStatus.SUPPRESSED, command=("killall", "Dock")),),
        tame=True,
    )

    assert CommandTally.from_report(report).as_rows()["killall"] == 0
