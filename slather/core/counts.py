"""Command tallies for `slather run --count`."""
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict

from slather.core.reconciler import RunReport


@dataclass
class CommandTally:
    """How many commands of each sort a run issued or would issue."""

    by_program: Counter = field(default_factory=Counter)
    defaults_verbs: Counter = field(default_factory=Counter)
    defaults_domains: Counter = field(default_factory=Counter)
    reminders: int = 0

    @property
    def defaults_calls(self) -> int:
        return self.by_program.get("defaults", 0)

    @classmethod
    def from_report(cls, report: RunReport) -> "CommandTally":
        tally = cls(reminders=len(report.manual_steps))
        for command in report.commands:
            if not command:
                continue
            program = command[0].rsplit("/", 1)[-1]
            tally.by_program[program] += 1
            if program == "defaults" and len(command) > 1:
                verb = command[1] if command[1] in ("write", "delete") else "other"
                tally.defaults_verbs[verb] += 1
                if len(command) > 2:
                    tally.defaults_domains[command[2]] += 1
        return tally

    def as_rows(self) -> Dict[str, int]:
        return {
            "defaults": self.defaults_calls,
            "defaults write": self.defaults_verbs.get("write", 0),
            "defaults delete": self.defaults_verbs.get("delete", 0),
            "defaults other": self.defaults_verbs.get("other", 0),
            "domains": len(self.defaults_domains),
            "brew": self.by_program.get("brew", 0),
            "killall": self.by_program.get("killall", 0),
            "osascript": self.by_program.get("osascript", 0),
            "ln": self.by_program.get("ln", 0),
            "reminders": self.reminders,
        }
