"""Reminders for settings that can only be changed by hand."""
from typing import List


class ManualStepSink:
    """Accumulates reminders in the order they were recorded.

    Repeats are kept: two declarations may produce similar text that means
    different things in context.
    """

    def __init__(self):
        self._steps: List[str] = []

    def record(self, text: str) -> None:
        self._steps.append(text)

    def drain(self) -> List[str]:
        steps, self._steps = self._steps, []
        return steps

    def __len__(self) -> int:
        return len(self._steps)
