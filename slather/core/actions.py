"""Deduplicated post-apply actions (restart Dock, Finder, ...)."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from slather.core.declarations import ActionRef
from slather.core.logger import get_logger

logger = get_logger(__name__)


class ActionStatus(str, Enum):
    RAN = "ran"
    FAILED = "failed"
    SUPPRESSED = "suppressed"  # --tame skipped a disruptive action
    PLANNED = "planned"  # dry run


@dataclass(frozen=True)
class ActionOutcome:
    name: str
    status: ActionStatus
    description: str = ""
    error: str = ""
    command: tuple = ()


class ActionCollector:
    """Collects actions by name and runs each one at most once."""

    def __init__(self, dry_run: bool = False, tame: bool = False):
        self.dry_run = dry_run
        self.tame = tame
        self._queue: Dict[str, ActionRef] = {}

    def enqueue(self, action: ActionRef) -> None:
        if action.name not in self._queue:
            self._queue[action.name] = action

    @property
    def pending(self) -> List[ActionRef]:
        return list(self._queue.values())

    def __len__(self) -> int:
        return len(self._queue)

    @staticmethod
    def _outcome(action: ActionRef, status: ActionStatus, error: str = "") -> ActionOutcome:
        return ActionOutcome(action.name, status, action.description, error, action.command)

    def flush(self) -> List[ActionOutcome]:
        """Run queued actions in enqueue order and empty the queue.

        A failing action is recorded and does not stop the ones after it.
        """
        outcomes: List[ActionOutcome] = []
        queue, self._queue = self._queue, {}

        for action in queue.values():
            if self.tame and action.disruptive:
                logger.info(f"Skipping disruptive action {action.name} (tame)")
                outcomes.append(self._outcome(action, ActionStatus.SUPPRESSED))
                continue

            if self.dry_run:
                outcomes.append(self._outcome(action, ActionStatus.PLANNED))
                continue

            try:
                action.run_fn()
            except Exception as e:  # recorded; later actions still run
                logger.warning(f"Action {action.name} failed: {e}")
                outcomes.append(
                    self._outcome(action, ActionStatus.FAILED, str(e))
                )
                continue

            outcomes.append(self._outcome(action, ActionStatus.RAN))

        return outcomes
