"""Mutating side of reconciliation, with a no-op variant for dry runs."""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from slather.core.config import get_config
from slather.core.declarations import CurrentState, Declaration, DeclarationKind
from slather.core.errors import PermanentError, TransientError
from slather.core.logger import get_logger
from slather.core.retry import call_with_retry

logger = get_logger(__name__)


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of applying one declaration."""

    changed: bool
    commands: Tuple[Tuple[str, ...], ...] = ()
    dry_run: bool = False


class Applier:
    """Brings a declaration to its desired state.

    Safe to call on an already satisfied declaration: nothing is touched
    and ``changed`` is False. Raises TransientError or PermanentError.
    """

    dry_run = False

    def __init__(self, handlers: Dict[DeclarationKind, object], attempts: Optional[int] = None,
                 retry_delay: Optional[float] = None):
        config = get_config()
        self.handlers = handlers
        self.attempts = attempts if attempts is not None else config.install_attempts
        self.retry_delay = retry_delay if retry_delay is not None else config.retry_delay

    def _handler(self, decl: Declaration):
        handler = self.handlers.get(decl.kind)
        if handler is None:
            raise PermanentError(f"cannot apply {decl.kind.value} declarations")
        return handler

    def _plan(self, decl: Declaration) -> Tuple[Tuple[str, ...], ...]:
        if decl.apply_fn is not None or decl.kind == DeclarationKind.MANUAL:
            return ()
        commands: List[List[str]] = self._handler(decl).plan(decl)
        return tuple(tuple(command) for command in commands)

    def apply(self, decl: Declaration, state: CurrentState) -> ApplyResult:
        if decl.is_satisfied(state):
            return ApplyResult(changed=False)
        if state.is_unknown:
            raise TransientError(f"state of {decl.identifier} is unknown: {state.detail}")

        if decl.apply_fn is not None:
            call_with_retry(
                decl.apply_fn, decl, state,
                max_attempts=self.attempts, delay=self.retry_delay,
            )
            return ApplyResult(changed=True)

        handler = self._handler(decl)
        commands = self._plan(decl)
        call_with_retry(
            handler.apply, decl,
            max_attempts=self.attempts, delay=self.retry_delay,
        )
        return ApplyResult(changed=True, commands=commands)


class DryRunApplier(Applier):
    """Reports what a live run would change; never mutates."""

    dry_run = True

    def apply(self, decl: Declaration, state: CurrentState) -> ApplyResult:
        if decl.is_satisfied(state):
            return ApplyResult(changed=False, dry_run=True)
        return ApplyResult(changed=True, commands=self._plan(decl), dry_run=True)
