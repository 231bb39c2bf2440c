"""Read-only inspection of the host for a declaration."""
from typing import Dict

from slather.core.declarations import CurrentState, Declaration, DeclarationKind
from slather.core.errors import SlatherError
from slather.core.logger import get_logger

logger = get_logger(__name__)


class Probe:
    """Queries current host state without mutating anything.

    Failures to read are reported as ``Unknown`` and never as ``Absent``:
    a store that can't be read must not look like a store that needs writing.
    """

    def __init__(self, handlers: Dict[DeclarationKind, object]):
        self.handlers = handlers

    def probe(self, decl: Declaration) -> CurrentState:
        if decl.kind == DeclarationKind.MANUAL and decl.probe_fn is None:
            return CurrentState.absent()

        try:
            if decl.probe_fn is not None:
                state = decl.probe_fn(decl)
            else:
                handler = self.handlers.get(decl.kind)
                if handler is None:
                    return CurrentState.unknown(f"no handler for {decl.kind.value}")
                state = handler.probe(decl)
        except SlatherError as e:
            logger.debug(f"Probe failed for {decl.identifier}: {e}")
            return CurrentState.unknown(str(e))
        except Exception as e:
            logger.debug(f"Probe raised {type(e).__name__} for {decl.identifier}: {e}")
            return CurrentState.unknown(f"{type(e).__name__}: {e}")

        if not isinstance(state, CurrentState):
            return CurrentState.unknown(f"probe returned {type(state).__name__}")
        return state
