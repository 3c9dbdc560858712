"""Execution modes of the interpreter.

The interpreter is always in exactly one of three modes:
- normal (initial): statements run as written
- error_sync: a statement failed, everything up to the next catch-error
  line is skipped
- halted (final): a terminal failure stopped the run
"""

import logging

from statemachine import State as SMState
from statemachine import StateMachine

logger = logging.getLogger(__name__)


class ExecutionStateMachine(StateMachine):
    """State machine for the interpreter's error-recovery modes.

    Attributes:
        tried_again: Set while a try-again replay is in flight. A failure
            while it is set halts the run instead of entering error_sync.
        failures: Counter of recoverable failures seen so far.

    States:
        normal: Statements execute.
        error_sync: Statements are skipped until a catch-error line.
        halted: Execution stopped (final).
    """

    normal = SMState(initial=True)
    error_sync = SMState()
    halted = SMState(final=True)

    # fail: a statement failed outside a retry
    fail = normal.to(error_sync)

    # recover: a catch-error handler succeeded
    recover = error_sync.to(normal)

    # halt: terminal failure from any live mode
    halt = normal.to(halted) | error_sync.to(halted)

    def __init__(self) -> None:
        """Initialize the state machine with tracking variables."""
        self.tried_again: bool = False
        self.failures: int = 0
        super().__init__()

    @property
    def is_normal(self) -> bool:
        return self.normal.is_active

    @property
    def is_error_sync(self) -> bool:
        return self.error_sync.is_active

    @property
    def is_halted(self) -> bool:
        return self.halted.is_active

    def on_enter_error_sync(self) -> None:
        """Count each recoverable failure."""
        self.failures += 1

    def on_enter_halted(self, source: SMState) -> None:
        """Log the terminal transition.

        Args:
            source: The mode the interpreter was in when it halted.
        """
        logger.debug(f"Execution halted from {source.id}")
