"""Lifecycle tracking for the device connection."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone


class SessionState(enum.Enum):
    """Client-side connection state machine."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    OPEN = "OPEN"


@dataclass
class SessionTracker:
    """In-memory connection metadata."""

    state: SessionState = SessionState.DISCONNECTED
    generation: int = 0
    consecutive_closes: int = 0
    last_transition_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def transition(self, next_state: SessionState) -> None:
        """Move into a new state, validating allowed transitions."""

        if not self._is_valid_transition(self.state, next_state):
            raise ValueError(f"Invalid transition {self.state.value} → {next_state.value}")
        self.state = next_state
        self.last_transition_at = datetime.now(tz=timezone.utc)

    @staticmethod
    def _is_valid_transition(current: SessionState, nxt: SessionState) -> bool:
        allowed = {
            SessionState.DISCONNECTED: {SessionState.CONNECTING},
            # a send failure may restart a pending or open connection
            SessionState.CONNECTING: {SessionState.OPEN, SessionState.DISCONNECTED, SessionState.CONNECTING},
            SessionState.OPEN: {SessionState.DISCONNECTED, SessionState.CONNECTING},
        }
        return nxt in allowed.get(current, set())

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation
