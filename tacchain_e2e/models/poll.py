"""Height polling data models."""

from dataclasses import dataclass
from enum import Enum


class PollMode(Enum):
    """What a height poll waits for."""

    LIVENESS = "liveness"  # any valid height
    ADVANCE = "advance"  # a height strictly above the baseline


@dataclass
class PollState:
    """Bookkeeping for a single await_height call."""

    mode: PollMode
    max_attempts: int
    interval: float
    baseline: int = -1
    attempts: int = 0
    last_height: int = -1

    def satisfied_by(self, height: int) -> bool:
        """Check whether an observed height ends the wait."""
        if height < 0:
            return False
        if self.mode is PollMode.LIVENESS:
            return True
        return height > self.baseline

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts
