"""
Best-effort submission cooldown.

In memory only: a restart clears it, and it is not shared between processes.
"""

import time
from typing import Callable, Dict

from config import SUBMISSION_COOLDOWN_SECONDS
from errors import CooldownError


class CooldownLimiter:
    def __init__(self, window_seconds: float = SUBMISSION_COOLDOWN_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_accepted: Dict[str, float] = {}

    def remaining(self, user_id: str) -> float:
        last = self._last_accepted.get(str(user_id))
        if last is None:
            return 0.0
        return max(0.0, self.window_seconds - (self._clock() - last))

    def check(self, user_id: str) -> None:
        remaining = self.remaining(user_id)
        if remaining > 0:
            raise CooldownError(remaining)

    def record(self, user_id: str) -> None:
        self._last_accepted[str(user_id)] = self._clock()

    def reset(self, user_id: str = None) -> None:
        if user_id is None:
            self._last_accepted.clear()
        else:
            self._last_accepted.pop(str(user_id), None)
