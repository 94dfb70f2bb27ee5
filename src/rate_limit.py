"""Per-chat sliding-window limiter for voice notes."""
import time
from collections import defaultdict, deque
from typing import Callable

from src.constants import RATE_LIMIT_DEFAULT_PER_MINUTE, RATE_LIMIT_WINDOW_SECONDS


class RateLimiter:

    def __init__(
        self,
        max_per_window: int = RATE_LIMIT_DEFAULT_PER_MINUTE,
        window: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max = max_per_window
        self._window = window
        self._clock = clock
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)

    def check(self, chat_id: str) -> float:
        """Record a hit and return 0, or return seconds to wait without recording."""
        now = self._clock()
        hits = self._hits[chat_id]
        while hits and hits[0] <= now - self._window:
            hits.popleft()

        match len(hits) >= self._max:
            case True:
                return hits[0] + self._window - now
            case False:
                hits.append(now)
                return 0.0
