import threading
from typing import Optional

from jobalign.utils.exceptions import UsageExceededError


class TokenUsage:
    """Cumulative token counter for one session.

    Service wrappers only ever add to it. Enforcing the ceiling is left to the
    orchestrating caller, which calls ``check`` before starting new work.
    """

    def __init__(self, ceiling: Optional[int] = None):
        self.ceiling = ceiling
        self._total = 0
        self._lock = threading.Lock()

    @property
    def total(self) -> int:
        return self._total

    def add(self, tokens) -> int:
        try:
            tokens = int(tokens or 0)
        except (TypeError, ValueError):
            tokens = 0
        if tokens <= 0:
            return self._total
        with self._lock:
            self._total += tokens
            return self._total

    @property
    def exceeded(self) -> bool:
        return self.ceiling is not None and self._total >= self.ceiling

    @property
    def remaining(self) -> Optional[int]:
        if self.ceiling is None:
            return None
        return max(0, self.ceiling - self._total)

    def check(self) -> None:
        if self.exceeded:
            raise UsageExceededError(limit=self.ceiling, used=self._total)

    def to_dict(self):
        return {"total": self._total, "ceiling": self.ceiling, "remaining": self.remaining}
