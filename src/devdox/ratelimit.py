"""Per-client request rate limiting backed by the limits package."""

import logging

from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window limiter keyed by client address, one per app instance."""

    def __init__(self, limit: str, namespace: str = "api") -> None:
        self.item: RateLimitItem = parse(limit)
        self.namespace = namespace
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    def hit(self, client_key: str) -> bool:
        """Record a request. Returns False once the client is over the limit."""
        allowed = self._limiter.hit(self.item, self.namespace, client_key)
        if not allowed:
            logger.warning("Rate limit %s exceeded for %s", self.item, client_key)
        return allowed

    def reset_after(self, client_key: str) -> int:
        """Epoch second at which the client's current window resets."""
        reset, _ = self._limiter.get_window_stats(
            self.item, self.namespace, client_key
        )
        return int(reset)
