"""Per run/stop attempt throttle for answer submissions."""
import asyncio
import logging
from typing import Optional

from stokvis.models.hunt import ThrottleDecision
from stokvis.services.counter_store import CounterStore

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 25
WINDOW_S = 30


def throttle_key(run_id: str, stop_id: str) -> str:
    return f"rl:{run_id}:{stop_id}"


class AttemptThrottle:
    """
    Allows ``max_attempts`` answer submissions per (run, stop) every ``window_s``
    seconds. A missing or failing counter store permits the attempt unless
    ``fail_open`` is False.
    """

    def __init__(
        self,
        store: Optional[CounterStore],
        max_attempts: int = MAX_ATTEMPTS,
        window_s: int = WINDOW_S,
        fail_open: bool = True,
        timeout_s: Optional[float] = None,
    ):
        self._store = store
        self.max_attempts = max_attempts
        self.window_s = window_s
        self.fail_open = fail_open
        self.timeout_s = timeout_s

    async def allow(self, run_id: str, stop_id: str) -> ThrottleDecision:
        key = throttle_key(run_id, stop_id)

        if self._store is None:
            return self._degraded(key, "no counter store configured")

        try:
            attempts = await asyncio.wait_for(
                self._store.incr_with_window(key, self.window_s),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            return self._degraded(key, "counter store timed out")
        except Exception as exc:
            return self._degraded(key, f"counter store error: {exc!r}")

        if attempts > self.max_attempts:
            logger.warning("Throttled %s after %d attempts", key, attempts)
            return ThrottleDecision.deny(attempts)
        return ThrottleDecision.allow(attempts)

    def _degraded(self, key: str, reason: str) -> ThrottleDecision:
        if self.fail_open:
            logger.warning("Throttle check skipped for %s (%s)", key, reason)
            return ThrottleDecision.allow()
        logger.warning("Throttle denying %s (%s)", key, reason)
        return ThrottleDecision.deny()
