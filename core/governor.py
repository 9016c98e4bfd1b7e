# =============================================================================
# core/governor.py  -  RequestGovernor: rate limiting + bounded execution
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every outbound call an adapter makes goes through one RequestGovernor:
#
#     1. check_limit(category)   → admit or reject against fixed-window quotas
#     2. with_timeout(operation) → run the call, abort it at the deadline
#
#   The governor is built once when the adapter process starts and handed to
#   each tool.  Its counters are the only shared mutable state in a process
#   and live as long as the process does.
#
# FIXED WINDOWS, NOT SLIDING:
#   A window's counter goes back to zero once more than `window` seconds
#   have passed since it opened.  Nothing decays gradually.  Right at a
#   window boundary up to 2x the nominal rate can get through in a short
#   burst; the upstream APIs state their own limits as fixed windows too.
#
# MULTIPLE GRANULARITIES:
#   A governor may hold several RateLimits (e.g. 5/s AND 80/min).  A call is
#   admitted only if EVERY granularity has room, and then EVERY counter is
#   incremented.  A rejected call changes no counter.
#
# CONCURRENCY:
#   Adapters run on one asyncio event loop.  check_limit() has no `await`
#   in it, so its read-check-increment sequence cannot interleave with
#   another task.  A multi-threaded host would need a lock around it.
#
#   There is no queueing: once the quota is gone, calls are rejected
#   straight away until the window resets.
# =============================================================================

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable, Optional, TypeVar, Union

from core.errors import RateLimitExceeded, RequestTimeout
from core.models import RateLimit, RateWindow

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 15000

# An operation is either a ready awaitable or a zero-arg callable making one.
# The callable form lets with_timeout start the work itself.
Operation = Union[Awaitable[T], Callable[[], Awaitable[T]]]


class RequestGovernor:
    """Per-process rate limiter and timeout wrapper.

    Args:
        limits: The quotas every category is held to.
        timeout_ms: Default deadline for with_timeout() / governed().
        clock: Returns the current time in seconds.  Defaults to
            time.monotonic; tests pass a fake clock.
    """

    def __init__(
        self,
        limits: Iterable[RateLimit],
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.limits = tuple(limits)
        if not self.limits:
            raise ValueError("RequestGovernor needs at least one RateLimit")
        self.timeout_ms = timeout_ms
        self._clock = clock or time.monotonic
        self._windows: dict[str, list[RateWindow]] = {}

    # -------------------------------------------------------------------------
    # Rate limiting
    # -------------------------------------------------------------------------
    def _windows_for(self, category: str, now: float) -> list[RateWindow]:
        windows = self._windows.get(category)
        if windows is None:
            windows = [RateWindow(limit=limit, window_start=now) for limit in self.limits]
            self._windows[category] = windows
        return windows

    def check_limit(self, category: str) -> bool:
        """Admit one call for `category` or raise RateLimitExceeded.

        Returns True when the call is admitted.  Must not be split across an
        `await`: the check and the increment form one step.
        """
        now = self._clock()
        windows = self._windows_for(category, now)

        for window in windows:
            if window.expired(now):
                window.reset(now)

        for window in windows:
            if window.exhausted:
                logger.warning(
                    "Rate limit hit: category=%s limit=%s count=%d",
                    category, window.limit.label, window.count,
                )
                raise RateLimitExceeded(category, window.limit.label)

        for window in windows:
            window.count += 1
        return True

    def peek(self, category: str) -> dict[str, int]:
        """Counts for one category by limit label; empty if never used."""
        return {w.limit.label: w.count for w in self._windows.get(category, [])}

    def snapshot(self) -> dict[str, dict[str, int]]:
        """Current counts per category and limit label (read-only view)."""
        return {
            category: {w.limit.label: w.count for w in windows}
            for category, windows in self._windows.items()
        }

    # -------------------------------------------------------------------------
    # Bounded execution
    # -------------------------------------------------------------------------
    async def with_timeout(self, operation: Operation, timeout_ms: Optional[int] = None):
        """Await `operation`, giving up after `timeout_ms` milliseconds.

        If the deadline wins, the operation's task is cancelled (an in-flight
        httpx request is aborted along with it) and RequestTimeout is raised.
        If the operation wins, the deadline is disarmed and the operation's
        own result or exception comes back unchanged.
        """
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        awaitable = operation() if callable(operation) else operation
        task = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            # Settled on its own while being cancelled; the deadline already won.
            logger.debug("Late failure discarded after timeout", exc_info=True)
        else:
            logger.debug("Late result discarded after timeout")
        raise RequestTimeout(timeout_ms)

    async def governed(self, category: str, operation: Operation, timeout_ms: Optional[int] = None):
        """check_limit(category), then with_timeout(operation)."""
        try:
            self.check_limit(category)
        except RateLimitExceeded:
            if not callable(operation) and asyncio.iscoroutine(operation):
                operation.close()
            raise
        return await self.with_timeout(operation, timeout_ms)
