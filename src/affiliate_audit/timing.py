"""
Deadlines and human-like pacing for browser interactions.

A redirect audit computes one Deadline when the link is clicked; the response
wait and the navigation wait both draw from it.

Pacing helpers add randomized pauses after navigation.
"""

import asyncio
import logging
import random
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DeadlineExceeded(TimeoutError):
    """Raised when a Deadline runs out before the awaited event happened."""


class Deadline:
    """
    A fixed point in monotonic time.

    Usage:
        deadline = Deadline.after_ms(15000)
        await target.wait_for_load_state("domcontentloaded", timeout=deadline.remaining_ms())
    """

    def __init__(self, expires_at: float, clock: Callable[[], float] = time.monotonic):
        self._expires_at = expires_at
        self._clock = clock

    @classmethod
    def after_ms(cls, timeout_ms: int, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        """Create a deadline timeout_ms milliseconds from now."""
        return cls(clock() + timeout_ms / 1000.0, clock)

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def remaining_ms(self) -> int:
        """Milliseconds left, never negative."""
        return max(0, int((self._expires_at - self._clock()) * 1000))

    def bounded_ms(self, cap_ms: int, floor_ms: int = 0) -> int:
        """Remaining time clamped to [floor_ms, cap_ms]."""
        return min(cap_ms, max(floor_ms, self.remaining_ms()))

    def check(self, what: str = "operation") -> int:
        """Return remaining milliseconds or raise DeadlineExceeded."""
        remaining = self.remaining_ms()
        if remaining <= 0:
            raise DeadlineExceeded(f"Timeout waiting for {what}")
        return remaining

    def __repr__(self) -> str:
        return f"Deadline(remaining_ms={self.remaining_ms()})"


async def human_delay(
    page,
    min_ms: int = 500,
    max_ms: int = 2000,
    rng: Optional[random.Random] = None,
) -> int:
    """Pause the page for a random interval between min_ms and max_ms.

    Returns:
        The delay actually applied, in milliseconds
    """
    delay = (rng or random).randint(min_ms, max_ms)
    await page.wait_for_timeout(delay)
    return delay


async def wait_for_visible(
    locator,
    timeout_ms: int,
    interval_ms: int = 150,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Poll a locator until it is visible or the timeout elapses.

    is_visible() does not wait, so late-rendering overlays are polled.

    Returns:
        True if the element became visible within timeout_ms
    """
    deadline = Deadline.after_ms(timeout_ms, clock)
    while True:
        try:
            if await locator.is_visible():
                return True
        except Exception as e:
            logger.debug(f"Visibility probe failed: {e}")

        if deadline.remaining_ms() <= 0:
            return False
        await asyncio.sleep(min(interval_ms, deadline.remaining_ms()) / 1000.0)
