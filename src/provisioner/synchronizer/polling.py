"""
provisioner.synchronizer.polling - Fixed-Interval Reachability Poll
=====================================================================

``poll_until`` calls a probe on a fixed tick until it answers or the
deadline passes. Probe failures are expected while the cluster comes up, so
they are logged through a LogDownsampler: only when the error changes, or
once every N identical repeats to show the wait is still alive.

    probe ── ok ──────────────────────────────> return value
      │
      └─ error ─> log? (downsampled) ─> sleep(interval) ─> probe ...
                                            │
                                  deadline ─┴─> SynchronizerTimeoutError
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import Callable, Optional, TypeVar

import structlog

from provisioner.core.exceptions import SynchronizerTimeoutError


logger = structlog.get_logger()

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


# =============================================================================
# LogDownsampler
# =============================================================================
class LogDownsampler:
    """Decides which repetitions of a recurring error are worth logging.

    An error's signature is the text after its last ``:``, which strips
    volatile prefixes such as addresses and request IDs. A message is
    logged when its signature differs from the previous one, or when
    ``every`` identical signatures have been seen in a row.

    Example:
        >>> sampler = LogDownsampler(every=3)
        >>> [sampler.should_log("dial: refused") for _ in range(4)]
        [True, False, False, True]
    """

    def __init__(self, every: int = 15) -> None:
        self._every = every
        self._remaining = every
        self._previous: Optional[str] = None

    def should_log(self, message: str) -> bool:
        signature = message.split(":")[-1]
        if signature != self._previous:
            self._previous = signature
            self._remaining = self._every
            return True
        self._remaining -= 1
        if self._remaining <= 0:
            self._remaining = self._every
            return True
        return False


# =============================================================================
# poll_until
# =============================================================================
async def poll_until(
    probe: Callable[[], Awaitable[T]],
    timeout: float,
    *,
    interval: float = 2.0,
    stage: str = "api",
    log_downsample: int = 15,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Call ``probe`` every ``interval`` seconds until it succeeds.

    Args:
        probe: Coroutine function; returning means success, raising means
            "not yet".
        timeout: Overall budget in seconds, starting now.
        interval: Fixed delay between probes.
        stage: Label used in logs and in the timeout error.
        log_downsample: Identical failures are logged once per this many.
        clock: Monotonic clock, injectable for simulated time.
        sleep: Awaitable sleep, injectable for simulated time.

    Returns:
        The first value ``probe`` returned.

    Raises:
        SynchronizerTimeoutError: If the deadline passed first. ``reachable``
            is always False for this stage.
    """
    deadline = clock() + timeout
    sampler = LogDownsampler(log_downsample)
    log = logger.bind(component="poller", stage=stage)

    async def _poll() -> T:
        while True:
            try:
                return await probe()
            except Exception as exc:
                if sampler.should_log(str(exc)):
                    log.debug("still_waiting", error=str(exc))

            remaining = deadline - clock()
            if remaining <= 0:
                raise _timeout_error(stage, timeout)
            await sleep(min(interval, remaining))

    try:
        return await asyncio.wait_for(_poll(), timeout=timeout)
    except asyncio.TimeoutError:
        raise _timeout_error(stage, timeout) from None


def _timeout_error(stage: str, timeout: float) -> SynchronizerTimeoutError:
    return SynchronizerTimeoutError(
        message=f"timed out after {timeout:g}s waiting for {stage}: never reachable",
        stage=stage,
        timeout=timeout,
        reachable=False,
        error_code="API_WAIT_TIMEOUT",
    )
