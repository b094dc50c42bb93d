"""
provisioner.synchronizer.until - Resumable Event Wait
=======================================================

Blocks until a condition holds for some event of a live watch stream,
reopening the stream from the last consumed position whenever it drops.

State Machine:

    ┌────────────┐  opened   ┌───────────┐  condition(event)  ┌───────────┐
    │ CONNECTING │ ────────> │ STREAMING │ ─────────────────> │ SUCCEEDED │
    └────────────┘           └───────────┘                    └───────────┘
       ^   │ open failed          │ closed / transport error
       │   └─ sleep(delay) ─┐     │
       └────────────────────┴─────┘
                 (any state) ── deadline ──> FAILED_TIMEOUT

Cursor Semantics:
    The cursor starts empty ("from current state"). For every delivered
    event the cursor advances to the event's resource_version *before* the
    condition is evaluated, and a reopened stream starts right after the
    cursor. Each event is therefore seen exactly once across reconnects,
    in delivery order, with no gap.

Deadline:
    The injected clock is checked at every transition so tests can drive
    simulated time; the whole run is also wrapped in ``asyncio.wait_for``
    so a blocked read or sleep is cancelled as soon as the real budget runs
    out.

Usage:
    >>> event = await watch_until(
    ...     lambda cursor: client.watch_events("kube-system", cursor),
    ...     lambda e: e.type == WatchEventType.ADDED and e.name == "bootstrap-complete",
    ...     timeout=1800,
    ... )
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import structlog

from provisioner.core.enums import SyncState, WatchEventType
from provisioner.core.exceptions import SynchronizerTimeoutError, TransportError
from provisioner.synchronizer.events import (
    EventCondition,
    EventStream,
    StreamOpener,
    WatchEvent,
)
from provisioner.synchronizer.polling import Clock, LogDownsampler, Sleep


logger = structlog.get_logger()

# Failures of the stream itself; anything else is a bug and propagates.
_TRANSIENT_ERRORS = (TransportError, OSError)


class EventSynchronizer:
    """Waits for a watch-stream event that satisfies a condition.

    Attributes:
        state: Current SyncState.
        cursor: resource_version of the last consumed event ("" before any).
        reachable: Whether any stream was ever opened successfully.
        reconnects: Number of times the stream was (re)opened after the first.
    """

    def __init__(
        self,
        opener: StreamOpener,
        condition: EventCondition,
        timeout: float,
        *,
        stage: str = "events",
        reconnect_delay: float = 2.0,
        log_downsample: int = 15,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._opener = opener
        self._condition = condition
        self._timeout = timeout
        self._stage = stage
        self._reconnect_delay = reconnect_delay
        self._clock = clock
        self._sleep = sleep
        self._sampler = LogDownsampler(log_downsample)
        self._deadline = 0.0

        self.state = SyncState.CONNECTING
        self.cursor = ""
        self.reachable = False
        self.reconnects = 0
        self._logger = logger.bind(component="event_synchronizer", stage=stage)

    async def run(self) -> WatchEvent:
        """Consume the stream until the condition holds.

        Returns:
            The event that satisfied the condition.

        Raises:
            SynchronizerTimeoutError: If the deadline elapsed first.
            Exception: Anything raised by the condition, or a non-transport
                error raised by the opener or the stream, unchanged.
        """
        self._deadline = self._clock() + self._timeout
        try:
            return await asyncio.wait_for(self._loop(), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise self._timed_out() from None

    # =========================================================================
    # State Machine
    # =========================================================================

    async def _loop(self) -> WatchEvent:
        opened = 0
        while True:
            self._check_deadline()
            self.state = SyncState.CONNECTING
            try:
                stream = await self._opener(self.cursor)
            except _TRANSIENT_ERRORS as exc:
                self._log_transport("watch_connect_failed", exc)
                await self._pause()
                continue

            if opened:
                self.reconnects += 1
            opened += 1
            self.reachable = True
            self.state = SyncState.STREAMING

            try:
                event, delivered = await self._consume(stream)
            finally:
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()

            if event is not None:
                self.state = SyncState.SUCCEEDED
                return event

            self._logger.debug("watch_closed", cursor=self.cursor, delivered=delivered)
            if not delivered:
                await self._pause()

    async def _consume(self, stream: EventStream) -> tuple[Optional[WatchEvent], int]:
        """Read events until the condition holds or the stream ends."""
        iterator = stream.__aiter__()
        delivered = 0
        while True:
            try:
                event = await iterator.__anext__()
            except StopAsyncIteration:
                return None, delivered
            except _TRANSIENT_ERRORS as exc:
                self._log_transport("watch_interrupted", exc)
                return None, delivered

            delivered += 1
            if event.resource_version:
                self.cursor = event.resource_version

            if event.type == WatchEventType.ERROR:
                self._logger.debug("watch_error_event", name=event.name, message=event.message)
                continue

            if self._condition(event):
                return event, delivered

            self._check_deadline()

    # =========================================================================
    # Deadline Helpers
    # =========================================================================

    async def _pause(self) -> None:
        remaining = self._deadline - self._clock()
        if remaining <= 0:
            raise self._timed_out()
        await self._sleep(min(self._reconnect_delay, remaining))

    def _check_deadline(self) -> None:
        if self._clock() >= self._deadline:
            raise self._timed_out()

    def _timed_out(self) -> SynchronizerTimeoutError:
        self.state = SyncState.FAILED_TIMEOUT
        reason = "condition never satisfied" if self.reachable else "never reachable"
        return SynchronizerTimeoutError(
            message=f"timed out after {self._timeout:g}s waiting for {self._stage}: {reason}",
            stage=self._stage,
            timeout=self._timeout,
            reachable=self.reachable,
            error_code="EVENT_WAIT_TIMEOUT",
            details={"cursor": self.cursor},
        )

    def _log_transport(self, event: str, exc: Exception) -> None:
        if self._sampler.should_log(str(exc)):
            self._logger.debug(event, error=str(exc), cursor=self.cursor)


async def watch_until(
    opener: StreamOpener,
    condition: EventCondition,
    timeout: float,
    **kwargs: object,
) -> WatchEvent:
    """Run an EventSynchronizer once. See EventSynchronizer for arguments."""
    return await EventSynchronizer(opener, condition, timeout, **kwargs).run()  # type: ignore[arg-type]
