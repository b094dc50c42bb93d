"""
Tests for provisioner.synchronizer.until
==========================================

The resumable event wait, against both the InMemoryControlPlaneClient and
hand-scripted streams:
    - A dropped stream resumes after the last consumed event: every event
      is seen once, in order, with no gap
    - Failed connects are retried after the reconnect delay
    - ERROR events are skipped and never move the cursor
    - The deadline is honored, and the timeout says whether the stream was
      ever reachable
    - Exceptions from the condition, and non-transport errors from the
      opener or the stream, propagate unchanged
"""

from __future__ import annotations

import asyncio
import time

import pytest

from provisioner.core.enums import SyncState, WatchEventType
from provisioner.core.exceptions import SynchronizerTimeoutError, TransportError
from provisioner.synchronizer.events import WatchEvent
from provisioner.synchronizer.until import EventSynchronizer, watch_until


NAMESPACE = "kube-system"


def _opener(client):
    async def open_stream(cursor: str):
        return await client.watch_events(NAMESPACE, cursor)

    return open_stream


def _named(name: str, seen: list[str] | None = None):
    def condition(event: WatchEvent) -> bool:
        if seen is not None:
            seen.append(event.name)
        return event.name == name

    return condition


def _scripted(*batches):
    """Opener serving one list per open; an exception item is raised mid-stream."""
    cursors: list[str] = []

    async def open_stream(cursor: str):
        cursors.append(cursor)
        batch = batches[len(cursors) - 1]

        async def stream():
            for item in batch:
                if isinstance(item, Exception):
                    raise item
                yield item

        return stream()

    return open_stream, cursors


def _event(name: str, rv: str, event_type=WatchEventType.ADDED) -> WatchEvent:
    return WatchEvent(type=event_type, name=name, resource_version=rv)


# =============================================================================
# Test: Resumption
# =============================================================================
class TestResumption:
    async def test_clean_close_resumes_after_cursor(self, control_plane, clock) -> None:
        for name in ("e1", "e2", "e3"):
            control_plane.add_event(NAMESPACE, name)
        control_plane.close_streams_after(2)
        seen: list[str] = []

        sync = EventSynchronizer(
            _opener(control_plane), _named("e3", seen), 20, clock=clock, sleep=clock.sleep
        )
        event = await sync.run()

        assert event.name == "e3"
        assert seen == ["e1", "e2", "e3"]
        assert control_plane.watch_calls == [(NAMESPACE, ""), (NAMESPACE, "2")]
        assert sync.reconnects == 1
        assert sync.cursor == "3"
        assert sync.state == SyncState.SUCCEEDED

    async def test_interrupted_stream_resumes(self, control_plane, clock) -> None:
        for name in ("e1", "e2", "e3", "e4"):
            control_plane.add_event(NAMESPACE, name)
        control_plane.close_streams_after(1, 2, error=True)
        seen: list[str] = []

        await EventSynchronizer(
            _opener(control_plane), _named("e4", seen), 20, clock=clock, sleep=clock.sleep
        ).run()

        assert seen == ["e1", "e2", "e3", "e4"]
        assert [rv for _, rv in control_plane.watch_calls] == ["", "1", "3"]
        # A stream that delivered events is reopened without waiting.
        assert clock.sleeps == []

    async def test_event_added_while_streaming(self, control_plane, clock) -> None:
        control_plane.add_event(NAMESPACE, "noise")
        sync = EventSynchronizer(
            _opener(control_plane), _named("bootstrap-complete"), 20, clock=clock, sleep=clock.sleep
        )
        task = asyncio.create_task(sync.run())
        for _ in range(5):
            await asyncio.sleep(0)
        assert sync.state == SyncState.STREAMING

        control_plane.add_event(NAMESPACE, "bootstrap-complete")
        event = await task
        assert event.resource_version == "2"
        assert len(control_plane.watch_calls) == 1

    async def test_watch_until_wrapper(self, control_plane, clock) -> None:
        control_plane.add_event(NAMESPACE, "done")
        event = await watch_until(
            _opener(control_plane), _named("done"), 20, clock=clock, sleep=clock.sleep
        )
        assert event.name == "done"


# =============================================================================
# Test: Connection Retries
# =============================================================================
class TestConnectRetries:
    async def test_failed_opens_are_retried_after_delay(self, control_plane, clock) -> None:
        control_plane.add_event(NAMESPACE, "done")
        control_plane.fail_next_opens(3)
        sync = EventSynchronizer(
            _opener(control_plane),
            _named("done"),
            20,
            reconnect_delay=2,
            clock=clock,
            sleep=clock.sleep,
        )
        await sync.run()
        assert clock.sleeps == [2, 2, 2]
        assert len(control_plane.watch_calls) == 4
        assert sync.reconnects == 0
        assert sync.reachable is True

    async def test_os_error_on_open_is_retried(self, clock) -> None:
        attempts: list[str] = []
        opener, _ = _scripted([_event("done", "1")])

        async def flaky(cursor: str):
            attempts.append(cursor)
            if len(attempts) == 1:
                raise ConnectionRefusedError("connect: connection refused")
            return await opener(cursor)

        event = await EventSynchronizer(flaky, _named("done"), 20, clock=clock, sleep=clock.sleep).run()
        assert event.name == "done"
        assert clock.sleeps == [2]

    async def test_bug_in_opener_propagates(self, clock) -> None:
        async def broken(cursor: str):
            raise TypeError("watch_events() got an unexpected keyword argument")

        with pytest.raises(TypeError):
            await EventSynchronizer(broken, _named("done"), 20, clock=clock, sleep=clock.sleep).run()
        assert clock.sleeps == []
        assert clock.now == 0

    async def test_empty_close_pauses_before_reopen(self, control_plane, clock) -> None:
        control_plane.close_streams_after(0)
        control_plane.add_event(NAMESPACE, "done")
        await EventSynchronizer(
            _opener(control_plane), _named("done"), 20, clock=clock, sleep=clock.sleep
        ).run()
        assert clock.sleeps == [2]


# =============================================================================
# Test: Error Events
# =============================================================================
class TestErrorEvents:
    async def test_error_events_never_match(self, clock) -> None:
        opener, _ = _scripted([
            _event("bootstrap-complete", "", WatchEventType.ERROR),
            _event("other", "5"),
            _event("bootstrap-complete", "6"),
        ])
        event = await EventSynchronizer(
            opener, _named("bootstrap-complete"), 20, clock=clock, sleep=clock.sleep
        ).run()
        assert event.type == WatchEventType.ADDED
        assert event.resource_version == "6"

    async def test_error_events_keep_cursor(self, clock) -> None:
        opener, cursors = _scripted(
            [_event("a", "7"), _event("oops", "", WatchEventType.ERROR)],
            [_event("done", "8")],
        )
        sync = EventSynchronizer(opener, _named("done"), 20, clock=clock, sleep=clock.sleep)
        await sync.run()
        assert cursors == ["", "7"]
        assert sync.cursor == "8"

    async def test_transport_error_mid_stream_reconnects(self, clock) -> None:
        opener, cursors = _scripted(
            [_event("a", "1"), TransportError("unexpected EOF")],
            [_event("done", "2")],
        )
        event = await EventSynchronizer(
            opener, _named("done"), 20, clock=clock, sleep=clock.sleep
        ).run()
        assert event.name == "done"
        assert cursors == ["", "1"]

    async def test_bug_mid_stream_propagates(self, clock) -> None:
        opener, cursors = _scripted(
            [_event("a", "1"), KeyError("resourceVersion")],
            [_event("done", "2")],
        )
        with pytest.raises(KeyError):
            await EventSynchronizer(opener, _named("done"), 20, clock=clock, sleep=clock.sleep).run()
        assert cursors == [""]


# =============================================================================
# Test: Deadline
# =============================================================================
class TestDeadline:
    async def test_never_reachable(self, control_plane, clock) -> None:
        control_plane.fail_next_opens(1000)
        sync = EventSynchronizer(
            _opener(control_plane), _named("done"), 10, clock=clock, sleep=clock.sleep
        )
        with pytest.raises(SynchronizerTimeoutError) as exc_info:
            await sync.run()
        error = exc_info.value
        assert error.reachable is False
        assert "never reachable" in error.message
        assert error.error_code == "EVENT_WAIT_TIMEOUT"
        assert sync.state == SyncState.FAILED_TIMEOUT
        assert clock.now == 10

    async def test_reachable_but_never_satisfied(self, control_plane, clock) -> None:
        control_plane.add_event(NAMESPACE, "noise")
        control_plane.close_streams_after(*[0] * 1000)
        sync = EventSynchronizer(
            _opener(control_plane), _named("done"), 10, clock=clock, sleep=clock.sleep
        )
        with pytest.raises(SynchronizerTimeoutError) as exc_info:
            await sync.run()
        assert exc_info.value.reachable is True
        assert "condition never satisfied" in exc_info.value.message
        assert clock.now >= 10

    async def test_blocked_stream_times_out_on_real_clock(self, control_plane) -> None:
        """A silent stream is cancelled once the budget runs out, not before."""
        started = time.monotonic()
        with pytest.raises(SynchronizerTimeoutError) as exc_info:
            await EventSynchronizer(_opener(control_plane), _named("done"), 0.2).run()
        assert time.monotonic() - started >= 0.19
        assert exc_info.value.reachable is True
        assert exc_info.value.stage == "events"


# =============================================================================
# Test: Condition Errors
# =============================================================================
class TestConditionErrors:
    async def test_condition_exception_propagates(self, control_plane, clock) -> None:
        control_plane.add_event(NAMESPACE, "e1")

        def condition(event: WatchEvent) -> bool:
            raise ValueError("bad predicate")

        with pytest.raises(ValueError, match="bad predicate"):
            await EventSynchronizer(
                _opener(control_plane), condition, 20, clock=clock, sleep=clock.sleep
            ).run()
