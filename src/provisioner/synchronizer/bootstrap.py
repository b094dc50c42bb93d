"""
provisioner.synchronizer.bootstrap - Waiting for Bootstrap Completion
=======================================================================

Two waits run strictly one after the other, each with its own deadline:

    1. API wait     poll server_version() every poll_interval_seconds
                    until it answers            (api_timeout_seconds)
    2. Event wait   watch events in event_namespace until an ADDED event
                    named completion_event appears (event_timeout_seconds)

The second budget starts only once the first wait has succeeded, so a slow
API cannot eat into the event wait.
"""

from __future__ import annotations

import asyncio
import time

import structlog

from provisioner.core.config import WaitConfig
from provisioner.core.enums import WatchEventType
from provisioner.synchronizer.client import ControlPlaneClient
from provisioner.synchronizer.events import EventStream, WatchEvent
from provisioner.synchronizer.polling import Clock, Sleep, poll_until
from provisioner.synchronizer.until import EventSynchronizer


logger = structlog.get_logger()


async def wait_for_api(
    client: ControlPlaneClient,
    wait: WaitConfig,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> str:
    """Block until the API server answers a version query.

    Returns:
        The reported server version.

    Raises:
        SynchronizerTimeoutError: stage "api", reachable False.
    """
    logger.info("waiting_for_api", timeout_seconds=wait.api_timeout_seconds)
    version = await poll_until(
        client.server_version,
        wait.api_timeout_seconds,
        interval=wait.poll_interval_seconds,
        stage="api",
        log_downsample=wait.log_downsample,
        clock=clock,
        sleep=sleep,
    )
    logger.info("api_up", version=version)
    return version


async def wait_for_event(
    client: ControlPlaneClient,
    wait: WaitConfig,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> WatchEvent:
    """Block until the completion event is added in the watched namespace.

    Raises:
        SynchronizerTimeoutError: stage "events".
    """
    logger.info(
        "waiting_for_event",
        event_name=wait.completion_event,
        namespace=wait.event_namespace,
        timeout_seconds=wait.event_timeout_seconds,
    )

    async def open_stream(cursor: str) -> EventStream:
        return await client.watch_events(wait.event_namespace, cursor)

    def is_complete(event: WatchEvent) -> bool:
        if event.type != WatchEventType.ADDED:
            return False
        logger.debug("event_added", name=event.name, message=event.message)
        return event.name == wait.completion_event

    synchronizer = EventSynchronizer(
        open_stream,
        is_complete,
        wait.event_timeout_seconds,
        stage="events",
        reconnect_delay=wait.reconnect_delay_seconds,
        log_downsample=wait.log_downsample,
        clock=clock,
        sleep=sleep,
    )
    event = await synchronizer.run()
    logger.info("event_observed", event_name=event.name, reconnects=synchronizer.reconnects)
    return event


async def wait_for_bootstrap_complete(
    client: ControlPlaneClient,
    wait: WaitConfig,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> WatchEvent:
    """Wait for the API, then for the completion event.

    Returns:
        The completion event.

    Raises:
        SynchronizerTimeoutError: From whichever stage ran out of time;
            ``stage`` tells which.
    """
    await wait_for_api(client, wait, clock=clock, sleep=sleep)
    return await wait_for_event(client, wait, clock=clock, sleep=sleep)
