"""
provisioner.synchronizer.client - Control-Plane Client Boundary
=================================================================

The synchronizer talks to the cluster only through this interface:

    server_version()                        reachability probe
    watch_events(namespace, resource_version) resumable event stream

Implementations:
    - ControlPlaneClient (ABC):      Abstract interface
    - InMemoryControlPlaneClient:    Scripted cluster for dev/testing

A real implementation is built from ``auth/kubeconfig`` by the client
factory handed to the Installer facade.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from typing import Optional

import structlog

from provisioner.core.enums import WatchEventType
from provisioner.core.exceptions import TransportError
from provisioner.synchronizer.events import EventStream, WatchEvent


logger = structlog.get_logger()


# =============================================================================
# Abstract Base Class
# =============================================================================
class ControlPlaneClient(ABC):
    """Abstract interface to the cluster's control plane."""

    @abstractmethod
    async def server_version(self) -> str:
        """Return the API server version.

        Raises:
            Exception: Any failure means "not reachable yet".
        """
        ...

    @abstractmethod
    async def watch_events(self, namespace: str, resource_version: str = "") -> EventStream:
        """Open an event watch in ``namespace``.

        Args:
            namespace: Namespace to watch.
            resource_version: Cursor to resume after. "" starts from the
                current state, replaying the events that already exist.

        Returns:
            An async iterator of WatchEvent in delivery order. It ends when
            the server closes the watch.

        Raises:
            TransportError: If the watch could not be opened.
        """
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================
class InMemoryControlPlaneClient(ControlPlaneClient):
    """A scripted control plane for development and testing.

    Events are stored per namespace with increasing resource versions.
    Open streams stay live: they deliver events added after they were
    opened, until a scripted disconnect closes them.

    Scripting:
        fail_versions(*messages)      next version queries raise these
        fail_next_opens(n)            next n watch opens raise TransportError
        close_streams_after(*counts)  each new stream closes after that many
                                      events (error=True raises instead)

    Example:
        >>> client = InMemoryControlPlaneClient(version="v1.11.0")
        >>> client.add_event("kube-system", "bootstrap-complete")
        >>> client.close_streams_after(2)
    """

    def __init__(self, version: str = "v1.11.0") -> None:
        self._version = version
        self._version_errors: deque[str] = deque()
        self._open_failures = 0
        self._disconnects: deque[tuple[int, bool]] = deque()
        self._events: dict[str, list[WatchEvent]] = {}
        self._next_version = 1
        self._waiters: set[asyncio.Event] = set()

        self.version_calls = 0
        self.watch_calls: list[tuple[str, str]] = []
        self._logger = logger.bind(component="in_memory_control_plane")

    # -------------------------------------------------------------------------
    # Scripting
    # -------------------------------------------------------------------------
    def add_event(
        self,
        namespace: str,
        name: str,
        message: str = "",
        event_type: WatchEventType = WatchEventType.ADDED,
    ) -> WatchEvent:
        """Append an event and wake every open stream."""
        resource_version = ""
        if event_type != WatchEventType.ERROR:
            resource_version = str(self._next_version)
            self._next_version += 1
        event = WatchEvent(
            type=event_type,
            name=name,
            message=message,
            resource_version=resource_version,
        )
        self._events.setdefault(namespace, []).append(event)
        for waiter in self._waiters:
            waiter.set()
        return event

    def fail_versions(self, *messages: str) -> None:
        self._version_errors.extend(messages)

    def fail_next_opens(self, count: int) -> None:
        self._open_failures += count

    def close_streams_after(self, *counts: int, error: bool = False) -> None:
        self._disconnects.extend((count, error) for count in counts)

    # -------------------------------------------------------------------------
    # ControlPlaneClient
    # -------------------------------------------------------------------------
    async def server_version(self) -> str:
        self.version_calls += 1
        if self._version_errors:
            raise TransportError(self._version_errors.popleft())
        return self._version

    async def watch_events(self, namespace: str, resource_version: str = "") -> EventStream:
        self.watch_calls.append((namespace, resource_version))
        if self._open_failures > 0:
            self._open_failures -= 1
            raise TransportError(
                "dial tcp: connect: connection refused",
                error_code="WATCH_OPEN_FAILED",
            )
        limit: Optional[tuple[int, bool]] = None
        if self._disconnects:
            limit = self._disconnects.popleft()
        return self._stream(namespace, resource_version, limit)

    async def _stream(
        self,
        namespace: str,
        resource_version: str,
        limit: Optional[tuple[int, bool]],
    ) -> EventStream:
        after = int(resource_version) if resource_version else 0
        # Error events have no position; only deliver those added after open.
        errors_seen = sum(
            1 for e in self._events.get(namespace, []) if e.type == WatchEventType.ERROR
        )
        delivered = 0
        waiter = asyncio.Event()
        self._waiters.add(waiter)
        try:
            while True:
                waiter.clear()
                errors_index = 0
                for event in list(self._events.get(namespace, [])):
                    if limit is not None and delivered >= limit[0]:
                        break
                    if event.type == WatchEventType.ERROR:
                        errors_index += 1
                        if errors_index <= errors_seen:
                            continue
                        errors_seen = errors_index
                    elif int(event.resource_version) <= after:
                        continue
                    else:
                        after = int(event.resource_version)

                    delivered += 1
                    yield event

                if limit is not None and delivered >= limit[0]:
                    if limit[1]:
                        raise TransportError(
                            "watch stream interrupted: unexpected EOF",
                            error_code="WATCH_INTERRUPTED",
                        )
                    self._logger.debug("stream_closed", namespace=namespace, delivered=delivered)
                    return
                await waiter.wait()
        finally:
            self._waiters.discard(waiter)
