"""
provisioner.synchronizer.events - Watch Stream Types
======================================================

A watch stream is an async iterator of WatchEvent objects in delivery
order. Each event carries the ``resource_version`` the stream was at when
it was produced; the synchronizer uses the last one it consumed as the
cursor when it has to reopen the stream.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable
from typing import Callable

from pydantic import BaseModel, Field

from provisioner.core.enums import WatchEventType


class WatchEvent(BaseModel):
    """One event delivered by a watch stream.

    Attributes:
        type: What happened (ADDED, MODIFIED, DELETED, ERROR).
        name: Name of the event object (e.g., "bootstrap-complete").
        message: Free-form message attached to the event.
        resource_version: Stream position of this event. Empty for
            events that carry no position, such as stream-level errors.
    """

    model_config = {"frozen": True}

    type: WatchEventType
    name: str = ""
    message: str = ""
    resource_version: str = Field(default="")


# An opener takes the cursor ("" = from current state) and returns a
# freshly connected stream positioned just after it.
EventStream = AsyncIterator[WatchEvent]
StreamOpener = Callable[[str], Awaitable[EventStream]]
EventCondition = Callable[[WatchEvent], bool]
