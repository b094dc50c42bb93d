"""
provisioner.synchronizer - Waiting on the Live Cluster
========================================================

    ControlPlaneClient / InMemoryControlPlaneClient   cluster boundary
    WatchEvent                                        one stream event
    poll_until / LogDownsampler                       fixed-tick reachability poll
    EventSynchronizer / watch_until                   resumable event wait
    wait_for_bootstrap_complete                       API wait, then event wait
"""

from provisioner.synchronizer.bootstrap import (
    wait_for_api,
    wait_for_bootstrap_complete,
    wait_for_event,
)
from provisioner.synchronizer.client import ControlPlaneClient, InMemoryControlPlaneClient
from provisioner.synchronizer.events import WatchEvent
from provisioner.synchronizer.polling import LogDownsampler, poll_until
from provisioner.synchronizer.until import EventSynchronizer, watch_until

__all__ = [
    "ControlPlaneClient",
    "InMemoryControlPlaneClient",
    "WatchEvent",
    "LogDownsampler",
    "poll_until",
    "EventSynchronizer",
    "watch_until",
    "wait_for_api",
    "wait_for_event",
    "wait_for_bootstrap_complete",
]
