"""
provisioner.core.enums - Type-Safe Enumerations
=================================================

All enums inherit from both ``str`` and ``Enum`` so they serialize to plain
strings in YAML/JSON and compare equal to their values:

    >>> WatchEventType.ADDED == "ADDED"
    True
"""

from enum import Enum


# =============================================================================
# Watch Event Type
# =============================================================================
# The event kinds a control-plane watch stream delivers. Only ADDED events
# are candidates for the completion signal; ERROR events are stream-level
# noise and are skipped without reconnecting.
# =============================================================================
class WatchEventType(str, Enum):
    """Kinds of events delivered by a watch stream."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    ERROR = "ERROR"


# =============================================================================
# Synchronizer State
# =============================================================================
# The cooperative retry state machine of the event synchronizer:
#
#   CONNECTING ──(stream opened)──> STREAMING
#   STREAMING ──(stream closed / transport error)──> CONNECTING
#   STREAMING ──(condition satisfied)──> SUCCEEDED
#   CONNECTING | STREAMING ──(deadline elapsed)──> FAILED_TIMEOUT
# =============================================================================
class SyncState(str, Enum):
    """States of the resumable event synchronizer."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    SUCCEEDED = "succeeded"
    FAILED_TIMEOUT = "failed_timeout"


# =============================================================================
# Platform Type
# =============================================================================
class PlatformType(str, Enum):
    """Infrastructure platforms an install config can target.

    Libvirt clusters default to a single master and a single worker;
    every other platform defaults to three of each.
    """

    AWS = "aws"
    OPENSTACK = "openstack"
    LIBVIRT = "libvirt"
