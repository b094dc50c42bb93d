"""
provisioner.core - Foundation Layer
=====================================

Foundational building blocks every other provisioner package depends on:

    - config:      InstallerConfig, WaitConfig, load_config
    - enums:       WatchEventType, SyncState, PlatformType
    - exceptions:  The ProvisionerError hierarchy
    - logging:     configure_logging (structlog setup)

Dependency Rule:
    core/ depends on NOTHING else in the provisioner package.
"""

from provisioner.core.config import InstallerConfig, WaitConfig, load_config
from provisioner.core.enums import PlatformType, SyncState, WatchEventType
from provisioner.core.exceptions import (
    ConfigurationError,
    DependencyCycleError,
    GenerationError,
    LoadCorruptionError,
    PersistenceError,
    ProvisionerError,
    SynchronizerTimeoutError,
    TransportError,
)

__all__ = [
    # Config
    "InstallerConfig",
    "WaitConfig",
    "load_config",
    # Enums
    "PlatformType",
    "SyncState",
    "WatchEventType",
    # Exceptions
    "ProvisionerError",
    "ConfigurationError",
    "GenerationError",
    "LoadCorruptionError",
    "PersistenceError",
    "DependencyCycleError",
    "SynchronizerTimeoutError",
    "TransportError",
]
