"""
provisioner.facade - Installer Facade
=======================================

The single entry point that ties the asset, orchestration, and
synchronizer layers into one workflow step per call.

Architecture Context:

    ┌──────────────────────────────────────────────────┐
    │                Installer (Facade)                 │
    │                                                   │
    │  ┌─────────────────────────────────────────────┐ │
    │  │         Orchestration Layer                   │ │
    │  │  Targets, run_target, log_complete            │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │              Asset Layer                      │ │
    │  │  Store, InstallConfig, Manifests, persistence │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │          Synchronizer Layer                   │ │
    │  │  API poll, resumable event watch              │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │            Boundaries                         │ │
    │  │  InfrastructureProvider, ControlPlaneClient   │ │
    │  └─────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────┘

Usage:
    >>> from provisioner.facade import Installer
    >>> from provisioner.core.config import InstallerConfig
    >>>
    >>> installer = Installer(InstallerConfig(directory="mycluster"))
    >>> await installer.create("manifests")
    >>>
    >>> # The cluster target needs a client for the live control plane
    >>> installer = Installer(config, client_factory=my_client_factory)
    >>> info = await installer.create("cluster")
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Callable, Optional

import structlog

from provisioner.assets.base import WritableAsset
from provisioner.assets.store import Store
from provisioner.core.config import InstallerConfig
from provisioner.core.exceptions import ConfigurationError
from provisioner.orchestration.infrastructure import (
    InfrastructureProvider,
    NullInfrastructureProvider,
)
from provisioner.orchestration.runner import CompletionInfo, log_complete, run_target
from provisioner.orchestration.targets import Target, get_target
from provisioner.synchronizer.bootstrap import wait_for_bootstrap_complete
from provisioner.synchronizer.client import ControlPlaneClient
from provisioner.synchronizer.polling import Clock, Sleep


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()

# Builds a control-plane client from the client-access file on disk.
ClientFactory = Callable[[Path], ControlPlaneClient]


class Installer:
    """Top-level facade for provisioning runs against one install directory.

    Attributes:
        _config: Installer configuration.
        _infrastructure: Applies assets and destroys bootstrap resources.
        _client_factory: Builds the control-plane client for the wait.
        _store: Asset store shared by every create() call on this instance.
    """

    def __init__(
        self,
        config: Optional[InstallerConfig] = None,
        *,
        infrastructure: Optional[InfrastructureProvider] = None,
        client_factory: Optional[ClientFactory] = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the Installer facade.

        Args:
            config: Installer configuration. Defaults to InstallerConfig(),
                which reads PROVISIONER_* environment variables.
            infrastructure: Optional provider. Defaults to
                NullInfrastructureProvider.
            client_factory: Called with the client-access file path once the
                infrastructure is applied. Required for the cluster target.
            clock: Monotonic clock used for wait deadlines.
            sleep: Sleep used between polls and reconnects.
        """
        self._config = config or InstallerConfig()
        self._infrastructure = infrastructure or NullInfrastructureProvider()
        self._client_factory = client_factory
        self._clock = clock
        self._sleep = sleep
        self._store = Store(self._config.directory)
        self._logger = logger.bind(
            component="installer",
            directory=str(self._config.directory),
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> InstallerConfig:
        return self._config

    @property
    def store(self) -> Store:
        return self._store

    # =========================================================================
    # Workflow Steps
    # =========================================================================

    async def create(self, target_name: str) -> Optional[CompletionInfo]:
        """Run one named workflow step.

        Resolves and persists the target's root assets. For a target that
        provisions a cluster, continues with the bring-up sequence.

        Returns:
            CompletionInfo for the cluster target, None otherwise.

        Raises:
            ConfigurationError: Unknown target, or no client available.
            ProvisionerError: Any generation, persistence, or wait failure.
        """
        target = get_target(target_name)
        self._logger.info("target_started", target=target.name)
        self.build(target)

        info: Optional[CompletionInfo] = None
        if target.provisions_cluster:
            info = await self.bring_up()

        self._logger.info("target_completed", target=target.name)
        return info

    def build(self, target: Target) -> list[WritableAsset]:
        """Resolve and persist the target's root assets."""
        return run_target(target, self._config.directory, self._store)

    async def bring_up(self) -> CompletionInfo:
        """Apply infrastructure, wait for bootstrap, then remove bootstrap.

        The bootstrap resources are only destroyed after the completion
        event was observed; a wait failure leaves them in place.
        """
        directory = self._config.directory
        await self._infrastructure.apply(directory)

        client = self._connect()
        await wait_for_bootstrap_complete(
            client,
            self._config.wait,
            clock=self._clock,
            sleep=self._sleep,
        )

        self._logger.info("destroying_bootstrap")
        await self._infrastructure.destroy_bootstrap(directory)
        return log_complete(self._config)

    def _connect(self) -> ControlPlaneClient:
        kubeconfig = self._config.kubeconfig_file
        if not kubeconfig.is_file():
            raise ConfigurationError(
                message=f"client-access file {kubeconfig} does not exist",
                error_code="KUBECONFIG_MISSING",
                details={"path": str(kubeconfig)},
            )
        if self._client_factory is None:
            raise ConfigurationError(
                message="no control-plane client factory configured",
                error_code="CLIENT_NOT_CONFIGURED",
            )
        return self._client_factory(kubeconfig)

    def __repr__(self) -> str:
        return f"Installer(directory={str(self._config.directory)!r})"
