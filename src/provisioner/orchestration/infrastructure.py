"""
provisioner.orchestration.infrastructure - Infrastructure Boundary
====================================================================

Applying the persisted assets to a cloud provider, and tearing down the
transient bootstrap resources afterwards, happen behind this interface.

Implementations:
    - InfrastructureProvider (ABC):  Abstract interface
    - NullInfrastructureProvider:    Logs and records calls; for dev/testing
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import structlog


logger = structlog.get_logger()


class InfrastructureProvider(ABC):
    """Brings a cluster's infrastructure up and removes its bootstrap part."""

    @abstractmethod
    async def apply(self, directory: Path) -> None:
        """Create the cluster's resources from the assets in ``directory``."""
        ...

    @abstractmethod
    async def destroy_bootstrap(self, directory: Path) -> None:
        """Remove the bootstrap resources once the cluster runs on its own."""
        ...


class NullInfrastructureProvider(InfrastructureProvider):
    """Provider that performs no cloud calls.

    Attributes:
        calls: ("apply" | "destroy_bootstrap", directory) in call order.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Path]] = []
        self._logger = logger.bind(component="null_infrastructure")

    async def apply(self, directory: Path) -> None:
        self.calls.append(("apply", directory))
        self._logger.info("infrastructure_apply_skipped", directory=str(directory))

    async def destroy_bootstrap(self, directory: Path) -> None:
        self.calls.append(("destroy_bootstrap", directory))
        self._logger.info("bootstrap_destroy_skipped", directory=str(directory))
