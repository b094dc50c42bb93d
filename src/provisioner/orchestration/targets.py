"""
provisioner.orchestration.targets - Named Build Targets
=========================================================

A target names the root assets one workflow step resolves and persists.
Targets are listed in pipeline order; each later target includes the
assets of the earlier ones through the dependency graph.

    install-config   InstallConfig
    manifests        Manifests
    cluster          InstallConfig, Manifests, then bring the cluster up
                     and wait for bootstrap completion
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from provisioner.assets.base import WritableAsset
from provisioner.assets.installconfig import InstallConfig
from provisioner.assets.manifests import Manifests
from provisioner.core.exceptions import ConfigurationError


class Target(BaseModel):
    """A named set of root assets.

    Attributes:
        name: CLI name of the target (e.g., "manifests").
        description: One-line help text.
        assets: Root asset classes, resolved and persisted in order.
        provisions_cluster: Whether the step continues with infrastructure
            apply, the bootstrap wait, and bootstrap teardown.
    """

    model_config = {"frozen": True}

    name: str
    description: str
    assets: list[type[WritableAsset]] = Field(default_factory=list)
    provisions_cluster: bool = False

    def asset_names(self) -> list[str]:
        return [asset_type().name() for asset_type in self.assets]


INSTALL_CONFIG_TARGET = Target(
    name="install-config",
    description="Generates the Install Config asset",
    assets=[InstallConfig],
)

MANIFESTS_TARGET = Target(
    name="manifests",
    description="Generates the Kubernetes manifests",
    assets=[Manifests],
)

CLUSTER_TARGET = Target(
    name="cluster",
    description="Create a cluster and wait for its bootstrap to complete",
    assets=[InstallConfig, Manifests],
    provisions_cluster=True,
)

TARGETS: list[Target] = [INSTALL_CONFIG_TARGET, MANIFESTS_TARGET, CLUSTER_TARGET]


def get_target(name: str) -> Target:
    """Look up a target by name.

    Raises:
        ConfigurationError: If no target has that name.
    """
    for target in TARGETS:
        if target.name == name:
            return target
    raise ConfigurationError(
        message=f"unknown target {name!r}; expected one of {[t.name for t in TARGETS]}",
        error_code="UNKNOWN_TARGET",
    )
