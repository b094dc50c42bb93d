"""
provisioner.orchestration - Workflow Steps
============================================

    Target / TARGETS / get_target   named sets of root assets
    run_target                      resolve + best-effort persist
    log_complete                    report operator credentials
    InfrastructureProvider          apply / destroy_bootstrap boundary
"""

from provisioner.orchestration.infrastructure import (
    InfrastructureProvider,
    NullInfrastructureProvider,
)
from provisioner.orchestration.runner import CompletionInfo, log_complete, run_target
from provisioner.orchestration.targets import (
    CLUSTER_TARGET,
    INSTALL_CONFIG_TARGET,
    MANIFESTS_TARGET,
    TARGETS,
    Target,
    get_target,
)

__all__ = [
    "Target",
    "TARGETS",
    "INSTALL_CONFIG_TARGET",
    "MANIFESTS_TARGET",
    "CLUSTER_TARGET",
    "get_target",
    "run_target",
    "log_complete",
    "CompletionInfo",
    "InfrastructureProvider",
    "NullInfrastructureProvider",
]
