"""
Provisioner - Asset-graph Cluster Installer
=============================================

Provisioner builds a cluster's installation artifacts as a graph of
assets, persists them to an install directory, and waits for a freshly
provisioned cluster to finish bootstrapping:

    install-config  →  manifests  →  cluster
    (user inputs      (Kubernetes   (apply infrastructure, wait for
     → config file)    objects)      API + completion event)

Architecture Layers (top to bottom):
    1. Facade              - Installer
    2. Orchestration Layer - Targets, best-effort persistence runner
    3. Asset Layer         - Store, InstallConfig, Manifests, persistence
    4. Synchronizer Layer  - API polling, resumable event watch

Quick Start:
    >>> from provisioner import Installer
    >>> await Installer().create("manifests")
"""

# =============================================================================
# Package Version
# =============================================================================
__version__ = "0.1.0"

# =============================================================================
# Package-Level Exports
# =============================================================================
# For specific components, import from submodules directly:
#   from provisioner.core.config import InstallerConfig
#   from provisioner.assets.store import Store
# =============================================================================
from provisioner.facade import Installer

__all__ = ["Installer", "__version__"]
