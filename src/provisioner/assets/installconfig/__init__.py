"""
provisioner.assets.installconfig - The Install Config Graph
=============================================================

    InstallConfig
        ├── ClusterID
        ├── EmailAddress
        ├── Password
        ├── SSHPublicKey
        ├── BaseDomain
        ├── ClusterName
        ├── PullSecret
        └── Platform
"""

from provisioner.assets.installconfig.inputs import (
    BaseDomain,
    ClusterID,
    ClusterName,
    EmailAddress,
    InstallSettings,
    Password,
    Platform,
    PullSecret,
    SSHPublicKey,
)
from provisioner.assets.installconfig.installconfig import (
    INSTALL_CONFIG_FILENAME,
    InstallConfig,
    dump_install_config,
)
from provisioner.assets.installconfig.types import InstallConfigSpec

__all__ = [
    "InstallConfig",
    "InstallConfigSpec",
    "INSTALL_CONFIG_FILENAME",
    "dump_install_config",
    "InstallSettings",
    "ClusterID",
    "ClusterName",
    "BaseDomain",
    "EmailAddress",
    "Password",
    "SSHPublicKey",
    "PullSecret",
    "Platform",
]
