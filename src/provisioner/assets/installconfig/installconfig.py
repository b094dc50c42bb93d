"""
provisioner.assets.installconfig.installconfig - install-config.yml
=====================================================================

InstallConfig combines the operator input assets into the cluster's
install configuration and persists it as ``install-config.yml``.

Defaults:
    - Networking: OpenshiftSDN, service CIDR 10.3.0.0/16, cluster network
      10.2.0.0/16 with a host subnet length of 9 (a /23 per node).
    - Machines: 3 masters and 3 workers; 1 and 1 on libvirt.

An operator may edit ``install-config.yml`` between runs. The next run
loads the edited file instead of regenerating it; a file that no longer
parses raises LoadCorruptionError rather than being overwritten.
"""

from __future__ import annotations

from typing import Optional

import yaml
from pydantic import ValidationError

from provisioner.assets.base import Asset, OutputFile, WritableAsset
from provisioner.assets.installconfig.inputs import (
    BaseDomain,
    ClusterID,
    ClusterName,
    EmailAddress,
    Password,
    Platform,
    PullSecret,
    SSHPublicKey,
)
from provisioner.assets.installconfig.types import (
    Admin,
    AWSPlatform,
    ClusterNetwork,
    InstallConfigSpec,
    LibvirtPlatform,
    MachinePool,
    Networking,
    ObjectMeta,
    OpenStackPlatform,
)
from provisioner.assets.parents import DependencyTable
from provisioner.assets.persistence import FileFetcher
from provisioner.core.enums import PlatformType
from provisioner.core.exceptions import GenerationError, LoadCorruptionError


INSTALL_CONFIG_FILENAME = "install-config.yml"

DEFAULT_SERVICE_CIDR = "10.3.0.0/16"
DEFAULT_CLUSTER_CIDR = "10.2.0.0/16"
DEFAULT_HOST_SUBNET_LENGTH = 9


class InstallConfig(WritableAsset):
    """Generates and loads ``install-config.yml``.

    Attributes:
        config: The parsed install configuration, None until resolved.
        file: The durable form of ``config``, None until resolved.
    """

    def __init__(self) -> None:
        self.config: Optional[InstallConfigSpec] = None
        self.file: Optional[OutputFile] = None

    def dependencies(self) -> list[type[Asset]]:
        return [
            ClusterID,
            EmailAddress,
            Password,
            SSHPublicKey,
            BaseDomain,
            ClusterName,
            PullSecret,
            Platform,
        ]

    def generate(self, parents: DependencyTable) -> None:
        platform = parents.get(Platform)

        masters, workers = 3, 3
        aws: Optional[AWSPlatform] = None
        openstack: Optional[OpenStackPlatform] = None
        libvirt: Optional[LibvirtPlatform] = None
        if platform.platform_type == PlatformType.AWS:
            aws = platform.section  # type: ignore[assignment]
        elif platform.platform_type == PlatformType.OPENSTACK:
            openstack = platform.section  # type: ignore[assignment]
        elif platform.platform_type == PlatformType.LIBVIRT:
            libvirt = platform.section  # type: ignore[assignment]
            masters, workers = 1, 1
        else:
            raise GenerationError(
                message="unknown platform type",
                asset_name=self.name(),
                error_code="UNKNOWN_PLATFORM",
            )

        config = InstallConfigSpec(
            metadata=ObjectMeta(name=parents.get(ClusterName).value),
            cluster_id=parents.get(ClusterID).cluster_id,
            admin=Admin(
                email=parents.get(EmailAddress).value,
                password=parents.get(Password).value,
                ssh_key=parents.get(SSHPublicKey).value or "",
            ),
            base_domain=parents.get(BaseDomain).value,
            networking=Networking(
                type="OpenshiftSDN",
                service_cidr=DEFAULT_SERVICE_CIDR,
                cluster_networks=[
                    ClusterNetwork(
                        cidr=DEFAULT_CLUSTER_CIDR,
                        host_subnet_length=DEFAULT_HOST_SUBNET_LENGTH,
                    ),
                ],
            ),
            machines=[
                MachinePool(name="master", replicas=masters),
                MachinePool(name="worker", replicas=workers),
            ],
            pull_secret=parents.get(PullSecret).value,
            aws=aws,
            openstack=openstack,
            libvirt=libvirt,
        )

        self.config = config
        self.file = OutputFile(filename=INSTALL_CONFIG_FILENAME, data=dump_install_config(config))

    def name(self) -> str:
        return "Install Config"

    def files(self) -> list[OutputFile]:
        return [self.file] if self.file is not None else []

    def load(self, fetcher: FileFetcher) -> bool:
        try:
            file = fetcher.fetch_by_name(INSTALL_CONFIG_FILENAME)
        except FileNotFoundError:
            return False

        try:
            raw = yaml.safe_load(file.data)
            config = InstallConfigSpec.model_validate(raw)
        except (yaml.YAMLError, ValidationError) as exc:
            raise LoadCorruptionError(
                message=f"failed to parse {INSTALL_CONFIG_FILENAME}: {exc}",
                asset_name=self.name(),
                filename=INSTALL_CONFIG_FILENAME,
            ) from exc

        self.file, self.config = file, config
        return True


def dump_install_config(config: InstallConfigSpec) -> bytes:
    """Serialize an install configuration to its on-disk YAML form."""
    data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    return yaml.safe_dump(data, sort_keys=False).encode("utf-8")
