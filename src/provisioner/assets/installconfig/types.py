"""
provisioner.assets.installconfig.types - Install Config Schema
================================================================

Pydantic models for the contents of ``install-config.yml``. Field names are
serialized in camelCase to match the on-disk format operators edit by hand.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# =============================================================================
# Platform Sections
# =============================================================================
class AWSPlatform(_Schema):
    region: str = Field(description="AWS region the cluster is created in")


class OpenStackPlatform(_Schema):
    region: str = Field(description="OpenStack region")
    cloud: str = Field(description="Entry in clouds.yaml to use")
    external_network: str = Field(description="Network used for floating IPs")


class LibvirtPlatform(_Schema):
    uri: str = Field(description="libvirt connection URI")


# =============================================================================
# Cluster Sections
# =============================================================================
class ObjectMeta(_Schema):
    name: str


class Admin(_Schema):
    email: str
    password: str
    ssh_key: str = Field(default="")


class ClusterNetwork(_Schema):
    cidr: str
    host_subnet_length: int = Field(ge=0, le=32)


class Networking(_Schema):
    type: str = Field(default="OpenshiftSDN")
    service_cidr: str
    cluster_networks: list[ClusterNetwork]


class MachinePool(_Schema):
    name: str
    replicas: int = Field(ge=0)


class InstallConfigSpec(_Schema):
    """The full install configuration of one cluster."""

    metadata: ObjectMeta
    cluster_id: str = Field(alias="clusterID")
    admin: Admin
    base_domain: str
    networking: Networking
    machines: list[MachinePool]
    pull_secret: str
    aws: Optional[AWSPlatform] = None
    openstack: Optional[OpenStackPlatform] = None
    libvirt: Optional[LibvirtPlatform] = None

    def machine_pool(self, name: str) -> Optional[MachinePool]:
        """Return the machine pool called ``name``, if any."""
        return next((p for p in self.machines if p.name == name), None)
