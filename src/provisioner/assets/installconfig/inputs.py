"""
provisioner.assets.installconfig.inputs - Operator Input Assets
=================================================================

Leaf assets of the install-config graph. They have no dependencies; their
``generate`` reads operator input from ``PROVISIONER_INSTALL_*``
environment variables (via pydantic-settings) and validates it. None of
them is writable: their values reach disk only through InstallConfig.

    ClusterID      random UUID
    ClusterName    PROVISIONER_INSTALL_CLUSTER_NAME
    BaseDomain     PROVISIONER_INSTALL_BASE_DOMAIN
    EmailAddress   PROVISIONER_INSTALL_EMAIL_ADDRESS
    Password       PROVISIONER_INSTALL_PASSWORD
    SSHPublicKey   PROVISIONER_INSTALL_SSH_PUBLIC_KEY   (optional)
    PullSecret     PROVISIONER_INSTALL_PULL_SECRET
    Platform       PROVISIONER_INSTALL_PLATFORM + platform-specific fields
"""

from __future__ import annotations

import json
import re
from typing import ClassVar, Optional, Union
from uuid import uuid4

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from provisioner.assets.base import Asset
from provisioner.assets.installconfig.types import (
    AWSPlatform,
    LibvirtPlatform,
    OpenStackPlatform,
)
from provisioner.assets.parents import DependencyTable
from provisioner.core.enums import PlatformType
from provisioner.core.exceptions import GenerationError


# =============================================================================
# Operator Settings
# =============================================================================
class InstallSettings(BaseSettings):
    """Operator input read from PROVISIONER_INSTALL_* variables."""

    cluster_name: str = ""
    base_domain: str = ""
    email_address: str = ""
    password: str = ""
    ssh_public_key: str = ""
    pull_secret: str = ""
    platform: str = ""

    aws_region: str = "us-east-1"
    openstack_region: str = "regionOne"
    openstack_cloud: str = "openstack"
    openstack_external_network: str = "public"
    libvirt_uri: str = "qemu+tcp://192.168.122.1/system"

    model_config = {
        "env_prefix": "PROVISIONER_INSTALL_",
        "case_sensitive": False,
    }


_DNS_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# =============================================================================
# ClusterID
# =============================================================================
class ClusterID(Asset):
    """A random identifier unique to one cluster."""

    def __init__(self) -> None:
        self.cluster_id: Optional[str] = None

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents: DependencyTable) -> None:
        self.cluster_id = str(uuid4())

    def name(self) -> str:
        return "Cluster ID"


# =============================================================================
# Single-value Inputs
# =============================================================================
class _SettingAsset(Asset):
    """A leaf asset holding one validated operator setting."""

    setting: ClassVar[str]
    label: ClassVar[str]
    required: ClassVar[bool] = True

    def __init__(self) -> None:
        self.value: Optional[str] = None

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents: DependencyTable) -> None:
        value = getattr(InstallSettings(), self.setting).strip()
        if not value and self.required:
            raise GenerationError(
                message=(
                    f"{self.label} is required; set "
                    f"PROVISIONER_INSTALL_{self.setting.upper()}"
                ),
                asset_name=self.name(),
                error_code="MISSING_INPUT",
            )
        if value:
            self.check(value)
        self.value = value

    def check(self, value: str) -> None:
        """Validate a non-empty value; raise GenerationError when invalid."""

    def name(self) -> str:
        return self.label

    def _invalid(self, reason: str) -> GenerationError:
        return GenerationError(
            message=f"invalid {self.label}: {reason}",
            asset_name=self.name(),
            error_code="INVALID_INPUT",
        )


class ClusterName(_SettingAsset):
    setting = "cluster_name"
    label = "Cluster Name"

    def check(self, value: str) -> None:
        if not _DNS_LABEL.match(value):
            raise self._invalid("must be a lowercase RFC 1123 label")


class BaseDomain(_SettingAsset):
    setting = "base_domain"
    label = "Base Domain"

    def check(self, value: str) -> None:
        if any(not _DNS_LABEL.match(part) for part in value.split(".")):
            raise self._invalid("must be a lowercase DNS domain")


class EmailAddress(_SettingAsset):
    setting = "email_address"
    label = "Email Address"

    def check(self, value: str) -> None:
        if not _EMAIL.match(value):
            raise self._invalid(f"{value!r} is not an email address")


class Password(_SettingAsset):
    setting = "password"
    label = "Password"


class SSHPublicKey(_SettingAsset):
    setting = "ssh_public_key"
    label = "SSH Key"
    required = False

    def check(self, value: str) -> None:
        if not value.startswith(("ssh-", "ecdsa-")):
            raise self._invalid("expected an OpenSSH public key")


class PullSecret(_SettingAsset):
    setting = "pull_secret"
    label = "Pull Secret"

    def check(self, value: str) -> None:
        try:
            json.loads(value)
        except ValueError as exc:
            raise self._invalid(f"not valid JSON ({exc})") from exc


# =============================================================================
# Platform
# =============================================================================
PlatformSection = Union[AWSPlatform, OpenStackPlatform, LibvirtPlatform]


class Platform(Asset):
    """The infrastructure platform and its platform-specific settings."""

    def __init__(self) -> None:
        self.platform_type: Optional[PlatformType] = None
        self.section: Optional[PlatformSection] = None

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents: DependencyTable) -> None:
        settings = InstallSettings()
        try:
            platform_type = PlatformType(settings.platform.strip().lower())
        except ValueError:
            raise GenerationError(
                message=(
                    f"unknown platform type {settings.platform!r}; expected "
                    f"one of {[p.value for p in PlatformType]}"
                ),
                asset_name=self.name(),
                error_code="UNKNOWN_PLATFORM",
            ) from None

        try:
            if platform_type == PlatformType.AWS:
                section: PlatformSection = AWSPlatform(region=settings.aws_region)
            elif platform_type == PlatformType.OPENSTACK:
                section = OpenStackPlatform(
                    region=settings.openstack_region,
                    cloud=settings.openstack_cloud,
                    external_network=settings.openstack_external_network,
                )
            else:
                section = LibvirtPlatform(uri=settings.libvirt_uri)
        except ValidationError as exc:
            raise GenerationError(
                message=f"invalid {platform_type.value} platform settings: {exc}",
                asset_name=self.name(),
                error_code="INVALID_INPUT",
            ) from exc

        self.platform_type = platform_type
        self.section = section

    def name(self) -> str:
        return "Platform"
