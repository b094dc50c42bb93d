"""
provisioner.assets.manifests - Cluster Manifests
==================================================

Manifests renders the Kubernetes objects the bootstrap node applies first:

    manifests/cluster-config.yml            ConfigMap kube-system/cluster-config-v1
                                            carrying install-config.yml verbatim
    manifests/cluster-network-02-config.yml Network config derived from the
                                            install config's networking section

Load Semantics:
    Both files present  → loaded
    Neither present     → not found, regenerate
    Only one present    → LoadCorruptionError (a half-written set is never
                          silently completed)
"""

from __future__ import annotations

from typing import Any, Optional

import yaml

from provisioner.assets.base import Asset, OutputFile, WritableAsset
from provisioner.assets.installconfig import InstallConfig
from provisioner.assets.parents import DependencyTable
from provisioner.assets.persistence import FileFetcher
from provisioner.core.exceptions import GenerationError, LoadCorruptionError


MANIFESTS_DIR = "manifests"
CLUSTER_CONFIG_FILENAME = f"{MANIFESTS_DIR}/cluster-config.yml"
NETWORK_CONFIG_FILENAME = f"{MANIFESTS_DIR}/cluster-network-02-config.yml"

_FILENAMES = (CLUSTER_CONFIG_FILENAME, NETWORK_CONFIG_FILENAME)


class Manifests(WritableAsset):
    """Generates the manifests applied during bootstrap.

    Attributes:
        documents: Parsed manifest documents keyed by filename.
        file_list: Durable form of ``documents``, in filename order.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.file_list: list[OutputFile] = []

    def dependencies(self) -> list[type[Asset]]:
        return [InstallConfig]

    def generate(self, parents: DependencyTable) -> None:
        install_config = parents.get(InstallConfig)
        if install_config.config is None or install_config.file is None:
            raise GenerationError(
                message="install config has no content",
                asset_name=self.name(),
            )
        config = install_config.config

        cluster_config = {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": "cluster-config-v1", "namespace": "kube-system"},
            "data": {"install-config": install_config.file.data.decode("utf-8")},
        }
        network_config = {
            "apiVersion": "config.openshift.io/v1",
            "kind": "Network",
            "metadata": {"name": "cluster"},
            "spec": {
                "networkType": config.networking.type,
                "serviceNetwork": [config.networking.service_cidr],
                "clusterNetwork": [
                    {"cidr": n.cidr, "hostPrefix": 32 - n.host_subnet_length}
                    for n in config.networking.cluster_networks
                ],
            },
        }

        self.documents = {
            CLUSTER_CONFIG_FILENAME: cluster_config,
            NETWORK_CONFIG_FILENAME: network_config,
        }
        self.file_list = [
            OutputFile(
                filename=filename,
                data=yaml.safe_dump(document, sort_keys=False).encode("utf-8"),
            )
            for filename, document in self.documents.items()
        ]

    def name(self) -> str:
        return "Manifests"

    def files(self) -> list[OutputFile]:
        return list(self.file_list)

    def load(self, fetcher: FileFetcher) -> bool:
        fetched: dict[str, Optional[OutputFile]] = {}
        for filename in _FILENAMES:
            try:
                fetched[filename] = fetcher.fetch_by_name(filename)
            except FileNotFoundError:
                fetched[filename] = None

        present = [f for f in fetched.values() if f is not None]
        if not present:
            return False
        if len(present) != len(_FILENAMES):
            missing = [name for name, f in fetched.items() if f is None]
            raise LoadCorruptionError(
                message=f"incomplete manifests on disk, missing {missing}",
                asset_name=self.name(),
                filename=missing[0],
            )

        documents: dict[str, dict[str, Any]] = {}
        for output in present:
            try:
                document = yaml.safe_load(output.data)
            except yaml.YAMLError as exc:
                raise LoadCorruptionError(
                    message=f"failed to parse {output.filename}: {exc}",
                    asset_name=self.name(),
                    filename=output.filename,
                ) from exc
            if not isinstance(document, dict):
                raise LoadCorruptionError(
                    message=f"{output.filename} is not a YAML mapping",
                    asset_name=self.name(),
                    filename=output.filename,
                )
            documents[output.filename] = document

        self.documents = documents
        self.file_list = present
        return True
