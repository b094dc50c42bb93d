"""
provisioner.assets - Asset Graph Engine
=========================================

    Asset / WritableAsset   contracts every asset implements
    DependencyTable         resolved dependencies handed to generate()
    Store                   memoizing, load-first graph resolver
    FileFetcher             reads persisted files by name
    persist_to_file         all-or-nothing write of an asset's files

Concrete assets live in ``provisioner.assets.installconfig`` and
``provisioner.assets.manifests``.
"""

from provisioner.assets.base import Asset, OutputFile, WritableAsset
from provisioner.assets.parents import DependencyTable
from provisioner.assets.persistence import FileFetcher, persist_to_file
from provisioner.assets.store import Store

__all__ = [
    "Asset",
    "WritableAsset",
    "OutputFile",
    "DependencyTable",
    "Store",
    "FileFetcher",
    "persist_to_file",
]
