"""
provisioner.assets.base - Asset Contracts
===========================================

An *asset* is a named, typed unit of derivable state: an install config, a
set of manifests, a kubeconfig. Assets form a directed acyclic graph; each
one declares the asset classes it depends on and computes its own content
strictly from their resolved instances.

    ┌──────────────┐  dependencies()   ┌──────────────┐
    │  Manifests   │ ────────────────> │ InstallConfig │ ──> leaf assets
    └──────────────┘                   └──────────────┘

Two contracts:
    - Asset:          dependencies(), generate(parents), name()
    - WritableAsset:  + files(), load(fetcher)

Identity:
    The concrete class is the asset's identity. The Store keys its cache by
    ``type(asset)`` and instantiates dependencies with no arguments, so every
    concrete asset must be constructible as ``AssetClass()``.

Lifecycle:
    Created empty → populated once by ``load`` or ``generate`` → treated as
    immutable for the rest of the run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from provisioner.assets.parents import DependencyTable
    from provisioner.assets.persistence import FileFetcher


# =============================================================================
# OutputFile
# =============================================================================
class OutputFile(BaseModel):
    """A named byte payload: one file of an asset's durable form.

    Attributes:
        filename: Path relative to the install directory
            (e.g., "install-config.yml", "manifests/cluster-config.yml").
        data: Raw file contents.
    """

    model_config = {"frozen": True}

    filename: str = Field(description="Path relative to the install directory")
    data: bytes = Field(description="Raw file contents")


# =============================================================================
# Asset
# =============================================================================
class Asset(ABC):
    """A dependency-declaring unit of generated state.

    Subclasses hold their content as plain attributes and hold concrete
    handles to the dependency instances they read, never inheriting
    behavior from them.
    """

    @abstractmethod
    def dependencies(self) -> list[type[Asset]]:
        """Return the asset classes this asset is generated from, in order."""
        ...

    @abstractmethod
    def generate(self, parents: DependencyTable) -> None:
        """Compute this asset's content from its resolved dependencies.

        Args:
            parents: Read-only lookup holding exactly the assets listed in
                ``dependencies()``.

        Raises:
            Exception: Any failure. The Store wraps it in GenerationError.
        """
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable label, used only for diagnostics."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name()!r})"


# =============================================================================
# WritableAsset
# =============================================================================
class WritableAsset(Asset):
    """An asset with a durable on-disk representation."""

    @abstractmethod
    def files(self) -> list[OutputFile]:
        """Return the files to persist; empty before generate/load."""
        ...

    @abstractmethod
    def load(self, fetcher: FileFetcher) -> bool:
        """Reconstruct content from previously persisted files.

        Args:
            fetcher: Reads files from the install directory by name.

        Returns:
            True if prior state was found and adopted, False if there is
            no prior state.

        Raises:
            LoadCorruptionError: If prior state exists but cannot be parsed.
        """
        ...
