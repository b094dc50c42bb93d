"""
provisioner.assets.parents - Resolved Dependency Lookup
=========================================================

A DependencyTable is what an asset's ``generate`` receives: a typed,
read-only view of its already-resolved dependencies.

    >>> config = parents.get(InstallConfig)
    >>> config.config.metadata.name
    'demo'

Asking for an asset that was not declared as a dependency is a programming
error and raises KeyError immediately.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TypeVar

from provisioner.assets.base import Asset

A = TypeVar("A", bound=Asset)


class DependencyTable(Mapping[type[Asset], Asset]):
    """Mapping from asset class to its resolved instance."""

    def __init__(self, resolved: Mapping[type[Asset], Asset] | None = None) -> None:
        self._resolved: dict[type[Asset], Asset] = dict(resolved or {})

    def add(self, asset: Asset) -> None:
        """Record a resolved dependency. Used by the Store while it walks."""
        self._resolved[type(asset)] = asset

    def get(self, asset_type: type[A]) -> A:  # type: ignore[override]
        """Return the resolved instance of ``asset_type``.

        Raises:
            KeyError: If ``asset_type`` is not a declared dependency.
        """
        try:
            return self._resolved[asset_type]  # type: ignore[return-value]
        except KeyError:
            raise KeyError(
                f"{asset_type.__name__} is not a resolved dependency; "
                f"available: {sorted(t.__name__ for t in self._resolved)}"
            ) from None

    def __getitem__(self, asset_type: type[Asset]) -> Asset:
        return self.get(asset_type)

    def __iter__(self) -> Iterator[type[Asset]]:
        return iter(self._resolved)

    def __len__(self) -> int:
        return len(self._resolved)
