"""
provisioner.assets.store - Memoizing Dependency Resolver
==========================================================

The Store resolves an asset by walking its dependency graph depth-first,
preferring state already persisted in the install directory over
regeneration, and resolving each asset class at most once per Store.

Resolution Algorithm (per asset):
    0. Reject the graph up front if it contains a cycle.
    1. Cached?            → return the cached instance (or re-raise its
                            recorded failure). Fan-in never re-runs work.
    2. Dependencies       → resolve each one recursively into a
                            DependencyTable scoped to this asset.
    3. Writable?          → try ``load``. Found state wins; skip generate.
    4. Otherwise          → ``generate(parents)``.
    5. Dependency?        → a writable dependency that was just generated is
                            written to the install directory at once, so
                            its dependents and later runs see it on disk.
    6. Cache the outcome  → success or failure, keyed by asset class.

    fetch(Manifests)
        └── InstallConfig ─────────> written as install-config.yml
              ├── ClusterID           before Manifests generates
              └── ... leaf inputs

Cache Lifetime:
    The cache lives exactly as long as the Store. Two Stores over the same
    directory share nothing except what was persisted to disk in between;
    tests construct a fresh Store per case.

Concurrency:
    Resolution is synchronous and single-threaded. A sibling that shares a
    dependency always sees the cache entry written by the first branch.

Persistence:
    Only dependencies are written by the Store. The asset passed to
    ``fetch`` is left to the caller, which decides how to persist it
    (see ``run_target``). Read failures other than "not found" are
    reported as LoadCorruptionError and cached like any other failure.

Usage:
    >>> store = Store("./my-cluster")
    >>> config = store.fetch(InstallConfig())
    >>> persist_to_file(config, "./my-cluster")
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple, Optional

import structlog

from provisioner.assets.base import Asset, WritableAsset
from provisioner.assets.parents import DependencyTable
from provisioner.assets.persistence import FileFetcher, persist_to_file
from provisioner.core.exceptions import (
    DependencyCycleError,
    GenerationError,
    LoadCorruptionError,
    PersistenceError,
    ProvisionerError,
)


logger = structlog.get_logger()


class _CacheEntry(NamedTuple):
    asset: Asset
    error: Optional[ProvisionerError]


class Store:
    """Resolves assets and memoizes them per asset class.

    Attributes:
        _directory: Install directory the FileFetcher reads from.
        _fetcher: Reads persisted files for ``load``.
        _cache: Asset class → resolved instance and its failure, if any.
        _in_progress: Asset classes currently being resolved.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._fetcher = FileFetcher(directory)
        self._directory = self._fetcher.directory
        self._cache: dict[type[Asset], _CacheEntry] = {}
        self._in_progress: set[type[Asset]] = set()
        self._logger = logger.bind(component="asset_store", directory=str(self._directory))

    @property
    def cache_size(self) -> int:
        """Number of asset classes resolved (or failed) so far."""
        return len(self._cache)

    def is_resolved(self, asset_type: type[Asset]) -> bool:
        """Whether ``asset_type`` has already been resolved by this Store."""
        return asset_type in self._cache

    # =========================================================================
    # Main Entry Point
    # =========================================================================

    def fetch(self, asset: Asset) -> Asset:
        """Populate ``asset`` and all of its transitive dependencies.

        If an asset of the same class was already resolved by this Store,
        the cached instance is returned and ``asset`` is left untouched.

        Args:
            asset: The root asset to resolve.

        Returns:
            The resolved instance for ``type(asset)``.

        Raises:
            DependencyCycleError: If the graph reachable from ``asset``
                contains a cycle. Raised before any load or generate runs.
            GenerationError: If the asset or one of its dependencies could
                not be generated. ``asset`` keeps whatever content it had.
            LoadCorruptionError: If persisted state for the asset exists
                but cannot be read or parsed.
        """
        self._check_acyclic(asset)
        return self._resolve(asset, persist=False)

    # =========================================================================
    # Graph Validation
    # =========================================================================

    def _check_acyclic(self, root: Asset) -> None:
        """Walk the static graph from ``root`` and reject any cycle."""
        # Recursive DFS; "visiting" holds the current path.
        visiting: list[type[Asset]] = []
        done: set[type[Asset]] = set(self._cache)
        names: dict[type[Asset], str] = {type(root): root.name()}

        def visit(node: Asset) -> None:
            node_type = type(node)
            if node_type in done:
                return
            if node_type in visiting:
                start = visiting.index(node_type)
                cycle = [names[t] for t in visiting[start:]] + [names[node_type]]
                raise DependencyCycleError(
                    message=f"dependency cycle detected: {' -> '.join(cycle)}",
                    cycle=cycle,
                )
            visiting.append(node_type)
            for dep_type in node.dependencies():
                dep = dep_type()
                names.setdefault(dep_type, dep.name())
                visit(dep)
            visiting.pop()
            done.add(node_type)

        visit(root)

    # =========================================================================
    # Resolution
    # =========================================================================

    def _resolve(self, asset: Asset, persist: bool) -> Asset:
        asset_type = type(asset)

        # --- Step 1: cache hit (fan-in dedup) ---
        entry = self._cache.get(asset_type)
        if entry is not None:
            if entry.error is not None:
                raise entry.error
            return entry.asset

        if asset_type in self._in_progress:
            raise DependencyCycleError(
                message=f"dependency cycle detected at {asset.name()}",
                cycle=[asset.name(), asset.name()],
            )

        self._in_progress.add(asset_type)
        try:
            parents = self._resolve_dependencies(asset)

            # --- Step 3: persisted state wins ---
            if isinstance(asset, WritableAsset):
                try:
                    found = asset.load(self._fetcher)
                except LoadCorruptionError as exc:
                    self._record_failure(asset, exc)
                    raise
                except OSError as exc:
                    error = LoadCorruptionError(
                        message=f"failed to read persisted state of {asset.name()}: {exc}",
                        asset_name=asset.name(),
                        filename=self._relative_name(exc.filename),
                        error_code="LOAD_FAILED",
                        details={"cause": type(exc).__name__},
                    )
                    self._record_failure(asset, error)
                    raise error from exc
                if found:
                    self._cache[asset_type] = _CacheEntry(asset, None)
                    self._logger.debug("asset_loaded", asset=asset.name())
                    return asset

            # --- Step 4: generate from dependencies ---
            try:
                asset.generate(parents)
            except GenerationError as exc:
                self._record_failure(asset, exc)
                raise
            except Exception as exc:
                error = GenerationError(
                    message=f"failed to generate {asset.name()}: {exc}",
                    asset_name=asset.name(),
                    details={"cause": type(exc).__name__},
                )
                self._record_failure(asset, error)
                raise error from exc
            self._logger.debug("asset_generated", asset=asset.name())

            # --- Step 5: dependencies reach the disk before their dependents ---
            if persist and isinstance(asset, WritableAsset):
                try:
                    persist_to_file(asset, self._directory)
                except PersistenceError as exc:
                    self._record_failure(asset, exc)
                    raise

            self._cache[asset_type] = _CacheEntry(asset, None)
            return asset
        finally:
            self._in_progress.discard(asset_type)

    def _resolve_dependencies(self, asset: Asset) -> DependencyTable:
        """Resolve every declared dependency of ``asset`` in order."""
        parents = DependencyTable()
        for dep_type in asset.dependencies():
            entry = self._cache.get(dep_type)
            dependency = entry.asset if entry is not None else dep_type()
            try:
                parents.add(self._resolve(dependency, persist=True))
            except DependencyCycleError:
                raise
            except ProvisionerError as exc:
                error = GenerationError(
                    message=(
                        f"failed to fetch dependency of {asset.name()}: "
                        f"{exc.message}"
                    ),
                    asset_name=asset.name(),
                    error_code="DEPENDENCY_FAILED",
                    details={"dependency": dependency.name()},
                )
                self._record_failure(asset, error)
                raise error from exc
        return parents

    def _relative_name(self, path: Optional[str | os.PathLike[str]]) -> str:
        if not path:
            return ""
        try:
            return Path(path).relative_to(self._directory).as_posix()
        except ValueError:
            return str(path)

    def _record_failure(self, asset: Asset, error: ProvisionerError) -> None:
        self._cache[type(asset)] = _CacheEntry(asset, error)
        self._logger.warning(
            "asset_failed",
            asset=asset.name(),
            error_code=error.error_code,
            error=error.message,
        )
