"""
provisioner.orchestration.runner - Resolve and Persist Root Assets
====================================================================

``run_target`` is the single entry point of a workflow step: resolve each
root asset through a Store, then write it to the install directory.
Writable dependencies generated along the way are written by the Store
itself, before the assets that depend on them.

Best-effort Persistence:
    Persistence is attempted for every root asset even when its
    resolution failed, so whatever partial state the asset holds stays on
    disk for debugging. The generation failure always wins as the reported
    cause:

        fetch ok,     persist ok     → continue
        fetch ok,     persist failed → raise PersistenceError
        fetch failed, persist ok     → raise the fetch error
        fetch failed, persist failed → log PersistenceError, raise the fetch error
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel

from provisioner.assets.base import WritableAsset
from provisioner.assets.persistence import persist_to_file
from provisioner.assets.store import Store
from provisioner.core.config import InstallerConfig
from provisioner.core.exceptions import PersistenceError, ProvisionerError
from provisioner.orchestration.targets import Target


logger = structlog.get_logger()


def run_target(
    target: Target,
    directory: str | os.PathLike[str],
    store: Optional[Store] = None,
) -> list[WritableAsset]:
    """Resolve and persist every root asset of ``target``.

    Args:
        target: The target whose assets to build.
        directory: The install directory.
        store: Store to resolve with. A fresh one over ``directory`` is
            created when omitted; pass one in to share its cache across
            several targets in the same run.

    Returns:
        The resolved root assets, in target order.

    Raises:
        ProvisionerError: The first failure, per the priority above.
    """
    store = store if store is not None else Store(directory)
    log = logger.bind(component="runner", target=target.name)
    resolved: list[WritableAsset] = []

    for asset_type in target.assets:
        asset: WritableAsset = asset_type()
        fetch_error: Optional[ProvisionerError] = None
        try:
            asset = store.fetch(asset)  # type: ignore[assignment]
        except ProvisionerError as exc:
            fetch_error = exc
            log.error(
                "asset_fetch_failed",
                asset=asset.name(),
                error_code=exc.error_code,
                error=exc.message,
            )

        try:
            persist_to_file(asset, directory)
        except PersistenceError as exc:
            if fetch_error is not None:
                log.error("asset_persist_failed", asset=asset.name(), error=exc.message)
                raise fetch_error from None
            raise

        if fetch_error is not None:
            raise fetch_error

        resolved.append(asset)
        log.info("asset_written", asset=asset.name(), files=len(asset.files()))

    return resolved


# =============================================================================
# Completion Report
# =============================================================================
class CompletionInfo(BaseModel):
    """What the operator needs once the cluster is up."""

    kubeconfig: Path
    password: str


def log_complete(config: InstallerConfig) -> CompletionInfo:
    """Read and report the operator password and client-access file.

    Both files are produced by the cluster bring-up, never by this package.

    Raises:
        ProvisionerError: If the password file cannot be read.
    """
    kubeconfig = config.kubeconfig_file.resolve()
    password_file = config.password_file
    try:
        password = password_file.read_text().strip()
    except OSError as exc:
        raise ProvisionerError(
            message=f"cannot read {password_file}: {exc}",
            error_code="COMPLETION_OUTPUT_MISSING",
            details={"path": str(password_file)},
        ) from exc

    logger.info("admin_password", password=password)
    logger.info("install_complete", kubeconfig=str(kubeconfig))
    return CompletionInfo(kubeconfig=kubeconfig, password=password)
