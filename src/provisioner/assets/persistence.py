"""
provisioner.assets.persistence - Install Directory Bridge
===========================================================

Bridges WritableAsset.files() to the install directory and back.

    ┌────────────────┐  persist_to_file   ┌─────────────────────┐
    │ WritableAsset  │ ─────────────────> │  <install dir>/     │
    │                │ <───────────────── │    install-config.yml│
    └────────────────┘  FileFetcher       │    manifests/...     │
                                          └─────────────────────┘

Addressing:
    The relative filename is the only key. Writes overwrite without
    versioning; one writer process per install directory is assumed.

All-or-nothing Writes:
    Every file of an asset is first written to a temporary sibling. Only
    when all of them are on disk are they renamed into place, so a failed
    write never leaves a half-updated asset behind.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from provisioner.assets.base import Asset, OutputFile, WritableAsset
from provisioner.core.exceptions import PersistenceError


logger = structlog.get_logger()

_TEMP_SUFFIX = ".tmp"


# =============================================================================
# FileFetcher
# =============================================================================
class FileFetcher:
    """Reads previously persisted files from an install directory.

    Example:
        >>> fetcher = FileFetcher("./my-cluster")
        >>> f = fetcher.fetch_by_name("install-config.yml")
        >>> f.data[:10]
        b'metadata:\\n'
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def fetch_by_name(self, name: str) -> OutputFile:
        """Read one file by its relative name.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = self._directory / name
        return OutputFile(filename=name, data=path.read_bytes())

    def fetch_by_pattern(self, pattern: str) -> list[OutputFile]:
        """Read every file matching a glob pattern, sorted by name.

        Returns an empty list when nothing matches.
        """
        matches = sorted(p for p in self._directory.glob(pattern) if p.is_file())
        return [
            OutputFile(
                filename=p.relative_to(self._directory).as_posix(),
                data=p.read_bytes(),
            )
            for p in matches
        ]


# =============================================================================
# persist_to_file
# =============================================================================
def persist_to_file(asset: Asset, directory: str | os.PathLike[str]) -> list[Path]:
    """Write an asset's files into the install directory.

    Args:
        asset: The asset to persist. Must be a WritableAsset.
        directory: The install directory.

    Returns:
        The paths written, in ``files()`` order.

    Raises:
        PersistenceError: If the asset is not writable or any file fails to
            write. No file of the asset is replaced in that case.
    """
    if not isinstance(asset, WritableAsset):
        raise PersistenceError(
            message=f"{asset.name()} has no durable representation",
            asset_name=asset.name(),
            error_code="NOT_WRITABLE",
        )

    root = Path(directory)
    files = asset.files()
    staged: list[tuple[Path, Path]] = []

    try:
        for output in files:
            target = root / output.filename
            target.parent.mkdir(parents=True, exist_ok=True)
            temp = target.with_name(target.name + _TEMP_SUFFIX)
            staged.append((temp, target))
            temp.write_bytes(output.data)
        for temp, target in staged:
            os.replace(temp, target)
    except OSError as exc:
        for temp, _ in staged:
            temp.unlink(missing_ok=True)
        raise PersistenceError(
            message=f"failed to write asset ({asset.name()}) to disk: {exc}",
            asset_name=asset.name(),
            details={"directory": str(root)},
        ) from exc

    logger.debug(
        "asset_persisted",
        asset=asset.name(),
        files=[output.filename for output in files],
        directory=str(root),
    )
    return [target for _, target in staged]
