"""
provisioner.core.exceptions - Custom Exception Hierarchy
==========================================================

Structured exceptions raised by the asset engine, the persistence bridge
and the synchronizer. Every exception carries an ``error_code`` and a
``details`` dict so the CLI and the logs can report exactly which asset or
which wait stage failed.

Exception Hierarchy:
    ProvisionerError (base)
        ├── ConfigurationError        - Invalid config, missing kubeconfig
        ├── GenerationError           - An asset's generate step failed
        ├── LoadCorruptionError       - Persisted state exists but is unreadable
        ├── PersistenceError          - Writing an asset's files failed
        ├── DependencyCycleError      - The asset graph contains a cycle
        ├── SynchronizerTimeoutError  - A wait stage ran out of time
        └── TransportError            - Transient stream/poll failure (retried)

Error Flow:
    Asset.generate raises
        → Store wraps it in GenerationError and records it in the cache
        → runner still attempts persistence (best effort)
        → runner raises the GenerationError (it outranks PersistenceError)

Usage:
    >>> from provisioner.core.exceptions import GenerationError
    >>> raise GenerationError(
    ...     message="unknown platform type 'vsphere'",
    ...     asset_name="Platform",
    ...     error_code="UNKNOWN_PLATFORM",
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# All provisioner exceptions inherit from this base class so a workflow step
# can catch every framework error with a single except clause:
#
#   try:
#       run_target(target, directory)
#   except ProvisionerError as e:
#       logger.error(e.message, error_code=e.error_code, details=e.details)
# =============================================================================
class ProvisionerError(Exception):
    """Base exception for all provisioner errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code, UPPER_SNAKE_CASE
            (e.g., "GENERATION_FAILED", "EVENT_WAIT_TIMEOUT").
        details: Arbitrary dict with additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(ProvisionerError):
    """Raised when provisioner configuration is invalid or missing.

    Common Causes:
        - Malformed provisioner.yaml
        - Unknown target name
        - Missing auth/kubeconfig when the cluster wait starts
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Asset Errors
# =============================================================================
# Each carries the asset's human-readable name so the operator sees which
# node of the dependency graph failed.
# =============================================================================
class GenerationError(ProvisionerError):
    """Raised when an asset's generate step fails.

    Also raised for an asset whose dependency failed; ``details`` then
    carries the failing dependency's name under ``"dependency"``.

    Attributes:
        asset_name: Name of the asset that could not be generated.
    """

    def __init__(
        self,
        message: str,
        asset_name: str,
        error_code: str = "GENERATION_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["asset_name"] = asset_name

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.asset_name = asset_name


class LoadCorruptionError(ProvisionerError):
    """Raised when persisted state exists but cannot be parsed.

    Distinct from "not found": a corrupted file is never silently
    regenerated over.

    Attributes:
        asset_name: Name of the asset whose state is corrupted.
        filename: Relative name of the offending file.
    """

    def __init__(
        self,
        message: str,
        asset_name: str,
        filename: str,
        error_code: str = "LOAD_CORRUPTED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["asset_name"] = asset_name
        enriched_details["filename"] = filename

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.asset_name = asset_name
        self.filename = filename


class PersistenceError(ProvisionerError):
    """Raised when writing an asset's output files fails.

    Attributes:
        asset_name: Name of the asset that could not be written.
    """

    def __init__(
        self,
        message: str,
        asset_name: str,
        error_code: str = "PERSISTENCE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["asset_name"] = asset_name

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.asset_name = asset_name


class DependencyCycleError(ProvisionerError):
    """Raised when the asset dependency graph contains a cycle.

    Attributes:
        cycle: Asset names along the cycle, first and last are equal
            (e.g., ["A", "B", "A"]).
    """

    def __init__(
        self,
        message: str,
        cycle: list[str],
        error_code: str = "DEPENDENCY_CYCLE",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["cycle"] = cycle

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.cycle = cycle


# =============================================================================
# Synchronizer Errors
# =============================================================================
class SynchronizerTimeoutError(ProvisionerError):
    """Raised when a wait stage's deadline elapses before it succeeded.

    Attributes:
        stage: Which wait ran out of time ("api", "events", ...).
        timeout: The configured budget in seconds.
        reachable: False if the remote end was never reached at all,
            True if it was reachable but the condition never held.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        timeout: float,
        reachable: bool,
        error_code: str = "WAIT_TIMEOUT",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["stage"] = stage
        enriched_details["timeout"] = timeout
        enriched_details["reachable"] = reachable

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.stage = stage
        self.timeout = timeout
        self.reachable = reachable


class TransportError(ProvisionerError):
    """Raised for transient stream or poll connection failures.

    The synchronizer always retries these until its deadline; they are
    never surfaced to the operator directly.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "TRANSPORT_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)
