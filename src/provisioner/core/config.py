"""
provisioner.core.config - Configuration Management
====================================================

Configuration is loaded from multiple sources with the following priority
(highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with PROVISIONER_)
    3. YAML configuration file (provisioner.yaml)
    4. Default values defined in the models below

Architecture Context:
    InstallerConfig is created once by the CLI (or the caller of the
    Installer facade) and flows down to every component:

        InstallerConfig
            ├── directory   → Store, FileFetcher, persist_to_file
            ├── WaitConfig  → poll_until, EventSynchronizer
            └── log_level   → configure_logging

Usage:
    config = InstallerConfig()
    config = load_config("provisioner.yaml")
    config = InstallerConfig(directory="./my-cluster", log_level="DEBUG")

Environment Variables:
    PROVISIONER_DIRECTORY=./my-cluster
    PROVISIONER_LOG_LEVEL=DEBUG
    PROVISIONER_WAIT__API_TIMEOUT_SECONDS=900
    PROVISIONER_WAIT__COMPLETION_EVENT=bootstrap-complete
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from provisioner.core.exceptions import ConfigurationError


# =============================================================================
# Wait Configuration
# =============================================================================
# Budgets and pacing for the two sequential waits that follow cluster
# creation. Each wait owns its own deadline, so a slow API wait cannot
# starve the event wait.
# =============================================================================
class WaitConfig(BaseModel):
    """Configuration for the bootstrap synchronization waits.

    Attributes:
        api_timeout_seconds: Budget for the Kubernetes API to answer a
            version query.
        event_timeout_seconds: Budget for the completion event to appear
            once the API is up.
        poll_interval_seconds: Fixed tick of the API reachability poll.
        reconnect_delay_seconds: Pause before re-opening a watch stream
            that failed to connect.
        log_downsample: Log a repeated, identical transport error only
            once per this many occurrences.
        event_namespace: Namespace the completion event is watched in.
        completion_event: Exact name of the event that signals bootstrap
            completion.
    """

    api_timeout_seconds: float = Field(
        default=30 * 60,
        gt=0,
        description="Seconds to wait for the Kubernetes API",
    )
    event_timeout_seconds: float = Field(
        default=30 * 60,
        gt=0,
        description="Seconds to wait for the completion event",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Fixed interval between API reachability polls",
    )
    reconnect_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay before retrying a failed watch connection",
    )
    log_downsample: int = Field(
        default=15,
        ge=1,
        description="Identical repeated errors are logged once per this many",
    )
    event_namespace: str = Field(
        default="kube-system",
        description="Namespace watched for the completion event",
    )
    completion_event: str = Field(
        default="bootstrap-complete",
        description="Exact name of the completion event",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   PROVISIONER_DIRECTORY                  → config.directory
#   PROVISIONER_LOG_LEVEL                  → config.log_level
#   PROVISIONER_WAIT__EVENT_TIMEOUT_SECONDS → config.wait.event_timeout_seconds
# =============================================================================
class InstallerConfig(BaseSettings):
    """Top-level configuration for a provisioning run.

    Attributes:
        directory: Install directory. Holds every persisted asset file and
            the auth/ credentials read after completion. One writer per
            directory.
        log_level: Logging level for structlog output.
        kubeconfig_path: Client-access file, relative to ``directory``.
        password_path: Operator password file, relative to ``directory``.
        wait: Bootstrap wait configuration (see WaitConfig).
    """

    directory: Path = Field(
        default=Path("."),
        description="Install directory holding persisted assets",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    kubeconfig_path: str = Field(
        default="auth/kubeconfig",
        description="Client-access file relative to the install directory",
    )
    password_path: str = Field(
        default="auth/kubeadmin-password",
        description="Operator password file relative to the install directory",
    )
    wait: WaitConfig = Field(
        default_factory=WaitConfig,
        description="Bootstrap wait configuration",
    )

    model_config = {
        "env_prefix": "PROVISIONER_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }

    @property
    def kubeconfig_file(self) -> Path:
        """Absolute-ish path of the client-access file."""
        return self.directory / self.kubeconfig_path

    @property
    def password_file(self) -> Path:
        """Absolute-ish path of the operator password file."""
        return self.directory / self.password_path


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None, **overrides: Any) -> InstallerConfig:
    """Load configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'provisioner.yaml' in the current directory and falls back to
            pure defaults + environment variables.
        **overrides: Explicit values that win over the YAML file.

    Returns:
        A fully validated InstallerConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
        ConfigurationError: If the YAML file is malformed or holds invalid
            values.
    """
    if path is None:
        default_path = Path("provisioner.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    message=f"Invalid YAML in {path}: {exc}",
                    error_code="INVALID_CONFIG_FILE",
                    details={"path": str(path)},
                ) from exc
            if isinstance(raw_data, dict):
                yaml_data = raw_data

    yaml_data.update(overrides)
    try:
        return InstallerConfig(**yaml_data)
    except ValidationError as exc:
        raise ConfigurationError(
            message=f"Invalid configuration: {exc}",
            error_code="INVALID_CONFIG_VALUE",
            details={"path": str(path) if path else None},
        ) from exc
