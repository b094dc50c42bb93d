"""
Shared Test Fixtures for Provisioner
======================================

This module provides reusable pytest fixtures used across the entire
test suite. Fixtures are organized by layer:

    1. Environment isolation
    2. Configuration fixtures
    3. Operator input fixtures (PROVISIONER_INSTALL_*)
    4. Simulated time (FakeClock)
    5. Control-plane fixtures (InMemoryControlPlaneClient)
"""

from __future__ import annotations

import asyncio
import os

import pytest
import structlog

from provisioner.core.config import InstallerConfig, WaitConfig
from provisioner.synchronizer.client import InMemoryControlPlaneClient


# =============================================================================
# Environment Isolation
# =============================================================================
# Settings classes read PROVISIONER_* variables. Strip any the developer has
# exported so every test starts from defaults.
# =============================================================================

@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    for key in list(os.environ):
        if key.upper().startswith("PROVISIONER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo any configure_logging() call made by a test."""
    yield
    structlog.reset_defaults()


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def install_dir(tmp_path):
    """An empty install directory."""
    directory = tmp_path / "cluster"
    directory.mkdir()
    return directory


@pytest.fixture
def wait_config():
    """Small, deterministic wait budgets for simulated time."""
    return WaitConfig(
        api_timeout_seconds=20,
        event_timeout_seconds=20,
        poll_interval_seconds=2,
        reconnect_delay_seconds=2,
        log_downsample=3,
    )


@pytest.fixture
def config(install_dir, wait_config):
    """InstallerConfig pointed at the temporary install directory."""
    return InstallerConfig(directory=install_dir, wait=wait_config)


# =============================================================================
# Operator Input
# =============================================================================

INSTALL_INPUTS = {
    "PROVISIONER_INSTALL_CLUSTER_NAME": "demo",
    "PROVISIONER_INSTALL_BASE_DOMAIN": "example.com",
    "PROVISIONER_INSTALL_EMAIL_ADDRESS": "admin@example.com",
    "PROVISIONER_INSTALL_PASSWORD": "hunter2",
    "PROVISIONER_INSTALL_SSH_PUBLIC_KEY": "ssh-ed25519 AAAAC3Nza test@example.com",
    "PROVISIONER_INSTALL_PULL_SECRET": '{"auths": {}}',
    "PROVISIONER_INSTALL_PLATFORM": "libvirt",
}


@pytest.fixture
def install_env(monkeypatch):
    """Complete, valid operator input for a libvirt cluster.

    Returns the dict of variables so a test can override single entries
    with monkeypatch.setenv.
    """
    for key, value in INSTALL_INPUTS.items():
        monkeypatch.setenv(key, value)
    return dict(INSTALL_INPUTS)


# =============================================================================
# Simulated Time
# =============================================================================

class FakeClock:
    """Monotonic clock advanced only by its own sleep().

    Attributes:
        now: Current simulated time in seconds.
        sleeps: Every duration passed to sleep(), in order.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    """Fresh FakeClock starting at t=0."""
    return FakeClock()


# =============================================================================
# Control Plane
# =============================================================================

@pytest.fixture
def control_plane():
    """Fresh InMemoryControlPlaneClient with no events."""
    return InMemoryControlPlaneClient()
