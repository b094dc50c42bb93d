"""
End-to-End Integration Tests for Provisioner
==============================================

These tests drive whole workflow steps across fresh Stores, the way
separate CLI invocations would, with only the install directory carrying
state between them.

Test Scenarios:
    1. Re-running a target with nothing changed is byte-identical
    2. Deleted manifests are regenerated from the persisted install config
    3. An operator edit to install-config.yml flows into the manifests
    4. A corrupted file stops the run instead of being overwritten
    5. A cluster bring-up survives watch disconnects and connect failures
    6. A minimal config/manifest graph resolved from its manifest alone
       writes both files, then only loads on the next run
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from structlog.testing import capture_logs

from provisioner.assets.base import Asset, OutputFile, WritableAsset
from provisioner.assets.persistence import FileFetcher
from provisioner.assets.store import Store
from provisioner.core.exceptions import GenerationError, LoadCorruptionError
from provisioner.facade import Installer
from provisioner.orchestration.infrastructure import InfrastructureProvider
from provisioner.orchestration.runner import run_target
from provisioner.orchestration.targets import (
    INSTALL_CONFIG_TARGET,
    MANIFESTS_TARGET,
    Target,
)


def _snapshot(directory: Path) -> dict[str, bytes]:
    return {
        p.relative_to(directory).as_posix(): p.read_bytes()
        for p in sorted(directory.rglob("*"))
        if p.is_file()
    }


# =============================================================================
# Test: Idempotent Re-runs
# =============================================================================
class TestRerun:
    def test_rerun_is_byte_identical(self, install_env, install_dir) -> None:
        run_target(INSTALL_CONFIG_TARGET, install_dir, Store(install_dir))
        run_target(MANIFESTS_TARGET, install_dir, Store(install_dir))
        before = _snapshot(install_dir)

        run_target(INSTALL_CONFIG_TARGET, install_dir, Store(install_dir))
        run_target(MANIFESTS_TARGET, install_dir, Store(install_dir))
        assert _snapshot(install_dir) == before

    def test_rerun_ignores_changed_inputs(self, install_env, install_dir, monkeypatch) -> None:
        """Persisted state wins over fresh operator input."""
        run_target(INSTALL_CONFIG_TARGET, install_dir)
        before = (install_dir / "install-config.yml").read_bytes()

        monkeypatch.setenv("PROVISIONER_INSTALL_CLUSTER_NAME", "renamed")
        run_target(INSTALL_CONFIG_TARGET, install_dir)
        assert (install_dir / "install-config.yml").read_bytes() == before

    def test_manifests_alone_keeps_cluster_id_stable(self, install_env, install_dir) -> None:
        run_target(MANIFESTS_TARGET, install_dir, Store(install_dir))
        assert (install_dir / "install-config.yml").is_file()
        before = _snapshot(install_dir)

        run_target(MANIFESTS_TARGET, install_dir, Store(install_dir))
        assert _snapshot(install_dir) == before
        config_map = yaml.safe_load((install_dir / "manifests" / "cluster-config.yml").read_bytes())
        assert config_map["data"]["install-config"] == (install_dir / "install-config.yml").read_text()

    def test_deleted_manifests_are_regenerated_identically(self, install_env, install_dir) -> None:
        run_target(INSTALL_CONFIG_TARGET, install_dir)
        run_target(MANIFESTS_TARGET, install_dir)
        before = _snapshot(install_dir)

        for path in (install_dir / "manifests").iterdir():
            path.unlink()
        run_target(MANIFESTS_TARGET, install_dir)
        assert _snapshot(install_dir) == before


# =============================================================================
# Test: Operator Edits and Corruption
# =============================================================================
class TestOperatorEdits:
    def test_edit_flows_into_manifests(self, install_env, install_dir) -> None:
        run_target(INSTALL_CONFIG_TARGET, install_dir)
        path = install_dir / "install-config.yml"
        data = yaml.safe_load(path.read_bytes())
        data["networking"]["clusterNetworks"][0]["hostSubnetLength"] = 8
        path.write_text(yaml.safe_dump(data, sort_keys=False))

        run_target(MANIFESTS_TARGET, install_dir)
        network = yaml.safe_load(
            (install_dir / "manifests" / "cluster-network-02-config.yml").read_bytes()
        )
        assert network["spec"]["clusterNetwork"][0]["hostPrefix"] == 24
        config_map = yaml.safe_load((install_dir / "manifests" / "cluster-config.yml").read_bytes())
        assert config_map["data"]["install-config"] == path.read_text()

    def test_corrupted_install_config_is_not_overwritten(self, install_env, install_dir) -> None:
        path = install_dir / "install-config.yml"
        path.write_text("metadata: [unclosed\n")
        with pytest.raises(LoadCorruptionError):
            run_target(INSTALL_CONFIG_TARGET, install_dir)
        assert path.read_text() == "metadata: [unclosed\n"

    def test_corrupted_dependency_fails_manifests(self, install_env, install_dir) -> None:
        (install_dir / "install-config.yml").write_text("not: [valid\n")
        with pytest.raises(GenerationError) as exc_info:
            run_target(MANIFESTS_TARGET, install_dir)
        assert exc_info.value.details["dependency"] == "Install Config"
        assert not (install_dir / "manifests").exists()


# =============================================================================
# Test: Cluster Bring-up
# =============================================================================
class AuthWritingInfrastructure(InfrastructureProvider):
    def __init__(self) -> None:
        self.destroyed = False

    async def apply(self, directory: Path) -> None:
        auth = Path(directory) / "auth"
        auth.mkdir(exist_ok=True)
        (auth / "kubeconfig").write_text("kind: Config\n")
        (auth / "kubeadmin-password").write_text("pw\n")

    async def destroy_bootstrap(self, directory: Path) -> None:
        self.destroyed = True


class TestClusterBringUp:
    async def test_survives_flaky_control_plane(
        self, config, install_env, control_plane, clock
    ) -> None:
        control_plane.fail_versions("dial tcp: connection refused", "dial tcp: connection refused")
        control_plane.fail_next_opens(1)
        for name in ("etcd-up", "kube-apiserver-up", "bootstrap-complete"):
            control_plane.add_event("kube-system", name)
        control_plane.close_streams_after(1, 1, error=True)

        infrastructure = AuthWritingInfrastructure()
        installer = Installer(
            config,
            infrastructure=infrastructure,
            client_factory=lambda path: control_plane,
            clock=clock,
            sleep=clock.sleep,
        )
        info = await installer.create("cluster")

        assert info.password == "pw"
        assert infrastructure.destroyed is True
        assert [rv for _, rv in control_plane.watch_calls] == ["", "", "1", "2"]
        assert clock.sleeps == [2, 2, 2]


# =============================================================================
# Test: Minimal Two-Asset Graph
# =============================================================================
# manifest ──> config, both writable, counted.
# =============================================================================
class _Counted(WritableAsset):
    filename = ""
    generated = 0
    loaded = 0

    def __init__(self) -> None:
        self.data = b""

    def files(self) -> list[OutputFile]:
        return [OutputFile(filename=self.filename, data=self.data)] if self.data else []

    def load(self, fetcher: FileFetcher) -> bool:
        try:
            self.data = fetcher.fetch_by_name(self.filename).data
        except FileNotFoundError:
            return False
        type(self).loaded += 1
        return True


class ConfigAsset(_Counted):
    filename = "config.yml"

    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents) -> None:
        ConfigAsset.generated += 1
        self.data = b"replicas: 3\n"

    def name(self) -> str:
        return "config"


class ManifestAsset(_Counted):
    filename = "manifest.yml"

    def dependencies(self) -> list[type[Asset]]:
        return [ConfigAsset]

    def generate(self, parents) -> None:
        ManifestAsset.generated += 1
        self.data = b"config: |\n  " + parents.get(ConfigAsset).data

    def name(self) -> str:
        return "manifest"


class TestMinimalGraph:
    @pytest.fixture(autouse=True)
    def _reset(self):
        for asset_type in (ConfigAsset, ManifestAsset):
            asset_type.generated = 0
            asset_type.loaded = 0

    def test_generate_then_load_byte_identical(self, install_dir) -> None:
        target = Target(name="graph", description="", assets=[ManifestAsset])

        with capture_logs() as logs:
            run_target(target, install_dir, Store(install_dir))
        assert (ConfigAsset.generated, ManifestAsset.generated) == (1, 1)
        steps = [
            (entry["event"], entry["asset"])
            for entry in logs
            if entry["event"] in ("asset_generated", "asset_persisted")
        ]
        assert steps == [
            ("asset_generated", "config"),
            ("asset_persisted", "config"),
            ("asset_generated", "manifest"),
            ("asset_persisted", "manifest"),
        ]
        before = _snapshot(install_dir)
        assert set(before) == {"config.yml", "manifest.yml"}

        run_target(target, install_dir, Store(install_dir))
        assert (ConfigAsset.generated, ManifestAsset.generated) == (1, 1)
        assert (ConfigAsset.loaded, ManifestAsset.loaded) == (1, 1)
        assert _snapshot(install_dir) == before
