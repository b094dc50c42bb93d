"""
Tests for provisioner.assets.parents
======================================
"""

from __future__ import annotations

import pytest

from provisioner.assets.base import Asset
from provisioner.assets.parents import DependencyTable


class Alpha(Asset):
    def dependencies(self) -> list[type[Asset]]:
        return []

    def generate(self, parents) -> None:
        pass

    def name(self) -> str:
        return "Alpha"


class Beta(Alpha):
    def name(self) -> str:
        return "Beta"


class TestDependencyTable:
    def test_typed_lookup(self) -> None:
        alpha = Alpha()
        table = DependencyTable()
        table.add(alpha)
        assert table.get(Alpha) is alpha
        assert table[Alpha] is alpha

    def test_identity_is_the_exact_class(self) -> None:
        """A subclass is a different asset, not a match for its base."""
        table = DependencyTable()
        table.add(Beta())
        with pytest.raises(KeyError):
            table.get(Alpha)

    def test_missing_lookup_names_available(self) -> None:
        table = DependencyTable({Alpha: Alpha()})
        with pytest.raises(KeyError) as exc_info:
            table.get(Beta)
        assert "Alpha" in str(exc_info.value)

    def test_mapping_protocol(self) -> None:
        table = DependencyTable({Alpha: Alpha(), Beta: Beta()})
        assert len(table) == 2
        assert set(table) == {Alpha, Beta}
        assert Alpha in table
