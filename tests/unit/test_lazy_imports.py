"""Tests for lazy import system in nostrcore.__init__."""

from __future__ import annotations

import importlib
import sys

import pytest


class TestLazyImports:
    """Test PEP 562 lazy loading in nostrcore.__init__."""

    def test_lazy_import_does_not_eagerly_load(self) -> None:
        """Importing nostrcore does not load any subpackage."""
        saved = {mod: sys.modules.pop(mod) for mod in list(sys.modules) if mod.startswith("nostrcore")}
        try:
            importlib.import_module("nostrcore")
            for subpackage in ("core", "models", "nips", "crypto", "protocol"):
                assert f"nostrcore.{subpackage}" not in sys.modules
        finally:
            for mod in [m for m in sys.modules if m.startswith("nostrcore")]:
                del sys.modules[mod]
            sys.modules.update(saved)

    def test_lazy_import_resolves_on_access(self) -> None:
        from nostrcore import Event, SignatureGate
        from nostrcore.models.event import Event as DirectEvent
        from nostrcore.protocol.gate import SignatureGate as DirectGate

        assert Event is DirectEvent
        assert SignatureGate is DirectGate

    def test_lazy_import_caches_after_first_access(self) -> None:
        import nostrcore

        _ = nostrcore.Filter
        assert "Filter" in vars(nostrcore)

    def test_lazy_import_invalid_attribute(self) -> None:
        import nostrcore

        with pytest.raises(AttributeError, match="no_such_thing"):
            _ = getattr(nostrcore, "no_such_thing")  # noqa: B009

    def test_all_exports_are_in_lazy_imports(self) -> None:
        import nostrcore

        assert set(nostrcore.__all__) == set(nostrcore._LAZY_IMPORTS)

    def test_dir_lists_exports(self) -> None:
        import nostrcore

        assert "RelayHub" in dir(nostrcore)

    def test_version(self) -> None:
        import nostrcore

        assert isinstance(nostrcore.__version__, str)
