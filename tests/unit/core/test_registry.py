"""Unit tests for the unit-kind registry."""

import pytest

from rbmkit.core.exceptions import ConfigurationError, RBMError, ShapeMismatchError
from rbmkit.core.registry import Registry, hidden_units, visible_units
from rbmkit.core.types import HiddenUnit, VisibleUnit


class TestRegistry:
    """Test the generic registry."""

    def test_register_decorator(self):
        """Classes register under a name and aliases."""
        registry = Registry("thing")

        @registry.register("alpha", aliases=["a"])
        class Alpha:
            pass

        assert registry.get("alpha") is Alpha
        assert registry.get("a") is Alpha
        assert registry.get("ALPHA") is Alpha
        assert "a" in registry
        assert registry.list() == ["alpha"]

    def test_register_direct(self):
        """Registration also works without the decorator form."""
        registry = Registry("thing")

        class Beta:
            pass

        registry.register("beta", Beta)
        assert isinstance(registry.create("beta"), Beta)

    def test_unknown_name(self):
        """Unknown names raise ConfigurationError listing the options."""
        registry = Registry("thing")
        registry.register("alpha", type("Alpha", (), {}))

        with pytest.raises(ConfigurationError, match="Available: alpha"):
            registry.get("omega")

    def test_required_methods(self):
        """Classes lacking a required method are rejected."""
        registry = Registry("unit", required=("sample",))

        with pytest.raises(TypeError, match="missing sample"):
            registry.register("broken", type("Broken", (), {}))
        assert "broken" not in registry

    def test_repr(self):
        """Representation lists the registered names."""
        registry = Registry("thing")
        assert "thing" in repr(registry)


class TestUnitRegistries:
    """Test the global visible and hidden unit registries."""

    def test_visible_kinds(self):
        """All visible kinds are registered; rectified is hidden only."""
        assert visible_units.list() == ["binary", "gaussian", "linear", "softmax"]
        assert "rectified" not in visible_units

    def test_hidden_kinds(self):
        """All hidden kinds are registered; linear is visible only."""
        assert hidden_units.list() == ["binary", "gaussian", "rectified", "softmax"]
        assert "linear" not in hidden_units

    def test_enum_lookup(self):
        """Enum members resolve by value."""
        assert VisibleUnit.GAUSSIAN in visible_units
        assert HiddenUnit.RECTIFIED in hidden_units


class TestExceptions:
    """Test the error hierarchy."""

    def test_hierarchy(self):
        """Both errors derive from RBMError."""
        assert issubclass(ConfigurationError, RBMError)
        assert issubclass(ShapeMismatchError, RBMError)

    def test_shape_mismatch_message(self):
        """The message names the layer and both widths."""
        err = ShapeMismatchError("visible", 6, 5)

        assert err.expected == 6
        assert err.actual == 5
        assert str(err) == "visible input has width 5, expected 6"
