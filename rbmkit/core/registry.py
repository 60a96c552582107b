"""Registry system for unit activation policies.

Visible and hidden unit kinds form closed sets of policy classes. Each
policy registers itself under its kind name so the propagation engine can
dispatch on the configured kind without scattering branches.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from .exceptions import ConfigurationError
from .logging import logger

T = TypeVar("T")


class Registry:
    """Name -> class registry with aliases."""

    def __init__(self, name: str, required: tuple[str, ...] = ()):
        """Initialize registry.

        Args:
            name: Name of this registry (e.g., 'visible unit')
            required: Methods every registered class must define
        """
        self.name = name
        self.required = required
        self._registry: dict[str, type] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        cls: type[T] | None = None,
        *,
        aliases: list[str] | None = None,
    ) -> type[T] | Callable[[type[T]], type[T]]:
        """Register a class in the registry.

        Can be used as a decorator or called directly.

        Example:
            @visible_units.register("binary")
            class BinaryUnit:
                ...
        """

        def decorator(cls_to_register: type[T]) -> type[T]:
            missing = [
                attr
                for attr in self.required
                if not callable(getattr(cls_to_register, attr, None))
            ]
            if missing:
                raise TypeError(
                    f"{cls_to_register.__name__} cannot be registered as a "
                    f"{self.name}: missing {', '.join(missing)}"
                )

            if name in self._registry:
                logger.warning(
                    "Overwriting existing registration",
                    registry=self.name,
                    name=name,
                    old_class=self._registry[name].__name__,
                    new_class=cls_to_register.__name__,
                )

            self._registry[name] = cls_to_register
            for alias in aliases or []:
                self._aliases[alias] = name

            logger.debug(
                f"Registered {cls_to_register.__name__}",
                registry=self.name,
                name=name,
                aliases=aliases,
            )
            return cls_to_register

        if cls is None:
            return decorator
        return decorator(cls)

    def resolve(self, name: str) -> str:
        """Map an alias to its canonical name."""
        key = str(getattr(name, "value", name)).lower()
        return self._aliases.get(key, key)

    def get(self, name: str) -> type:
        """Get a registered class by name or alias.

        Raises
        ------
            ConfigurationError: If name is not registered
        """
        key = self.resolve(name)
        if key not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise ConfigurationError(
                f"Unknown {self.name} kind '{name}'. Available: {available}"
            )
        return self._registry[key]

    def create(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Create an instance of a registered class."""
        return self.get(name)(*args, **kwargs)

    def list(self) -> list[str]:
        """List all registered names."""
        return sorted(self._registry)

    def __contains__(self, name: str) -> bool:
        """Check if a name is registered."""
        return self.resolve(name) in self._registry

    def __repr__(self) -> str:
        """Return representation with name and registered items."""
        return f"{self.__class__.__name__}(name='{self.name}', items={self.list()})"


# Global registry instances
visible_units = Registry("visible unit", required=("sample",))
hidden_units = Registry("hidden unit", required=("sample",))


def register_visible_unit(name: str, **kwargs: Any) -> Callable[[type], type]:
    """Register a visible unit policy in the global registry."""
    return visible_units.register(name, **kwargs)


def register_hidden_unit(name: str, **kwargs: Any) -> Callable[[type], type]:
    """Register a hidden unit policy in the global registry."""
    return hidden_units.register(name, **kwargs)
