"""Parameter initialization for RBM weights and biases.

Named schemes draw from an explicit ``torch.Generator`` so that a model's
starting point is reproducible from its configured seed alone.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import torch
from torch import Tensor, nn

InitStrategy = str | float | int | Tensor | Callable[[Tensor], Any]
InitFn = Callable[[Tensor], Any]


def _zeros(gen: torch.Generator | None, **_: Any) -> InitFn:
    return nn.init.zeros_


def _ones(gen: torch.Generator | None, **_: Any) -> InitFn:
    return nn.init.ones_


def _constant(gen: torch.Generator | None, val: float = 0.0, **_: Any) -> InitFn:
    return lambda t: nn.init.constant_(t, val)


def _normal(
    gen: torch.Generator | None, mean: float = 0.0, std: float = 0.01, **_: Any
) -> InitFn:
    # N(0, 0.01) is the customary RBM starting point
    return lambda t: nn.init.normal_(t, mean=mean, std=std, generator=gen)


def _uniform(
    gen: torch.Generator | None, a: float = -0.1, b: float = 0.1, **_: Any
) -> InitFn:
    return lambda t: nn.init.uniform_(t, a=a, b=b, generator=gen)


def _xavier_uniform(
    gen: torch.Generator | None, gain: float = 1.0, **_: Any
) -> InitFn:
    return lambda t: nn.init.xavier_uniform_(t, gain=gain, generator=gen)


def _xavier_normal(
    gen: torch.Generator | None, gain: float = 1.0, **_: Any
) -> InitFn:
    return lambda t: nn.init.xavier_normal_(t, gain=gain, generator=gen)


SCHEMES: dict[str, Callable[..., InitFn]] = {
    "zeros": _zeros,
    "zero": _zeros,
    "ones": _ones,
    "one": _ones,
    "constant": _constant,
    "normal": _normal,
    "uniform": _uniform,
    "xavier_uniform": _xavier_uniform,
    "xavier_normal": _xavier_normal,
}


class Initializer:
    """Fill a tensor in place from a scheme name, constant, tensor or callable.

    Examples
    --------
        >>> Initializer("normal", generator=gen, std=0.05)(weights)
        >>> Initializer(0.0)(bias)
        >>> Initializer(pretrained_weights)(weights)
    """

    def __init__(
        self,
        method: InitStrategy,
        generator: torch.Generator | None = None,
        **kwargs: Any,
    ):
        """Initialize the initializer.

        Args:
            method: Scheme name, constant, source tensor or callable
            generator: Generator used by the random schemes
            **kwargs: Scheme parameters (``std``, ``a``/``b``, ``gain``, ``val``)

        Raises
        ------
            ValueError: If ``method`` names an unknown scheme
            TypeError: If ``method`` has an unsupported type
        """
        self.method = method
        self.generator = generator
        self.kwargs = kwargs
        self._init_fn = self._resolve()

    def _resolve(self) -> InitFn:
        method = self.method
        if isinstance(method, Tensor):
            return self._copy_from(method)
        if isinstance(method, str):
            scheme = SCHEMES.get(method.lower())
            if scheme is None:
                raise ValueError(
                    f"Unknown initialization method: {method}. "
                    f"Available: {sorted(SCHEMES)}"
                )
            return scheme(self.generator, **self.kwargs)
        if isinstance(method, int | float):
            return _constant(self.generator, val=float(method))
        if callable(method):
            return method
        raise TypeError(f"Invalid initialization method type: {type(method)}")

    @staticmethod
    def _copy_from(source: Tensor) -> InitFn:
        def copy_init(tensor: Tensor) -> None:
            if tensor.shape != source.shape:
                raise ValueError(
                    f"Shape mismatch: {tuple(tensor.shape)} vs {tuple(source.shape)}"
                )
            tensor.copy_(source)

        return copy_init

    def __call__(self, tensor: Tensor) -> None:
        """Apply initialization to tensor in place."""
        with torch.no_grad():
            self._init_fn(tensor)
