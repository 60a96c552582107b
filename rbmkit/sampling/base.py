"""Block Gibbs sampling over the two layers of an RBM.

A Gibbs step starts from a hidden sample, draws the visible layer from it
and then redraws the hidden layer from the new visible sample. Chaining
steps threads each step's hidden sample into the next one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import torch
from torch import Tensor, nn

from rbmkit.core.exceptions import ConfigurationError
from rbmkit.core.logging import LoggerMixin
from rbmkit.core.types import SamplePair

if TYPE_CHECKING:
    from rbmkit.models.base import LatentVariableModel

GibbsResult = tuple[SamplePair, SamplePair]


@dataclass
class SamplerState:
    """Bookkeeping kept by a sampler across calls."""

    # Number of steps taken
    num_steps: int = 0

    # Additional metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def reset(self) -> None:
        """Reset sampler state."""
        self.num_steps = 0
        self.metadata.clear()


class GibbsSampler(nn.Module, LoggerMixin):
    """Alternating hidden -> visible -> hidden sampler."""

    def __init__(self, name: str | None = None):
        """Initialize Gibbs sampler.

        Args:
            name: Optional name for the sampler
        """
        super().__init__()
        self.name = name or self.__class__.__name__
        self.state = SamplerState()

    def gibbs_step(
        self, model: LatentVariableModel, hidden_sample: Tensor
    ) -> GibbsResult:
        """Perform one Gibbs step starting from a hidden sample.

        Args:
            model: Model providing ``propagate_down`` and ``propagate_up``
            hidden_sample: Hidden sample of shape (batch, hidden_units)

        Returns
        -------
            (visible mean/sample, hidden mean/sample). The hidden pair is
            computed from the new visible sample.
        """
        visible = model.propagate_down(hidden_sample)
        hidden = model.propagate_up(visible.sample)
        self.state.num_steps += 1
        return visible, hidden

    @torch.no_grad()
    def sample(
        self,
        model: LatentVariableModel,
        hidden_sample: Tensor,
        num_steps: int = 1,
    ) -> GibbsResult:
        """Run a chain of Gibbs steps and keep only the last one.

        Args:
            model: Model to sample from
            hidden_sample: Hidden sample seeding the first step
            num_steps: Number of Gibbs steps; must be at least 1

        Returns
        -------
            The final step's (visible pair, hidden pair)

        Raises
        ------
            ConfigurationError: If ``num_steps`` is below 1
        """
        if num_steps < 1:
            raise ConfigurationError(
                f"Gibbs chain length must be at least 1, got {num_steps}"
            )

        result = self.gibbs_step(model, hidden_sample)
        for _ in range(num_steps - 1):
            result = self.gibbs_step(model, result[1].sample)
        return result

    def reset(self) -> None:
        """Reset sampler state."""
        self.state.reset()
        self.log_debug("Reset sampler state")

    @property
    def num_steps_taken(self) -> int:
        """Total number of Gibbs steps taken."""
        return self.state.num_steps

    def get_diagnostics(self) -> dict[str, Any]:
        """Get diagnostic information about the sampler."""
        return {"name": self.name, "num_steps": self.num_steps_taken}
