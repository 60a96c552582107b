"""Training metrics and reconstruction losses.

``MetricsTracker`` keeps running statistics of the per-iteration values
reported by the trainer. The loss functions are selectable through
``RBMConfig.loss_function``; each maps (data, reconstruction) to a float.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
import torch
from torch import Tensor

# Keeps log() finite for saturated reconstructions
EPS = 1e-7


@dataclass
class RunningStat:
    """Streaming count, mean, variance and range of one metric.

    The mean and population variance use Welford's update; ``window`` keeps
    the most recent values for moving averages.
    """

    window_size: int = 100
    count: int = 0
    mean: float = 0.0
    m2: float = 0.0
    min: float = math.inf
    max: float = -math.inf
    last: float = math.nan
    window: deque[float] = field(init=False)

    def __post_init__(self) -> None:
        self.window = deque(maxlen=self.window_size)

    def push(self, value: float) -> None:
        self.count += 1
        delta = value - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (value - self.mean)
        self.min = min(self.min, value)
        self.max = max(self.max, value)
        self.last = value
        self.window.append(value)

    @property
    def std(self) -> float:
        return math.sqrt(self.m2 / self.count) if self.count else 0.0

    def window_mean(self, last: int | None = None) -> float:
        values = list(self.window)
        if last is not None:
            values = values[-last:]
        return float(np.mean(values))


class MetricsTracker:
    """Running statistics for named scalar metrics."""

    def __init__(self, window_size: int = 100):
        """Initialize metrics tracker.

        Args:
            window_size: Number of recent values kept for moving averages
        """
        self.window_size = window_size
        self.stats: dict[str, RunningStat] = {}

    def update(self, metrics: dict[str, float]) -> None:
        """Record one value per metric name."""
        for name, value in metrics.items():
            if name not in self.stats:
                self.stats[name] = RunningStat(self.window_size)
            self.stats[name].push(float(value))

    def latest(self) -> dict[str, float]:
        """Most recent value of every metric."""
        return {name: stat.last for name, stat in self.stats.items()}

    def moving_average(self, last: int | None = None) -> dict[str, float]:
        """Mean over the last ``last`` values (default: the whole window)."""
        return {name: stat.window_mean(last) for name, stat in self.stats.items()}

    def summary(self) -> dict[str, dict[str, float]]:
        """Count, mean, std, min, max and last value of every metric."""
        return {
            name: {
                "count": stat.count,
                "mean": stat.mean,
                "std": stat.std,
                "min": stat.min,
                "max": stat.max,
                "last": stat.last,
            }
            for name, stat in self.stats.items()
        }

    def reset(self) -> None:
        self.stats.clear()

    def compute(self) -> dict[str, float]:
        """Moving averages, as reported at the end of training."""
        return self.moving_average()


def reconstruction_cross_entropy(data: Tensor, reconstruction: Tensor) -> float:
    """Bernoulli cross-entropy summed over units, averaged over rows."""
    z = reconstruction.clamp(EPS, 1 - EPS)
    log_likelihood = data * torch.log(z) + (1 - data) * torch.log(1 - z)
    return float(-log_likelihood.sum(dim=1).mean())


def squared_loss(data: Tensor, reconstruction: Tensor) -> float:
    """Squared error summed over units, averaged over rows."""
    return float((data - reconstruction).pow(2).sum(dim=1).mean())


def mean_squared_error(data: Tensor, reconstruction: Tensor) -> float:
    """Mean squared error over every entry."""
    return float((data - reconstruction).pow(2).mean())


LOSS_FUNCTIONS: dict[str, Callable[[Tensor, Tensor], float]] = {
    "reconstruction_crossentropy": reconstruction_cross_entropy,
    "squared_loss": squared_loss,
    "mse": mean_squared_error,
}
