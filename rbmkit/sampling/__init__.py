"""Sampling and gradient estimation for RBM training."""

from .base import GibbsResult, GibbsSampler, SamplerState
from .gradient import ContrastiveDivergence, GradientBundle

__all__ = [
    "GibbsSampler",
    "GibbsResult",
    "SamplerState",
    "ContrastiveDivergence",
    "GradientBundle",
]
