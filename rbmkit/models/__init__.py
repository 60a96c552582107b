"""Model implementations."""

from . import rbm
from .base import LatentVariableModel
from .rbm import RBM

__all__ = [
    # Base classes
    "LatentVariableModel",

    # RBM module
    "rbm",
    "RBM",
]
