"""Restricted Boltzmann Machine and its unit activation policies."""

from .model import RBM
from .units import (
    HIDDEN_TO_VISIBLE,
    VISIBLE_TO_HIDDEN,
    BaseUnit,
    BinaryUnit,
    GaussianUnit,
    LinearUnit,
    RectifiedUnit,
    SoftmaxUnit,
    get_hidden_policy,
    get_visible_policy,
    inverse_hidden,
    inverse_visible,
)

__all__ = [
    # Model
    "RBM",

    # Unit policies
    "BaseUnit", "BinaryUnit", "GaussianUnit", "SoftmaxUnit",
    "LinearUnit", "RectifiedUnit",

    # Lookup
    "get_visible_policy", "get_hidden_policy",
    "inverse_visible", "inverse_hidden",
    "VISIBLE_TO_HIDDEN", "HIDDEN_TO_VISIBLE",
]
