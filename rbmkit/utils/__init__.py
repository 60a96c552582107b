"""Utility functions for the rbmkit library."""

from .initialization import SCHEMES, Initializer
from .random import RandomSource
from .tensor import (
    append_ones_column,
    augment_with_bias,
    ensure_tensor,
    row_variance,
    softmax_rows,
)
from .visualization import (
    NetworkPlotter,
    plot_histograms,
    tile_images,
    visualize_filters,
)

__all__ = [
    # Initialization
    "Initializer", "SCHEMES",

    # Randomness
    "RandomSource",

    # Tensor helpers
    "ensure_tensor", "row_variance", "softmax_rows",
    "append_ones_column", "augment_with_bias",

    # Visualization
    "NetworkPlotter", "plot_histograms", "tile_images", "visualize_filters",
]
