"""Diagnostic plots of RBM weights and gradients.

``NetworkPlotter`` is the plotting collaborator invoked by the training
loop on the ``render_weights_every`` cadence. The module-level functions
can also be used on their own.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from torch import Tensor

from rbmkit.core.logging import LoggerMixin

if TYPE_CHECKING:
    from rbmkit.models.rbm.model import RBM
    from rbmkit.sampling.gradient import GradientBundle

IMAGE_NDIM = 3


def _to_numpy(values: Tensor | np.ndarray) -> np.ndarray:
    """Convert tensors to numpy arrays."""
    if isinstance(values, Tensor):
        return values.detach().cpu().numpy()
    return np.asarray(values)


def _normalize_each(images: np.ndarray) -> np.ndarray:
    images = images.copy()
    for i in range(images.shape[0]):
        img_min, img_max = images[i].min(), images[i].max()
        if img_max > img_min:
            images[i] = (images[i] - img_min) / (img_max - img_min)
    return images


def tile_images(
    images: Tensor | np.ndarray,
    ncols: int | None = None,
    padding: int = 1,
    pad_value: float = 0.0,
) -> np.ndarray:
    """Tile (n, h, w) images into one grid, each scaled to [0, 1].

    Args:
        images: Stack of 2-D images
        ncols: Number of grid columns; square-ish by default
        padding: Padding around each image
        pad_value: Value to use for padding

    Returns
    -------
        Tiled image array of shape (rows * h, ncols * w)
    """
    images_np = _to_numpy(images)
    if images_np.ndim != IMAGE_NDIM:
        raise ValueError(f"Expected 3D array, got {images_np.ndim}D")

    n, h, w = images_np.shape
    if n == 0:
        return np.zeros((0, 0))

    images_np = _normalize_each(images_np)

    if ncols is None:
        ncols = int(np.ceil(np.sqrt(n)))
    nrows = int(np.ceil(n / ncols))

    n_pad = nrows * ncols - n
    if n_pad > 0:
        filler = np.full((n_pad, h, w), pad_value, dtype=images_np.dtype)
        images_np = np.concatenate([images_np, filler], axis=0)

    if padding > 0:
        images_np = np.pad(
            images_np,
            ((0, 0), (padding, padding), (padding, padding)),
            mode="constant",
            constant_values=pad_value,
        )
        h += 2 * padding
        w += 2 * padding

    grid = images_np.reshape(nrows, ncols, h, w).transpose(0, 2, 1, 3)
    return grid.reshape(nrows * h, ncols * w)


def visualize_filters(
    weights: Tensor,
    title: str = "Filters",
    cmap: str = "gray",
    save_path: Path | None = None,
    figsize: tuple[int, int] = (8, 8),
) -> Figure:
    """Show each hidden unit's incoming weights as one image.

    Args:
        weights: Weight matrix of shape (visible_units, hidden_units)
        title: Figure title
        cmap: Colormap
        save_path: Path to save figure
        figsize: Figure size

    Returns
    -------
        Matplotlib figure
    """
    filters = _to_numpy(weights).T
    num_filters, filter_size = filters.shape

    # Square filters when the visible layer is a square image
    side = int(np.sqrt(filter_size))
    img_shape = (side, side) if side * side == filter_size else (1, filter_size)

    tiled = tile_images(filters.reshape(num_filters, *img_shape))

    fig, ax = plt.subplots(figsize=figsize)
    ax.imshow(tiled, cmap=cmap, aspect="auto")
    ax.set_title(title)
    ax.axis("off")
    fig.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_histograms(
    values: dict[str, Tensor | np.ndarray],
    title: str = "Histograms",
    bins: int = 50,
    save_path: Path | None = None,
) -> Figure:
    """One histogram per named array, laid out in two columns.

    Args:
        values: Mapping of panel title to values
        title: Figure title
        bins: Number of histogram bins
        save_path: Path to save figure

    Returns
    -------
        Matplotlib figure
    """
    ncols = 2
    nrows = max(1, int(np.ceil(len(values) / ncols)))
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(5 * ncols, 3 * nrows), squeeze=False
    )

    for ax, (name, arr) in zip(axes.flat, values.items(), strict=False):
        ax.hist(_to_numpy(arr).ravel(), bins=bins, alpha=0.8)
        ax.set_title(name)
        ax.grid(True, alpha=0.3)

    for ax in list(axes.flat)[len(values):]:
        ax.axis("off")

    fig.suptitle(title)
    fig.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


class NetworkPlotter(LoggerMixin):
    """Render weight and gradient histograms plus weight filters.

    Figures are written to ``save_dir`` when one is given and always
    closed afterwards, so repeated rendering does not accumulate figures.
    """

    def __init__(self, save_dir: str | Path | None = None, prefix: str = "rbm"):
        """Initialize the plotter.

        Args:
            save_dir: Directory for rendered PNG files
            prefix: File name prefix
        """
        super().__init__()
        self.save_dir = Path(save_dir) if save_dir else None
        self.prefix = prefix
        self.num_renders = 0

        if self.save_dir:
            self.save_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, kind: str) -> Path | None:
        if self.save_dir is None:
            return None
        return self.save_dir / f"{self.prefix}_{kind}_{self.num_renders:04d}.png"

    def plot_network_gradient(
        self, model: RBM, gradient: GradientBundle, batch_size: int
    ) -> list[Path]:
        """Render the model's parameters next to a gradient bundle.

        Gradients are shown per example, i.e. divided by ``batch_size``.

        Returns
        -------
            Paths of the files written (empty without ``save_dir``)
        """
        scale = 1.0 / max(batch_size, 1)
        panels = {
            "W": model.W,
            "hbias": model.hbias,
            "vbias": model.vbias,
            "W gradient": gradient.weight * scale,
            "hbias gradient": gradient.hidden_bias * scale,
            "vbias gradient": gradient.visible_bias * scale,
        }

        written: list[Path] = []
        hist_path = self._path("histograms")
        filter_path = self._path("filters")

        for fig in (
            plot_histograms(panels, title="Parameters and gradients", save_path=hist_path),
            visualize_filters(model.W, save_path=filter_path),
        ):
            plt.close(fig)

        written.extend(p for p in (hist_path, filter_path) if p is not None)
        self.num_renders += 1
        self.log_debug("Rendered network", renders=self.num_renders, files=len(written))
        return written
