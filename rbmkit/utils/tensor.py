"""Tensor manipulation helpers used by the propagation engine."""

from __future__ import annotations

import torch
from torch import Tensor

from rbmkit.core.types import Device, DType, TensorLike


def ensure_tensor(
    x: TensorLike, dtype: DType | None = None, device: Device | None = None
) -> Tensor:
    """Convert input to tensor with specified dtype and device.

    Args:
        x: Input data (tensor, nested list, numpy array, or scalar)
        dtype: Target data type
        device: Target device

    Returns
    -------
        Tensor with specified properties
    """
    if isinstance(x, Tensor):
        if dtype is not None or device is not None:
            return x.to(dtype=dtype, device=device)
        return x

    if isinstance(x, list | tuple):
        tensor = torch.tensor(x)
    elif isinstance(x, int | float):
        tensor = torch.tensor([x])
    else:
        import numpy as np

        if isinstance(x, np.ndarray):
            tensor = torch.from_numpy(x).float()
        else:
            tensor = torch.as_tensor(x)

    if dtype is not None or device is not None:
        tensor = tensor.to(dtype=dtype, device=device)

    return tensor


def row_variance(x: Tensor) -> Tensor:
    """Population variance of each row, shaped (rows, 1) for broadcasting.

    Population (not sample) variance keeps single-column layers finite.
    """
    return x.var(dim=1, keepdim=True, unbiased=False)


def softmax_rows(x: Tensor) -> Tensor:
    """Row-wise softmax."""
    return torch.softmax(x, dim=1)


def append_ones_column(x: Tensor) -> Tensor:
    """Append a column of ones to a (batch, n) matrix."""
    ones = torch.ones(x.shape[0], 1, device=x.device, dtype=x.dtype)
    return torch.cat([x, ones], dim=1)


def augment_with_bias(weights: Tensor, bias: Tensor) -> Tensor:
    """Stack a bias vector under a weight matrix as one extra row."""
    return torch.cat([weights, bias.unsqueeze(0)], dim=0)
