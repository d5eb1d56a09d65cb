r"""Generation of static sampling grids with normalized output coordinates."""

from typing import Optional, Sequence, Union

import torch
from torch import Tensor

from .enum import GridNormalization
from .typing import Device, DType, Size2d


def grid_size(size: Union[int, Sequence[int]]) -> Size2d:
    r"""Get spatial size ``(H, W)`` of a 2-dimensional sampling grid from function argument."""
    if isinstance(size, int):
        size = (size, size)
    size = tuple(int(n) for n in size)
    if len(size) != 2:
        raise ValueError("grid_size() 'size' must be int or sequence of length 2")
    if any(n <= 0 for n in size):
        raise ValueError("grid_size() 'size' must be positive")
    return size  # type: ignore


def sampling_grid(
    size: Union[int, Sequence[int]],
    normalization: Union[GridNormalization, str, None] = None,
    dtype: Optional[DType] = None,
    device: Optional[Device] = None,
) -> Tensor:
    r"""Homogeneous normalized coordinates of output grid points.

    Point ``i = r * W + c`` at row ``r`` and column ``c`` of an output of size ``(H, W)`` has
    coordinates ``(r / H * 2 - 1, c / D * 2 - 1, 1)``, where the column denominator ``D`` is
    either ``H`` or ``W``, depending on the ``normalization`` mode.

    Args:
        size: Spatial size ``(H, W)`` of the output feature map.
        normalization: Normalization of column indices. See :class:`.GridNormalization`.
            The default is ``GridNormalization.HEIGHT``.
        dtype: Data type of grid tensor. Default is ``torch.float``.
        device: Device on which to create grid tensor.

    Returns:
        Tensor of shape ``(H * W, 3)``.

    """
    height, width = grid_size(size)
    normalization = GridNormalization.from_arg(normalization)
    if dtype is None:
        dtype = torch.float
    if not torch.is_floating_point(torch.empty((), dtype=dtype)):
        raise TypeError("sampling_grid() 'dtype' must be a floating point type")
    row_denom, col_denom = normalization.denominators(height, width)
    rows = torch.arange(height, dtype=torch.float64, device=device).div(row_denom).mul(2).sub(1)
    cols = torch.arange(width, dtype=torch.float64, device=device).div(col_denom).mul(2).sub(1)
    grid = torch.ones((height, width, 3), dtype=torch.float64, device=device)
    grid[..., 0] = rows.unsqueeze(1)
    grid[..., 1] = cols.unsqueeze(0)
    return grid.reshape(height * width, 3).to(dtype)
