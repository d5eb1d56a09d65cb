r"""Application of 2-dimensional affine transformations to sampling grid points."""

from typing import Optional

import torch
from torch import Tensor

from .typing import Device, DType


def affine_params(theta: Tensor) -> Tensor:
    r"""Get batch of affine transformation matrices from parameters tensor.

    Args:
        theta: Affine parameters as tensor of shape ``(N, 6)``, ``(N, 2, 3)``, or any other
            shape ``(N, ...)`` with six parameters per sample in row-major order.

    Returns:
        View of ``theta`` with shape ``(N, 2, 3)``.

    Raises:
        ValueError: If ``theta`` does not have exactly six parameters per sample.

    """
    if not isinstance(theta, Tensor):
        raise TypeError("affine_params() 'theta' must be a tensor")
    if theta.ndim < 2:
        raise ValueError("affine_params() 'theta' must have shape (N, 6) or (N, 2, 3)")
    if theta.shape[1:].numel() != 6:
        raise ValueError(
            "affine_params() 'theta' must have 6 parameters per sample,"
            f" got shape {tuple(theta.shape)}"
        )
    if not theta.is_floating_point():
        raise TypeError("affine_params() 'theta' must have floating point type")
    return theta.reshape(theta.shape[0], 2, 3)


def identity_params(
    n: int = 1, dtype: Optional[DType] = None, device: Optional[Device] = None
) -> Tensor:
    r"""Batch of identity transformations ``(1, 0, 0, 0, 1, 0)`` with shape ``(N, 2, 3)``."""
    eye = torch.eye(2, 3, dtype=dtype or torch.float, device=device)
    return eye.unsqueeze(0).repeat(n, 1, 1)


def transform_grid(grid: Tensor, theta: Tensor) -> Tensor:
    r"""Map homogeneous sampling grid points to source coordinates.

    Args:
        grid: Homogeneous output grid coordinates of shape ``(P, 3)``.
        theta: Affine parameters of shape ``(N, 6)`` or ``(N, 2, 3)``.

    Returns:
        Source coordinates ``grid @ theta[n].T`` of shape ``(N, P, 2)``.

    """
    if grid.ndim != 2 or grid.shape[1] != 3:
        raise ValueError("transform_grid() 'grid' must have shape (P, 3)")
    matrix = affine_params(theta)
    grid = grid.to(dtype=matrix.dtype, device=matrix.device)
    return torch.matmul(grid, matrix.transpose(1, 2))


def affine_params_grad(coords_grad: Tensor, grid: Tensor) -> Tensor:
    r"""Gradient with respect to affine parameters given gradient with respect to source coordinates.

    Because source coordinates are linear in the affine parameters, the gradient of the first
    row of ``theta[n]`` is the sum over all grid points of ``coords_grad[n, p, 0] * grid[p]``,
    and analogously for the second row.

    Args:
        coords_grad: Gradient with respect to source coordinates of shape ``(N, P, 2)``.
        grid: Homogeneous output grid coordinates of shape ``(P, 3)``.

    Returns:
        Gradient with respect to affine parameters of shape ``(N, 2, 3)``.

    """
    if coords_grad.ndim != 3 or coords_grad.shape[2] != 2:
        raise ValueError("affine_params_grad() 'coords_grad' must have shape (N, P, 2)")
    if grid.ndim != 2 or grid.shape != (coords_grad.shape[1], 3):
        raise ValueError("affine_params_grad() 'grid' must have shape (P, 3)")
    grid = grid.to(dtype=coords_grad.dtype, device=coords_grad.device)
    return torch.einsum("npk,pl->nkl", coords_grad, grid)
