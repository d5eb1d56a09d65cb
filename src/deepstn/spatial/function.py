r"""Autograd function which binds the explicit forward and backward passes of the spatial transformer."""

import logging
from typing import Any, Optional, Sequence, Tuple, Union

from torch import Tensor
from torch.autograd import Function
from torch.autograd.function import once_differentiable

from ..core.affine import affine_params, affine_params_grad, transform_grid
from ..core.enum import GridNormalization, PaddingMode
from ..core.grid import grid_size, sampling_grid
from ..core.sample import bilinear_sample, bilinear_sample_backward, out_of_range_fraction
from ..core.tensor import log_grad


log = logging.getLogger(__name__)


class SpatialTransformFunction(Function):
    r"""Sample feature maps at affinely transformed sampling grid points.

    The source coordinates computed in the forward pass are saved for the backward pass, which
    uses the analytic gradient of :func:`.bilinear_sample` instead of differentiating through the
    individual tensor operations.

    """

    @staticmethod
    def forward(
        ctx: Any,
        input: Tensor,
        theta: Tensor,
        grid: Tensor,
        size: Optional[Tuple[int, int]] = None,
        padding: Union[PaddingMode, str, None] = None,
    ) -> Tensor:
        padding = PaddingMode.from_arg(padding)
        coords = transform_grid(grid, theta.to(input.dtype))
        output = bilinear_sample(input, coords, size=size, padding=padding)
        if log.isEnabledFor(logging.DEBUG):
            fraction = out_of_range_fraction(coords, input.shape[2:])
            log.debug("source points outside input: %s", fraction.tolist())
        ctx.save_for_backward(input, coords, grid)
        ctx.size = tuple(output.shape[2:])
        ctx.padding = padding
        ctx.theta_shape = theta.shape
        ctx.theta_dtype = theta.dtype
        return output

    @staticmethod
    @once_differentiable
    def backward(ctx: Any, grad_output: Tensor) -> Tuple[Optional[Tensor], ...]:
        input, coords, grid = ctx.saved_tensors
        input_grad, theta_grad = ctx.needs_input_grad[:2]
        grad_input, grad_coords = bilinear_sample_backward(
            grad_output,
            input,
            coords,
            size=ctx.size,
            padding=ctx.padding,
            input_grad=input_grad,
            coords_grad=theta_grad,
        )
        grad_theta = None
        if theta_grad:
            grad_theta = affine_params_grad(grad_coords, grid)
            grad_theta = grad_theta.reshape(ctx.theta_shape).to(ctx.theta_dtype)
            log_grad("theta", grad_theta, log)
        return grad_input, grad_theta, None, None, None


def spatial_transform(
    input: Tensor,
    theta: Tensor,
    size: Optional[Union[int, Sequence[int]]] = None,
    normalization: Union[GridNormalization, str, None] = None,
    padding: Union[PaddingMode, str, None] = None,
) -> Tensor:
    r"""Spatially transform feature maps by per-sample affine transformations.

    Args:
        input: Input feature maps of shape ``(N, C, H, W)``.
        theta: Affine parameters of shape ``(N, 6)`` or ``(N, 2, 3)``.
        size: Spatial size ``(H_out, W_out)`` of the output. Default is ``(H, W)``.
        normalization: Normalization of sampling grid coordinates.
        padding: Extrapolation mode for points outside the input domain.

    Returns:
        Output feature maps of shape ``(N, C, H_out, W_out)``.

    """
    if not isinstance(input, Tensor) or input.ndim != 4:
        raise ValueError("spatial_transform() 'input' must be tensor of shape (N, C, H, W)")
    if affine_params(theta).shape[0] != input.shape[0]:
        raise ValueError("spatial_transform() 'input' and 'theta' must have same batch size")
    size = grid_size(input.shape[2:] if size is None else size)
    grid = sampling_grid(size, normalization, dtype=input.dtype, device=input.device)
    return SpatialTransformFunction.apply(input, theta, grid, size, padding)
