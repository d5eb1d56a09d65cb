r"""Bilinear resampling of feature maps at source coordinates and its analytic gradient.

Source coordinates are normalized such that ``x = -1`` maps to row ``0`` and ``x = 1`` to row
``H`` of the input feature map, i.e., the pixel coordinates are ``xx = (x + 1) / 2 * H`` and
``yy = (y + 1) / 2 * W``. The first coordinate thus indexes rows and the second columns.

Each output value is the sum over the four integer neighbours ``(i, j)`` of ``(xx, yy)`` of
``max(0, 1 - |xx - i|) * max(0, 1 - |yy - j|) * input[..., i, j]``. Neighbours outside the input
domain either contribute zero (``PaddingMode.ZEROS``), or coordinates are clamped to the domain
before interpolation (``PaddingMode.BORDER``). Input values outside the domain are never read.

"""

from typing import Iterator, NamedTuple, Optional, Sequence, Tuple, Union

import torch
from torch import Tensor

from .enum import PaddingMode
from .grid import grid_size
from .typing import Size2d


class _Neighbor(NamedTuple):
    r"""Integer neighbour of each source point with its interpolation weights."""

    index: Tensor  # Linear index into flattened input, zero where not valid
    valid: Tensor  # Whether neighbour lies inside the input domain
    weight_x: Tensor
    weight_y: Tensor
    sign_x: float  # Derivative of weight_x with respect to xx
    sign_y: float  # Derivative of weight_y with respect to yy


def _check_input(name: str, input: Tensor, coords: Tensor) -> Tuple[int, int, int, int, int]:
    if not isinstance(input, Tensor) or not isinstance(coords, Tensor):
        raise TypeError(f"{name}() 'input' and 'coords' must be tensors")
    if input.ndim != 4:
        raise ValueError(f"{name}() 'input' must have shape (N, C, H, W)")
    if not input.is_floating_point():
        raise TypeError(f"{name}() 'input' must have floating point type")
    N, C, H, W = input.shape
    if coords.ndim != 3 or coords.shape[0] != N or coords.shape[2] != 2:
        raise ValueError(f"{name}() 'coords' must have shape (N, P, 2) with N={N}")
    return N, C, H, W, coords.shape[1]


def _pixel_coords(
    coords: Tensor, size: Size2d, padding: PaddingMode
) -> Tuple[Tensor, Tensor, Optional[Tensor]]:
    r"""Map normalized source coordinates to continuous pixel indices.

    Returns:
        xx: Continuous row indices of shape ``(N, P)``.
        yy: Continuous column indices of shape ``(N, P)``.
        inside: Boolean tensor of shape ``(N, P, 2)`` which is ``False`` where a pixel
            coordinate was clamped to the input domain, or ``None`` if no clamping is done.

    """
    height, width = size
    xx = coords[..., 0].add(1).div(2).mul(height)
    yy = coords[..., 1].add(1).div(2).mul(width)
    if padding is PaddingMode.BORDER:
        inside = torch.stack(
            (xx.ge(0) & xx.le(height - 1), yy.ge(0) & yy.le(width - 1)),
            dim=-1,
        )
        xx = xx.clamp(0, height - 1)
        yy = yy.clamp(0, width - 1)
        return xx, yy, inside
    return xx, yy, None


def _neighbors(xx: Tensor, yy: Tensor, size: Size2d) -> Iterator[_Neighbor]:
    r"""Iterate over the four integer neighbours of each point ``(xx, yy)``.

    When ``xx`` (or ``yy``) is an integer, the second neighbour along this axis has weight zero.

    """
    height, width = size
    x0 = xx.floor()
    y0 = yy.floor()
    fx = xx - x0
    fy = yy - y0
    for dx, weight_x, sign_x in ((0, 1 - fx, -1.0), (1, fx, 1.0)):
        i = x0 + dx
        valid_x = i.ge(0) & i.lt(height)
        for dy, weight_y, sign_y in ((0, 1 - fy, -1.0), (1, fy, 1.0)):
            j = y0 + dy
            valid = valid_x & j.ge(0) & j.lt(width)
            index = i.masked_fill(~valid, 0).long() * width + j.masked_fill(~valid, 0).long()
            yield _Neighbor(index, valid, weight_x, weight_y, sign_x, sign_y)


def bilinear_sample(
    input: Tensor,
    coords: Tensor,
    size: Optional[Union[int, Sequence[int]]] = None,
    padding: Union[PaddingMode, str, None] = None,
) -> Tensor:
    r"""Sample feature maps at source coordinates using bilinear interpolation.

    Args:
        input: Input feature maps of shape ``(N, C, H, W)``.
        coords: Normalized source coordinates of shape ``(N, P, 2)``, where ``P = H_out * W_out``.
        size: Spatial size ``(H_out, W_out)`` of the output. Default is ``(H, W)``.
        padding: Extrapolation mode for points outside the input domain.
            Default is ``PaddingMode.ZEROS``.

    Returns:
        Output feature maps of shape ``(N, C, H_out, W_out)``.

    """
    N, C, H, W, P = _check_input("bilinear_sample", input, coords)
    out_size = (H, W) if size is None else grid_size(size)
    if out_size[0] * out_size[1] != P:
        raise ValueError(
            f"bilinear_sample() 'coords' must have {out_size[0] * out_size[1]} points per sample"
        )
    padding = PaddingMode.from_arg(padding)
    coords = coords.to(dtype=input.dtype, device=input.device)
    xx, yy, _ = _pixel_coords(coords, (H, W), padding)
    data = input.reshape(N, C, H * W)
    output = input.new_zeros((N, C, P))
    for neighbor in _neighbors(xx, yy, (H, W)):
        index = neighbor.index.unsqueeze(1).expand(N, C, P)
        weight = neighbor.weight_x.mul(neighbor.weight_y).unsqueeze(1)
        values = data.gather(2, index)
        output += weight.mul(values).masked_fill(~neighbor.valid.unsqueeze(1), 0)
    return output.reshape(N, C, *out_size)


def bilinear_sample_backward(
    grad_output: Tensor,
    input: Tensor,
    coords: Tensor,
    size: Optional[Union[int, Sequence[int]]] = None,
    padding: Union[PaddingMode, str, None] = None,
    input_grad: bool = True,
    coords_grad: bool = True,
) -> Tuple[Optional[Tensor], Optional[Tensor]]:
    r"""Gradient of :func:`bilinear_sample` with respect to input feature maps and source coordinates.

    Args:
        grad_output: Gradient with respect to output feature maps of shape ``(N, C, H_out, W_out)``.
        input: Input feature maps of shape ``(N, C, H, W)`` of the forward pass.
        coords: Normalized source coordinates of shape ``(N, P, 2)`` of the forward pass.
        size: Spatial size ``(H_out, W_out)`` of the output of the forward pass. Default is ``(H, W)``.
        padding: Extrapolation mode of the forward pass.
        input_grad: Whether to compute the gradient with respect to ``input``.
        coords_grad: Whether to compute the gradient with respect to ``coords``.

    Returns:
        grad_input: Gradient with respect to ``input`` with the same shape, or ``None``.
        grad_coords: Gradient with respect to ``coords`` of shape ``(N, P, 2)``, or ``None``.

    """
    N, C, H, W, P = _check_input("bilinear_sample_backward", input, coords)
    if grad_output.ndim != 4 or grad_output.shape[:2] != (N, C):
        raise ValueError(
            "bilinear_sample_backward() 'grad_output' must have shape (N, C, H_out, W_out)"
        )
    out_size = (H, W) if size is None else grid_size(size)
    if out_size[0] * out_size[1] != P:
        raise ValueError(
            f"bilinear_sample_backward() 'coords' must have {out_size[0] * out_size[1]} points"
            " per sample"
        )
    if tuple(grad_output.shape[2:]) != out_size:
        raise ValueError(
            f"bilinear_sample_backward() 'grad_output' must have spatial size {out_size},"
            f" got {tuple(grad_output.shape[2:])}"
        )
    padding = PaddingMode.from_arg(padding)
    coords = coords.to(dtype=input.dtype, device=input.device)
    xx, yy, inside = _pixel_coords(coords, (H, W), padding)
    grad = grad_output.to(dtype=input.dtype).reshape(N, C, P)
    data = input.reshape(N, C, H * W)
    grad_input = input.new_zeros((N, C, H * W)) if input_grad else None
    grad_x = input.new_zeros((N, P))
    grad_y = input.new_zeros((N, P))
    for neighbor in _neighbors(xx, yy, (H, W)):
        index = neighbor.index.unsqueeze(1).expand(N, C, P)
        invalid = ~neighbor.valid.unsqueeze(1)
        if grad_input is not None:
            weight = neighbor.weight_x.mul(neighbor.weight_y).unsqueeze(1)
            grad_input.scatter_add_(2, index, weight.mul(grad).masked_fill(invalid, 0))
        if coords_grad:
            dot = data.gather(2, index).mul(grad).masked_fill(invalid, 0).sum(dim=1)
            grad_x += neighbor.sign_x * neighbor.weight_y * dot
            grad_y += neighbor.sign_y * neighbor.weight_x * dot
    grad_coords = None
    if coords_grad:
        grad_coords = torch.stack((grad_x.mul(H / 2), grad_y.mul(W / 2)), dim=-1)
        if inside is not None:
            grad_coords = grad_coords.masked_fill(~inside, 0)
    if grad_input is not None:
        grad_input = grad_input.reshape(N, C, H, W)
    return grad_input, grad_coords


def out_of_range_fraction(coords: Tensor, size: Union[int, Sequence[int]]) -> Tensor:
    r"""Fraction of source points of each sample which require extrapolation.

    A source point requires extrapolation when its continuous pixel coordinates ``(xx, yy)`` lie
    outside ``[0, H - 1] x [0, W - 1]``, i.e., when at least one of its interpolation neighbours
    is outside the input domain of spatial ``size`` ``(H, W)``.

    Args:
        coords: Normalized source coordinates of shape ``(N, P, 2)``.
        size: Spatial size ``(H, W)`` of the input feature maps.

    Returns:
        Tensor of shape ``(N,)`` with values in ``[0, 1]``.

    """
    if not isinstance(coords, Tensor) or coords.ndim != 3 or coords.shape[2] != 2:
        raise ValueError("out_of_range_fraction() 'coords' must be tensor of shape (N, P, 2)")
    height, width = grid_size(size)
    xx, yy, _ = _pixel_coords(coords, (height, width), PaddingMode.ZEROS)
    inside = xx.ge(0) & xx.le(height - 1) & yy.ge(0) & yy.le(width - 1)
    return inside.logical_not().float().mean(dim=1)
