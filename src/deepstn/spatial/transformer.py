r"""Modules which apply a spatial transformation to a given input feature map.

A spatial transformer maps the points of a static sampling grid by an affine transformation
whose parameters are given for each sample in the batch, and samples the input feature maps at
these source coordinates using bilinear interpolation.

"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union, cast

import torch
from torch import Tensor
from torch.nn import Module

from ..core.affine import affine_params
from ..core.enum import GridNormalization, PaddingMode
from ..core.grid import grid_size, sampling_grid
from ..core.typing import Size2d

from .config import SpatialTransformerConfig
from .function import SpatialTransformFunction


log = logging.getLogger(__name__)


class SpatialTransformer(Module):
    r"""Spatially transform a batch of feature maps by per-sample affine transformations.

    The :class:`.SpatialTransformer` owns the sampling grid of the output feature maps. When no
    output ``size`` is specified, the output has the same spatial size as the input and the grid
    is regenerated whenever the spatial size of the input changes. The affine parameters of shape
    ``(N, 6)`` or ``(N, 2, 3)`` are given as second argument of :meth:`forward`, for example as
    output of a localization network.

    """

    def __init__(
        self,
        size: Optional[Union[int, Sequence[int]]] = None,
        normalization: Union[GridNormalization, str, None] = None,
        padding: Union[PaddingMode, str, None] = None,
    ) -> None:
        r"""Initialize spatial transformer.

        Args:
            size: Spatial size ``(H_out, W_out)`` of output feature maps. If ``None``, use
                the spatial size of the input feature maps.
            normalization: Normalization of sampling grid coordinates.
            padding: Extrapolation mode for points outside the input domain.

        """
        super().__init__()
        self.size = None if size is None else grid_size(size)
        self.normalization = GridNormalization.from_arg(normalization)
        self.padding = PaddingMode.from_arg(padding)
        self._grid_size: Optional[Size2d] = None
        self._grid_dtype: Optional[torch.dtype] = None
        self.register_buffer("grid", None, persistent=False)
        if self.size is not None:
            self.update_grid(self.size)

    @classmethod
    def from_config(cls, config: SpatialTransformerConfig) -> SpatialTransformer:
        r"""Create spatial transformer from configuration."""
        if not isinstance(config, SpatialTransformerConfig):
            raise TypeError(f"{cls.__name__}.from_config() 'config' must be SpatialTransformerConfig")
        return cls(size=config.size(), normalization=config.normalization, padding=config.padding)

    def output_size(self, input: Tensor) -> Size2d:
        r"""Spatial size of output feature maps for given input."""
        if self.size is None:
            return cast(Size2d, tuple(input.shape[2:]))
        return self.size

    def update_grid(
        self,
        size: Size2d,
        dtype: Optional[torch.dtype] = None,
        device: Optional[Union[torch.device, str]] = None,
    ) -> Tensor:
        r"""Get sampling grid for output feature maps of given size, generating it if needed.

        The grid is regenerated when the spatial ``size`` or the data type changes, such that its
        values are computed at the precision of the feature maps instead of being cast to it.
        A change of ``device`` only moves the existing grid.

        """
        grid: Optional[Tensor] = self.grid
        if dtype is None:
            dtype = torch.float if grid is None else grid.dtype
        if device is None:
            device = None if grid is None else grid.device
        if grid is None or self._grid_size != size or self._grid_dtype != dtype:
            log.debug(
                "%s: generate sampling grid of size %s (normalization=%s, dtype=%s)",
                type(self).__name__,
                size,
                self.normalization.value,
                dtype,
            )
            grid = sampling_grid(size, self.normalization, dtype=dtype, device=device)
            self._grid_size = size
            self._grid_dtype = dtype
        else:
            grid = grid.to(device=device)
        self.grid = grid
        return grid

    def forward(self, input: Tensor, theta: Tensor) -> Tensor:
        r"""Sample batch of feature maps at affinely transformed grid points."""
        if not isinstance(input, Tensor) or input.ndim != 4:
            raise ValueError(f"{type(self).__name__}() 'input' must be tensor of shape (N, C, H, W)")
        if affine_params(theta).shape[0] != input.shape[0]:
            raise ValueError(f"{type(self).__name__}() 'input' and 'theta' must have same batch size")
        size = self.output_size(input)
        grid = self.update_grid(size, dtype=input.dtype, device=input.device)
        return SpatialTransformFunction.apply(input, theta, grid, size, self.padding)

    def extra_repr(self) -> str:
        return (
            f"size={self.size!r}"
            f", normalization={self.normalization.value!r}"
            f", padding={self.padding.value!r}"
        )
