r"""Spatial transformer layer with explicit setup, forward, and backward passes.

The :class:`.SpatialTransformLayer` is intended for host pipelines which do not use PyTorch
autograd, but invoke the forward and backward passes of each layer themselves. The layer
exclusively owns the sampling grid for the configured spatial dimensions as well as the source
coordinates of the most recent forward call, which are required by the subsequent backward call.

"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, Union

import torch
from torch import Size, Tensor

from ..core.affine import affine_params, affine_params_grad, transform_grid
from ..core.grid import sampling_grid
from ..core.sample import bilinear_sample, bilinear_sample_backward, out_of_range_fraction
from ..core.tensor import log_grad
from ..core.typing import Size2d

from .config import SpatialTransformerConfig


log = logging.getLogger(__name__)


class SpatialTransformLayer(object):
    r"""Spatial transformer with explicit forward and backward passes."""

    def __init__(self, config: Optional[SpatialTransformerConfig] = None, **kwargs) -> None:
        r"""Initialize layer.

        Args:
            config: Layer configuration.
            kwargs: Keyword arguments of :class:`.SpatialTransformerConfig` used
                when no ``config`` is given.

        """
        if config is None:
            config = SpatialTransformerConfig(**kwargs)
        elif kwargs:
            raise TypeError(f"{type(self).__name__}() 'config' and 'kwargs' are mutually exclusive")
        if not isinstance(config, SpatialTransformerConfig):
            raise TypeError(f"{type(self).__name__}() 'config' must be SpatialTransformerConfig")
        self.config = config
        self._input_shape: Optional[Size] = None
        self._theta_shape: Optional[Size] = None
        self._input_size: Optional[Size2d] = None
        self._output_size: Optional[Size2d] = None
        self._grid: Optional[Tensor] = None
        self._saved: Optional[Tuple[Tensor, Tensor, Tensor, Size]] = None

    def setup(
        self, input_shape: Union[Size, Sequence[int]], theta_shape: Union[Size, Sequence[int]]
    ) -> SpatialTransformLayer:
        r"""Validate shapes of layer inputs and allocate sampling grid.

        Args:
            input_shape: Shape ``(N, C, H, W)`` of input feature maps.
            theta_shape: Shape of affine parameters, e.g., ``(N, 6)`` or ``(N, 2, 3)``.

        Raises:
            ValueError: If the affine parameters do not consist of 6 values per sample, or
                the input is not a batch of 2-dimensional multi-channel feature maps.

        """
        input_shape = Size(input_shape)
        theta_shape = Size(theta_shape)
        name = f"{type(self).__name__}.setup()"
        if len(theta_shape) < 2 or theta_shape[1:].numel() != 6:
            raise ValueError(f"{name} theta must have 6 parameters per sample, got {theta_shape}")
        if len(input_shape) != 4:
            raise ValueError(f"{name} input must have shape (N, C, H, W), got {input_shape}")
        if input_shape[0] != theta_shape[0]:
            raise ValueError(f"{name} input and theta must have same batch size")
        self._input_shape = input_shape
        self._theta_shape = theta_shape
        self._input_size = (input_shape[2], input_shape[3])
        self._output_size = self.config.size() or self._input_size
        self._grid = sampling_grid(self._output_size, self.config.normalization)
        self._saved = None
        log.debug(
            "%s: input size %s, output size %s, normalization=%s, padding=%s",
            name,
            self._input_size,
            self._output_size,
            self.config.normalization.value,
            self.config.padding.value,
        )
        return self

    @property
    def output_size(self) -> Optional[Size2d]:
        r"""Spatial size of output feature maps, or ``None`` before :meth:`setup`."""
        return self._output_size

    @property
    def grid(self) -> Optional[Tensor]:
        r"""Copy of sampling grid of shape ``(H_out * W_out, 3)``, or ``None`` before :meth:`setup`."""
        return None if self._grid is None else self._grid.clone()

    @property
    def coords(self) -> Optional[Tensor]:
        r"""Copy of source coordinates of the last forward pass, or ``None`` before :meth:`forward`."""
        return None if self._saved is None else self._saved[1].clone()

    @torch.no_grad()
    def forward(self, input: Tensor, theta: Tensor) -> Tensor:
        r"""Sample input feature maps at affinely transformed sampling grid points.

        Raises:
            RuntimeError: If called before :meth:`setup`.
            ValueError: If the shapes of ``input`` or ``theta`` differ from those declared
                in the last call of :meth:`setup`.

        """
        name = f"{type(self).__name__}.forward()"
        if self._grid is None:
            raise RuntimeError(f"{name} called before setup()")
        if not isinstance(input, Tensor) or input.shape != self._input_shape:
            shape = tuple(input.shape) if isinstance(input, Tensor) else type(input).__name__
            raise ValueError(f"{name} input must have shape {tuple(self._input_shape)}, got {shape}")
        if not isinstance(theta, Tensor) or theta.shape != self._theta_shape:
            shape = tuple(theta.shape) if isinstance(theta, Tensor) else type(theta).__name__
            raise ValueError(f"{name} theta must have shape {tuple(self._theta_shape)}, got {shape}")
        affine_params(theta)
        grid = self._grid.to(dtype=input.dtype, device=input.device)
        coords = transform_grid(grid, theta.to(input.dtype))
        output = bilinear_sample(input, coords, size=self._output_size, padding=self.config.padding)
        if log.isEnabledFor(logging.DEBUG):
            fraction = out_of_range_fraction(coords, self._input_size)
            log.debug("%s source points outside input: %s", name, fraction.tolist())
        self._saved = (input, coords, grid, theta.shape)
        return output

    @torch.no_grad()
    def backward(self, grad_output: Tensor) -> Tuple[Tensor, Tensor]:
        r"""Propagate gradient of output feature maps to input feature maps and affine parameters.

        Args:
            grad_output: Gradient with respect to the output of the preceding :meth:`forward` call.

        Returns:
            grad_input: Gradient with respect to input feature maps.
            grad_theta: Gradient with respect to affine parameters, with the shape of ``theta``.

        """
        if self._saved is None:
            raise RuntimeError(f"{type(self).__name__}.backward() called before forward()")
        input, coords, grid, theta_shape = self._saved
        grad_input, grad_coords = bilinear_sample_backward(
            grad_output, input, coords, size=self._output_size, padding=self.config.padding
        )
        assert grad_input is not None and grad_coords is not None
        grad_theta = affine_params_grad(grad_coords, grid).reshape(theta_shape)
        log_grad("theta", grad_theta, log)
        return grad_input, grad_theta
