r"""Spatial transformer modules.

The :class:`.SpatialTransformer` is a ``torch.nn.Module`` which can be used within any network,
where the gradients are computed by PyTorch autograd using the analytic backward pass of
:class:`.SpatialTransformFunction`. For host pipelines which invoke forward and backward passes
explicitly, :class:`.SpatialTransformLayer` exposes both passes as plain methods.

"""

from .config import SpatialTransformerConfig

from .function import SpatialTransformFunction
from .function import spatial_transform

from .layer import SpatialTransformLayer

from .transformer import SpatialTransformer


__all__ = (
    "SpatialTransformFunction",
    "SpatialTransformLayer",
    "SpatialTransformer",
    "SpatialTransformerConfig",
    "spatial_transform",
)
