r"""Configuration of spatial transformer modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.config import DataclassConfig
from ..core.enum import GridNormalization, PaddingMode
from ..core.typing import Size2d


@dataclass
class SpatialTransformerConfig(DataclassConfig):
    r"""Configuration of :class:`.SpatialTransformer` and :class:`.SpatialTransformLayer`.

    Attributes:
        height: Height of output feature maps. If ``None``, use height of input.
        width: Width of output feature maps. If ``None``, use width of input.
        normalization: Normalization of sampling grid coordinates.
        padding: Extrapolation mode for points outside the input domain.

    """

    height: Optional[int] = None
    width: Optional[int] = None
    normalization: GridNormalization = GridNormalization.HEIGHT
    padding: PaddingMode = PaddingMode.ZEROS

    def __post_init__(self):
        if (self.height is None) != (self.width is None):
            raise ValueError(
                f"{type(self).__name__}() 'height' and 'width' must both be set or both be None"
            )
        if self.height is not None and (self.height <= 0 or self.width <= 0):
            raise ValueError(f"{type(self).__name__}() 'height' and 'width' must be positive")
        self.normalization = GridNormalization.from_arg(self.normalization)
        self.padding = PaddingMode.from_arg(self.padding)

    def size(self) -> Optional[Size2d]:
        r"""Spatial size of output feature maps, or ``None`` if same as input."""
        if self.height is None:
            return None
        return (self.height, self.width)
