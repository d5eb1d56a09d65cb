r"""Definition of common enumerations."""

from __future__ import annotations

from enum import Enum
from typing import Union


class GridNormalization(Enum):
    r"""Enumeration of sampling grid coordinate normalization modes.

    Both modes map row indices ``r`` of an output of size ``(H, W)`` to ``r / H * 2 - 1``.
    They differ in the denominator used for column indices ``c``:

    - ``HEIGHT``: ``c / H * 2 - 1``, i.e., both axes are scaled by the output height.
    - ``SIZE``: ``c / W * 2 - 1``, i.e., each axis is scaled by its own extent.

    For square outputs, both modes produce the same grid.

    """

    HEIGHT = "height"
    SIZE = "size"

    @classmethod
    def from_arg(cls, arg: Union[GridNormalization, str, None]) -> GridNormalization:
        r"""Create enumeration value from function argument."""
        if isinstance(arg, str):
            arg = arg.lower()
        if arg is None or arg in ("default", "legacy"):
            return cls.HEIGHT
        if arg in ("extent", "per_axis"):
            return cls.SIZE
        return cls(arg)

    def denominators(self, height: int, width: int) -> tuple:
        r"""Denominators used to normalize row and column indices, respectively."""
        if self is GridNormalization.SIZE:
            return height, width
        return height, height


class PaddingMode(Enum):
    r"""Enumeration of image extrapolation modes."""

    BORDER = "border"
    ZEROS = "zeros"

    @classmethod
    def from_arg(cls, arg: Union[PaddingMode, str, None]) -> PaddingMode:
        r"""Create enumeration value from function argument."""
        if isinstance(arg, str):
            arg = arg.lower()
        if arg is None or arg in ("default", "constant", "zero"):
            return cls.ZEROS
        if arg in ("replicate", "clamp"):
            return cls.BORDER
        return cls(arg)
