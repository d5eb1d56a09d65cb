r"""Common types and functions that operate on tensors representing feature maps and transforms.

This core library defines the state-less functions which realize the spatial transformer, i.e.,
the generation of the static sampling grid, the application of affine transformations to the
grid points, bilinear resampling of feature maps, and the analytic gradient of the latter.
Object-oriented APIs in ``deepstn.spatial`` use this functional API to realize their functionality.

The following import statement can be used to access the functional API:

.. code::

    import deepstn.core.functional as U

"""

from .config import DataclassConfig

from .enum import GridNormalization
from .enum import PaddingMode

from .logging import LOG_FORMAT
from .logging import LogLevel
from .logging import configure_logging

from .typing import Device
from .typing import DType
from .typing import PathStr
from .typing import Size2d


__all__ = (
    "DataclassConfig",
    "Device",
    "DType",
    "GridNormalization",
    "LOG_FORMAT",
    "LogLevel",
    "PaddingMode",
    "PathStr",
    "Size2d",
    "configure_logging",
)
