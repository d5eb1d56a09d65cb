r"""Functional interface of the spatial transformer building blocks.

The following import statement can be used to access the functional API:

.. code::

    import deepstn.core.functional as U

"""

from .affine import affine_params
from .affine import affine_params_grad
from .affine import identity_params
from .affine import transform_grid

from .grid import grid_size
from .grid import sampling_grid

from .sample import bilinear_sample
from .sample import bilinear_sample_backward
from .sample import out_of_range_fraction

from .tensor import batch_norms
from .tensor import log_grad
from .tensor import log_grad_hook


__all__ = (
    "affine_params",
    "affine_params_grad",
    "bilinear_sample",
    "batch_norms",
    "bilinear_sample_backward",
    "grid_size",
    "identity_params",
    "log_grad",
    "log_grad_hook",
    "out_of_range_fraction",
    "sampling_grid",
    "transform_grid",
)
