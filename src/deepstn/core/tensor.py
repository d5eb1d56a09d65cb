r"""Tensor statistics for debugging the gradients of a spatial transformer."""

import logging
from logging import Logger
from typing import Callable, List, Optional

from torch import Tensor


log = logging.getLogger(__name__)


def batch_norms(tensor: Tensor) -> List[float]:
    r"""Euclidean norm of each sample in a batch, e.g., of the gradient of the affine parameters."""
    if tensor.ndim == 0:
        return [abs(float(tensor))]
    return tensor.detach().flatten(1).norm(dim=1).tolist()


def log_grad(name: str, grad: Tensor, logger: Optional[Logger] = None) -> None:
    r"""Log shape and per-sample norm of a gradient tensor at level ``DEBUG``."""
    if logger is None:
        logger = log
    if not logger.isEnabledFor(logging.DEBUG):
        return
    norms = ", ".join(f"{value:.6g}" for value in batch_norms(grad))
    logger.debug("%s.grad: shape=%s, norm=[%s]", name, tuple(grad.shape), norms)


def log_grad_hook(name: str, logger: Optional[Logger] = None) -> Callable[[Tensor], None]:
    r"""Backward hook which logs the per-sample gradient norm of a tensor.

    Example:

    .. code::

        theta = localization_net(input)
        theta.register_hook(log_grad_hook("theta"))

    """

    def hook(grad: Tensor) -> None:
        log_grad(name, grad, logger)

    return hook
