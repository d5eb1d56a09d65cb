r"""Type annotations for torch functions."""

from pathlib import Path
from typing import Tuple, Union

import torch


Device = torch.device
DType = torch.dtype
Size2d = Tuple[int, int]  # Order of spatial dimensions: (H, W)

PathStr = Union[Path, str]
