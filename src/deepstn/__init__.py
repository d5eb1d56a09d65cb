r"""Differentiable affine spatial transformer for PyTorch.

The package implements bilinear resampling of 2-D feature maps at affinely transformed sampling
grid points, together with the analytic gradients with respect to the input feature map and the
affine parameters. The functional building blocks are found in ``deepstn.core``, while
``deepstn.spatial`` provides the autograd function and ``torch.nn.Module`` wrappers.

"""

__version__ = "0.1.0"
