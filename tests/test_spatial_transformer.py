import pytest
import torch
from torch import Tensor

from deepstn.core import GridNormalization, PaddingMode
from deepstn.core import functional as U
from deepstn.spatial import SpatialTransformer, SpatialTransformerConfig
from deepstn.spatial import SpatialTransformLayer, spatial_transform


@pytest.fixture
def generator() -> torch.Generator:
    return torch.Generator("cpu").manual_seed(13579)


@pytest.fixture
def theta() -> Tensor:
    return torch.tensor(
        [[1.0, 0.0, 0.15, 0.0, 1.0, -0.2], [0.9, 0.0, 0.07, 0.0, 1.1, -0.06]],
        dtype=torch.float64,
    )


def test_spatial_transformer_identity() -> None:
    input = torch.arange(1, 17, dtype=torch.float).reshape(1, 1, 4, 4)
    theta = torch.tensor([[1.0, 0.0, 0.0, 0.0, 1.0, 0.0]])
    transformer = SpatialTransformer()
    assert transformer.grid is None
    output = transformer(input, theta)
    assert output.shape == input.shape
    assert torch.equal(output, input)
    assert transformer.grid is not None
    assert transformer.grid.shape == (16, 3)
    assert "grid" not in transformer.state_dict()


def test_spatial_transformer_grid_regeneration(generator: torch.Generator) -> None:
    transformer = SpatialTransformer(normalization="size")
    theta = U.identity_params(2).reshape(2, 6)

    input = torch.rand((2, 3, 4, 4), generator=generator)
    assert torch.equal(transformer(input, theta), input)
    grid = transformer.grid
    assert torch.equal(transformer(input, theta), input)
    assert transformer.grid is grid

    input = torch.rand((2, 3, 4, 8), generator=generator)
    assert torch.equal(transformer(input, theta), input)
    assert transformer.grid is not grid
    assert transformer.grid.shape == (32, 3)
    assert torch.equal(transformer.grid, U.sampling_grid((4, 8), "size"))


def test_spatial_transformer_grid_precision(generator: torch.Generator) -> None:
    input = torch.rand((2, 1, 3, 5), generator=generator, dtype=torch.float64)
    theta = torch.tensor(
        [[0.8, 0.3, 0.13, -0.25, 0.95, 0.05], [0.9, 0.0, 0.07, 0.0, 1.1, -0.05]],
        dtype=torch.float64,
    )
    transformer = SpatialTransformer()
    output = transformer(input, theta)
    assert output.dtype == torch.float64
    assert torch.equal(output, spatial_transform(input, theta))
    assert transformer.grid.dtype == torch.float64
    assert torch.equal(transformer.grid, U.sampling_grid((3, 5), dtype=torch.float64))

    # Grid is regenerated when the data type of the input changes
    output = transformer(input.float(), theta.float())
    assert output.dtype == torch.float
    assert transformer.grid.dtype == torch.float
    assert torch.equal(output, spatial_transform(input.float(), theta.float()))
    output = transformer(input, theta)
    assert transformer.grid.dtype == torch.float64
    assert torch.equal(output, spatial_transform(input, theta))

    # Grid of fixed output size follows the data type of the input
    transformer = SpatialTransformer(size=(3, 5))
    assert transformer.grid.dtype == torch.float
    output = transformer(input, theta)
    assert transformer.grid.dtype == torch.float64
    assert torch.equal(output, spatial_transform(input, theta, size=(3, 5)))


def test_spatial_transformer_output_size(generator: torch.Generator) -> None:
    transformer = SpatialTransformer(size=(2, 3))
    assert transformer.grid is not None
    assert transformer.grid.shape == (6, 3)
    input = torch.rand((2, 3, 4, 4), generator=generator)
    output = transformer(input, U.identity_params(2))
    assert output.shape == (2, 3, 2, 3)
    assert transformer.grid.shape == (6, 3)


def test_spatial_transformer_gradients(generator: torch.Generator, theta: Tensor) -> None:
    input = torch.rand((2, 3, 4, 4), generator=generator, dtype=torch.float64)
    input.requires_grad_(True)
    theta.requires_grad_(True)
    transformer = SpatialTransformer(padding="border")
    output = transformer(input, theta)
    assert output.dtype == torch.float64
    expected = spatial_transform(input, theta, padding="border")
    assert torch.allclose(output, expected)
    output.sum().backward()
    assert input.grad is not None and input.grad.shape == input.shape
    assert theta.grad is not None and theta.grad.shape == theta.shape


def test_spatial_transformer_from_config() -> None:
    config = SpatialTransformerConfig(height=2, width=3, normalization="size", padding="border")
    transformer = SpatialTransformer.from_config(config)
    assert transformer.size == (2, 3)
    assert transformer.normalization is GridNormalization.SIZE
    assert transformer.padding is PaddingMode.BORDER
    assert repr(transformer) == (
        "SpatialTransformer(size=(2, 3), normalization='size', padding='border')"
    )
    transformer = SpatialTransformer.from_config(SpatialTransformerConfig())
    assert transformer.size is None
    assert transformer.normalization is GridNormalization.HEIGHT
    assert transformer.padding is PaddingMode.ZEROS
    with pytest.raises(TypeError):
        SpatialTransformer.from_config({"height": 2, "width": 3})


def test_spatial_transformer_errors() -> None:
    transformer = SpatialTransformer()
    input = torch.rand((2, 1, 4, 4))
    with pytest.raises(ValueError):
        transformer(input, torch.zeros((2, 5)))
    with pytest.raises(ValueError):
        transformer(input, U.identity_params(1))
    with pytest.raises(ValueError):
        transformer(input[0], U.identity_params(2))
    with pytest.raises(ValueError):
        SpatialTransformer(size=(0, 4))


def test_spatial_transform_layer(generator: torch.Generator, theta: Tensor) -> None:
    input = torch.rand((2, 3, 4, 4), generator=generator, dtype=torch.float64)
    layer = SpatialTransformLayer()
    assert layer.grid is None
    assert layer.coords is None
    assert layer.output_size is None
    assert layer.setup(input.shape, theta.shape) is layer
    assert layer.output_size == (4, 4)
    assert torch.equal(layer.grid, U.sampling_grid((4, 4)))
    assert layer.coords is None

    output = layer.forward(input, theta)
    assert output.shape == input.shape
    coords = layer.coords
    assert coords is not None and coords.shape == (2, 16, 2)
    coords.fill_(0)
    assert not layer.coords.eq(0).all()

    grad_output = torch.rand(output.shape, generator=generator, dtype=torch.float64)
    grad_input, grad_theta = layer.backward(grad_output)
    assert grad_input.shape == input.shape
    assert grad_theta.shape == theta.shape

    # Same result as when using PyTorch autograd
    input.requires_grad_(True)
    theta.requires_grad_(True)
    expected = spatial_transform(input, theta)
    assert torch.allclose(output, expected)
    expected.backward(grad_output)
    assert torch.allclose(grad_input, input.grad)
    assert torch.allclose(grad_theta, theta.grad)


def test_spatial_transform_layer_config(generator: torch.Generator) -> None:
    config = SpatialTransformerConfig(height=2, width=2, padding="border")
    layer = SpatialTransformLayer(config)
    input = torch.rand((1, 2, 4, 6), generator=generator)
    theta = U.identity_params(1)
    layer.setup(input.shape, theta.shape)
    assert layer.output_size == (2, 2)
    output = layer.forward(input, theta)
    assert output.shape == (1, 2, 2, 2)
    grad_input, grad_theta = layer.backward(torch.ones_like(output))
    assert grad_input.shape == input.shape
    assert grad_theta.shape == (1, 2, 3)

    layer = SpatialTransformLayer(normalization="size")
    assert layer.config.normalization is GridNormalization.SIZE
    with pytest.raises(TypeError):
        SpatialTransformLayer(config, padding="zeros")


def test_spatial_transform_layer_errors(generator: torch.Generator) -> None:
    input = torch.rand((2, 1, 4, 4), generator=generator)
    theta = U.identity_params(2)
    layer = SpatialTransformLayer()

    with pytest.raises(RuntimeError):
        layer.forward(input, theta)
    with pytest.raises(ValueError):
        layer.setup(input.shape, (2, 4))
    assert layer.grid is None
    with pytest.raises(ValueError):
        layer.setup(input.shape, (3, 6))
    with pytest.raises(ValueError):
        layer.setup((2, 4, 4), (2, 6))

    layer.setup(input.shape, theta.shape)
    with pytest.raises(RuntimeError):
        layer.backward(torch.ones_like(input))
    with pytest.raises(ValueError):
        layer.forward(torch.rand((2, 1, 5, 4)), theta)
    with pytest.raises(ValueError):
        layer.forward(input, U.identity_params(1))

    with pytest.raises(ValueError):
        layer.forward(input[:1], theta[:1])
    with pytest.raises(ValueError):
        layer.forward(torch.rand((2, 3, 4, 4)), theta)
    with pytest.raises(ValueError):
        layer.forward(input, theta.reshape(2, 6))
    with pytest.raises(ValueError):
        layer.forward(input.numpy(), theta)

    layer.forward(input, theta)
    layer.backward(torch.ones_like(input))

    # Setup discards source coordinates of previous forward pass
    layer.setup(input.shape, theta.shape)
    with pytest.raises(RuntimeError):
        layer.backward(torch.ones_like(input))


def test_spatial_transform_layer_grad_output_shape(generator: torch.Generator) -> None:
    input = torch.rand((1, 1, 4, 4), generator=generator)
    theta = U.identity_params(1)
    layer = SpatialTransformLayer(height=2, width=3).setup(input.shape, theta.shape)
    output = layer.forward(input, theta)
    assert output.shape == (1, 1, 2, 3)
    with pytest.raises(ValueError):
        layer.backward(torch.ones((1, 1, 3, 2)))
    with pytest.raises(ValueError):
        layer.backward(torch.ones((2, 1, 2, 3)))
    grad_input, grad_theta = layer.backward(torch.ones((1, 1, 2, 3)))
    assert grad_input.shape == input.shape
    assert grad_theta.shape == theta.shape
