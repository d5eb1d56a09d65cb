from pathlib import Path

import pytest

from deepstn.core import GridNormalization, PaddingMode
from deepstn.spatial import SpatialTransformerConfig


def test_spatial_transformer_config_defaults() -> None:
    config = SpatialTransformerConfig()
    assert config.height is None
    assert config.width is None
    assert config.size() is None
    assert config.normalization is GridNormalization.HEIGHT
    assert config.padding is PaddingMode.ZEROS


def test_spatial_transformer_config_from_dict() -> None:
    config = SpatialTransformerConfig.from_dict(
        {"height": 4, "width": 6, "normalization": "size", "padding": "border"}
    )
    assert config.size() == (4, 6)
    assert config.normalization is GridNormalization.SIZE
    assert config.padding is PaddingMode.BORDER

    config = SpatialTransformerConfig.from_dict({"normalization": "legacy", "padding": "constant"})
    assert config.normalization is GridNormalization.HEIGHT
    assert config.padding is PaddingMode.ZEROS

    config = SpatialTransformerConfig.from_dict({"padding": PaddingMode.BORDER})
    assert config.padding is PaddingMode.BORDER

    with pytest.raises(ValueError):
        SpatialTransformerConfig.from_dict({"size": 4})
    with pytest.raises(ValueError):
        SpatialTransformerConfig.from_dict({"height": "4", "width": 4})
    with pytest.raises(ValueError):
        SpatialTransformerConfig.from_dict({"height": 4})
    with pytest.raises(ValueError):
        SpatialTransformerConfig.from_dict({"height": 4, "width": 0})
    with pytest.raises(ValueError):
        SpatialTransformerConfig.from_dict({"padding": "reflect"})
    with pytest.raises(TypeError):
        SpatialTransformerConfig.from_dict([("height", 4)])


def test_spatial_transformer_config_asdict() -> None:
    config = SpatialTransformerConfig(height=4, width=6, padding="border")
    assert config.asdict() == {
        "height": 4,
        "width": 6,
        "normalization": "height",
        "padding": "border",
    }


@pytest.mark.parametrize("suffix", [".yaml", ".yml", ".json"])
def test_spatial_transformer_config_write_read(tmp_path: Path, suffix: str) -> None:
    config = SpatialTransformerConfig(height=3, width=5, normalization="size", padding="border")
    path = config.write(tmp_path / "config" / f"transformer{suffix}")
    assert path.is_file()
    assert SpatialTransformerConfig.read(path) == config


def test_spatial_transformer_config_read_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("height: 8\nwidth: 4\nnormalization: SIZE\n")
    config = SpatialTransformerConfig.read(path)
    assert config.size() == (8, 4)
    assert config.normalization is GridNormalization.SIZE
    assert config.padding is PaddingMode.ZEROS

    path.write_text("")
    assert SpatialTransformerConfig.read(path) == SpatialTransformerConfig()
