r"""Base class of dataclass configurations which can be read from and written to files."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import json
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Type, TypeVar

import dacite
import yaml

from .enum import GridNormalization, PaddingMode
from .typing import PathStr


TDataclassConfig = TypeVar("TDataclassConfig", bound="DataclassConfig")


TYPE_HOOKS: Dict[Type, Callable[[Any], Any]] = {
    GridNormalization: GridNormalization.from_arg,
    PaddingMode: PaddingMode.from_arg,
}


@dataclass
class DataclassConfig(object):
    r"""Base class of configuration dataclasses."""

    @classmethod
    def from_dict(cls: Type[TDataclassConfig], arg: Mapping[str, Any]) -> TDataclassConfig:
        r"""Create configuration from dictionary.

        Enumeration values may be given by their string value or any alias accepted by the
        ``from_arg()`` class method of the respective enumeration.

        Raises:
            ValueError: When the dictionary contains unknown keys or values of the wrong type.

        """
        if not isinstance(arg, Mapping):
            raise TypeError(f"{cls.__name__}.from_dict() 'arg' must be a mapping")
        config = dacite.Config(type_hooks=TYPE_HOOKS, strict=True)
        try:
            return dacite.from_dict(cls, dict(arg), config=config)
        except dacite.DaciteError as error:
            raise ValueError(f"{cls.__name__}.from_dict() {error}") from error

    @classmethod
    def read(cls: Type[TDataclassConfig], path: PathStr) -> TDataclassConfig:
        r"""Read configuration from YAML or JSON file."""
        path = Path(path).absolute()
        text = path.read_text()
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
        if data is None:
            data = {}
        return cls.from_dict(data)

    def asdict(self) -> Dict[str, Any]:
        r"""Convert configuration to dictionary of plain Python values."""
        return asdict(self, dict_factory=_dict_factory)

    def write(self, path: PathStr) -> Path:
        r"""Write configuration to YAML or JSON file, depending on file name suffix."""
        path = Path(path).absolute()
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.asdict()
        if path.suffix.lower() == ".json":
            path.write_text(json.dumps(data, indent=4))
        else:
            path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        return path


def _dict_factory(items) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in items}
