"""Render configurations: devices, interface styles and ordered configuration sets."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field


class Device(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def id(self) -> str:
        return self.identifier


DESKTOP = Device(identifier="desktop", width=1280, height=720)
TABLET = Device(identifier="tablet", width=768, height=1024)
MOBILE = Device(identifier="mobile", width=375, height=812)

DEVICE_PRESETS: dict[str, Device] = {d.identifier: d for d in (DESKTOP, TABLET, MOBILE)}
DEFAULT_DEVICE = DESKTOP


class InterfaceStyle(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    DEFAULT = "default"

    @property
    def id(self) -> str:
        return self.value

    @property
    def color_scheme(self) -> str:
        """Browser color scheme emulated for this style."""
        if self is InterfaceStyle.DEFAULT:
            return "no-preference"
        return self.value


class Configuration(BaseModel):
    """A (device, interface style) pair a view is rendered under."""

    model_config = ConfigDict(frozen=True)

    device: Device = Field(default_factory=lambda: DEFAULT_DEVICE)
    interface_style: InterfaceStyle = InterfaceStyle.DEFAULT

    @property
    def id(self) -> str:
        # Used as the filename discriminator
        return f"{self.device.id}_{self.interface_style.id}"

    @property
    def size(self) -> tuple[int, int]:
        return self.device.width, self.device.height


class ConfigurationSet:
    """Ordered, append-only collection of configurations.

    ``add`` never mutates the receiver; it returns a new set with the
    configuration appended. Duplicates are kept (their artifacts simply
    overwrite each other).
    """

    def __init__(self, configs: Iterable[Configuration] = ()):
        self._configs: tuple[Configuration, ...] = tuple(configs)

    @classmethod
    def default(cls) -> "ConfigurationSet":
        return _DEFAULT_SET

    @property
    def configs(self) -> tuple[Configuration, ...]:
        return self._configs

    @property
    def count(self) -> int:
        return len(self._configs)

    def add(self, config: Configuration) -> "ConfigurationSet":
        return ConfigurationSet(self._configs + (config,))

    def __len__(self) -> int:
        return len(self._configs)

    def __iter__(self) -> Iterator[Configuration]:
        return iter(self._configs)

    def __getitem__(self, index: int) -> Configuration:
        return self._configs[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigurationSet):
            return NotImplemented
        return self._configs == other._configs

    def __hash__(self) -> int:
        return hash(self._configs)

    def __repr__(self) -> str:
        return f"ConfigurationSet([{', '.join(c.id for c in self._configs)}])"


_DEFAULT_SET = ConfigurationSet([Configuration()])
