from collections.abc import Iterator, Sequence
from dataclasses import dataclass
import os
from typing import Self

from loguru import logger

from .config import MirrorWorkspaceConfig
from .configuration import MirrorConfiguration
from .logger import describe
from .typed_path import AbsDir, RelDir


@dataclass(frozen=True)
class MirrorWorkspace:
    root: AbsDir | RelDir
    configurations: Sequence[MirrorConfiguration]

    @classmethod
    def from_config(cls, config: MirrorWorkspaceConfig) -> Self:
        return cls(
            config.workspace,
            [MirrorConfiguration.from_config(sub_config) for sub_config in config.configurations],
        )

    def __iter__(self) -> Iterator[MirrorConfiguration]:
        return iter(self.configurations)

    def sync(self) -> bool:
        try:
            with describe(f"Creating workspace {self.root}", level="DEBUG", error_level="DEBUG"):
                self.root.make_folder()
        except OSError as e:
            logger.error(f"Unable to create workspace {self.root}: {e}")
            return False
        return all([self.process(configuration) for configuration in self])

    def process(self, configuration: MirrorConfiguration) -> bool:
        try:
            return configuration.process(self.root)
        except OSError as e:
            name = os.fspath(configuration.name)
            logger.error(f"An error occurred with configuration {name}: {e}")
            return False
