from collections.abc import Iterator, Sequence
from dataclasses import dataclass
import os
from typing import Self

from loguru import logger

from .config import MirrorConfigurationConfig
from .logger import describe
from .repo import MirrorRepo
from .typed_path import AbsDir, RelDir


@dataclass(frozen=True)
class MirrorConfiguration:
    name: RelDir
    repos: Sequence[MirrorRepo]

    @classmethod
    def from_config(cls, config: MirrorConfigurationConfig) -> Self:
        return cls(
            config.name, [MirrorRepo.from_config(sub_config) for sub_config in config.mirrors]
        )

    def __iter__(self) -> Iterator[MirrorRepo]:
        return iter(self.repos)

    def folder(self, workspace: AbsDir | RelDir) -> AbsDir | RelDir:
        return workspace / self.name

    def process(self, workspace: AbsDir | RelDir) -> bool:
        """Mirror every repo in order and return whether they all succeeded.

        Raises `OSError` if the configuration folder cannot be created.
        """
        logger.info(f"Processing configuration {os.fspath(self.name)}")
        folder = self.folder(workspace)
        with describe(f"Creating {folder}", level="DEBUG", error_level="DEBUG"):
            folder.make_folder()
        return all([self.mirror(repo, folder) for repo in self])

    def mirror(self, repo: MirrorRepo, folder: AbsDir | RelDir) -> bool:
        outcome = repo.mirror(folder)
        if outcome.succeeded:
            logger.info(outcome.message(os.fspath(repo.name)))
        else:
            logger.error(outcome.message(os.fspath(repo.name)))
        return outcome.succeeded
