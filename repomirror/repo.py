from dataclasses import dataclass
from typing import Self

from loguru import logger

from .config import MirrorRepoConfig
from .constants import MIRROR_REMOTE
from .githelper import GitHelper, GitResult
from .logger import describe
from .typed_path import AbsDir, RelDir, Remote
from .types import MirrorOutcome


@dataclass
class MirrorStageError(Exception):
    outcome: MirrorOutcome

    def __str__(self) -> str:
        return self.outcome.name


@dataclass(frozen=True)
class MirrorRepo:
    name: RelDir
    source: Remote
    destination: Remote

    @classmethod
    def from_config(cls, config: MirrorRepoConfig) -> Self:
        return cls(config.name, config.source, config.destination)

    def local(self, folder: AbsDir | RelDir) -> AbsDir | RelDir:
        return folder / self.name

    def mirror(self, folder: AbsDir | RelDir) -> MirrorOutcome:
        """Clone or fetch the source, then mirror-push it to the destination.

        Every failing step ends the sequence for this repo only and is reported
        as the matching outcome; nothing is raised to the caller.
        """
        try:
            self._mirror(folder)
        except MirrorStageError as e:
            return e.outcome
        return MirrorOutcome.SUCCESS

    def _mirror(self, folder: AbsDir | RelDir) -> None:
        local = self.local(folder)
        if local.is_folder():
            self.fetch(local)
        else:
            self.clone(folder)
        self.ensure_mirror_remote(local)
        self.push(local)

    @staticmethod
    def _check(result: GitResult, outcome: MirrorOutcome) -> GitResult:
        if not result.success:
            result.log_output()
            raise MirrorStageError(outcome)
        return result

    def clone(self, folder: AbsDir | RelDir) -> None:
        with describe(
            f"Cloning {self.source} into {self.local(folder)}", level="DEBUG", error_level="DEBUG"
        ):
            self._check(
                GitHelper.clone_mirror(folder, self.source.repo, self.name),
                MirrorOutcome.CLONE_FAILED,
            )

    def fetch(self, local: AbsDir | RelDir) -> None:
        with describe(f"Fetching {self.source} into {local}", level="DEBUG", error_level="DEBUG"):
            self._check(GitHelper.fetch(local), MirrorOutcome.FETCH_FAILED)

    def remotes(self, local: AbsDir | RelDir) -> set[str]:
        result = self._check(GitHelper.remotes(local), MirrorOutcome.REMOTES_ERROR)
        if result.output is None:
            raise MirrorStageError(MirrorOutcome.REMOTES_ERROR)
        return set(result.output.split())

    def ensure_mirror_remote(self, local: AbsDir | RelDir) -> None:
        with describe(f"Checking remotes of {local}", level="DEBUG", error_level="DEBUG"):
            if MIRROR_REMOTE in self.remotes(local):
                logger.trace(f"{local} already has a {MIRROR_REMOTE!r} remote.")
                return
            self._check(
                GitHelper.add_remote(local, MIRROR_REMOTE, self.destination.repo),
                MirrorOutcome.REMOTES_ERROR,
            )

    def push(self, local: AbsDir | RelDir) -> None:
        with describe(
            f"Pushing {local} to {self.destination}", level="DEBUG", error_level="DEBUG"
        ):
            self._check(GitHelper.push_mirror(local, MIRROR_REMOTE), MirrorOutcome.PUSH_FAILED)
