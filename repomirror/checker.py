from dataclasses import dataclass

from git import InvalidGitRepositoryError, NoSuchPathError
from loguru import logger

from .configuration import MirrorConfiguration
from .constants import MIRROR_REMOTE
from .githelper import GitHelper
from .repo import MirrorRepo
from .typed_path import AbsDir, RelDir
from .types import ExitCode
from .workspace import MirrorWorkspace


@dataclass(frozen=True)
class MirrorChecker:
    workspace: MirrorWorkspace

    def check(self) -> ExitCode:
        ready = self.all_ready()
        if ready:
            logger.info("All mirrors are ready!")
        return int(not ready)

    def all_ready(self) -> bool:
        return all([self.configuration_ready(configuration) for configuration in self.workspace])

    def configuration_ready(self, configuration: MirrorConfiguration) -> bool:
        folder = configuration.folder(self.workspace.root)
        return all([self.ready(repo, folder) for repo in configuration])

    def ready(self, repo: MirrorRepo, folder: AbsDir | RelDir) -> bool:
        local = repo.local(folder)
        if not local.exists():
            logger.info(f"{local} has not been cloned yet.")
            return True
        try:
            git_repo = GitHelper.repo(local)
        except (InvalidGitRepositoryError, NoSuchPathError):
            logger.error(f"{local} exists but is not a git repository.")
            return False
        if not git_repo.bare:
            logger.error(f"{local} is not a bare repository.")
            return False
        remotes = {remote.name: remote for remote in git_repo.remotes}
        if MIRROR_REMOTE not in remotes:
            logger.info(f"{local} has no {MIRROR_REMOTE!r} remote yet.")
            return True
        url = remotes[MIRROR_REMOTE].url
        if url != repo.destination.repo:
            logger.warning(
                f"The {MIRROR_REMOTE!r} remote of {local} points to {url!r}, "
                f"but the configuration says {repo.destination}."
            )
            return False
        logger.debug(f"{local} is ready.")
        return True
