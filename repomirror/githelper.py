from collections.abc import Sequence
import contextlib
from dataclasses import dataclass
import os
from subprocess import PIPE, Popen
from typing import ClassVar, Self

from git import Repo as GitRepo
from loguru import logger

from .constants import GIT_EXECUTABLE
from .typed_path import AbsDir, RelDir


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcessResult:
    stdout: bytes
    stderr: bytes
    returncode: int
    args: Sequence[str]

    def log(self, level: str) -> None:
        logger.log(level, f"Running: {self.args}")
        logger.log(level, f"stdout:\n{self.stdout.decode('utf-8', errors='replace')}")
        logger.log(level, f"stderr:\n{self.stderr.decode('utf-8', errors='replace')}")
        logger.log(level, f"returncode = {self.returncode}")

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True, slots=True)
class GitResult:
    success: bool
    output: str | None

    @classmethod
    def from_process(cls, result: ProcessResult) -> Self:
        return cls(result.success, decode(result.stdout if result.success else result.stderr))

    def log_output(self) -> None:
        if self.output is not None:
            logger.error(f"Git output:\n{self.output.rstrip()}")


def decode(data: bytes) -> str | None:
    with contextlib.suppress(UnicodeDecodeError):
        return data.decode("utf-8")
    return None


class GitHelper:
    executable: ClassVar[str] = GIT_EXECUTABLE

    @classmethod
    def repo(cls, local: AbsDir | RelDir) -> GitRepo:
        # Convert to string explicitly to gitpython-developers/GitPython#2085
        return GitRepo(os.fspath(local))

    @classmethod
    def run(cls, local: AbsDir | RelDir, *args: str) -> GitResult:
        try:
            result = cls.run_command(local, *args)
        except OSError as e:
            logger.error(f"Failed to run {cls.executable}: {e}")
            return GitResult(False, None)
        return GitResult.from_process(result)

    @classmethod
    def run_command(cls, local: AbsDir | RelDir, *args: str) -> ProcessResult:
        env = {key: value for key, value in os.environ.items() if not key.startswith("GIT_")}
        process = Popen(
            [cls.executable, "-C", os.fspath(local), *args],
            env=env,
            stdin=PIPE,
            stdout=PIPE,
            stderr=PIPE,
            text=False,
        )
        return cls.wait(process)

    @classmethod
    def wait(cls, process: Popen[bytes]) -> ProcessResult:
        stdout, stderr = process.communicate(b"")
        result = ProcessResult(
            stdout=stdout,
            stderr=stderr,
            returncode=process.returncode,
            args=tuple(process.args),  # type: ignore [arg-type]
        )
        result.log(level="TRACE" if result.success else "DEBUG")
        return result

    @classmethod
    def clone_mirror(cls, folder: AbsDir | RelDir, source: str, name: RelDir) -> GitResult:
        return cls.run(folder, "clone", "--mirror", source, os.fspath(name))

    @classmethod
    def fetch(cls, local: AbsDir | RelDir) -> GitResult:
        return cls.run(local, "fetch")

    @classmethod
    def remotes(cls, local: AbsDir | RelDir) -> GitResult:
        return cls.run(local, "remote")

    @classmethod
    def add_remote(cls, local: AbsDir | RelDir, name: str, url: str) -> GitResult:
        return cls.run(local, "remote", "add", name, url)

    @classmethod
    def push_mirror(cls, local: AbsDir | RelDir, remote: str) -> GitResult:
        return cls.run(local, "push", "--mirror", remote)
