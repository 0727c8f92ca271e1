from __future__ import annotations

from dataclasses import dataclass
import os
import os.path
from pathlib import Path
from typing import overload


@dataclass(frozen=True, slots=True)
class TypedPath:
    """A filesystem path that knows whether it is a file or a folder, and relative or absolute."""

    path: Path

    def __init__(self, path: str | os.PathLike[str]) -> None:
        if type(self) is TypedPath:
            raise TypeError("TypedPath cannot be used directly; pick a concrete path type.")
        object.__setattr__(self, "path", Path(path))

    def exists(self) -> bool:
        return self.path.exists()

    def is_folder(self) -> bool:
        return self.path.is_dir()

    def make_folder(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)

    @property
    def canonical(self) -> str:
        # Lexical only: resolving against the filesystem would follow symlinks.
        return os.path.normpath(self)

    def __fspath__(self) -> str:
        return os.fspath(self.path)

    def __str__(self) -> str:
        return repr(os.fspath(self.path))


def _join[F: TypedPath, D: TypedPath](
    folder: TypedPath, other: TypedPath, file_type: type[F], folder_type: type[D]
) -> F | D:
    if isinstance(other, RelFile):
        return file_type(folder.path / other.path)
    if isinstance(other, RelDir):
        return folder_type(folder.path / other.path)
    raise TypeError(f"cannot join {type(other).__name__} onto {type(folder).__name__}.")


@dataclass(frozen=True, slots=True, init=False)
class RelFile(TypedPath): ...


@dataclass(frozen=True, slots=True, init=False)
class AbsFile(TypedPath): ...


@dataclass(frozen=True, slots=True, init=False)
class RelDir(TypedPath):
    @overload
    def __truediv__(self, other: RelFile) -> RelFile: ...
    @overload
    def __truediv__(self, other: RelDir) -> RelDir: ...
    def __truediv__(self, other: TypedPath) -> RelFile | RelDir:
        return _join(self, other, RelFile, RelDir)


@dataclass(frozen=True, slots=True, init=False)
class AbsDir(TypedPath):
    @overload
    def __truediv__(self, other: RelFile) -> AbsFile: ...
    @overload
    def __truediv__(self, other: RelDir) -> AbsDir: ...
    def __truediv__(self, other: TypedPath) -> AbsFile | AbsDir:
        return _join(self, other, AbsFile, AbsDir)


@dataclass(frozen=True)
class Remote:
    """A git remote: a URL or a local path, exactly as written in the config."""

    repo: str

    def __fspath__(self) -> str:
        return self.repo

    def __str__(self) -> str:
        return repr(self.repo)

    @property
    def canonical(self) -> str:
        if os.path.exists(self):
            # Local remotes can be spelled many ways (eg "." or "./x/").
            return os.path.realpath(self)
        return self.repo.rstrip("/")
