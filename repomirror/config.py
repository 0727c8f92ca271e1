from dataclasses import dataclass

from .typed_path import AbsDir, RelDir, Remote


@dataclass(frozen=True, kw_only=True, slots=True)
class MirrorRepoConfig:
    name: RelDir
    source: Remote
    destination: Remote


@dataclass(frozen=True, kw_only=True, slots=True)
class MirrorConfigurationConfig:
    name: RelDir
    mirrors: list[MirrorRepoConfig]


@dataclass(frozen=True, kw_only=True, slots=True)
class MirrorWorkspaceConfig:
    workspace: AbsDir | RelDir
    configurations: list[MirrorConfigurationConfig]
