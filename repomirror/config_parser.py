from collections.abc import Callable, Collection, Iterator
import contextlib
from dataclasses import dataclass, field
import difflib
import io
import os.path
from typing import Any, ClassVar, Final, NoReturn

from loguru import logger
import yaml
from yaml import MappingNode, Node, ScalarNode, SequenceNode, YAMLError

from .config import MirrorConfigurationConfig, MirrorRepoConfig, MirrorWorkspaceConfig
from .typed_path import AbsDir, AbsFile, RelDir, RelFile, Remote

SCALAR_KINDS: Final[dict[str, str]] = dict(
    str="string", int="integer", float="float", bool="boolean", null="null"
)


def kind_of(node: Node | None) -> str:
    match node:
        case None:
            return "nothing"
        case ScalarNode(tag=tag, value=value):
            kind = SCALAR_KINDS.get(tag.rsplit(":", 1)[-1], "scalar")
            return "empty string" if kind == "string" and value == "" else kind
        case SequenceNode():
            return "sequence"
        case MappingNode():
            return "mapping"
    return "unknown"


def is_string(node: Node) -> bool:
    return kind_of(node) == "string"


def line_of(node: Node) -> int | None:
    return None if node.start_mark is None else node.start_mark.line + 1


@dataclass
class ParserError(YAMLError):
    message: str
    position: str

    def __str__(self) -> str:
        return f"An unexpected error occurred during parsing @ {self.position}: {self.message}"


@dataclass
class Parser:
    """Turn a composed config document into the workspace dataclasses.

    Every error is a `ParserError` that points at the offending node.
    """

    filepath: AbsFile | RelFile
    _active: set[int] = field(init=False, repr=False, compare=False, default_factory=set)
    _seen: dict[str, dict[str, Node]] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    IGNORED_KEYS: ClassVar[frozenset[str]] = frozenset({"auth"})

    def position(self, node: Node | None) -> str:
        position = os.fspath(self.filepath)
        if node is not None and node.start_mark is not None:
            mark = node.start_mark
            position += f":{mark.line + 1}:{mark.column + 1}"
        return position

    def fail(self, message: str, node: Node | None) -> NoReturn:
        raise ParserError(message, self.position(node))

    @contextlib.contextmanager
    def _entering(self, node: Node) -> Iterator[None]:
        # Aliases can make a collection contain itself.
        if id(node) in self._active:
            self.fail("recursive reference detected.", node)
        self._active.add(id(node))
        try:
            yield
        finally:
            self._active.discard(id(node))

    def parse_mapping[T](
        self,
        node: Node | None,
        subparsers: dict[str, Callable[[Node], Any]],
        combine: Callable[..., T],
        *,
        name: str,
        ignored: Collection[str] = (),
    ) -> T:
        if not isinstance(node, MappingNode):
            self.fail(f"expected {name} mapping, got {kind_of(node)}.", node)
        values: dict[str, Any] = {}
        keys: set[str] = set()
        with self._entering(node):
            for key_node, value_node in node.value:
                key = self.parse_key(key_node, [*subparsers, *ignored])
                if key in keys:
                    self.fail(f"duplicate key {key!r} in mapping.", key_node)
                keys.add(key)
                if key in ignored:
                    self.ignore(key, value_node)
                else:
                    values[key] = subparsers[key](value_node)
        for key in subparsers:
            if key not in values:
                self.fail(f"{name} mapping is missing the key {key!r}.", node)
        return combine(**values)

    def parse_sequence[T](self, node: Node, item: Callable[[Node], T], *, names: str) -> list[T]:
        if not isinstance(node, SequenceNode):
            self.fail(f"expected sequence of {names}, got {kind_of(node)}.", node)
        with self._entering(node):
            return [item(child) for child in node.value]

    def parse_key(self, node: Node, options: Collection[str]) -> str:
        if not is_string(node):
            self.fail(f"expected a string as the key, got {kind_of(node)}.", node)
        key: str = node.value
        if key in options:
            return key
        match difflib.get_close_matches(key, possibilities=options, n=1):
            case [suggestion]:
                self.fail(f"invalid key {key!r}, did you mean {suggestion!r}?", node)
            case _:
                self.fail(f"mapping key should be one of {list(options)!r}, got {key!r}.", node)

    def ignore(self, key: str, node: Node) -> None:
        logger.warning(f"{key!r} is not supported yet and will be ignored @ {self.position(node)}.")

    def claim(self, kind: str, resource: RelDir | Remote, node: Node) -> None:
        """Fail if an equivalent `resource` has already been claimed as a `kind`."""
        claimed = self._seen.setdefault(kind, {})
        canonical = resource.canonical
        if canonical in claimed:
            line = line_of(claimed[canonical])
            details = "" if line is None else f"; already used on line {line}"
            self.fail(f"duplicate {kind} {resource}{details}.", node)
        claimed[canonical] = node

    def parse_name(self, node: Node) -> RelDir:
        if not is_string(node):
            self.fail(f"expected name as a string, got {kind_of(node)}.", node)
        name = RelDir(node.value)
        normpath = name.canonical
        if os.path.isabs(normpath):
            problem = "is an absolute path"
        elif normpath == os.pardir or normpath.startswith(os.pardir + os.sep):
            problem = "goes out of its parent directory"
        elif normpath == os.curdir:
            problem = "points to its parent directory"
        else:
            return name
        self.fail(f"the name {node.value!r} {problem} and is therefore not valid.", node)

    def parse_configuration_name(self, node: Node) -> RelDir:
        name = self.parse_name(node)
        self.claim("configuration", name, node)
        return name

    def parse_mirror_name(self, node: Node) -> RelDir:
        name = self.parse_name(node)
        self.claim("mirror", name, node)
        return name

    def parse_remote(self, node: Node) -> Remote:
        if not is_string(node):
            self.fail(f"expected remote as a string, got {kind_of(node)}.", node)
        return Remote(node.value)

    def parse_destination(self, node: Node) -> Remote:
        destination = self.parse_remote(node)
        self.claim("destination", destination, node)
        return destination

    def parse_workspace(self, node: Node) -> AbsDir | RelDir:
        if not is_string(node):
            self.fail(f"expected workspace as a string, got {kind_of(node)}.", node)
        return AbsDir(node.value) if os.path.isabs(node.value) else RelDir(node.value)

    def parse_mirror_repo_config(self, node: Node) -> MirrorRepoConfig:
        def combine(*, name: RelDir, src: Remote, dest: Remote) -> MirrorRepoConfig:
            return MirrorRepoConfig(name=name, source=src, destination=dest)

        return self.parse_mapping(
            node,
            dict(name=self.parse_mirror_name, src=self.parse_remote, dest=self.parse_destination),
            combine,
            name="mirror",
        )

    def parse_configuration_config(self, node: Node) -> MirrorConfigurationConfig:
        # Mirror names only need to be unique within their configuration.
        self._seen.pop("mirror", None)
        return self.parse_mapping(
            node,
            dict(
                name=self.parse_configuration_name,
                mirrors=lambda mirrors: self.parse_sequence(
                    mirrors, self.parse_mirror_repo_config, names="mirrors"
                ),
            ),
            MirrorConfigurationConfig,
            name="configuration",
        )

    def parse_workspace_config(self, node: Node | None) -> MirrorWorkspaceConfig:
        return self.parse_mapping(
            node,
            dict(
                workspace=self.parse_workspace,
                configurations=lambda configurations: self.parse_sequence(
                    configurations, self.parse_configuration_config, names="configurations"
                ),
            ),
            MirrorWorkspaceConfig,
            name="workspace",
            ignored=self.IGNORED_KEYS,
        )

    def parse(self) -> MirrorWorkspaceConfig:
        with open(self.filepath) as f:
            # JSON allows tabs only as whitespace, which the YAML scanner rejects.
            stream = io.StringIO(f.read().replace("\t", " "))
        stream.name = os.fspath(self.filepath)
        document = yaml.compose(stream, Loader=yaml.SafeLoader)
        return self.parse_workspace_config(document)

    @classmethod
    def parse_file(cls, filepath: AbsFile | RelFile) -> MirrorWorkspaceConfig:
        return cls(filepath).parse()
