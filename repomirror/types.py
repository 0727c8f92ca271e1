import enum

type ExitCode = int


class MirrorOutcome(enum.Enum):
    SUCCESS = enum.auto()
    CLONE_FAILED = enum.auto()
    FETCH_FAILED = enum.auto()
    REMOTES_ERROR = enum.auto()
    PUSH_FAILED = enum.auto()

    @property
    def succeeded(self) -> bool:
        return self is MirrorOutcome.SUCCESS

    def message(self, name: str) -> str:
        match self:
            case MirrorOutcome.SUCCESS:
                return f"{name} mirrored successfully."
            case MirrorOutcome.CLONE_FAILED:
                return f"Failed to clone {name}."
            case MirrorOutcome.FETCH_FAILED:
                return f"Failed to fetch changes for {name}."
            case MirrorOutcome.REMOTES_ERROR:
                return f"Failed to process remotes for {name}."
            case MirrorOutcome.PUSH_FAILED:
                return f"Failed to push {name}."
        raise TypeError()
