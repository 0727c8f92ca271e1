from collections.abc import Callable
from dataclasses import KW_ONLY, dataclass
import functools
import inspect
import sys
from types import TracebackType
from typing import Final

from loguru import logger

from .constants import DONE_SUFFIX, FAILURE_SUFFIX, LOADING_SUFFIX

# From quietest to most verbose; INFO is the default.
LEVELS: Final[tuple[str, ...]] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "TRACE")
SILENT: Final[int] = 100
EVERYTHING: Final[int] = 0


def _caller_depth() -> int:
    """Return the depth of the first frame outside this file, relative to the logging call."""
    for depth, frameinfo in enumerate(inspect.stack(), start=-1):
        if frameinfo.filename != __file__:
            return depth
    return 0


@dataclass(frozen=True, slots=True)
class describe:  # noqa: N801
    """Log when a step starts and how it ends.

    Usable as a context manager or as a decorator:

        with describe("Cloning 'repo1'", level="DEBUG"):
            ...
    """

    message: str
    _: KW_ONLY
    level: str = "TRACE"
    error_level: str = "ERROR"

    def _log(self, level: str, suffix: str) -> None:
        logger.opt(depth=_caller_depth()).log(level, f"{self.message} {suffix}")

    def __enter__(self) -> None:
        self._log(self.level, LOADING_SUFFIX)

    def __exit__(
        self,
        type_: type[BaseException] | None,
        value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if type_ is None:
            self._log(self.level, DONE_SUFFIX)
        else:
            self._log(self.error_level, FAILURE_SUFFIX)

    def __call__[**P, R](self, fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def described(*args: P.args, **kwargs: P.kwargs) -> R:
            with self:
                return fn(*args, **kwargs)

        return described


def log_level_name(quiet: int, verbose: int) -> str | int:
    index = LEVELS.index("INFO") + verbose - quiet
    if index < 0:
        return SILENT
    if index >= len(LEVELS):
        return EVERYTHING
    return LEVELS[index]


def setup_logger(quiet: int, verbose: int) -> None:
    logger.remove()
    logger.add(sys.stdout, level=log_level_name(quiet, verbose), format="<level>{message}</level>")
