from pathlib import Path
import sys

from loguru import logger
import pytest
from pytest import LogCaptureFixture

from .typed_path import AbsDir


@pytest.fixture
def typed_tmp_path(tmp_path: Path) -> AbsDir:
    return AbsDir(tmp_path)


@pytest.fixture
def workspace_path(typed_tmp_path: AbsDir) -> AbsDir:
    return AbsDir(typed_tmp_path.path / "workspace")


@pytest.fixture(autouse=True)
def log_everything() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="TRACE",
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{file.path}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )


@pytest.fixture
def log_level() -> str:
    return "INFO"


@pytest.fixture
def log_cleanly(caplog: LogCaptureFixture, log_level: str) -> None:
    logger.remove()
    logger.add(caplog.handler, level=log_level, colorize=False, format="{message}")
