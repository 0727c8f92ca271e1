import os
from unittest import mock

from inline_snapshot import snapshot
import pytest
from pytest import LogCaptureFixture

from .config import MirrorConfigurationConfig, MirrorRepoConfig, MirrorWorkspaceConfig
from .githelper import GitHelper, GitResult
from .test_utils import (
    add_commit,
    bare_repo,
    git_calls,
    git_folders,
    normalize_message,
    quick_configuration,
    quick_mirror_repo,
    quick_workspace,
    refs,
    source_repo,
)
from .typed_path import AbsDir, RelDir, Remote
from .workspace import MirrorWorkspace


@pytest.fixture(autouse=True)
def log_cleanly(log_cleanly: None) -> None: ...


def test_workspace_from_config() -> None:
    config = MirrorWorkspaceConfig(
        workspace=RelDir("mirrors"),
        configurations=[
            MirrorConfigurationConfig(
                name=RelDir("teamA"),
                mirrors=[
                    MirrorRepoConfig(
                        name=RelDir("repo1"),
                        source=Remote("https://a/x.git"),
                        destination=Remote("git@b:x.git"),
                    )
                ],
            ),
            MirrorConfigurationConfig(name=RelDir("teamB"), mirrors=[]),
        ],
    )
    assert MirrorWorkspace.from_config(config) == quick_workspace(
        "mirrors",
        [
            quick_configuration(
                "teamA", [quick_mirror_repo("repo1", "https://a/x.git", "git@b:x.git")]
            ),
            quick_configuration("teamB", []),
        ],
    )


def test_sync_first_run_scenario(workspace_path: AbsDir) -> None:
    workspace = quick_workspace(
        workspace_path,
        [
            quick_configuration(
                "teamA", [quick_mirror_repo("repo1", "https://a/x.git", "git@b:x.git")]
            )
        ],
    )

    def run(local: AbsDir, *args: str) -> GitResult:
        return GitResult(True, "" if args == ("remote",) else "done\n")

    with mock.patch.object(GitHelper, "run", side_effect=run) as git_run:
        assert workspace.sync()

    assert workspace_path.is_folder()
    assert (workspace_path / RelDir("teamA")).is_folder()
    assert git_calls(git_run) == [
        ("clone", "--mirror", "https://a/x.git", "repo1"),
        ("remote",),
        ("remote", "add", "mirror", "git@b:x.git"),
        ("push", "--mirror", "mirror"),
    ]
    team = os.fspath(workspace_path / RelDir("teamA"))
    repo = os.fspath(workspace_path / RelDir("teamA/repo1"))
    assert git_folders(git_run) == [team, repo, repo, repo]


def test_sync_push_failure_scenario(workspace_path: AbsDir, caplog: LogCaptureFixture) -> None:
    workspace = quick_workspace(
        workspace_path,
        [
            quick_configuration(
                "teamA", [quick_mirror_repo("repo1", "https://a/x.git", "git@b:x.git")]
            )
        ],
    )

    def run(local: AbsDir, *args: str) -> GitResult:
        if args[0] == "push":
            return GitResult(False, "fatal: could not read from remote repository.\n")
        return GitResult(True, "")

    with mock.patch.object(GitHelper, "run", side_effect=run):
        assert not workspace.sync()
    assert caplog.text.strip().splitlines() == snapshot(
        [
            "Processing configuration teamA",
            "Git output:",
            "fatal: could not read from remote repository.",
            "Failed to push repo1.",
        ]
    )


@pytest.fixture
def two_configurations(typed_tmp_path: AbsDir, workspace_path: AbsDir) -> MirrorWorkspace:
    sources = {
        name: source_repo(typed_tmp_path / RelDir(f"sources/{name}"), dict(file=name))
        for name in ("x", "y", "z")
    }
    destinations = {
        name: bare_repo(typed_tmp_path / RelDir(f"destinations/{name}.git"))
        for name in ("x", "z")
    }
    return quick_workspace(
        workspace_path,
        [
            quick_configuration(
                "teamA",
                [
                    quick_mirror_repo("x", sources["x"], destinations["x"]),
                    # This destination does not exist, so the push fails.
                    quick_mirror_repo("y", sources["y"], typed_tmp_path / RelDir("missing/y.git")),
                ],
            ),
            quick_configuration("teamB", [quick_mirror_repo("z", sources["z"], destinations["z"])]),
        ],
    )


def test_sync_isolates_failures(
    two_configurations: MirrorWorkspace, typed_tmp_path: AbsDir, caplog: LogCaptureFixture
) -> None:
    assert not two_configurations.sync()
    for name in ("x", "z"):
        assert refs(typed_tmp_path / RelDir(f"sources/{name}")) == refs(
            typed_tmp_path / RelDir(f"destinations/{name}.git")
        )
    summary = [
        line
        for line in caplog.text.splitlines()
        if line.startswith(("Processing", "Failed")) or line.endswith("mirrored successfully.")
    ]
    assert summary == snapshot(
        [
            "Processing configuration teamA",
            "x mirrored successfully.",
            "Failed to push y.",
            "Processing configuration teamB",
            "z mirrored successfully.",
        ]
    )


def test_sync_is_idempotent(two_configurations: MirrorWorkspace, typed_tmp_path: AbsDir) -> None:
    assert not two_configurations.sync()
    add_commit(typed_tmp_path / RelDir("sources/x"), dict(file="x2"))
    with mock.patch.object(GitHelper, "run", wraps=GitHelper.run) as run:
        assert not two_configurations.sync()
    calls = git_calls(run)
    assert [call for call in calls if call[0] == "clone"] == []
    assert [call for call in calls if call[:2] == ("remote", "add")] == []
    assert calls.count(("fetch",)) == 3
    assert refs(typed_tmp_path / RelDir("sources/x")) == refs(
        typed_tmp_path / RelDir("destinations/x.git")
    )


def test_sync_succeeds_once_destination_exists(
    two_configurations: MirrorWorkspace, typed_tmp_path: AbsDir
) -> None:
    assert not two_configurations.sync()
    bare_repo(typed_tmp_path / RelDir("missing/y.git"))
    assert two_configurations.sync()
    assert refs(typed_tmp_path / RelDir("sources/y")) == refs(
        typed_tmp_path / RelDir("missing/y.git")
    )


def test_sync_workspace_cannot_be_created(
    typed_tmp_path: AbsDir, caplog: LogCaptureFixture
) -> None:
    blocker = typed_tmp_path / RelDir("file")
    blocker.path.touch()
    workspace = quick_workspace(
        blocker / RelDir("workspace"),
        [quick_configuration("teamA", [quick_mirror_repo("repo1", "https://a/x.git", "git@b:x.git")])],
    )
    with mock.patch.object(GitHelper, "run", wraps=GitHelper.run) as run:
        assert not workspace.sync()
    assert git_calls(run) == []
    assert normalize_message(caplog.text, paths=[typed_tmp_path]).startswith(
        "Unable to create workspace 'TMP/file/workspace': "
    )
    assert "Processing" not in caplog.text


def test_sync_configuration_folder_error_continues(
    workspace_path: AbsDir, caplog: LogCaptureFixture
) -> None:
    workspace_path.make_folder()
    (workspace_path.path / "teamA").touch()
    workspace = quick_workspace(
        workspace_path, [quick_configuration("teamA", []), quick_configuration("teamB", [])]
    )
    assert not workspace.sync()
    assert (workspace_path / RelDir("teamB")).is_folder()
    lines = caplog.text.strip().splitlines()
    assert lines[0] == "Processing configuration teamA"
    assert lines[1].startswith("An error occurred with configuration teamA: ")
    assert lines[2] == "Processing configuration teamB"


def test_sync_relative_workspace(
    typed_tmp_path: AbsDir, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(typed_tmp_path)
    workspace = quick_workspace("relative/workspace", [quick_configuration("teamA", [])])
    assert workspace.sync()
    assert (typed_tmp_path / RelDir("relative/workspace/teamA")).is_folder()


def test_sync_empty_workspace(workspace_path: AbsDir) -> None:
    assert quick_workspace(workspace_path, []).sync()
    assert workspace_path.is_folder()
