from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from thought_history import HistoryConfig

GIT = shutil.which("git")

# GitPython refuses to import without a git executable.
collect_ignore_glob = [] if GIT else ["test_*.py"]


def pytest_collection_modifyitems(items: list, config) -> None:  # noqa: ANN001
    """Auto-mark every test in the integration directory."""
    marker = pytest.mark.integration
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(marker)


@pytest.fixture()
def git_config(tmp_path: Path) -> HistoryConfig:
    return HistoryConfig(
        repo_path=str(tmp_path / "repo"),
        backend="git",
        commit_interval=30_000,
    )


@pytest.fixture()
def bare_remote(tmp_path: Path) -> Path:
    """An empty bare repository usable as ``remoteUrl``."""
    path = tmp_path / "remote.git"
    git = GIT or "git"
    subprocess.run(
        [git, "init", "--quiet", "--bare", str(path)], check=True, capture_output=True
    )
    # Clones check out main regardless of the local init.defaultBranch.
    subprocess.run(
        [git, "--git-dir", str(path), "symbolic-ref", "HEAD", "refs/heads/main"],
        check=True,
        capture_output=True,
    )
    return path
