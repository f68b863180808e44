"""Configuration for the thought-history CLI.

Reads a TOML file into a :class:`Config` dataclass.
Default location: ``~/.config/thought-history/config.toml``.
Override with the ``THOUGHT_HISTORY_CONFIG`` environment variable.

Example file::

    [repository]
    path = "./thought-history"
    backend = "git"
    branch_prefix = "thoughts"

    [commits]
    interval_ms = 30000
    max_per_day = 100
    branches = true
    tags = true

    [remote]
    url = "git@example.com:team/thoughts.git"
    name = "origin"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from thought_history.config import HistoryConfig

_DEFAULT_CONFIG_DIR = Path("~/.config/thought-history").expanduser()


def _config_path() -> Path:
    env = os.environ.get("THOUGHT_HISTORY_CONFIG")
    if env:
        return Path(env).expanduser()
    return _DEFAULT_CONFIG_DIR / "config.toml"


@dataclass
class Config:
    repo_path: str = "./thought-history"
    backend: str = "git"
    branch_prefix: str = "thoughts"

    commit_interval: int = 30_000
    max_commits_per_day: int = 100
    enable_branches: bool = True
    enable_tags: bool = True
    enable_collaboration: bool = False

    remote_url: str = ""
    remote_name: str = "origin"

    def to_history_config(self) -> HistoryConfig:
        data: dict[str, Any] = {
            "repo_path": self.repo_path,
            "backend": self.backend,
            "branch_prefix": self.branch_prefix,
            "commit_interval": self.commit_interval,
            "max_commits_per_day": self.max_commits_per_day,
            "enable_branches": self.enable_branches,
            "enable_tags": self.enable_tags,
            "enable_collaboration": self.enable_collaboration,
            "remote_url": self.remote_url or None,
            "remote_name": self.remote_name,
        }
        return HistoryConfig.model_validate(data)


def load_config() -> Config:
    """Load config from disk, falling back to defaults + env overrides."""
    path = _config_path()
    cfg = Config()

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)
        repo_section = data.get("repository", {})
        commits_section = data.get("commits", {})
        remote_section = data.get("remote", {})

        cfg.repo_path = repo_section.get("path", cfg.repo_path)
        cfg.backend = repo_section.get("backend", cfg.backend)
        cfg.branch_prefix = repo_section.get("branch_prefix", cfg.branch_prefix)

        cfg.commit_interval = int(
            commits_section.get("interval_ms", cfg.commit_interval)
        )
        cfg.max_commits_per_day = int(
            commits_section.get("max_per_day", cfg.max_commits_per_day)
        )
        cfg.enable_branches = bool(
            commits_section.get("branches", cfg.enable_branches)
        )
        cfg.enable_tags = bool(commits_section.get("tags", cfg.enable_tags))
        cfg.enable_collaboration = bool(
            commits_section.get("collaboration", cfg.enable_collaboration)
        )

        cfg.remote_url = remote_section.get("url", cfg.remote_url)
        cfg.remote_name = remote_section.get("name", cfg.remote_name)

    # Environment variables always take precedence
    cfg.repo_path = os.environ.get("THOUGHT_HISTORY_REPO", cfg.repo_path)
    cfg.remote_url = os.environ.get("THOUGHT_HISTORY_REMOTE", cfg.remote_url)
    cfg.backend = os.environ.get("THOUGHT_HISTORY_BACKEND", cfg.backend)

    return cfg


def config_exists() -> bool:
    return _config_path().exists()


def config_path_display() -> str:
    return str(_config_path())
