from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from thought_history.backend.base import RepositoryBackend

MAIN_BRANCH = "main"
ANALYSIS_BRANCH = "analysis/patterns"
# Documented in the repository README; nothing writes to it yet.
LEARNING_BRANCH = "analysis/learning"

_BRANCH_PREFIX_PATTERN = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_./-]*")


class HistoryConfig(BaseModel):
    """Options recognised by :class:`~thought_history.ThoughtHistory`.

    Accepts both snake_case and the camelCase keys written to
    ``config.json`` (``repoPath``, ``commitInterval``, …).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    repo_path: str = "./thought-history"
    branch_prefix: str = "thoughts"
    commit_interval: int = Field(default=30_000, ge=0, description="milliseconds")
    max_commits_per_day: int = Field(default=100, ge=1)
    enable_branches: bool = True
    enable_tags: bool = True
    enable_collaboration: bool = False
    remote_url: str | None = None

    remote_name: str = "origin"
    backend: str = "git"
    author_name: str = "thought-history"
    author_email: str = "thought-history@localhost"
    remote_retry_attempts: int = Field(default=3, ge=1)

    @field_validator("branch_prefix")
    @classmethod
    def _check_branch_prefix(cls, value: str) -> str:
        value = value.strip("/")
        if not _BRANCH_PREFIX_PATTERN.fullmatch(value) or ".." in value:
            raise ValueError(f"branchPrefix {value!r} is not a valid ref prefix")
        return value

    @property
    def has_remote(self) -> bool:
        return bool(self.remote_url)

    def agent_branch(self, agent_id: str) -> str:
        if not self.enable_branches:
            return MAIN_BRANCH
        return f"{self.branch_prefix}/agent-{agent_id}"

    @property
    def analysis_branch(self) -> str:
        return ANALYSIS_BRANCH if self.enable_branches else MAIN_BRANCH

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class _BackendRegistry:
    """Maps the ``backend`` option to a :class:`RepositoryBackend` class.

    The built-in backends are imported on the first lookup.
    """

    def __init__(self) -> None:
        self._backends: dict[str, type[RepositoryBackend]] = {}
        self._builtins_loaded = False

    def register(self, name: str, backend_cls: type[RepositoryBackend]) -> None:
        self._backends[name] = backend_cls

    def resolve(self, name: str) -> type[RepositoryBackend]:
        if not self._builtins_loaded:
            from thought_history.backend.git import GitBackend
            from thought_history.backend.memory import InMemoryBackend

            self._backends.setdefault("git", GitBackend)
            self._backends.setdefault("memory", InMemoryBackend)
            self._builtins_loaded = True
        try:
            return self._backends[name]
        except KeyError:
            raise ValueError(
                f"Unknown backend provider '{name}'. "
                f"Available: {sorted(self._backends)}"
            ) from None


backend_registry = _BackendRegistry()


def build_backend(config: HistoryConfig) -> RepositoryBackend:
    backend_cls = backend_registry.resolve(config.backend)
    return backend_cls.from_config({"repo_path": config.repo_path})


def parse_config(
    config: dict[str, Any],
) -> tuple[HistoryConfig, RepositoryBackend]:
    """Parse a user config dict and return ``(config, backend)``.

    Expected shape (every key optional)::

        {
            "repoPath": "./thought-history",
            "commitInterval": 30000,
            "maxCommitsPerDay": 100,
            "remoteUrl": "git@example.com:team/thoughts.git",
            "backend": "git",
        }
    """
    parsed = HistoryConfig.model_validate(config)
    return parsed, build_backend(parsed)
