from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Self

ArchiveFormat = Literal["zip", "tar", "tar.gz", "tgz"]


@dataclass(frozen=True)
class RepositoryStatus:
    """Working-tree status as reported by the backend."""

    has_changes: bool
    current_branch: str | None
    branches: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


class RepositoryBackend(ABC):
    """Abstract version-control backend used as the storage medium.

    Every method is a suspension point: callers must not start another
    backend operation on the same repository until it returns. The working
    tree (current branch, staged files) is shared mutable state.

    Paths passed to and returned from the backend are POSIX paths relative
    to the repository root.
    """

    def __init__(self, repo_path: str | Path) -> None:
        self.repo_path = Path(repo_path)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> Self:
        return cls(config["repo_path"])

    # ── Repository ───────────────────────────────────────────────────

    @abstractmethod
    async def init(self, *, initial_branch: str = "main") -> None:
        """Create the repository if needed (idempotent)."""
        ...

    @abstractmethod
    async def configure_identity(self, name: str, email: str) -> None:
        """Set the author identity used for commits and annotated tags."""
        ...

    @abstractmethod
    async def has_commits(self) -> bool:
        """Return ``True`` once the current branch has at least one commit."""
        ...

    @abstractmethod
    async def status(self) -> RepositoryStatus:
        ...

    @abstractmethod
    async def commit_count(self, ref: str = "HEAD") -> int:
        """Number of commits reachable from *ref*."""
        ...

    # ── Branches ─────────────────────────────────────────────────────

    @abstractmethod
    async def list_branches(self) -> list[str]:
        ...

    @abstractmethod
    async def current_branch(self) -> str | None:
        ...

    @abstractmethod
    async def create_or_switch_branch(self, name: str) -> bool:
        """Switch to *name*, creating it from the current HEAD if absent.

        Returns ``True`` if the branch was created.
        """
        ...

    # ── Content ──────────────────────────────────────────────────────

    @abstractmethod
    async def write_and_commit(
        self,
        files: dict[str, str],
        message: str,
    ) -> None:
        """Write *files* (path → text) to the working tree, stage and commit."""
        ...

    @abstractmethod
    async def list_files(self, ref: str, directory: str) -> list[str]:
        """List file paths under *directory* as of *ref* (non-recursive)."""
        ...

    @abstractmethod
    async def read_file(self, ref: str, path: str) -> str:
        """Read *path* as of *ref*."""
        ...

    # ── Tags ─────────────────────────────────────────────────────────

    @abstractmethod
    async def create_tag(self, name: str, message: str) -> None:
        """Create an annotated tag on the current HEAD."""
        ...

    @abstractmethod
    async def list_tags(self) -> list[str]:
        ...

    # ── Remotes ──────────────────────────────────────────────────────

    @abstractmethod
    async def list_remotes(self) -> list[str]:
        ...

    @abstractmethod
    async def add_remote(self, name: str, url: str) -> None:
        ...

    @abstractmethod
    async def fetch(self, remote: str) -> None:
        ...

    @abstractmethod
    async def push(
        self,
        remote: str,
        *,
        all_branches: bool = True,
        all_tags: bool = True,
    ) -> None:
        ...

    @abstractmethod
    async def pull(self, remote: str, *, all_branches: bool = True) -> None:
        """Fetch *remote* and fast-forward local branches that track it."""
        ...

    # ── Export ───────────────────────────────────────────────────────

    @abstractmethod
    async def archive(
        self,
        fmt: ArchiveFormat,
        output_path: str | Path,
        ref: str = "HEAD",
    ) -> Path:
        """Write the tree at *ref* to *output_path* and return the path."""
        ...
