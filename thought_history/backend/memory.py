from __future__ import annotations

import io
import tarfile
import uuid
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from thought_history.backend.base import (
    ArchiveFormat,
    RepositoryBackend,
    RepositoryStatus,
)
from thought_history.exceptions import CommandExecutionError


@dataclass(frozen=True)
class MemoryCommit:
    message: str
    tree: dict[str, str]
    parent: MemoryCommit | None = None
    sha: str = field(default_factory=lambda: uuid.uuid4().hex)

    def ancestors(self) -> list[MemoryCommit]:
        """This commit followed by its parents, newest first."""
        chain: list[MemoryCommit] = []
        commit: MemoryCommit | None = self
        while commit is not None:
            chain.append(commit)
            commit = commit.parent
        return chain

    def descends_from(self, other: MemoryCommit) -> bool:
        return any(c.sha == other.sha for c in self.ancestors())


@dataclass(frozen=True)
class MemoryTag:
    commit: MemoryCommit
    message: str


class InMemoryBackend(RepositoryBackend):
    """Backend backed by plain Python dicts.

    Mirrors the branch/commit/tag semantics of :class:`GitBackend` closely
    enough for the commit protocol, without touching the filesystem (except
    for :meth:`archive`). Remotes are other ``InMemoryBackend`` instances
    looked up by URL in *network*.
    """

    def __init__(
        self,
        repo_path: str | Path = "memory",
        *,
        network: dict[str, InMemoryBackend] | None = None,
    ) -> None:
        super().__init__(repo_path)
        self._network = network if network is not None else {}
        self._initialized = False
        self._head = "main"
        self._branches: dict[str, MemoryCommit] = {}
        self._tags: dict[str, MemoryTag] = {}
        self._remotes: dict[str, InMemoryBackend] = {}
        self.identity: tuple[str, str] | None = None

    @classmethod
    def from_config(cls, config: dict) -> InMemoryBackend:
        return cls(config.get("repo_path", "memory"))

    # ── Helpers ──────────────────────────────────────────────────────

    def _fail(self, *command: str, stderr: str) -> CommandExecutionError:
        return CommandExecutionError(["memory", *command], 128, stderr)

    def _require_init(self, *command: str) -> None:
        if not self._initialized:
            raise self._fail(*command, stderr="not a repository")

    def _resolve(self, ref: str) -> MemoryCommit:
        if ref == "HEAD" and self._head in self._branches:
            return self._branches[self._head]
        if ref in self._branches:
            return self._branches[ref]
        if ref in self._tags:
            return self._tags[ref].commit
        raise self._fail("rev-parse", ref, stderr=f"unknown revision {ref!r}")

    def _remote(self, name: str) -> InMemoryBackend:
        remote = self._remotes.get(name)
        if remote is None:
            raise self._fail("remote", name, stderr=f"no such remote {name!r}")
        return remote

    @property
    def commits(self) -> list[MemoryCommit]:
        """Every commit reachable from any branch, deduplicated."""
        seen: dict[str, MemoryCommit] = {}
        for head in self._branches.values():
            for commit in head.ancestors():
                seen.setdefault(commit.sha, commit)
        return list(seen.values())

    def tag_message(self, name: str) -> str:
        return self._tags[name].message

    # ── Repository ───────────────────────────────────────────────────

    async def init(self, *, initial_branch: str = "main") -> None:
        if self._initialized:
            return
        self._initialized = True
        self._head = initial_branch

    async def configure_identity(self, name: str, email: str) -> None:
        self._require_init("config")
        self.identity = (name, email)

    async def has_commits(self) -> bool:
        return self._head in self._branches

    async def status(self) -> RepositoryStatus:
        self._require_init("status")
        return RepositoryStatus(
            has_changes=False,
            current_branch=self._head,
            branches=await self.list_branches(),
            tags=await self.list_tags(),
        )

    async def commit_count(self, ref: str = "HEAD") -> int:
        return len(self._resolve(ref).ancestors())

    # ── Branches ─────────────────────────────────────────────────────

    async def list_branches(self) -> list[str]:
        return sorted(self._branches)

    async def current_branch(self) -> str | None:
        return self._head if self._initialized else None

    async def create_or_switch_branch(self, name: str) -> bool:
        self._require_init("checkout", name)
        if name == self._head or name in self._branches:
            self._head = name
            return False
        head = self._branches.get(self._head)
        if head is not None:
            self._branches[name] = head
        self._head = name
        return True

    # ── Content ──────────────────────────────────────────────────────

    async def write_and_commit(self, files: dict[str, str], message: str) -> None:
        self._require_init("commit")
        if not files:
            raise ValueError("write_and_commit needs at least one file")
        parent = self._branches.get(self._head)
        tree = dict(parent.tree) if parent is not None else {}
        tree.update(files)
        self._branches[self._head] = MemoryCommit(
            message=message, tree=tree, parent=parent
        )

    async def list_files(self, ref: str, directory: str) -> list[str]:
        prefix = directory.rstrip("/") + "/"
        tree = self._resolve(ref).tree
        return sorted(
            path
            for path in tree
            if path.startswith(prefix) and "/" not in path[len(prefix) :]
        )

    async def read_file(self, ref: str, path: str) -> str:
        tree = self._resolve(ref).tree
        if path not in tree:
            raise self._fail("show", f"{ref}:{path}", stderr=f"path {path!r} missing")
        return tree[path]

    # ── Tags ─────────────────────────────────────────────────────────

    async def create_tag(self, name: str, message: str) -> None:
        if name in self._tags:
            raise self._fail("tag", name, stderr=f"tag {name!r} already exists")
        self._tags[name] = MemoryTag(commit=self._resolve("HEAD"), message=message)

    async def list_tags(self) -> list[str]:
        return sorted(self._tags)

    # ── Remotes ──────────────────────────────────────────────────────

    async def list_remotes(self) -> list[str]:
        return sorted(self._remotes)

    async def add_remote(self, name: str, url: str) -> None:
        if name in self._remotes:
            raise self._fail("remote", "add", name, stderr="remote already exists")
        if url not in self._network:
            raise self._fail("remote", "add", name, stderr=f"unknown url {url!r}")
        self._remotes[name] = self._network[url]

    async def fetch(self, remote: str) -> None:
        self._remote(remote)

    async def push(
        self,
        remote: str,
        *,
        all_branches: bool = True,
        all_tags: bool = True,
    ) -> None:
        target = self._remote(remote)
        target._initialized = True
        names = list(self._branches) if all_branches else [self._head]
        for name in names:
            local = self._branches[name]
            existing = target._branches.get(name)
            if existing is not None and not local.descends_from(existing):
                raise self._fail(
                    "push", remote, name, stderr=f"{name} rejected (non-fast-forward)"
                )
            target._branches[name] = local
        if all_tags:
            for name, tag in self._tags.items():
                target._tags.setdefault(name, tag)

    async def pull(self, remote: str, *, all_branches: bool = True) -> None:
        source = self._remote(remote)
        for name, theirs in source._branches.items():
            if name != self._head and not all_branches:
                continue
            ours = self._branches.get(name)
            if ours is None or theirs.descends_from(ours):
                self._branches[name] = theirs
            elif not ours.descends_from(theirs):
                raise self._fail(
                    "pull", remote, name, stderr="not possible to fast-forward"
                )
        for name, tag in source._tags.items():
            self._tags.setdefault(name, tag)

    # ── Export ───────────────────────────────────────────────────────

    async def archive(
        self,
        fmt: ArchiveFormat,
        output_path: str | Path,
        ref: str = "HEAD",
    ) -> Path:
        tree = self._resolve(ref).tree
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        if fmt == "zip":
            with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as zf:
                for path, content in sorted(tree.items()):
                    zf.writestr(path, content)
            return output
        mode = "w" if fmt == "tar" else "w:gz"
        with tarfile.open(output, mode) as tf:
            for path, content in sorted(tree.items()):
                data = content.encode("utf-8")
                info = tarfile.TarInfo(name=path)
                info.size = len(data)
                tf.addfile(info, io.BytesIO(data))
        return output
