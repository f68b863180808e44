from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from git import Actor, Repo
from git.exc import CommandError, InvalidGitRepositoryError, NoSuchPathError

from thought_history.backend.base import (
    ArchiveFormat,
    RepositoryBackend,
    RepositoryStatus,
)
from thought_history.exceptions import CommandExecutionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _command_error(exc: CommandError) -> CommandExecutionError:
    command = exc.command if isinstance(exc.command, list | tuple) else [exc.command]
    status = exc.status if isinstance(exc.status, int) else None
    stderr = exc.stderr.strip()
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:") :].strip().strip("'")
    return CommandExecutionError([str(c) for c in command], status, stderr)


class GitBackend(RepositoryBackend):
    """Backend that drives a real git repository through GitPython.

    GitPython is blocking, so every call runs in a worker thread. Calls are
    never issued concurrently for one repository; the caller serializes
    them.
    """

    def __init__(self, repo_path: str | Path) -> None:
        super().__init__(repo_path)
        self._repo: Repo | None = None
        self._actor: Actor | None = None

    # ── Plumbing ─────────────────────────────────────────────────────

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            raise CommandExecutionError(
                ["git", "rev-parse", "--git-dir"],
                128,
                f"not a git repository: {self.repo_path}",
            )
        return self._repo

    async def _call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except CommandError as exc:
            raise _command_error(exc) from exc

    def _open(self, initial_branch: str) -> Repo:
        if (self.repo_path / ".git").exists():
            logger.debug("Reusing existing repository at %s", self.repo_path)
            repo = Repo(self.repo_path)
        else:
            repo = Repo.init(self.repo_path, mkdir=True)
            # Works on git versions that predate ``init --initial-branch``.
            repo.git.symbolic_ref("HEAD", f"refs/heads/{initial_branch}")
            logger.info("Initialized git repository at %s", self.repo_path)
        repo.git.update_environment(GIT_TERMINAL_PROMPT="0")
        return repo

    # ── Repository ───────────────────────────────────────────────────

    async def init(self, *, initial_branch: str = "main") -> None:
        if self._repo is not None:
            return
        try:
            self._repo = await self._call(self._open, initial_branch)
        except (InvalidGitRepositoryError, NoSuchPathError) as exc:
            raise CommandExecutionError(
                ["git", "init", str(self.repo_path)], 128, str(exc)
            ) from exc

    async def configure_identity(self, name: str, email: str) -> None:
        def _configure() -> None:
            with self.repo.config_writer() as cw:
                cw.set_value("user", "name", name)
                cw.set_value("user", "email", email)
                cw.set_value("commit", "gpgsign", "false")
                cw.set_value("tag", "gpgsign", "false")

        await self._call(_configure)
        self._actor = Actor(name, email)

    async def has_commits(self) -> bool:
        return await self._call(self.repo.head.is_valid)

    async def status(self) -> RepositoryStatus:
        return RepositoryStatus(
            has_changes=await self._call(self.repo.is_dirty, untracked_files=True),
            current_branch=await self.current_branch(),
            branches=await self.list_branches(),
            tags=await self.list_tags(),
        )

    async def commit_count(self, ref: str = "HEAD") -> int:
        out = await self._call(self.repo.git.rev_list, "--count", ref)
        return int(out.strip())

    # ── Branches ─────────────────────────────────────────────────────

    async def list_branches(self) -> list[str]:
        return await self._call(lambda: sorted(head.name for head in self.repo.heads))

    async def current_branch(self) -> str | None:
        try:
            out = await self._call(
                self.repo.git.symbolic_ref, "--quiet", "--short", "HEAD"
            )
        except CommandExecutionError:
            # Detached HEAD.
            return None
        return out.strip() or None

    async def create_or_switch_branch(self, name: str) -> bool:
        if await self.current_branch() == name:
            return False
        if name in await self.list_branches():
            await self._call(self.repo.git.checkout, name)
            return False
        await self._call(self.repo.git.checkout, "-b", name)
        logger.info("Created branch %s", name)
        return True

    # ── Content ──────────────────────────────────────────────────────

    async def write_and_commit(self, files: dict[str, str], message: str) -> None:
        if not files:
            raise ValueError("write_and_commit needs at least one file")

        def _commit() -> None:
            for rel_path, content in files.items():
                path = self.repo_path / rel_path
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            index = self.repo.index
            index.add(list(files))
            index.commit(message, author=self._actor, committer=self._actor)

        await self._call(_commit)

    async def list_files(self, ref: str, directory: str) -> list[str]:
        out = await self._call(
            self.repo.git.ls_tree,
            "--name-only",
            ref,
            "--",
            f"{directory.rstrip('/')}/",
        )
        return _lines(out)

    async def read_file(self, ref: str, path: str) -> str:
        return await self._call(
            self.repo.git.show, f"{ref}:{path}", strip_newline_in_stdout=False
        )

    # ── Tags ─────────────────────────────────────────────────────────

    async def create_tag(self, name: str, message: str) -> None:
        await self._call(self.repo.create_tag, name, message=message)

    async def list_tags(self) -> list[str]:
        return await self._call(lambda: sorted(tag.name for tag in self.repo.tags))

    # ── Remotes ──────────────────────────────────────────────────────

    async def list_remotes(self) -> list[str]:
        return await self._call(
            lambda: sorted(remote.name for remote in self.repo.remotes)
        )

    async def add_remote(self, name: str, url: str) -> None:
        await self._call(self.repo.create_remote, name, url)

    async def fetch(self, remote: str) -> None:
        await self._call(self.repo.git.fetch, "--quiet", "--tags", remote)

    async def push(
        self,
        remote: str,
        *,
        all_branches: bool = True,
        all_tags: bool = True,
    ) -> None:
        if all_branches:
            await self._call(self.repo.git.push, "--quiet", remote, "--all")
        else:
            await self._call(self.repo.git.push, "--quiet", remote, "HEAD")
        if all_tags:
            await self._call(self.repo.git.push, "--quiet", remote, "--tags")

    async def pull(self, remote: str, *, all_branches: bool = True) -> None:
        await self.fetch(remote)

        prefix = f"{remote}/"
        tracking_refs = await self._call(
            self.repo.git.for_each_ref,
            "--format=%(refname:short)",
            f"refs/remotes/{remote}",
        )
        remote_branches = [
            ref[len(prefix) :]
            for ref in _lines(tracking_refs)
            if ref.startswith(prefix) and ref != f"{prefix}HEAD"
        ]
        local_branches = set(await self.list_branches())
        current = await self.current_branch()

        for branch in remote_branches:
            tracking = f"refs/remotes/{remote}/{branch}"
            if branch == current:
                await self._call(self.repo.git.merge, "--ff-only", "--quiet", tracking)
            elif not all_branches:
                continue
            elif branch in local_branches:
                # Fast-forward only; a diverged branch makes git refuse.
                await self._call(
                    self.repo.git.fetch,
                    "--quiet",
                    ".",
                    f"{tracking}:refs/heads/{branch}",
                )
            else:
                await self._call(self.repo.git.branch, "--quiet", branch, tracking)

    # ── Export ───────────────────────────────────────────────────────

    async def archive(
        self,
        fmt: ArchiveFormat,
        output_path: str | Path,
        ref: str = "HEAD",
    ) -> Path:
        output = Path(output_path).resolve()

        def _write() -> None:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, "wb") as f:
                self.repo.archive(f, ref, format=fmt)

        await self._call(_write)
        return output
