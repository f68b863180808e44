"""Main facade for the thought_history library."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path, PurePosixPath
from types import TracebackType
from typing import Any

from thought_history.backend.base import RepositoryBackend
from thought_history.batch.buffer import IngestBuffer
from thought_history.batch.policy import RateLimitPolicy
from thought_history.batch.protocol import CommitProtocol, CommitResult
from thought_history.batch.repository import RepositoryState
from thought_history.batch.states import Lifecycle, LifecycleState
from thought_history.config import MAIN_BRANCH, HistoryConfig, build_backend
from thought_history.exceptions import (
    CommandExecutionError,
    InitializationError,
    ValidationError,
)
from thought_history.export.manager import ExportManager
from thought_history.export.types import SyncResult
from thought_history.facade.types import StatusReport
from thought_history.models.batch import Batch
from thought_history.models.documents import (
    COLLABORATORS_DIR,
    collaborator_file_path,
)
from thought_history.models.thought import ThoughtRecord, validate_ref_component
from thought_history.models.utils import utcnow
from thought_history.skeleton import skeleton_files

logger = logging.getLogger(__name__)

INITIAL_COMMIT_MESSAGE = "Initialize thought history repository"


class ThoughtHistory:
    """Git-backed thought history for a single repository path.

    Records handed to :meth:`add_thought` are buffered and flushed as one
    batch whenever the commit interval has elapsed and the daily quota is not
    exhausted. Every flush writes one commit per agent branch, one summary on
    ``main`` and one analysis on ``analysis/patterns``.

    Usage::

        history = ThoughtHistory(HistoryConfig(repo_path="./thought-history"))
        await history.initialize()
        await history.add_thought({
            "agentId": "planner",
            "thought": "Split the migration into two phases",
            "confidence": 0.86,
            "metadata": {"reasoningQuality": 0.8, "thoughtComplexity": 0.5},
        })
        await history.shutdown()

    Only one instance should write to a given repository path.
    """

    def __init__(
        self,
        config: HistoryConfig | None = None,
        backend: RepositoryBackend | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or HistoryConfig()
        self._backend = backend or build_backend(self._config)
        self._clock = clock or utcnow
        self._lifecycle = Lifecycle(f"thought-history:{self._config.repo_path}")
        self._state = RepositoryState(
            buffer=IngestBuffer(),
            policy=RateLimitPolicy(
                self._config.commit_interval,
                self._config.max_commits_per_day,
                last_commit_at=self._clock(),
            ),
        )
        # Serializes everything that touches the working tree.
        self._lock = asyncio.Lock()
        self._protocol = CommitProtocol(
            self._backend, self._config, self._state, self._clock
        )
        self._exports = ExportManager(
            self._backend, self._config, self._state, self._clock
        )
        self._last_commit_at: datetime | None = None

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> ThoughtHistory:
        """Construct an instance from a camelCase or snake_case config dict."""
        return cls(HistoryConfig.model_validate(dict(config)), clock=clock)

    async def __aenter__(self) -> ThoughtHistory:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.state in (LifecycleState.ACTIVE, LifecycleState.DRAINING):
            await self.shutdown()

    # ── Introspection ────────────────────────────────────────────────

    @property
    def config(self) -> HistoryConfig:
        return self._config

    @property
    def backend(self) -> RepositoryBackend:
        return self._backend

    @property
    def state(self) -> LifecycleState:
        return self._lifecycle.state

    @property
    def pending_count(self) -> int:
        return self._state.pending_count

    @property
    def daily_commit_count(self) -> int:
        return self._state.policy.daily_commit_count

    @property
    def known_branches(self) -> set[str]:
        return set(self._state.known_branches)

    @property
    def known_tags(self) -> set[str]:
        return set(self._state.known_tags)

    @property
    def collaborators(self) -> set[str]:
        return set(self._state.collaborators)

    # ── Lifecycle ────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Create the repository skeleton and become ready for records.

        Raises :class:`InitializationError` on any failure; the instance
        then stays uninitialized.
        """
        self._lifecycle.transition(LifecycleState.INITIALIZING)
        logger.info("Initializing thought history at %s", self._config.repo_path)
        try:
            async with self._lock:
                await self._bootstrap()
        except (OSError, CommandExecutionError, ValueError) as exc:
            self._lifecycle.transition(LifecycleState.UNINITIALIZED)
            logger.error("Failed to initialize thought history: %s", exc)
            raise InitializationError(
                f"Could not initialize {self._config.repo_path}: {exc}"
            ) from exc
        self._lifecycle.transition(LifecycleState.ACTIVE)
        logger.info("Thought history initialized")

    async def _bootstrap(self) -> None:
        Path(self._config.repo_path).mkdir(parents=True, exist_ok=True)
        await self._backend.init(initial_branch=MAIN_BRANCH)
        await self._backend.configure_identity(
            self._config.author_name, self._config.author_email
        )

        is_new = not await self._backend.has_commits()
        await self._backend.create_or_switch_branch(MAIN_BRANCH)
        if is_new:
            await self._backend.write_and_commit(
                skeleton_files(self._config), INITIAL_COMMIT_MESSAGE
            )

        if self._config.has_remote:
            await self._setup_remote()

        await self._exports.refresh_known_refs()
        await self._load_collaborators()

    async def _setup_remote(self) -> None:
        name = self._config.remote_name
        url = self._config.remote_url
        assert url is not None
        if name not in await self._backend.list_remotes():
            await self._backend.add_remote(name, url)
        try:
            await self._backend.fetch(name)
        except CommandExecutionError as exc:
            logger.warning("Could not fetch remote %s: %s", name, exc)
            return
        logger.info("Remote %s configured (%s)", name, url)

    async def _load_collaborators(self) -> None:
        for path in await self._backend.list_files(MAIN_BRANCH, COLLABORATORS_DIR):
            if path.endswith(".json"):
                self._state.collaborators.add(PurePosixPath(path).stem)

    async def shutdown(self, *, push: bool = True) -> SyncResult | None:
        """Flush pending records, push if a remote is configured, then close.

        The final flush ignores the commit interval but not the daily quota.
        If it fails the instance stays ``DRAINING`` and ``shutdown`` can be
        called again. Pass ``push=False`` to skip the final push.
        """
        if self.state is LifecycleState.CLOSED:
            return None
        if self.state is not LifecycleState.DRAINING:
            self._lifecycle.transition(LifecycleState.DRAINING)
        logger.info("Shutting down thought history")

        sync: SyncResult | None = None
        async with self._lock:
            if self._state.buffer:
                await self._commit_locked(force=True)
                if self._state.buffer:
                    logger.warning(
                        "Daily commit quota reached; %d thought(s) were not persisted",
                        len(self._state.buffer),
                    )
            if push and self._config.has_remote:
                sync = await self._exports.push()

        self._lifecycle.transition(LifecycleState.CLOSED)
        logger.info("Thought history shutdown complete")
        return sync

    # ── Ingest ───────────────────────────────────────────────────────

    async def add_thought(
        self, record: ThoughtRecord | Mapping[str, Any]
    ) -> ThoughtRecord:
        """Validate and buffer *record*, flushing if the scheduler allows.

        Raises :class:`ValidationError` for malformed records and
        :class:`CommandExecutionError` if a triggered flush fails.
        """
        self._lifecycle.require(LifecycleState.ACTIVE)
        validated = self._state.buffer.add(record)

        if self.should_commit():
            async with self._lock:
                # Another flush may have drained the buffer while we waited.
                if self.should_commit():
                    await self._commit_locked(force=False)
        return validated

    def should_commit(self) -> bool:
        return self._state.policy.should_commit(
            len(self._state.buffer), self._clock()
        )

    async def commit_thoughts(self) -> list[CommitResult]:
        """Flush pending records now, ignoring the commit interval.

        The daily quota still applies; when it is exhausted nothing is
        written and the records stay pending.
        """
        self._lifecycle.require(LifecycleState.ACTIVE, LifecycleState.DRAINING)
        async with self._lock:
            return await self._commit_locked(force=True)

    async def _commit_locked(self, *, force: bool) -> list[CommitResult]:
        results: list[CommitResult] = []
        while self._state.buffer:
            # Only a half-written batch skips the interval on an unforced
            # flush; records that arrived meanwhile wait for the next window.
            resume = force or self._state.inflight is not None
            if not self._state.policy.should_commit(
                len(self._state.buffer), self._clock(), force=resume
            ):
                logger.debug("Commit policy declined flush")
                break
            batch = self._state.inflight or Batch(
                records=self._state.buffer.snapshot(), created_at=self._clock()
            )
            results.append(await self._flush(batch))
        return results

    async def _flush(self, batch: Batch) -> CommitResult:
        self._state.inflight = batch
        try:
            result = await self._protocol.run(batch)
        except Exception:
            logger.error(
                "Failed to commit batch %s (completed steps: %s)",
                batch.batch_id,
                ", ".join(sorted(batch.completed_steps)) or "none",
            )
            raise

        now = self._clock()
        self._state.inflight = None
        self._state.buffer.discard_head(len(batch))
        self._state.policy.record_commit(now)
        self._last_commit_at = now
        logger.info(
            "Committed %d thoughts in batch %s (%d commits)",
            len(batch),
            batch.batch_id,
            result.commit_count,
        )
        return result

    # ── Collaboration ────────────────────────────────────────────────

    async def add_collaborator(self, collaborator_id: str, **info: Any) -> bool:
        """Record a collaborator on ``main``.

        Returns ``False`` without writing anything when collaboration is
        disabled.
        """
        self._lifecycle.require(LifecycleState.ACTIVE)
        if not self._config.enable_collaboration:
            logger.warning(
                "Collaboration is disabled; ignoring collaborator %s",
                collaborator_id,
            )
            return False
        try:
            validate_ref_component(collaborator_id, "collaborator id")
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        document = {
            "id": collaborator_id,
            "addedAt": self._clock().isoformat(),
            **info,
        }
        async with self._lock:
            await self._backend.create_or_switch_branch(MAIN_BRANCH)
            await self._backend.write_and_commit(
                {
                    collaborator_file_path(collaborator_id): json.dumps(
                        document, indent=2, default=str
                    )
                    + "\n"
                },
                f"Add collaborator {collaborator_id}",
            )
        self._state.collaborators.add(collaborator_id)
        logger.info("Added collaborator %s", collaborator_id)
        return True

    # ── Export & sync ────────────────────────────────────────────────

    async def export_repository(self, fmt: str = "json") -> Path:
        """Write a ``json`` snapshot or ``zip`` archive under ``exports/``."""
        self._lifecycle.require(LifecycleState.ACTIVE, LifecycleState.DRAINING)
        async with self._lock:
            return await self._exports.export(fmt)

    async def push_to_remote(self) -> SyncResult:
        self._lifecycle.require(LifecycleState.ACTIVE, LifecycleState.DRAINING)
        async with self._lock:
            return await self._exports.push()

    async def pull_from_remote(self) -> SyncResult:
        self._lifecycle.require(LifecycleState.ACTIVE, LifecycleState.DRAINING)
        async with self._lock:
            return await self._exports.pull()

    async def get_status(self) -> StatusReport:
        self._lifecycle.require(LifecycleState.ACTIVE, LifecycleState.DRAINING)
        async with self._lock:
            status = await self._backend.status()
        return StatusReport(
            has_changes=status.has_changes,
            current_branch=status.current_branch,
            branches=status.branches,
            tags=status.tags,
            pending_thoughts=self._state.pending_count,
            last_commit_at=self._last_commit_at,
            daily_commit_count=self._state.policy.daily_commit_count,
            state=self.state.value,
        )
