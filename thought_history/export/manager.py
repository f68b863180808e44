from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from thought_history.backend.base import RepositoryBackend
from thought_history.batch.repository import RepositoryState, TagInfo
from thought_history.config import HistoryConfig
from thought_history.exceptions import (
    CommandExecutionError,
    ExportError,
    RemoteSyncError,
)
from thought_history.export.snapshot import SnapshotBuilder
from thought_history.export.types import SyncResult
from thought_history.models.documents import EXPORTS_DIR

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "zip")


def export_filename(now: datetime, fmt: str) -> str:
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-%f")
    return f"thought-history-{stamp}.{fmt}"


class ExportManager:
    """Snapshot export plus best-effort remote sync."""

    def __init__(
        self,
        backend: RepositoryBackend,
        config: HistoryConfig,
        state: RepositoryState,
        clock: Callable[[], datetime],
    ) -> None:
        self._backend = backend
        self._config = config
        self._state = state
        self._clock = clock

    @property
    def exports_dir(self) -> Path:
        return Path(self._config.repo_path) / EXPORTS_DIR

    # ── Export ───────────────────────────────────────────────────────

    async def export(self, fmt: str = "json") -> Path:
        if fmt not in EXPORT_FORMATS:
            raise ExportError(
                f"Unsupported export format {fmt!r}. Available: {list(EXPORT_FORMATS)}"
            )
        now = self._clock()
        output = self.exports_dir / export_filename(now, fmt)

        if fmt == "zip":
            try:
                path = await self._backend.archive("zip", output, "HEAD")
            except (CommandExecutionError, OSError) as exc:
                raise ExportError(f"Archive export failed: {exc}") from exc
            logger.info("Exported archive to %s", path)
            return path

        builder = SnapshotBuilder(self._backend, self._config, self._state)
        snapshot = await builder.build(now)
        if snapshot.warnings:
            logger.warning(
                "Snapshot is partial: %d file(s) skipped", len(snapshot.warnings)
            )
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(
                json.dumps(snapshot.to_document(), indent=2) + "\n", encoding="utf-8"
            )
        except (OSError, TypeError, ValueError) as exc:
            raise ExportError(f"Could not write snapshot to {output}: {exc}") from exc
        logger.info(
            "Exported %d thought file(s) and %d analysis file(s) to %s",
            len(snapshot.thoughts),
            len(snapshot.analysis),
            output,
        )
        return output

    # ── Remote sync ──────────────────────────────────────────────────

    async def push(self) -> SyncResult:
        return await self._sync(
            "push",
            lambda: self._backend.push(
                self._config.remote_name, all_branches=True, all_tags=True
            ),
        )

    async def pull(self) -> SyncResult:
        result = await self._sync(
            "pull",
            lambda: self._backend.pull(self._config.remote_name, all_branches=True),
        )
        if result.ok:
            await self.refresh_known_refs()
        return result

    async def refresh_known_refs(self) -> None:
        """Pick up branches and tags that exist in the backend."""
        self._state.known_branches.update(await self._backend.list_branches())
        for name in await self._backend.list_tags():
            self._state.known_tags.setdefault(name, TagInfo(message=""))

    async def _sync(
        self, operation: str, action: Callable[[], Awaitable[None]]
    ) -> SyncResult:
        if not self._config.has_remote:
            logger.warning("No remote URL configured; skipping %s", operation)
            return SyncResult.not_configured(operation)

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(CommandExecutionError),
            stop=stop_after_attempt(self._config.remote_retry_attempts),
            wait=wait_exponential_jitter(initial=1, max=10, jitter=1),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await action()
        except CommandExecutionError as exc:
            error = RemoteSyncError(operation, str(exc))
            logger.warning("%s", error)
            return SyncResult.failure(operation, error)

        logger.info("Remote %s to %s complete", operation, self._config.remote_name)
        return SyncResult.success(operation)
