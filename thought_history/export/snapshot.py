"""Assemble a JSON snapshot of everything the repository holds.

Agent files are overwritten on every batch, so the snapshot reads each one
from its own agent branch (where it is newest); summaries come from ``main``
and analyses from ``analysis/patterns``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any

from thought_history.backend.base import RepositoryBackend
from thought_history.batch.repository import RepositoryState
from thought_history.config import MAIN_BRANCH, HistoryConfig
from thought_history.exceptions import CommandExecutionError
from thought_history.models.documents import ANALYSIS_DIR, THOUGHTS_DIR

logger = logging.getLogger(__name__)

_AGENT_FILE_PREFIX = "agent-"


@dataclass
class Snapshot:
    metadata: dict[str, Any]
    statistics: dict[str, Any]
    thoughts: list[dict[str, Any]] = field(default_factory=list)
    analysis: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        return {
            "metadata": {**self.metadata, "warnings": self.warnings},
            "statistics": self.statistics,
            "thoughts": self.thoughts,
            "analysis": self.analysis,
        }


class SnapshotBuilder:
    def __init__(
        self,
        backend: RepositoryBackend,
        config: HistoryConfig,
        state: RepositoryState,
    ) -> None:
        self._backend = backend
        self._config = config
        self._state = state
        self._warnings: list[str] = []

    async def build(self, now: datetime) -> Snapshot:
        self._warnings = []
        branches = await self._backend.list_branches()
        tags = {
            name: {
                "message": info.message,
                "timestamp": info.timestamp.isoformat() if info.timestamp else None,
            }
            for name, info in sorted(self._state.known_tags.items())
        }

        snapshot = Snapshot(
            metadata={
                "exportDate": now.isoformat(),
                "config": self._config.to_document(),
                "branches": branches,
                "tags": tags,
                "collaborators": sorted(self._state.collaborators),
            },
            statistics={
                "totalCommits": await self._commit_count(),
                "totalBranches": len(branches),
                "totalTags": len(tags),
                "dailyCommits": self._state.policy.daily_commit_count,
            },
        )
        snapshot.thoughts = await self._collect_thoughts(branches)
        snapshot.analysis = await self._collect_analysis(branches)
        snapshot.warnings = list(self._warnings)
        return snapshot

    # ── Collection ───────────────────────────────────────────────────

    def _owner(self, path: str) -> str:
        """Branch holding the authoritative copy of a ``thoughts/`` file."""
        name = PurePosixPath(path).stem
        if name.startswith(_AGENT_FILE_PREFIX):
            return self._config.agent_branch(name[len(_AGENT_FILE_PREFIX) :])
        return MAIN_BRANCH

    async def _collect_thoughts(self, branches: list[str]) -> list[dict[str, Any]]:
        agent_prefix = f"{self._config.branch_prefix}/agent-"
        refs = [MAIN_BRANCH] + [b for b in branches if b.startswith(agent_prefix)]

        documents: list[tuple[str, dict[str, Any]]] = []
        for ref in refs:
            if ref not in branches:
                continue
            for path in await self._json_files(ref, THOUGHTS_DIR):
                if self._owner(path) != ref:
                    continue
                data = await self._read_json(ref, path)
                if data is not None:
                    documents.append((path, data))
        return [data for _, data in sorted(documents, key=lambda item: item[0])]

    async def _collect_analysis(self, branches: list[str]) -> list[dict[str, Any]]:
        ref = self._config.analysis_branch
        if ref not in branches:
            return []
        documents = []
        for path in await self._json_files(ref, ANALYSIS_DIR):
            data = await self._read_json(ref, path)
            if data is not None:
                documents.append(data)
        return documents

    # ── Readers ──────────────────────────────────────────────────────

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self._warnings.append(message)

    async def _commit_count(self) -> int:
        try:
            return await self._backend.commit_count("HEAD")
        except CommandExecutionError as exc:
            self._warn(f"Could not count commits: {exc}")
            return 0

    async def _json_files(self, ref: str, directory: str) -> list[str]:
        try:
            paths = await self._backend.list_files(ref, directory)
        except CommandExecutionError as exc:
            self._warn(f"Could not list {directory}/ on {ref}: {exc}")
            return []
        return sorted(p for p in paths if p.endswith(".json"))

    async def _read_json(self, ref: str, path: str) -> dict[str, Any] | None:
        try:
            return json.loads(await self._backend.read_file(ref, path))
        except (CommandExecutionError, json.JSONDecodeError) as exc:
            self._warn(f"Skipping {ref}:{path}: {exc}")
            return None
