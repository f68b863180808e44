"""The write protocol that turns one batch into commits.

For a batch with ``k`` distinct agents the protocol produces exactly
``k + 2`` commits:

    1. one per agent on ``{prefix}/agent-{id}`` (plus a tag when the group
       holds a record with confidence > 0.8)
    2. one batch summary on ``main``
    3. one pattern analysis on ``analysis/patterns``

Each finished step is recorded on the batch, so re-running the protocol on
a batch that failed partway only performs the missing steps.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from thought_history.analytics.engine import analyze_batch
from thought_history.analytics.insights import (
    HIGH_CONFIDENCE_THRESHOLD,
    LOW_CONFIDENCE_THRESHOLD,
)
from thought_history.analytics.patterns import HIGH_BUCKET_THRESHOLD, mean
from thought_history.backend.base import RepositoryBackend
from thought_history.batch.grouper import partition_by_agent
from thought_history.batch.repository import RepositoryState, TagInfo
from thought_history.config import MAIN_BRANCH, HistoryConfig
from thought_history.models.batch import ANALYSIS_STEP, MAIN_STEP, Batch, agent_step
from thought_history.models.documents import (
    AgentThoughtFile,
    AgentThoughtSummary,
    BatchSummaryFile,
    BatchSummaryStats,
    agent_file_path,
    analysis_file_path,
    summary_file_path,
)
from thought_history.models.thought import ThoughtRecord

logger = logging.getLogger(__name__)


def tag_step(agent_id: str) -> str:
    return f"tag:{agent_id}"


def agent_tag_name(agent_id: str, day: datetime) -> str:
    return f"agent-{agent_id}-{day.date().isoformat()}"


@dataclass
class CommitResult:
    """What one protocol run actually wrote."""

    batch_id: str
    commits: list[tuple[str, str]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    skipped_steps: list[str] = field(default_factory=list)

    @property
    def commit_count(self) -> int:
        return len(self.commits)


class CommitProtocol:
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

    async def run(self, batch: Batch) -> CommitResult:
        result = CommitResult(batch_id=batch.batch_id)

        for agent_id, records in partition_by_agent(batch.records).items():
            await self._agent_step(batch, agent_id, records, result)

        if batch.is_done(MAIN_STEP):
            result.skipped_steps.append(MAIN_STEP)
        else:
            await self._summary_step(batch, result)
            batch.mark_done(MAIN_STEP)

        if batch.is_done(ANALYSIS_STEP):
            result.skipped_steps.append(ANALYSIS_STEP)
        else:
            await self._analysis_step(batch, result)
            batch.mark_done(ANALYSIS_STEP)

        return result

    # ── Steps ────────────────────────────────────────────────────────

    async def _agent_step(
        self,
        batch: Batch,
        agent_id: str,
        records: Sequence[ThoughtRecord],
        result: CommitResult,
    ) -> None:
        step = agent_step(agent_id)
        if batch.is_done(step):
            result.skipped_steps.append(step)
        else:
            branch = self._config.agent_branch(agent_id)
            await self._switch(branch)
            document = AgentThoughtFile(
                agent_id=agent_id,
                batch_id=batch.batch_id,
                timestamp=self._clock(),
                thoughts=list(records),
                summary=AgentThoughtSummary(
                    total_thoughts=len(records),
                    average_confidence=mean([r.confidence for r in records]),
                    average_quality=mean([r.reasoning_quality for r in records]),
                ),
            )
            await self._commit(
                branch,
                agent_file_path(agent_id),
                document.to_json(),
                f"Add thoughts for agent {agent_id} - batch {batch.batch_id}",
                result,
            )
            batch.mark_done(step)

        if batch.is_done(tag_step(agent_id)):
            return
        if self._config.enable_tags and any(
            r.confidence > HIGH_CONFIDENCE_THRESHOLD for r in records
        ):
            await self._tag(agent_id, result)
        batch.mark_done(tag_step(agent_id))

    async def _summary_step(self, batch: Batch, result: CommitResult) -> None:
        await self._switch(MAIN_BRANCH)
        records = batch.records
        document = BatchSummaryFile(
            batch_id=batch.batch_id,
            timestamp=self._clock(),
            total_thoughts=len(records),
            agents=batch.agent_ids,
            summary=BatchSummaryStats(
                average_confidence=mean([r.confidence for r in records]),
                average_quality=mean([r.reasoning_quality for r in records]),
                high_confidence_thoughts=sum(
                    1 for r in records if r.confidence > HIGH_BUCKET_THRESHOLD
                ),
                low_confidence_thoughts=sum(
                    1 for r in records if r.confidence < LOW_CONFIDENCE_THRESHOLD
                ),
            ),
        )
        await self._commit(
            MAIN_BRANCH,
            summary_file_path(batch.batch_id),
            document.to_json(),
            f"Add thought summary - batch {batch.batch_id}",
            result,
        )

    async def _analysis_step(self, batch: Batch, result: CommitResult) -> None:
        branch = self._config.analysis_branch
        await self._switch(branch)
        document = analyze_batch(batch, now=self._clock())
        await self._commit(
            branch,
            analysis_file_path(batch.batch_id),
            document.to_json(),
            f"Add pattern analysis - batch {batch.batch_id}",
            result,
        )

    # ── Backend helpers ──────────────────────────────────────────────

    async def _switch(self, branch: str) -> None:
        created = await self._backend.create_or_switch_branch(branch)
        if created:
            logger.info("Created branch: %s", branch)
        self._state.known_branches.add(branch)

    async def _commit(
        self,
        branch: str,
        path: str,
        content: str,
        message: str,
        result: CommitResult,
    ) -> None:
        await self._backend.write_and_commit({path: content + "\n"}, message)
        result.commits.append((branch, message))
        logger.debug("Committed %s on %s", path, branch)

    async def _tag(self, agent_id: str, result: CommitResult) -> None:
        now = self._clock()
        name = agent_tag_name(agent_id, now)
        if name in self._state.known_tags:
            logger.debug("Tag %s already exists, leaving it in place", name)
            return
        message = f"High confidence thoughts from agent {agent_id}"
        await self._backend.create_tag(name, message)
        self._state.known_tags[name] = TagInfo(message=message, timestamp=now)
        result.tags.append(name)
        logger.info("Created tag: %s", name)
