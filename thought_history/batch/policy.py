from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta

logger = logging.getLogger(__name__)


class CommitPolicy(ABC):
    """Controls when the ingest buffer must be flushed."""

    @abstractmethod
    def should_commit(
        self, pending: int, now: datetime, *, force: bool = False
    ) -> bool:
        """Return ``True`` if a flush of *pending* records may start now.

        ``force`` skips timing constraints that exist only to batch records
        together; hard quotas still apply.
        """
        ...

    @abstractmethod
    def record_commit(self, now: datetime) -> None:
        """Account for a flush that completed successfully."""
        ...


class RateLimitPolicy(CommitPolicy):
    """Dual rate limit: minimum interval between flushes and a daily quota.

    The daily counter is keyed on the UTC calendar date of *now* and resets
    on the first check made on a new date.
    """

    def __init__(
        self,
        commit_interval_ms: int,
        max_commits_per_day: int,
        *,
        last_commit_at: datetime,
    ) -> None:
        if commit_interval_ms < 0:
            raise ValueError("commit_interval_ms must be >= 0")
        if max_commits_per_day < 1:
            raise ValueError("max_commits_per_day must be >= 1")
        self.commit_interval = timedelta(milliseconds=commit_interval_ms)
        self.max_commits_per_day = max_commits_per_day
        self.last_commit_at = last_commit_at
        self.last_commit_date: date = last_commit_at.date()
        self.daily_commit_count = 0

    def roll_over(self, now: datetime) -> bool:
        """Reset the daily counter if *now* falls on a new date."""
        today = now.date()
        if today == self.last_commit_date:
            return False
        logger.info(
            "New commit day %s (previous day %s had %d commits)",
            today,
            self.last_commit_date,
            self.daily_commit_count,
        )
        self.daily_commit_count = 0
        self.last_commit_date = today
        return True

    def interval_elapsed(self, now: datetime) -> bool:
        return now - self.last_commit_at >= self.commit_interval

    @property
    def quota_available(self) -> bool:
        return self.daily_commit_count < self.max_commits_per_day

    @property
    def remaining_today(self) -> int:
        return max(0, self.max_commits_per_day - self.daily_commit_count)

    def should_commit(
        self, pending: int, now: datetime, *, force: bool = False
    ) -> bool:
        self.roll_over(now)
        if pending == 0:
            return False
        if not force and not self.interval_elapsed(now):
            return False
        return self.quota_available

    def record_commit(self, now: datetime) -> None:
        self.roll_over(now)
        self.last_commit_at = now
        self.daily_commit_count += 1
