from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from tests.conftest import FakeClock, make_thought
from thought_history import (
    ExportError,
    HistoryConfig,
    InitializationError,
    RemoteSyncError,
    ThoughtHistory,
)
from thought_history.backend.memory import InMemoryBackend
from thought_history.exceptions import CommandExecutionError
from thought_history.export.manager import export_filename

REMOTE_URL = "mem://origin"


class FlakyPushBackend(InMemoryBackend):
    """Rejects the first push, as a briefly unreachable remote would."""

    def __init__(self, network: dict[str, InMemoryBackend]) -> None:
        super().__init__(network=network)
        self.push_attempts = 0

    async def push(self, remote: str, **kwargs: bool) -> None:
        self.push_attempts += 1
        if self.push_attempts == 1:
            raise CommandExecutionError(["memory", "push"], 128, "connection reset")
        await super().push(remote, **kwargs)


@pytest.fixture()
def network() -> dict[str, InMemoryBackend]:
    return {REMOTE_URL: InMemoryBackend("remote")}


@pytest.fixture()
def remote_config(config: HistoryConfig) -> HistoryConfig:
    return config.model_copy(
        update={"remote_url": REMOTE_URL, "remote_retry_attempts": 1}
    )


async def _scenario(history: ThoughtHistory) -> None:
    for record in (
        make_thought("alpha", 0.9),
        make_thought("alpha", 0.2),
        make_thought("beta", 0.5),
    ):
        await history.add_thought(record)
    await history.commit_thoughts()


# ── Export ───────────────────────────────────────────────────────────


def test_export_filename_is_filesystem_safe(clock: FakeClock) -> None:
    name = export_filename(clock(), "json")
    assert name == "thought-history-2025-03-14T09-30-00-000000.json"
    assert ":" not in name


async def test_json_export_round_trips_batches_and_agents(
    history: ThoughtHistory, config: HistoryConfig
) -> None:
    await _scenario(history)

    path = await history.export_repository("json")

    assert path.parent == Path(config.repo_path) / "exports"
    snapshot = json.loads(path.read_text())
    assert set(snapshot) == {"metadata", "statistics", "thoughts", "analysis"}

    batch_ids = {doc["batchId"] for doc in snapshot["thoughts"]}
    agent_ids = {doc["agentId"] for doc in snapshot["thoughts"] if "agentId" in doc}
    assert len(batch_ids) == 1
    assert agent_ids == {"alpha", "beta"}
    assert len(snapshot["thoughts"]) == 3
    assert [doc["batchId"] for doc in snapshot["analysis"]] == list(batch_ids)

    metadata = snapshot["metadata"]
    assert metadata["config"]["repoPath"] == config.repo_path
    assert metadata["tags"]["agent-alpha-2025-03-14"]["message"] == (
        "High confidence thoughts from agent alpha"
    )
    assert metadata["warnings"] == []
    assert snapshot["statistics"]["totalBranches"] == 4
    assert snapshot["statistics"]["totalTags"] == 1
    assert snapshot["statistics"]["dailyCommits"] == 1
    assert snapshot["statistics"]["totalCommits"] > 0


async def test_json_export_reports_unreadable_files(
    history: ThoughtHistory, backend: InMemoryBackend
) -> None:
    await _scenario(history)
    await backend.create_or_switch_branch("main")
    await backend.write_and_commit({"thoughts/summary-broken.json": "{oops"}, "bad")

    path = await history.export_repository("json")

    snapshot = json.loads(path.read_text())
    assert len(snapshot["metadata"]["warnings"]) == 1
    assert "summary-broken.json" in snapshot["metadata"]["warnings"][0]
    assert len(snapshot["thoughts"]) == 3


async def test_zip_export(history: ThoughtHistory) -> None:
    await _scenario(history)

    path = await history.export_repository("zip")

    assert path.suffix == ".zip"
    with zipfile.ZipFile(path) as zf:
        names = zf.namelist()
    assert "README.md" in names
    assert any(name.startswith("analysis/patterns-") for name in names)


async def test_unsupported_export_format(history: ThoughtHistory) -> None:
    with pytest.raises(ExportError, match="xml"):
        await history.export_repository("xml")


async def test_export_includes_collaborators(
    config: HistoryConfig, backend: InMemoryBackend, clock: FakeClock
) -> None:
    config = config.model_copy(update={"enable_collaboration": True})
    history = ThoughtHistory(config, backend, clock=clock)
    await history.initialize()
    await history.add_collaborator("alice")

    snapshot = json.loads((await history.export_repository()).read_text())

    assert snapshot["metadata"]["collaborators"] == ["alice"]


# ── Remote sync ──────────────────────────────────────────────────────


async def test_sync_without_remote_is_skipped(history: ThoughtHistory) -> None:
    push = await history.push_to_remote()
    pull = await history.pull_from_remote()

    assert push.skipped and not push.ok
    assert pull.skipped and pull.error is None


async def test_push_publishes_branches_and_tags(
    remote_config: HistoryConfig,
    network: dict[str, InMemoryBackend],
    clock: FakeClock,
) -> None:
    backend = InMemoryBackend(network=network)
    history = ThoughtHistory(remote_config, backend, clock=clock)
    await history.initialize()
    await _scenario(history)

    result = await history.push_to_remote()

    assert result.ok
    remote = network[REMOTE_URL]
    assert await remote.list_branches() == await backend.list_branches()
    assert await remote.list_tags() == ["agent-alpha-2025-03-14"]


async def test_push_failure_is_returned_not_raised(
    remote_config: HistoryConfig,
    network: dict[str, InMemoryBackend],
    clock: FakeClock,
) -> None:
    remote = network[REMOTE_URL]
    await remote.init()
    await remote.write_and_commit({"other.txt": "diverged"}, "someone else")

    history = ThoughtHistory(
        remote_config, InMemoryBackend(network=network), clock=clock
    )
    await history.initialize()

    result = await history.push_to_remote()

    assert not result.ok
    assert not result.skipped
    assert isinstance(result.error, RemoteSyncError)
    assert result.error.operation == "push"
    assert "non-fast-forward" in str(result.error)


async def test_push_is_retried(
    remote_config: HistoryConfig,
    network: dict[str, InMemoryBackend],
    clock: FakeClock,
) -> None:
    config = remote_config.model_copy(update={"remote_retry_attempts": 2})
    backend = FlakyPushBackend(network)
    history = ThoughtHistory(config, backend, clock=clock)
    await history.initialize()

    result = await history.push_to_remote()

    assert result.ok
    assert backend.push_attempts == 2


async def test_shutdown_pushes_to_remote(
    remote_config: HistoryConfig,
    network: dict[str, InMemoryBackend],
    clock: FakeClock,
) -> None:
    history = ThoughtHistory(
        remote_config, InMemoryBackend(network=network), clock=clock
    )
    await history.initialize()
    await history.add_thought(make_thought("alpha"))

    result = await history.shutdown()

    assert result is not None and result.ok
    assert "thoughts/agent-alpha" in await network[REMOTE_URL].list_branches()


async def test_initialize_requires_reachable_remote_url(
    remote_config: HistoryConfig, clock: FakeClock
) -> None:
    history = ThoughtHistory(remote_config, InMemoryBackend(network={}), clock=clock)
    with pytest.raises(InitializationError):
        await history.initialize()


async def test_pull_picks_up_remote_branches_and_tags(
    remote_config: HistoryConfig,
    network: dict[str, InMemoryBackend],
    clock: FakeClock,
    tmp_path: Path,
) -> None:
    primary = ThoughtHistory(
        remote_config, InMemoryBackend(network=network), clock=clock
    )
    await primary.initialize()
    await primary.add_thought(make_thought("beta", 0.5))
    await primary.commit_thoughts()
    assert (await primary.push_to_remote()).ok

    clone_backend = InMemoryBackend(network=network)
    await clone_backend.init()
    await clone_backend.add_remote("origin", REMOTE_URL)
    await clone_backend.pull("origin")
    clone_config = remote_config.model_copy(
        update={"repo_path": str(tmp_path / "clone")}
    )
    clone = ThoughtHistory(clone_config, clone_backend, clock=clock)
    await clone.initialize()
    assert "thoughts/agent-beta" in clone.known_branches

    await primary.add_thought(make_thought("alpha", 0.95))
    await primary.commit_thoughts()
    assert (await primary.push_to_remote()).ok

    result = await clone.pull_from_remote()

    assert result.ok
    assert "thoughts/agent-alpha" in clone.known_branches
    assert "agent-alpha-2025-03-14" in clone.known_tags
