from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from thought_history import ThoughtHistory
from thought_history.cli import output as out
from thought_history.cli.config import (
    Config,
    config_exists,
    config_path_display,
    load_config,
)
from thought_history.exceptions import ThoughtHistoryError, ValidationError
from thought_history.export.manager import EXPORT_FORMATS

DESCRIPTION = """\
thought-history — version agent reasoning in git

Records streamed by AI agents are batched into commits: one branch per
agent, a summary of every batch on main and a pattern analysis on
analysis/patterns."""


# ── Infrastructure helpers ──────────────────────────────────────────


def _load(args: argparse.Namespace) -> Config:
    cfg = load_config()
    if getattr(args, "repo", None):
        cfg.repo_path = args.repo
    return cfg


def _build_history(cfg: Config) -> ThoughtHistory:
    try:
        history_config = cfg.to_history_config()
    except PydanticValidationError as exc:
        out.error(f"Invalid configuration in {config_path_display()}:\n{exc}")
        sys.exit(1)
    return ThoughtHistory(history_config)


def _read_records(source: str) -> list[dict[str, Any]]:
    """Parse a JSON array or JSON lines from *source* (``-`` for stdin)."""
    if source == "-":
        text = sys.stdin.read()
    else:
        text = Path(source).read_text(encoding="utf-8")

    stripped = text.strip()
    if not stripped:
        return []
    if stripped.startswith("["):
        data = json.loads(stripped)
        if not isinstance(data, list):
            raise ValueError("Expected a JSON array of thought records")
        return data
    return [json.loads(line) for line in stripped.splitlines() if line.strip()]


# ── init ────────────────────────────────────────────────────────────


async def cmd_init(args: argparse.Namespace) -> None:
    cfg = _load(args)
    history = _build_history(cfg)
    await history.initialize()
    status = await history.get_status()
    await history.shutdown(push=False)

    out.success(f"Thought history ready at {cfg.repo_path}")
    out.kv("Branches", ", ".join(status.branches))
    if cfg.remote_url:
        out.kv("Remote", f"{cfg.remote_name} ({cfg.remote_url})")
    print()
    out.info("Next steps:")
    out.next_step("thought-history ingest thoughts.jsonl", "commit agent thoughts")
    out.next_step("thought-history status", "inspect the repository")


# ── ingest ──────────────────────────────────────────────────────────


async def cmd_ingest(args: argparse.Namespace) -> None:
    cfg = _load(args)
    try:
        records = _read_records(args.source)
    except (OSError, ValueError) as exc:
        out.error(f"Could not read thoughts from {args.source}: {exc}")
        sys.exit(1)

    if not records:
        out.warn("No thought records found.")
        return

    accepted = 0
    rejected = 0
    async with _build_history(cfg) as history:
        for index, record in enumerate(records, 1):
            try:
                await history.add_thought(record)
            except ValidationError as exc:
                rejected += 1
                out.warn(f"Record {index} rejected: {exc}")
                continue
            accepted += 1

    # Leaving the context flushes the buffer and pushes when a remote is set.
    daily = history.daily_commit_count
    if history.pending_count:
        out.warn(
            f"{history.pending_count} thought(s) were not committed: "
            "daily commit quota reached"
        )
    out.success(f"Ingested {accepted} thought(s) in {daily} batch(es)")
    if rejected:
        out.warn(f"{rejected} record(s) failed validation")


# ── status ──────────────────────────────────────────────────────────


async def cmd_status(args: argparse.Namespace) -> None:
    cfg = _load(args)
    history = _build_history(cfg)
    await history.initialize()
    try:
        status = await history.get_status()
    finally:
        await history.shutdown(push=False)

    if args.json:
        print(json.dumps(status.to_dict(), indent=2))
        return

    out.header(f"Thought history ({cfg.repo_path})")
    out.kv("Current branch", status.current_branch or out.dim("detached"))
    out.kv(
        "Working tree",
        out.yellow("uncommitted changes") if status.has_changes else "clean",
    )
    out.kv("Branches", len(status.branches))
    out.items(status.branches)
    out.kv("Tags", len(status.tags))
    out.items(status.tags)
    print()


# ── export ──────────────────────────────────────────────────────────


async def cmd_export(args: argparse.Namespace) -> None:
    cfg = _load(args)
    history = _build_history(cfg)
    await history.initialize()
    try:
        path = await history.export_repository(args.format)
    finally:
        await history.shutdown(push=False)
    out.success(f"Exported to {path}")


# ── push / pull ─────────────────────────────────────────────────────


async def _sync(args: argparse.Namespace, operation: str) -> None:
    cfg = _load(args)
    history = _build_history(cfg)
    await history.initialize()
    try:
        if operation == "push":
            result = await history.push_to_remote()
        else:
            result = await history.pull_from_remote()
    finally:
        await history.shutdown(push=False)

    if result.skipped:
        out.warn("No remote configured.")
        out.info(f"Set [remote] url in {config_path_display()}")
        out.info("or export THOUGHT_HISTORY_REMOTE.")
        return
    if not result.ok:
        out.error(str(result.error))
        sys.exit(1)
    out.success(f"{operation.capitalize()} to {cfg.remote_name} complete")


async def cmd_push(args: argparse.Namespace) -> None:
    await _sync(args, "push")


async def cmd_pull(args: argparse.Namespace) -> None:
    await _sync(args, "pull")


# ── config ──────────────────────────────────────────────────────────


async def cmd_config_show(args: argparse.Namespace) -> None:
    cfg = _load(args)
    source = config_path_display() if config_exists() else "defaults"

    out.header(f"Configuration ({source})")
    print()
    out.kv("Repository", cfg.repo_path)
    out.kv("Backend", cfg.backend)
    out.kv("Branch prefix", cfg.branch_prefix)
    out.kv("Commit interval", f"{cfg.commit_interval} ms")
    out.kv("Max commits/day", cfg.max_commits_per_day)
    out.kv("Agent branches", out.flag(cfg.enable_branches))
    out.kv("Tags", out.flag(cfg.enable_tags))
    out.kv("Collaboration", out.flag(cfg.enable_collaboration))
    if cfg.remote_url:
        out.kv("Remote", f"{cfg.remote_name} ({cfg.remote_url})")
    else:
        out.kv("Remote", out.dim("not set"))
    print()


async def cmd_config_path(args: argparse.Namespace) -> None:
    print(config_path_display())


# ── Parser ──────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thought-history",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  thought-history init                         "
            "Create the repository skeleton\n"
            "  thought-history ingest thoughts.jsonl        "
            "Commit a file of thought records\n"
            "  cat thoughts.json | thought-history ingest - "
            "Read records from stdin\n"
            "  thought-history export --format zip          "
            "Archive the repository\n"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed logs (branch switches, commits, tags)",
    )
    parser.add_argument(
        "--repo",
        default=None,
        help="Repository path (overrides config and THOUGHT_HISTORY_REPO)",
    )
    sub = parser.add_subparsers(dest="command", title="commands")

    sub.add_parser("init", help="Initialize the thought history repository")

    p_ingest = sub.add_parser(
        "ingest",
        help="Commit thought records from a file",
        description=(
            "Read thought records (a JSON array or one JSON object per line) "
            "and commit them. Records are flushed when the command exits."
        ),
    )
    p_ingest.add_argument("source", help="Path to the records file, or - for stdin")

    p_status = sub.add_parser("status", help="Show branches, tags and changes")
    p_status.add_argument("--json", action="store_true", help="Print JSON")

    p_export = sub.add_parser("export", help="Export a snapshot of the repository")
    p_export.add_argument(
        "--format",
        choices=EXPORT_FORMATS,
        default="json",
        help="Snapshot format (default: json)",
    )

    sub.add_parser("push", help="Push all branches and tags to the remote")
    sub.add_parser("pull", help="Pull all branches from the remote")

    p_cfg = sub.add_parser("config", help="View settings")
    cfg_sub = p_cfg.add_subparsers(dest="config_command")
    cfg_sub.add_parser("show", help="Show current settings")
    cfg_sub.add_parser("path", help="Print config file location")

    return parser


_Handler = Callable[[argparse.Namespace], Coroutine[Any, Any, None]]

_COMMAND_MAP: dict[str, _Handler] = {
    "init": cmd_init,
    "ingest": cmd_ingest,
    "status": cmd_status,
    "export": cmd_export,
    "push": cmd_push,
    "pull": cmd_pull,
}

_CONFIG_MAP: dict[str, _Handler] = {
    "show": cmd_config_show,
    "path": cmd_config_path,
}


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="  %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    if args.command == "config":
        if not args.config_command:
            parser.parse_args(["config", "--help"])
            return
        handler = _CONFIG_MAP.get(args.config_command)
    else:
        handler = _COMMAND_MAP.get(args.command)

    if handler is None:
        parser.print_help()
        return

    try:
        asyncio.run(handler(args))
    except ThoughtHistoryError as exc:
        out.error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        print()
