"""Terminal output for the thought-history CLI.

Styling is plain ANSI and is skipped when stdout is not a terminal or
``NO_COLOR`` is set, so piped ``status --json`` output stays clean.
"""

from __future__ import annotations

import os
import sys

_BOLD = "1"
_DIM = "2"
_RED = "31"
_GREEN = "32"
_YELLOW = "33"
_CYAN = "36"


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return getattr(sys.stdout, "isatty", lambda: False)()


_COLOR = _use_color()


def _style(code: str, text: str) -> str:
    return f"\033[{code}m{text}\033[0m" if _COLOR else text


def dim(text: str) -> str:
    return _style(_DIM, text)


def yellow(text: str) -> str:
    return _style(_YELLOW, text)


def flag(enabled: bool) -> str:
    return _style(_GREEN, "on") if enabled else dim("off")


# ── Lines ───────────────────────────────────────────────────────────


def header(title: str) -> None:
    print(f"\n{_style(_BOLD, title)}")


def success(msg: str) -> None:
    print(f"  {_style(_GREEN, '✓')} {msg}")


def warn(msg: str) -> None:
    print(f"  {yellow('!')} {msg}")


def error(msg: str) -> None:
    print(f"  {_style(_RED, '✗')} {msg}", file=sys.stderr)


def info(msg: str) -> None:
    print(f"  {msg}")


def kv(key: str, value: object) -> None:
    print(f"  {dim(key + ':')}  {value}")


def items(values: list[str], empty: str = "none") -> None:
    """One indented bullet per branch or tag name."""
    if not values:
        print(f"    {dim(empty)}")
    for value in values:
        print(f"    {_style(_CYAN, '•')} {value}")


def next_step(command: str, description: str) -> None:
    print(f"    {_style(_CYAN, command)}  {dim(description)}")
