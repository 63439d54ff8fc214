"""Terminal output helpers built on rich."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.status import Status
from rich.table import Table

_out = Console(highlight=False)
_err = Console(stderr=True, highlight=False)


def print(*objects: Any, **kwargs: Any) -> None:  # noqa: A001
    _out.print(*objects, **kwargs)


def error(msg: str) -> None:
    _err.print(f"[bold red]error:[/] {msg}")


def warning(msg: str) -> None:
    _err.print(f"[yellow]warning:[/] {msg}")


def success(msg: str) -> None:
    _out.print(f"[green]{msg}[/]")


def info(msg: str) -> None:
    _out.print(msg)


def dim(msg: str) -> None:
    _out.print(f"[dim]{msg}[/]")


def header(msg: str) -> None:
    _out.print(f"[bold underline]{msg}[/]")


def subheader(msg: str) -> None:
    _out.print(f"[bold cyan]{msg}[/]")


def key_value(key: str, value: Any, indent: int = 0) -> None:
    _out.print(f"{' ' * indent}[bold]{key}:[/] {value}")


def score(value: float, label: str, max_value: float = 100) -> None:
    """Score line colored by how close it is to max_value."""
    ratio = value / max_value if max_value else 0
    color = "red" if ratio >= 0.75 else "yellow" if ratio >= 0.5 else "green"
    _out.print(f"[{color}]{value:>5.0f}[/]  {label}")


def severity(level: str) -> str:
    color = {"high": "red", "medium": "yellow"}.get(level, "dim")
    return f"[{color}]{level}[/]"


def status(msg: str) -> AbstractContextManager[Status]:
    return _err.status(msg)


def table(
    title: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
) -> None:
    t = Table(title=title)
    for col in columns:
        t.add_column(col, overflow="fold")
    for row in rows:
        t.add_row(*(("-" if v is None else escape(str(v))) for v in row))
    _out.print(t)


def json(data: Any) -> None:
    """Pretty JSON to stdout."""
    _out.print_json(data=data)
