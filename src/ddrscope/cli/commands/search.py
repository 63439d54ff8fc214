"""Search commands - global search and its history."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

import tyro
from rich.markup import escape

from ddrscope import console
from ddrscope.cli._common import Files, enable_debug, load_files
from ddrscope.paths import get_data_dir, history_path
from ddrscope.search import (
    JsonFileStore,
    SearchHistory,
    normalize_query,
    search_corpus,
)


def _history(data_dir: Path | None) -> SearchHistory:
    return SearchHistory(JsonFileStore(history_path(data_dir)))


@dataclass
class Search:
    """Find tables, fields, scripts, layouts, TOs, value lists and functions."""

    query: Annotated[str, tyro.conf.Positional] = field(
        metadata={"help": "Text to search for (at least 2 characters)"},
    )
    files: Files = field(
        default_factory=tuple,
        metadata={"help": "DDR XML files or directories"},
    )
    json: bool = field(
        default=False,
        metadata={"help": "Output as JSON"},
    )
    data_dir: Path | None = field(
        default=None,
        metadata={"help": "Directory for search history (default: XDG cache)"},
    )
    debug: bool = field(
        default=False,
        metadata={"help": "Enable debug logging"},
    )

    def run(self) -> int:
        """Execute the search command."""
        enable_debug(self.debug)
        if normalize_query(self.query) is None:
            console.error("query must be at least 2 characters")
            return 1

        corpus = load_files(self.files)
        if corpus is None:
            return 1

        _history(self.data_dir).add(self.query.strip())
        results = search_corpus(corpus.databases, self.query)

        if self.json:
            console.json(results.to_dict())
            return 0

        if not results.total:
            console.info(f"no matches for '{results.query}'")
            return 0

        for group, hits in results.groups().items():
            if not hits:
                continue
            console.subheader(f"{group} ({len(hits)})")
            for hit in hits:
                name = f"{hit.table}::{hit.name}" if hit.table else hit.name
                if hit.matched_in != "name":
                    name += f" ({hit.matched_in})"
                console.info(f"  {escape(name)}  [dim]{escape(hit.db)}[/]")
        console.key_value("total", results.total)
        return 0


@dataclass
class History:
    """Show or clear recent search queries."""

    clear: bool = field(
        default=False,
        metadata={"help": "Forget all recorded queries"},
    )
    data_dir: Path | None = field(
        default=None,
        metadata={"help": "Directory for search history (default: XDG cache)"},
    )

    def run(self) -> int:
        """Execute the history command."""
        history = _history(self.data_dir)
        if self.clear:
            history.clear()
            console.success("search history cleared")
            return 0

        items = history.items()
        if not items:
            where = self.data_dir or get_data_dir()
            console.dim(f"no recent searches ({escape(str(where))})")
            return 0
        for i, query in enumerate(items, 1):
            console.info(f"{i:2}. {escape(query)}")
        return 0
