"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import tyro
from rich.markup import escape

from ddrscope import console
from ddrscope.corpus import Corpus, load_corpus
from ddrscope.logging_config import configure_logging
from ddrscope.loader import discover_documents

# positional DDR files or directories
Files = Annotated[tuple[Path, ...], tyro.conf.Positional]


def enable_debug(debug: bool) -> None:
    if debug:
        configure_logging(debug=True)


def load_files(
    files: tuple[Path, ...], workers: int | None = None
) -> Corpus | None:
    """Load a corpus, reporting failures. None when nothing usable loaded."""
    if not files:
        console.error("no DDR files given")
        return None

    paths = discover_documents(list(files))
    if not paths:
        console.error("no DDR XML files found")
        return None

    missing = [p for p in paths if not p.exists()]
    if missing:
        for p in missing:
            console.error(f"file not found: {escape(str(p))}")
        return None

    with console.status(f"mapping {len(paths)} DDR file(s)..."):
        corpus = load_corpus(paths, workers=workers)

    for err in corpus.errors:
        console.warning(escape(str(err)))
    if not corpus.databases:
        console.error("no databases could be mapped")
        return None
    return corpus
