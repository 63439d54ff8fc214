"""Corpus assembly: map every document, then index the lot.

Documents are independent until indexing, so mapping can fan out
across a thread pool. A document that fails to map is recorded in
``Corpus.errors`` and the rest of the corpus is still assembled.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from ddrscope.config import default_workers
from ddrscope.crossfile import CrossFileRefs, find_cross_file_references
from ddrscope.index import ReverseRefs, build_reverse_references
from ddrscope.loader import SourceDocument, discover_documents, read_document
from ddrscope.mapper import DocumentError, parse_document
from ddrscope.models import Database

logger = structlog.get_logger(__name__)


@dataclass
class Corpus:
    """Mapped databases plus the corpus-wide indexes and edges."""

    databases: list[Database] = field(default_factory=list)
    reverse_refs: ReverseRefs = field(default_factory=ReverseRefs)
    cross_file: CrossFileRefs = field(default_factory=CrossFileRefs)
    errors: list[DocumentError] = field(default_factory=list)

    def database(self, name: str) -> Database | None:
        for db in self.databases:
            if db.name == name:
                return db
        return None

    def to_dict(self) -> dict[str, Any]:
        edges = self.cross_file
        return {
            "databases": [db.to_dict() for db in self.databases],
            "reverseRefs": self.reverse_refs.to_dict(),
            "crossFileRefs": [e.to_dict() for e in edges.script_edges],
            "crossFileTableRefs": [e.to_dict() for e in edges.to_edges],
        }


def _map_one(doc: SourceDocument) -> Database | DocumentError:
    try:
        return parse_document(doc.text, source=doc.name)
    except DocumentError as e:
        return e


def build_corpus(databases: list[Database]) -> Corpus:
    """Index already-mapped databases."""
    return Corpus(
        databases=databases,
        reverse_refs=build_reverse_references(databases),
        cross_file=find_cross_file_references(databases),
    )


def assemble_corpus(
    documents: Iterable[SourceDocument],
    workers: int | None = None,
) -> Corpus:
    """Map each document and build indexes over the successful ones.

    With workers > 1 mapping runs on a thread pool; results keep input
    order either way.
    """
    docs = list(documents)
    if workers is None:
        workers = default_workers()

    if workers and workers > 1 and len(docs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(_map_one, docs))
    else:
        results = [_map_one(doc) for doc in docs]

    databases: list[Database] = []
    errors: list[DocumentError] = []
    for result in results:
        if isinstance(result, DocumentError):
            logger.warning(
                "failed to map ddr", source=result.source, error=result.reason
            )
            errors.append(result)
        else:
            databases.append(result)

    corpus = build_corpus(databases)
    corpus.errors = errors
    logger.info(
        "assembled corpus",
        documents=len(docs),
        databases=len(databases),
        errors=len(errors),
        cross_file_edges=len(corpus.cross_file),
    )
    return corpus


def load_corpus(paths: list[Path], workers: int | None = None) -> Corpus:
    """Read DDR files (or directories of them) and assemble a corpus."""
    documents = [read_document(p) for p in discover_documents(paths)]
    return assemble_corpus(documents, workers=workers)
