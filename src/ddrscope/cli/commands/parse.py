"""Parse command - map DDR files and summarize or dump the corpus."""

from __future__ import annotations

from dataclasses import dataclass, field

from ddrscope import console
from ddrscope.cli._common import Files, enable_debug, load_files


@dataclass
class Parse:
    """Map DDR XML exports into the unified model."""

    files: Files = field(
        default_factory=tuple,
        metadata={"help": "DDR XML files or directories"},
    )
    json: bool = field(
        default=False,
        metadata={"help": "Dump the full corpus as JSON"},
    )
    workers: int | None = field(
        default=None,
        metadata={"help": "Thread pool size for mapping (default: serial)"},
    )
    debug: bool = field(
        default=False,
        metadata={"help": "Enable debug logging"},
    )

    def run(self) -> int:
        """Execute the parse command."""
        enable_debug(self.debug)
        corpus = load_files(self.files, self.workers)
        if corpus is None:
            return 1

        if self.json:
            console.json(corpus.to_dict())
            return 0

        console.table(
            f"Databases ({len(corpus.databases)})",
            [
                "Name",
                "Tables",
                "Fields",
                "TOs",
                "Relationships",
                "Layouts",
                "Scripts",
                "Value Lists",
                "Custom Functions",
            ],
            [
                (
                    db.name,
                    len(db.tables),
                    sum(t.field_count for t in db.tables),
                    len(db.table_occurrences),
                    len(db.relationships),
                    len(db.layouts),
                    len(db.scripts),
                    len(db.value_lists),
                    len(db.custom_functions),
                )
                for db in corpus.databases
            ],
        )
        edges = corpus.cross_file
        console.key_value("cross-file script calls", len(edges.script_edges))
        console.key_value("shadow table occurrences", len(edges.to_edges))
        if corpus.errors:
            console.key_value("failed documents", len(corpus.errors))
        return 0
