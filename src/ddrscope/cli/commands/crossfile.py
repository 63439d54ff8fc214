"""Crossfile command - dependencies between DDR documents."""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.markup import escape

from ddrscope import console
from ddrscope.cli._common import Files, enable_debug, load_files
from ddrscope.crossfile import (
    external_table_groups,
    group_script_edges,
    group_to_edges,
    missing_targets,
)


@dataclass
class Crossfile:
    """Show script calls and table occurrences that cross file boundaries."""

    files: Files = field(
        default_factory=tuple,
        metadata={"help": "DDR XML files or directories"},
    )
    json: bool = field(
        default=False,
        metadata={"help": "Output as JSON"},
    )
    debug: bool = field(
        default=False,
        metadata={"help": "Enable debug logging"},
    )

    def run(self) -> int:
        """Execute the crossfile command."""
        enable_debug(self.debug)
        corpus = load_files(self.files)
        if corpus is None:
            return 1

        refs = corpus.cross_file
        missing = missing_targets(refs, corpus.databases)

        if self.json:
            console.json(
                {
                    "crossFileRefs": [e.to_dict() for e in refs.script_edges],
                    "crossFileTableRefs": [e.to_dict() for e in refs.to_edges],
                    "missingFiles": missing,
                }
            )
            return 0

        if not len(refs):
            console.info("no cross-file references")
            return 0

        if refs.script_edges:
            console.subheader("Script calls")
            for key, edges in group_script_edges(refs.script_edges).items():
                console.key_value(key, len(edges), indent=2)
                for e in edges:
                    console.dim(
                        f"      {escape(e.source_script)} -> "
                        f"{escape(e.target_script)}"
                    )

        if refs.to_edges:
            console.subheader("\nShadow table occurrences")
            for key, edges in group_to_edges(refs.to_edges).items():
                console.key_value(key, len(edges), indent=2)

            console.table(
                "External tables",
                ["External File", "Base Table", "TOs"],
                [
                    (g.external_file, g.base_table, len(g.tos))
                    for g in external_table_groups(refs.to_edges)
                ],
            )

        for name in missing:
            console.warning(f"referenced file not loaded: {name}")
        return 0
