"""Dependencies that cross document boundaries.

Edges name their target by file and entity name only. The target file
may not be part of the corpus at all; such edges are still real
dependencies and are reported unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ddrscope.mapper import strip_extension
from ddrscope.models import Database


@dataclass(frozen=True)
class ScriptEdge:
    source_db: str
    source_script: str
    target_db: str
    target_script: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceDb": self.source_db,
            "sourceScript": self.source_script,
            "targetDb": self.target_db,
            "targetScript": self.target_script,
        }


@dataclass(frozen=True)
class TOEdge:
    to_name: str
    to_db: str
    base_table: str | None
    external_file: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "toName": self.to_name,
            "toDb": self.to_db,
            "baseTable": self.base_table,
            "externalFile": self.external_file,
        }


@dataclass
class CrossFileRefs:
    script_edges: list[ScriptEdge] = field(default_factory=list)
    to_edges: list[TOEdge] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.script_edges) + len(self.to_edges)


def find_cross_file_references(databases: list[Database]) -> CrossFileRefs:
    """Collect external script calls and shadow TOs as edges."""
    refs = CrossFileRefs()
    for db in databases:
        for script in db.scripts:
            for called in script.calls_scripts:
                if called.external:
                    refs.script_edges.append(
                        ScriptEdge(
                            source_db=db.name,
                            source_script=script.name,
                            target_db=called.external_file,
                            target_script=called.name,
                        )
                    )
        for to in db.table_occurrences:
            if to.external_file:
                refs.to_edges.append(
                    TOEdge(
                        to_name=to.name,
                        to_db=db.name,
                        base_table=to.base_table,
                        external_file=to.external_file,
                    )
                )
    return refs


def group_script_edges(edges: list[ScriptEdge]) -> dict[str, list[ScriptEdge]]:
    """Group script edges under "source -> target" keys."""
    groups: dict[str, list[ScriptEdge]] = {}
    for edge in edges:
        groups.setdefault(f"{edge.source_db} -> {edge.target_db}", []).append(
            edge
        )
    return groups


def group_to_edges(edges: list[TOEdge]) -> dict[str, list[TOEdge]]:
    """Group shadow TOs under "owning db -> external file" keys."""
    groups: dict[str, list[TOEdge]] = {}
    for edge in edges:
        groups.setdefault(f"{edge.to_db} -> {edge.external_file}", []).append(
            edge
        )
    return groups


@dataclass
class ExternalTableGroup:
    external_file: str
    base_table: str | None
    tos: list[TOEdge] = field(default_factory=list)


def external_table_groups(edges: list[TOEdge]) -> list[ExternalTableGroup]:
    """Which external base tables are shadowed, most-shadowed first."""
    groups: dict[str, ExternalTableGroup] = {}
    for edge in edges:
        key = f"{edge.external_file}::{edge.base_table}"
        if key not in groups:
            groups[key] = ExternalTableGroup(
                external_file=edge.external_file, base_table=edge.base_table
            )
        groups[key].tos.append(edge)
    # sorted() is stable, so ties keep first-seen order
    return sorted(groups.values(), key=lambda g: len(g.tos), reverse=True)


def missing_targets(
    refs: CrossFileRefs, databases: list[Database]
) -> list[str]:
    """External file names referenced by edges but absent from the corpus."""
    present = {db.name for db in databases}
    missing: list[str] = []
    targets = [e.target_db for e in refs.script_edges] + [
        e.external_file for e in refs.to_edges
    ]
    for target in targets:
        if strip_extension(target) not in present and target not in missing:
            missing.append(target)
    return missing
