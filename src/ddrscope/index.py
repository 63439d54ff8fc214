"""Reverse reference indexes across a whole corpus.

Each map answers "who points at this name?" for one kind of reference.
Keys are bare names (scripts, layouts, TOs) or qualified field names;
because lookups are by name only, a key can collect references from
several databases, and every entry carries the database it came from.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from ddrscope.models import Database


@dataclass(frozen=True)
class ScriptRef:
    script: str
    db: str

    def to_dict(self) -> dict[str, Any]:
        return {"script": self.script, "db": self.db}


@dataclass(frozen=True)
class LayoutRef:
    layout: str
    db: str

    def to_dict(self) -> dict[str, Any]:
        return {"layout": self.layout, "db": self.db}


@dataclass(frozen=True)
class CalcRef:
    table: str
    field: str
    db: str

    def to_dict(self) -> dict[str, Any]:
        return {"table": self.table, "field": self.field, "db": self.db}


@dataclass(frozen=True)
class RelationshipRef:
    relationship: str | None
    side: str  # left or right
    db: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "relationship": self.relationship,
            "side": self.side,
            "db": self.db,
        }


# attribute name -> output key
INDEX_NAMES = {
    "script_callers": "scriptCallers",
    "script_on_layouts": "scriptOnLayouts",
    "field_in_scripts": "fieldInScripts",
    "field_on_layouts": "fieldOnLayouts",
    "field_in_calcs": "fieldInCalcs",
    "layout_from_scripts": "layoutFromScripts",
    "to_layouts": "toLayouts",
    "to_relationships": "toRelationships",
}


@dataclass
class ReverseRefs:
    """The eight reverse maps. Missing keys read as empty lists."""

    script_callers: dict[str, list[ScriptRef]] = field(default_factory=dict)
    script_on_layouts: dict[str, list[LayoutRef]] = field(default_factory=dict)
    field_in_scripts: dict[str, list[ScriptRef]] = field(default_factory=dict)
    field_on_layouts: dict[str, list[LayoutRef]] = field(default_factory=dict)
    field_in_calcs: dict[str, list[CalcRef]] = field(default_factory=dict)
    layout_from_scripts: dict[str, list[ScriptRef]] = field(
        default_factory=dict
    )
    to_layouts: dict[str, list[LayoutRef]] = field(default_factory=dict)
    to_relationships: dict[str, list[RelationshipRef]] = field(
        default_factory=dict
    )

    def get(self, index: str, key: str) -> list:
        """Entries for key in the named index ([] when absent)."""
        return getattr(self, index).get(key, [])

    def field_ref_count(self, qualified: str) -> int:
        return (
            len(self.field_in_scripts.get(qualified, []))
            + len(self.field_on_layouts.get(qualified, []))
            + len(self.field_in_calcs.get(qualified, []))
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            out: {
                key: [ref.to_dict() for ref in refs]
                for key, refs in getattr(self, attr).items()
            }
            for attr, out in INDEX_NAMES.items()
        }


def build_reverse_references(databases: list[Database]) -> ReverseRefs:
    """Build every reverse index in one pass over all databases.

    Buckets keep first-seen order. Only local script calls are indexed
    as callers; external calls are edges for the cross-file resolver.
    """
    script_callers: defaultdict[str, list[ScriptRef]] = defaultdict(list)
    script_on_layouts: defaultdict[str, list[LayoutRef]] = defaultdict(list)
    field_in_scripts: defaultdict[str, list[ScriptRef]] = defaultdict(list)
    field_on_layouts: defaultdict[str, list[LayoutRef]] = defaultdict(list)
    field_in_calcs: defaultdict[str, list[CalcRef]] = defaultdict(list)
    layout_from_scripts: defaultdict[str, list[ScriptRef]] = defaultdict(list)
    to_layouts: defaultdict[str, list[LayoutRef]] = defaultdict(list)
    to_relationships: defaultdict[str, list[RelationshipRef]] = defaultdict(
        list
    )

    for db in databases:
        db_name = db.name

        for script in db.scripts:
            ref = ScriptRef(script=script.name, db=db_name)
            for called in script.calls_scripts:
                if not called.external:
                    script_callers[called.name].append(ref)
            for layout_name in script.goes_to_layouts:
                layout_from_scripts[layout_name].append(ref)
            for field_ref in script.field_refs:
                field_in_scripts[field_ref].append(ref)

        for layout in db.layouts:
            ref = LayoutRef(layout=layout.name, db=db_name)
            for script_name in layout.script_names:
                bucket = script_on_layouts[script_name]
                if ref not in bucket:
                    bucket.append(ref)
            for field_ref in layout.fields:
                field_on_layouts[field_ref].append(ref)
            if layout.base_table:
                to_layouts[layout.base_table].append(ref)

        for rel in db.relationships:
            if rel.left_table:
                to_relationships[rel.left_table].append(
                    RelationshipRef(rel.id, "left", db_name)
                )
            if rel.right_table:
                to_relationships[rel.right_table].append(
                    RelationshipRef(rel.id, "right", db_name)
                )

        for table, f in db.iter_fields():
            for field_ref in f.calc_field_refs:
                field_in_calcs[field_ref].append(
                    CalcRef(table=table.name, field=f.name, db=db_name)
                )

    return ReverseRefs(
        script_callers=dict(script_callers),
        script_on_layouts=dict(script_on_layouts),
        field_in_scripts=dict(field_in_scripts),
        field_on_layouts=dict(field_on_layouts),
        field_in_calcs=dict(field_in_calcs),
        layout_from_scripts=dict(layout_from_scripts),
        to_layouts=dict(to_layouts),
        to_relationships=dict(to_relationships),
    )
