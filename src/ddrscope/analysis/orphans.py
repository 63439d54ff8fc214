"""Unreferenced scripts, layouts, TOs, fields and custom functions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ddrscope.config import RESERVED_LAYOUT_PREFIX, SYSTEM_FIELD_NAMES
from ddrscope.index import ReverseRefs
from ddrscope.lexical import mentions
from ddrscope.models import Database, qualified_name


def is_system_field(name: str) -> bool:
    """Key/audit field heuristic: any allowlisted substring, any case."""
    lowered = name.lower()
    return any(sf in lowered for sf in SYSTEM_FIELD_NAMES)


@dataclass
class OrphanEntity:
    """An orphan script, layout, TO or custom function."""

    name: str
    db: str
    folder: str | None = None  # scripts
    base_table: str | None = None  # layouts and TOs

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name, "db": self.db}
        if self.folder is not None:
            d["folder"] = self.folder
        if self.base_table is not None:
            d["baseTable"] = self.base_table
        return d


@dataclass
class OrphanField:
    name: str
    table: str
    db: str
    data_type: str
    field_type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "table": self.table,
            "db": self.db,
            "dataType": self.data_type,
            "fieldType": self.field_type,
        }


@dataclass
class OrphanReport:
    scripts: list[OrphanEntity] = field(default_factory=list)
    layouts: list[OrphanEntity] = field(default_factory=list)
    table_occurrences: list[OrphanEntity] = field(default_factory=list)
    fields: list[OrphanField] = field(default_factory=list)
    custom_functions: list[OrphanEntity] = field(default_factory=list)
    # value list usage is not indexed; kept for output shape
    value_lists: list[OrphanEntity] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.scripts)
            + len(self.layouts)
            + len(self.table_occurrences)
            + len(self.fields)
            + len(self.custom_functions)
            + len(self.value_lists)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "scripts": [o.to_dict() for o in self.scripts],
            "layouts": [o.to_dict() for o in self.layouts],
            "tableOccurrences": [o.to_dict() for o in self.table_occurrences],
            "fields": [o.to_dict() for o in self.fields],
            "customFunctions": [o.to_dict() for o in self.custom_functions],
            "valueLists": [o.to_dict() for o in self.value_lists],
        }


def find_orphans(databases: list[Database], refs: ReverseRefs) -> OrphanReport:
    """Apply the orphan rules to every entity of every database.

    Custom functions are only searched for in calculated-field text.
    Script step calculations are not scanned, so a function used only
    from scripts is reported as an orphan.
    """
    report = OrphanReport()

    for db in databases:
        for script in db.scripts:
            if not refs.get("script_callers", script.name) and not refs.get(
                "script_on_layouts", script.name
            ):
                report.scripts.append(
                    OrphanEntity(script.name, db.name, folder=script.folder)
                )

        for layout in db.layouts:
            if not refs.get(
                "layout_from_scripts", layout.name
            ) and not layout.name.startswith(RESERVED_LAYOUT_PREFIX):
                report.layouts.append(
                    OrphanEntity(
                        layout.name, db.name, base_table=layout.base_table
                    )
                )

        for to in db.table_occurrences:
            if not refs.get("to_layouts", to.name) and not refs.get(
                "to_relationships", to.name
            ):
                report.table_occurrences.append(
                    OrphanEntity(to.name, db.name, base_table=to.base_table)
                )

        for table, f in db.iter_fields():
            if is_system_field(f.name):
                continue
            if refs.field_ref_count(qualified_name(table.name, f.name)) == 0:
                report.fields.append(
                    OrphanField(
                        name=f.name,
                        table=table.name,
                        db=db.name,
                        data_type=f.data_type,
                        field_type=f.field_type,
                    )
                )

        calc_texts = [f.calc_text for _, f in db.iter_fields() if f.calc_text]
        for cf in db.custom_functions:
            if not any(mentions(text, cf.name) for text in calc_texts):
                report.custom_functions.append(OrphanEntity(cf.name, db.name))

    return report
