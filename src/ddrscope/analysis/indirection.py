"""Inventory of runtime indirection across scripts and fields."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ddrscope.models import Database


@dataclass
class IndirectionSource:
    location: str  # script, field or auto-enter
    type: str
    db: str
    script: str | None = None
    step: int | None = None
    table: str | None = None
    field: str | None = None

    @property
    def origin(self) -> str:
        if self.location == "script":
            return f"{self.script} (step {self.step})"
        return f"{self.table}::{self.field}"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "location": self.location,
            "type": self.type,
            "db": self.db,
        }
        if self.location == "script":
            d["script"] = self.script
            d["step"] = self.step
        else:
            d["table"] = self.table
            d["field"] = self.field
        return d


@dataclass
class IndirectionReport:
    execute_sql: list[IndirectionSource] = field(default_factory=list)
    evaluate: list[IndirectionSource] = field(default_factory=list)
    dynamic_refs: list[IndirectionSource] = field(default_factory=list)
    by_type: dict[str, list[IndirectionSource]] = field(default_factory=dict)

    def _add(self, entry: IndirectionSource, bucketed: bool = True) -> None:
        if bucketed:
            if entry.type == "ExecuteSQL":
                self.execute_sql.append(entry)
            elif entry.type == "Evaluate":
                self.evaluate.append(entry)
            else:
                self.dynamic_refs.append(entry)
        self.by_type.setdefault(entry.type, []).append(entry)

    def to_dict(self) -> dict[str, Any]:
        return {
            "executeSQL": [e.to_dict() for e in self.execute_sql],
            "evaluate": [e.to_dict() for e in self.evaluate],
            "dynamicRefs": [e.to_dict() for e in self.dynamic_refs],
            "byType": {
                t: [e.to_dict() for e in entries]
                for t, entries in self.by_type.items()
            },
        }


def find_indirection_sources(databases: list[Database]) -> IndirectionReport:
    """Merge per-script and per-field indirection findings.

    Auto-enter findings only appear under by_type; the three main
    buckets cover script steps and calculated fields.
    """
    report = IndirectionReport()
    for db in databases:
        for script in db.scripts:
            for ind in script.indirection:
                report._add(
                    IndirectionSource(
                        location="script",
                        type=ind.type,
                        db=db.name,
                        script=script.name,
                        step=ind.step,
                    )
                )

        for table, f in db.iter_fields():
            for ind in f.indirection:
                report._add(
                    IndirectionSource(
                        location="field",
                        type=ind.type,
                        db=db.name,
                        table=table.name,
                        field=f.name,
                    )
                )
            for ind in f.auto_enter_indirection:
                report._add(
                    IndirectionSource(
                        location="auto-enter",
                        type=ind.type,
                        db=db.name,
                        table=table.name,
                        field=f.name,
                    ),
                    bucketed=False,
                )
    return report
