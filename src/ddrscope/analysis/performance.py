"""Performance hints: wide tables, long scripts, costly calcs, busy TOs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ddrscope.config import (
    AGGREGATE_CALLS,
    HEAVY_TO_HIGH_RELATIONSHIPS,
    HEAVY_TO_RELATIONSHIPS,
    LARGE_SCRIPT_HIGH_STEPS,
    LARGE_SCRIPT_STEPS,
    WIDE_TABLE_FIELDS,
    WIDE_TABLE_HIGH_FIELDS,
)
from ddrscope.index import ReverseRefs
from ddrscope.models import Database, Field

# (lowercase needles, reason, severity) in priority order
UNSTORED_CALC_RULES: list[tuple[tuple[str, ...], str, str]] = [
    (("executesql",), "ExecuteSQL", "high"),
    (("getfield", "evaluate"), "Dynamic evaluation", "medium"),
    (AGGREGATE_CALLS, "Aggregate function", "medium"),
]


@dataclass
class WideTable:
    name: str
    db: str
    field_count: int
    severity: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "db": self.db,
            "fieldCount": self.field_count,
            "severity": self.severity,
        }


@dataclass
class LargeScript:
    name: str
    db: str
    folder: str | None
    step_count: int
    severity: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "db": self.db,
            "folder": self.folder,
            "stepCount": self.step_count,
            "severity": self.severity,
        }


@dataclass
class UnstoredCalc:
    table: str
    field: str
    db: str
    reason: str
    severity: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "field": self.field,
            "db": self.db,
            "reason": self.reason,
            "severity": self.severity,
        }


@dataclass
class FieldInventoryItem:
    """Container or global field; informational, no severity."""

    table: str
    field: str
    db: str
    data_type: str
    is_global: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "field": self.field,
            "db": self.db,
            "dataType": self.data_type,
            "isGlobal": self.is_global,
        }


@dataclass
class HeavyTO:
    name: str
    db: str
    relationship_count: int
    severity: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "db": self.db,
            "relationshipCount": self.relationship_count,
            "severity": self.severity,
        }


@dataclass
class PerformanceReport:
    wide_tables: list[WideTable] = field(default_factory=list)
    large_scripts: list[LargeScript] = field(default_factory=list)
    unstored_calcs: list[UnstoredCalc] = field(default_factory=list)
    container_fields: list[FieldInventoryItem] = field(default_factory=list)
    global_fields: list[FieldInventoryItem] = field(default_factory=list)
    heavy_tos: list[HeavyTO] = field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return (
            len(self.unstored_calcs)
            + len(self.wide_tables)
            + len(self.large_scripts)
            + len(self.heavy_tos)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "wideTables": [t.to_dict() for t in self.wide_tables],
            "largeScripts": [s.to_dict() for s in self.large_scripts],
            "unstoredCalcs": [c.to_dict() for c in self.unstored_calcs],
            "containerFields": [c.to_dict() for c in self.container_fields],
            "globalFields": [g.to_dict() for g in self.global_fields],
            "heavyTOs": [t.to_dict() for t in self.heavy_tos],
        }


def classify_unstored_calc(f: Field) -> tuple[str, str] | None:
    """(reason, severity) for a suspicious calculated field, else None."""
    if not f.is_calculated or not f.calc_text:
        return None
    text = f.calc_text.lower()
    for needles, reason, severity in UNSTORED_CALC_RULES:
        if any(n in text for n in needles):
            return reason, severity
    return None


def find_performance_issues(
    databases: list[Database], refs: ReverseRefs
) -> PerformanceReport:
    report = PerformanceReport()
    for db in databases:
        for table in db.tables:
            if table.field_count > WIDE_TABLE_FIELDS:
                report.wide_tables.append(
                    WideTable(
                        name=table.name,
                        db=db.name,
                        field_count=table.field_count,
                        severity="high"
                        if table.field_count > WIDE_TABLE_HIGH_FIELDS
                        else "medium",
                    )
                )

        for script in db.scripts:
            if script.step_count > LARGE_SCRIPT_STEPS:
                report.large_scripts.append(
                    LargeScript(
                        name=script.name,
                        db=db.name,
                        folder=script.folder,
                        step_count=script.step_count,
                        severity="high"
                        if script.step_count > LARGE_SCRIPT_HIGH_STEPS
                        else "medium",
                    )
                )

        for table, f in db.iter_fields():
            suspicion = classify_unstored_calc(f)
            if suspicion:
                reason, severity = suspicion
                report.unstored_calcs.append(
                    UnstoredCalc(
                        table=table.name,
                        field=f.name,
                        db=db.name,
                        reason=reason,
                        severity=severity,
                    )
                )
            item = FieldInventoryItem(
                table=table.name,
                field=f.name,
                db=db.name,
                data_type=f.data_type,
                is_global=f.is_global,
            )
            if f.data_type == "Container":
                report.container_fields.append(item)
            if f.is_global:
                report.global_fields.append(item)

        for to in db.table_occurrences:
            rels = refs.get("to_relationships", to.name)
            count = sum(1 for r in rels if r.db == db.name)
            if count > HEAVY_TO_RELATIONSHIPS:
                report.heavy_tos.append(
                    HeavyTO(
                        name=to.name,
                        db=db.name,
                        relationship_count=count,
                        severity="high"
                        if count > HEAVY_TO_HIGH_RELATIONSHIPS
                        else "medium",
                    )
                )
    return report
