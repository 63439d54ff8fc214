"""Field usage buckets by reference count."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ddrscope.analysis.orphans import is_system_field
from ddrscope.config import MODERATELY_USED_MAX_REFS, RARELY_USED_MAX_REFS
from ddrscope.index import CalcRef, LayoutRef, ReverseRefs, ScriptRef
from ddrscope.models import Database, qualified_name


@dataclass
class FieldReferences:
    scripts: list[ScriptRef] = field(default_factory=list)
    layouts: list[LayoutRef] = field(default_factory=list)
    calcs: list[CalcRef] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scripts": [r.to_dict() for r in self.scripts],
            "layouts": [r.to_dict() for r in self.layouts],
            "calcs": [r.to_dict() for r in self.calcs],
        }


@dataclass
class FieldUsage:
    name: str
    table: str
    db: str
    data_type: str
    is_calculated: bool
    is_global: bool
    references: FieldReferences

    @property
    def ref_count(self) -> int:
        r = self.references
        return len(r.scripts) + len(r.layouts) + len(r.calcs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "table": self.table,
            "db": self.db,
            "dataType": self.data_type,
            "isCalculated": self.is_calculated,
            "isGlobal": self.is_global,
            "refCount": self.ref_count,
            "references": self.references.to_dict(),
        }


@dataclass
class FieldUsageReport:
    unused: list[FieldUsage] = field(default_factory=list)
    rarely_used: list[FieldUsage] = field(default_factory=list)
    moderately_used: list[FieldUsage] = field(default_factory=list)
    heavily_used: list[FieldUsage] = field(default_factory=list)
    total: int = 0
    calculated: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "unused": [u.to_dict() for u in self.unused],
            "rarelyUsed": [u.to_dict() for u in self.rarely_used],
            "moderatelyUsed": [u.to_dict() for u in self.moderately_used],
            "heavilyUsed": [u.to_dict() for u in self.heavily_used],
            "summary": {
                "total": self.total,
                "unused": len(self.unused),
                "calculated": self.calculated,
            },
        }


def classify_field_usage(
    databases: list[Database], refs: ReverseRefs
) -> FieldUsageReport:
    """Bucket every field: 0 unused, 1 rarely, 2-5 moderately, 6+ heavily.

    Unreferenced system fields (keys, audit stamps) are left out of
    every bucket rather than reported as unused.
    """
    report = FieldUsageReport()
    for db in databases:
        for table, f in db.iter_fields():
            report.total += 1
            if f.is_calculated:
                report.calculated += 1

            key = qualified_name(table.name, f.name)
            usage = FieldUsage(
                name=f.name,
                table=table.name,
                db=db.name,
                data_type=f.data_type,
                is_calculated=f.is_calculated,
                is_global=f.is_global,
                references=FieldReferences(
                    scripts=list(refs.get("field_in_scripts", key)),
                    layouts=list(refs.get("field_on_layouts", key)),
                    calcs=list(refs.get("field_in_calcs", key)),
                ),
            )

            count = usage.ref_count
            if count == 0:
                if not is_system_field(f.name):
                    report.unused.append(usage)
            elif count <= RARELY_USED_MAX_REFS:
                report.rarely_used.append(usage)
            elif count <= MODERATELY_USED_MAX_REFS:
                report.moderately_used.append(usage)
            else:
                report.heavily_used.append(usage)
    return report
