"""Report-card complexity score.

Each factor contributes ``min(value / cap, 1) * weight`` points; the
weights sum to 95 and multi-document corpora add up to 5 more, so the
score lands in [0, 100]. A factor whose raw value passes its "notable"
threshold is also named in ``factors``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from ddrscope.config import (
    COMPLEXITY_FACTORS,
    COMPLEXITY_LEVELS,
    COMPLEXITY_TOP_LEVEL,
    MULTI_FILE_BONUS_CAP,
)
from ddrscope.models import Database


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class DatabaseMetrics:
    name: str
    tables: int = 0
    fields: int = 0
    calc_fields: int = 0
    tos: int = 0
    rels: int = 0
    layouts: int = 0
    scripts: int = 0
    script_steps: int = 0
    vls: int = 0
    cfs: int = 0

    @property
    def avg_fields_per_table(self) -> int:
        return _round_half_up(self.fields / self.tables) if self.tables else 0

    @property
    def avg_steps_per_script(self) -> int:
        if not self.scripts:
            return 0
        return _round_half_up(self.script_steps / self.scripts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tables": self.tables,
            "fields": self.fields,
            "calcFields": self.calc_fields,
            "tos": self.tos,
            "rels": self.rels,
            "layouts": self.layouts,
            "scripts": self.scripts,
            "scriptSteps": self.script_steps,
            "vls": self.vls,
            "cfs": self.cfs,
            "avgFieldsPerTable": self.avg_fields_per_table,
            "avgStepsPerScript": self.avg_steps_per_script,
        }


@dataclass
class Totals:
    databases: int = 0
    tables: int = 0
    fields: int = 0
    calc_fields: int = 0
    table_occurrences: int = 0
    relationships: int = 0
    layouts: int = 0
    scripts: int = 0
    script_steps: int = 0
    value_lists: int = 0
    custom_functions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "databases": self.databases,
            "tables": self.tables,
            "fields": self.fields,
            "calcFields": self.calc_fields,
            "tableOccurrences": self.table_occurrences,
            "relationships": self.relationships,
            "layouts": self.layouts,
            "scripts": self.scripts,
            "scriptSteps": self.script_steps,
            "valueLists": self.value_lists,
            "customFunctions": self.custom_functions,
        }


@dataclass
class ComplexityReport:
    totals: Totals
    averages: dict[str, int] = field(default_factory=dict)
    score: int = 0
    level: str = "Simple"
    factors: list[str] = field(default_factory=list)
    per_db: list[DatabaseMetrics] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": self.totals.to_dict(),
            "averages": dict(self.averages),
            "complexity": {
                "score": self.score,
                "level": self.level,
                "factors": list(self.factors),
            },
            "perDb": [m.to_dict() for m in self.per_db],
        }


def measure_database(db: Database) -> DatabaseMetrics:
    metrics = DatabaseMetrics(
        name=db.name,
        tables=len(db.tables),
        tos=len(db.table_occurrences),
        rels=len(db.relationships),
        layouts=len(db.layouts),
        scripts=len(db.scripts),
        vls=len(db.value_lists),
        cfs=len(db.custom_functions),
    )
    for _, f in db.iter_fields():
        metrics.fields += 1
        if f.is_calculated:
            metrics.calc_fields += 1
    metrics.script_steps = sum(s.step_count for s in db.scripts)
    return metrics


def complexity_level(score: float) -> str:
    for bound, level in COMPLEXITY_LEVELS:
        if score < bound:
            return level
    return COMPLEXITY_TOP_LEVEL


def score_factors(
    raw: dict[str, float], document_count: int
) -> tuple[float, list[str]]:
    """Weighted, capped score for raw factor values plus notable factors."""
    score = 0.0
    factors: list[str] = []
    labels = {
        "tables": lambda v: f"{int(v)} tables",
        "fields": lambda v: f"{int(v)} fields",
        "scripts": lambda v: f"{int(v)} scripts",
        "avg_steps": lambda v: f"{_round_half_up(v)} avg steps/script",
        "relationships": lambda v: f"{int(v)} relationships",
        "table_occurrences": lambda v: f"{int(v)} TOs",
        "calc_ratio": lambda v: f"{_round_half_up(v * 100)}% calc fields",
    }
    for name, (cap, weight, notable) in COMPLEXITY_FACTORS.items():
        value = raw.get(name, 0)
        score += min(value / cap, 1) * weight
        if value > notable:
            factors.append(labels[name](value))

    if document_count > 1:
        score += min(document_count, MULTI_FILE_BONUS_CAP)
        factors.append(f"{document_count} files")

    return score, factors


def calculate_complexity(databases: list[Database]) -> ComplexityReport:
    totals = Totals(databases=len(databases))
    per_db: list[DatabaseMetrics] = []

    for db in databases:
        m = measure_database(db)
        totals.tables += m.tables
        totals.fields += m.fields
        totals.calc_fields += m.calc_fields
        totals.table_occurrences += m.tos
        totals.relationships += m.rels
        totals.layouts += m.layouts
        totals.scripts += m.scripts
        totals.script_steps += m.script_steps
        totals.value_lists += m.vls
        totals.custom_functions += m.cfs
        per_db.append(m)

    num_dbs = len(databases) or 1
    averages = {
        "tablesPerDb": _round_half_up(totals.tables / num_dbs),
        "fieldsPerDb": _round_half_up(totals.fields / num_dbs),
        "scriptsPerDb": _round_half_up(totals.scripts / num_dbs),
        "layoutsPerDb": _round_half_up(totals.layouts / num_dbs),
    }

    steps, fields = totals.script_steps, totals.fields
    raw = {
        "tables": totals.tables,
        "fields": totals.fields,
        "scripts": totals.scripts,
        "avg_steps": steps / totals.scripts if totals.scripts else 0,
        "relationships": totals.relationships,
        "table_occurrences": totals.table_occurrences,
        "calc_ratio": totals.calc_fields / fields if fields else 0,
    }
    score, factors = score_factors(raw, len(databases))

    return ComplexityReport(
        totals=totals,
        averages=averages,
        score=_round_half_up(score),
        # level uses the unrounded score
        level=complexity_level(score),
        factors=factors,
        per_db=per_db,
    )
