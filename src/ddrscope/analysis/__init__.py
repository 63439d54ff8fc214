"""Rule-based analyses over an assembled corpus.

The six analyses share no state and may run in any order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ddrscope.analysis.complexity import ComplexityReport, calculate_complexity
from ddrscope.analysis.indirection import (
    IndirectionReport,
    find_indirection_sources,
)
from ddrscope.analysis.orphans import (
    OrphanReport,
    find_orphans,
    is_system_field,
)
from ddrscope.analysis.performance import (
    PerformanceReport,
    find_performance_issues,
)
from ddrscope.analysis.security import SecurityReport, find_security_issues
from ddrscope.analysis.usage import FieldUsageReport, classify_field_usage
from ddrscope.corpus import Corpus


@dataclass
class Analysis:
    orphans: OrphanReport
    security: SecurityReport
    indirection: IndirectionReport
    complexity: ComplexityReport
    field_usage: FieldUsageReport
    performance: PerformanceReport

    def to_dict(self) -> dict[str, Any]:
        return {
            "orphans": self.orphans.to_dict(),
            "security": self.security.to_dict(),
            "indirection": self.indirection.to_dict(),
            "complexity": self.complexity.to_dict(),
            "fieldUsage": self.field_usage.to_dict(),
            "performance": self.performance.to_dict(),
        }


def analyze(corpus: Corpus) -> Analysis:
    dbs = corpus.databases
    refs = corpus.reverse_refs
    return Analysis(
        orphans=find_orphans(dbs, refs),
        security=find_security_issues(dbs),
        indirection=find_indirection_sources(dbs),
        complexity=calculate_complexity(dbs),
        field_usage=classify_field_usage(dbs, refs),
        performance=find_performance_issues(dbs, refs),
    )


__all__ = [
    "Analysis",
    "ComplexityReport",
    "FieldUsageReport",
    "IndirectionReport",
    "OrphanReport",
    "PerformanceReport",
    "SecurityReport",
    "analyze",
    "calculate_complexity",
    "classify_field_usage",
    "find_indirection_sources",
    "find_orphans",
    "find_performance_issues",
    "find_security_issues",
    "is_system_field",
]
