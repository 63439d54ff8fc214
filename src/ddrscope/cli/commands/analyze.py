"""Analyze commands - report card and orphan listing."""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.markup import escape

from ddrscope import console
from ddrscope.analysis import Analysis, analyze, find_orphans
from ddrscope.cli._common import Files, enable_debug, load_files


def _print_report_card(result: Analysis) -> None:
    cx = result.complexity
    console.header("Report Card")
    console.score(cx.score, f"complexity ({cx.level})")
    for factor in cx.factors:
        console.dim(f"        {factor}")

    totals = cx.totals
    console.subheader("\nTotals")
    console.key_value("databases", totals.databases, indent=2)
    console.key_value("tables", totals.tables, indent=2)
    console.key_value(
        "fields", f"{totals.fields} ({totals.calc_fields} calculated)", indent=2
    )
    console.key_value("table occurrences", totals.table_occurrences, indent=2)
    console.key_value("relationships", totals.relationships, indent=2)
    console.key_value("layouts", totals.layouts, indent=2)
    console.key_value(
        "scripts", f"{totals.scripts} ({totals.script_steps} steps)", indent=2
    )
    console.key_value("value lists", totals.value_lists, indent=2)
    console.key_value("custom functions", totals.custom_functions, indent=2)

    orphans = result.orphans
    console.subheader("\nOrphans")
    console.key_value("scripts", len(orphans.scripts), indent=2)
    console.key_value("layouts", len(orphans.layouts), indent=2)
    for label, items in (
        ("table occurrences", orphans.table_occurrences),
        ("fields", orphans.fields),
        ("custom functions", orphans.custom_functions),
    ):
        console.key_value(label, len(items), indent=2)

    sec = result.security
    console.subheader("\nSecurity")
    console.key_value("full-access scripts", sec.total_full_access, indent=2)
    console.key_value(
        "in scripts menu", len(sec.unrestricted_scripts), indent=2
    )
    console.key_value(
        "active accounts without password",
        len(sec.empty_password_accounts),
        indent=2,
    )

    ind = result.indirection
    console.subheader("\nIndirection")
    console.key_value("ExecuteSQL", len(ind.execute_sql), indent=2)
    console.key_value("Evaluate", len(ind.evaluate), indent=2)
    console.key_value("dynamic references", len(ind.dynamic_refs), indent=2)

    usage = result.field_usage
    console.subheader("\nField Usage")
    console.key_value("unused", len(usage.unused), indent=2)
    console.key_value("rarely used", len(usage.rarely_used), indent=2)
    console.key_value("moderately used", len(usage.moderately_used), indent=2)
    console.key_value("heavily used", len(usage.heavily_used), indent=2)

    perf = result.performance
    console.subheader("\nPerformance")
    for label, items in (
        ("wide tables", perf.wide_tables),
        ("large scripts", perf.large_scripts),
        ("unstored calc suspects", perf.unstored_calcs),
        ("heavy table occurrences", perf.heavy_tos),
    ):
        console.key_value(label, len(items), indent=2)
    for calc in perf.unstored_calcs:
        name = escape(f"{calc.table}::{calc.field}")
        console.info(
            f"    {console.severity(calc.severity)} {name} ({calc.reason})"
        )
    high = [
        item
        for item in (
            *perf.wide_tables,
            *perf.large_scripts,
            *perf.unstored_calcs,
            *perf.heavy_tos,
        )
        if item.severity == "high"
    ]
    if high:
        console.warning(f"{len(high)} high-severity performance finding(s)")


@dataclass
class Analyze:
    """Run all analyses and print a report card."""

    files: Files = field(
        default_factory=tuple,
        metadata={"help": "DDR XML files or directories"},
    )
    json: bool = field(
        default=False,
        metadata={"help": "Output the full analysis as JSON"},
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
        """Execute the analyze command."""
        enable_debug(self.debug)
        corpus = load_files(self.files, self.workers)
        if corpus is None:
            return 1

        result = analyze(corpus)
        if self.json:
            console.json(result.to_dict())
        else:
            _print_report_card(result)
        return 0


@dataclass
class Orphans:
    """List scripts, layouts, TOs, fields and custom functions nothing uses."""

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
        """Execute the orphans command."""
        enable_debug(self.debug)
        corpus = load_files(self.files)
        if corpus is None:
            return 1

        report = find_orphans(corpus.databases, corpus.reverse_refs)
        if self.json:
            console.json(report.to_dict())
            return 0

        if not report.total:
            console.success("no orphans found")
            return 0

        if report.scripts:
            console.table(
                f"Scripts ({len(report.scripts)})",
                ["Script", "Folder", "Database"],
                [(o.name, o.folder, o.db) for o in report.scripts],
            )
        if report.layouts:
            console.table(
                f"Layouts ({len(report.layouts)})",
                ["Layout", "Table Occurrence", "Database"],
                [(o.name, o.base_table, o.db) for o in report.layouts],
            )
        if report.table_occurrences:
            console.table(
                f"Table Occurrences ({len(report.table_occurrences)})",
                ["TO", "Base Table", "Database"],
                [
                    (o.name, o.base_table, o.db)
                    for o in report.table_occurrences
                ],
            )
        if report.fields:
            console.table(
                f"Fields ({len(report.fields)})",
                ["Field", "Type", "Database"],
                [
                    (f"{o.table}::{o.name}", o.data_type, o.db)
                    for o in report.fields
                ],
            )
        if report.custom_functions:
            console.table(
                f"Custom Functions ({len(report.custom_functions)})",
                ["Function", "Database"],
                [(o.name, o.db) for o in report.custom_functions],
            )
        console.key_value("total", report.total)
        return 0
