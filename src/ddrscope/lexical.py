"""Lexical scanning of FileMaker calculation text.

Nothing here parses the calculation language. Field references are
found by pattern and indirection by keyword, so the results are
approximate: a reference inside a string literal still counts, and a
referenced field is never checked for existence.
"""

from __future__ import annotations

import re

from ddrscope.models import IndirectionFinding

# TO::Field or TO::"Field Name"
FIELD_REFERENCE_PATTERN = re.compile(
    r'([A-Za-z_][A-Za-z0-9_ ]*)::("[^"]+"|[A-Za-z_][A-Za-z0-9_]*)'
)

# $var or $$global followed by an identifier character
VARIABLE_SIGIL_PATTERN = re.compile(r"\$[a-z_]", re.IGNORECASE)

# type -> (lowercase keywords, description); order is report order
INDIRECTION_KEYWORDS: dict[str, tuple[list[str], str]] = {
    "ExecuteSQL": (["executesql"], "Direct SQL query execution"),
    "Evaluate": (["evaluate("], "Dynamic calculation evaluation"),
    "GetValue": (["getvalue(", "valuetable"], "Dynamic value list access"),
}

DYNAMIC_NAVIGATION_VERBS = ("perform script", "go to layout")
DYNAMIC_REFERENCE_DESCRIPTION = "Variable-based navigation"


def extract_field_references(calc_text: str | None) -> list[str]:
    """Return qualified field names referenced in calc_text.

    Quotes around a field name are stripped. Results keep first-seen
    order and contain no duplicates.
    """
    if not calc_text:
        return []

    refs: list[str] = []
    for match in FIELD_REFERENCE_PATTERN.finditer(calc_text):
        field_name = match.group(2)
        if field_name.startswith('"') and field_name.endswith('"'):
            field_name = field_name[1:-1]
        ref = f"{match.group(1)}::{field_name}"
        if ref not in refs:
            refs.append(ref)
    return refs


def detect_indirection(calc_text: str | None) -> list[IndirectionFinding]:
    """Return indirection tags found in calc_text, each at most once."""
    if not calc_text:
        return []

    text = calc_text.lower()
    findings: list[IndirectionFinding] = []

    for ind_type, (keywords, description) in INDIRECTION_KEYWORDS.items():
        if any(kw in text for kw in keywords):
            findings.append(
                IndirectionFinding(type=ind_type, description=description)
            )

    if VARIABLE_SIGIL_PATTERN.search(calc_text) and any(
        verb in text for verb in DYNAMIC_NAVIGATION_VERBS
    ):
        findings.append(
            IndirectionFinding(
                type="DynamicReference",
                description=DYNAMIC_REFERENCE_DESCRIPTION,
            )
        )

    return findings


def mentions(calc_text: str | None, name: str) -> bool:
    """Case-insensitive substring test of name in calc_text."""
    if not calc_text or not name:
        return False
    return name.lower() in calc_text.lower()
