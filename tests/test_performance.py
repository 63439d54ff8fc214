"""Tests for performance hints."""

import pytest

from ddrscope.analysis.performance import (
    classify_unstored_calc,
    find_performance_issues,
)
from ddrscope.index import build_reverse_references
from ddrscope.mapper import parse_document
from ddrscope.models import Database, Field, Relationship, TableOccurrence

from conftest import ddr_document, script_with_steps, table_with_fields


def _issues(databases):
    return find_performance_issues(
        databases, build_reverse_references(databases)
    )


def _calc(text, field_type="Calculated"):
    return Field(id="1", name="C", field_type=field_type, calc_text=text)


class TestWideTables:
    @pytest.mark.parametrize(
        "count, severity",
        [(50, None), (51, "medium"), (100, "medium"), (101, "high")],
    )
    def test_thresholds(self, count, severity):
        db = parse_document(
            ddr_document("Wide.fmp12", table_with_fields("Wide", count))
        )
        report = _issues([db])
        if severity is None:
            assert report.wide_tables == []
        else:
            (wide,) = report.wide_tables
            assert (wide.name, wide.field_count) == ("Wide", count)
            assert wide.severity == severity


class TestLargeScripts:
    @pytest.mark.parametrize(
        "count, severity",
        [(100, None), (101, "medium"), (200, "medium"), (201, "high")],
    )
    def test_thresholds(self, count, severity):
        db = parse_document(
            ddr_document("Long.fmp12", script_with_steps("Import All", count))
        )
        report = _issues([db])
        if severity is None:
            assert report.large_scripts == []
        else:
            (large,) = report.large_scripts
            assert large.step_count == count
            assert large.severity == severity
            assert large.to_dict()["folder"] is None


class TestUnstoredCalcs:
    def test_fixture_corpus(self, corpus):
        report = _issues(corpus.databases)
        assert [
            (c.table, c.field, c.reason, c.severity)
            for c in report.unstored_calcs
        ] == [
            ("Contacts", "Open Balance", "ExecuteSQL", "high"),
            ("Invoices", "Items", "Aggregate function", "medium"),
        ]

    @pytest.mark.parametrize(
        "text, expected",
        [
            ('ExecuteSQL ( "SELECT 1" ; "" ; "" )', ("ExecuteSQL", "high")),
            ('GetField ( "T::" & $f )', ("Dynamic evaluation", "medium")),
            ('Evaluate ( "1" )', ("Dynamic evaluation", "medium")),
            ("Sum(Lines::Amount)", ("Aggregate function", "medium")),
            ("Count(Lines::Amount)", ("Aggregate function", "medium")),
            # first matching rule wins
            ("Evaluate ( ExecuteSQL ( q ) )", ("ExecuteSQL", "high")),
            ("Upper ( T::Name )", None),
            ("", None),
        ],
    )
    def test_classify(self, text, expected):
        assert classify_unstored_calc(_calc(text)) == expected

    def test_only_calculated_fields(self):
        assert classify_unstored_calc(_calc("Sum(T::x)", "Normal")) is None


class TestFieldInventory:
    def test_containers_and_globals(self, corpus):
        report = _issues(corpus.databases)
        assert [c.field for c in report.container_fields] == ["Photo"]
        assert [g.field for g in report.global_fields] == ["gCounter"]
        assert report.global_fields[0].to_dict() == {
            "table": "Contacts",
            "field": "gCounter",
            "db": "Contacts",
            "dataType": "Number",
            "isGlobal": True,
        }

    def test_inventory_is_not_an_issue(self, corpus):
        report = _issues(corpus.databases)
        assert report.issue_count == 2


class TestHeavyTOs:
    def _hub(self, spokes, name="Hub", db_name="Main"):
        return Database(
            name=db_name,
            table_occurrences=[
                TableOccurrence(id="1", name=name, base_table=name)
            ],
            relationships=[
                Relationship(str(i), left_table=name, right_table=f"S{i}")
                for i in range(spokes)
            ],
        )

    @pytest.mark.parametrize(
        "spokes, severity",
        [(10, None), (11, "medium"), (20, "medium"), (21, "high")],
    )
    def test_thresholds(self, spokes, severity):
        report = _issues([self._hub(spokes)])
        if severity is None:
            assert report.heavy_tos == []
        else:
            (heavy,) = report.heavy_tos
            assert (heavy.name, heavy.relationship_count) == ("Hub", spokes)
            assert heavy.severity == severity

    def test_counted_per_database(self):
        # same TO name in two files; neither is heavy on its own
        report = _issues(
            [self._hub(6, db_name="One"), self._hub(6, db_name="Two")]
        )
        assert report.heavy_tos == []

    def test_fixture_has_none(self, corpus):
        report = _issues(corpus.databases)
        assert report.heavy_tos == []
        assert report.wide_tables == []
        assert report.large_scripts == []


class TestOutputShape:
    def test_keys(self, corpus):
        d = _issues(corpus.databases).to_dict()
        assert set(d) == {
            "wideTables",
            "largeScripts",
            "unstoredCalcs",
            "containerFields",
            "globalFields",
            "heavyTOs",
        }
        assert d["unstoredCalcs"][0] == {
            "table": "Contacts",
            "field": "Open Balance",
            "db": "Contacts",
            "reason": "ExecuteSQL",
            "severity": "high",
        }
