"""Tests for security flags."""

from ddrscope.analysis.security import find_security_issues
from ddrscope.models import (
    Account,
    Database,
    ExtendedPrivilege,
    Script,
)


class TestFindSecurityIssues:
    def test_fixture_corpus(self, corpus):
        report = find_security_issues(corpus.databases)
        assert [(s.name, s.in_menu) for s in report.full_access_scripts] == [
            ("Reset All", True),
            ("Archive", False),
        ]
        assert [s.name for s in report.unrestricted_scripts] == ["Reset All"]
        assert report.total_full_access == 2
        assert [a.name for a in report.empty_password_accounts] == ["Guest"]
        assert report.empty_password_accounts[0].privilege_set == (
            "[Read-Only Access]"
        )
        assert [e.name for e in report.unassigned_extended_privileges] == [
            "fmwebdirect"
        ]

    def test_unrestricted_is_subset_of_full_access(self, corpus):
        report = find_security_issues(corpus.databases)
        full = {(s.name, s.db) for s in report.full_access_scripts}
        for s in report.unrestricted_scripts:
            assert (s.name, s.db) in full
            assert s.in_menu

    def test_inactive_accounts_ignored(self):
        db = Database(
            name="D",
            accounts=[
                Account(
                    id="1",
                    name="Old",
                    status="Inactive",
                    privilege_set="[Full Access]",
                    empty_password=True,
                )
            ],
        )
        assert find_security_issues([db]).empty_password_accounts == []

    def test_output_shape(self):
        db = Database(
            name="D",
            scripts=[
                Script(
                    id="1",
                    name="Nuke",
                    folder="Admin",
                    include_in_menu=True,
                    run_full_access=True,
                )
            ],
            extended_privileges=[ExtendedPrivilege(id="1", name="fmxml")],
        )
        d = find_security_issues([db]).to_dict()
        assert d["fullAccessScripts"] == [
            {"name": "Nuke", "db": "D", "folder": "Admin", "inMenu": True}
        ]
        assert d["unrestrictedScripts"] == [{"name": "Nuke", "db": "D"}]
        assert d["totalFullAccess"] == 1
        assert d["emptyPasswordAccounts"] == []
        assert d["unassignedExtendedPrivileges"] == [
            {"name": "fmxml", "db": "D", "privilegeSet": None}
        ]

    def test_no_databases(self):
        report = find_security_issues([])
        assert report.total_full_access == 0
        assert report.unrestricted_scripts == []
