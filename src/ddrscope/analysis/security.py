"""Privilege-escalation flags and account hygiene."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ddrscope.models import Database


@dataclass
class FullAccessScript:
    name: str
    db: str
    folder: str | None = None
    in_menu: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "db": self.db,
            "folder": self.folder,
            "inMenu": self.in_menu,
        }


@dataclass
class AccountFinding:
    name: str | None
    db: str
    privilege_set: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "db": self.db,
            "privilegeSet": self.privilege_set,
        }


@dataclass
class SecurityReport:
    full_access_scripts: list[FullAccessScript] = field(default_factory=list)
    # full access and reachable from the Scripts menu
    unrestricted_scripts: list[FullAccessScript] = field(default_factory=list)
    empty_password_accounts: list[AccountFinding] = field(default_factory=list)
    unassigned_extended_privileges: list[AccountFinding] = field(
        default_factory=list
    )

    @property
    def total_full_access(self) -> int:
        return len(self.full_access_scripts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fullAccessScripts": [
                s.to_dict() for s in self.full_access_scripts
            ],
            "unrestrictedScripts": [
                {"name": s.name, "db": s.db} for s in self.unrestricted_scripts
            ],
            "totalFullAccess": self.total_full_access,
            "emptyPasswordAccounts": [
                a.to_dict() for a in self.empty_password_accounts
            ],
            "unassignedExtendedPrivileges": [
                e.to_dict() for e in self.unassigned_extended_privileges
            ],
        }


def find_security_issues(databases: list[Database]) -> SecurityReport:
    report = SecurityReport()
    for db in databases:
        for script in db.scripts:
            if not script.run_full_access:
                continue
            entry = FullAccessScript(
                name=script.name,
                db=db.name,
                folder=script.folder,
                in_menu=script.include_in_menu,
            )
            report.full_access_scripts.append(entry)
            if script.include_in_menu:
                report.unrestricted_scripts.append(entry)

        for account in db.accounts:
            if account.empty_password and account.status == "Active":
                report.empty_password_accounts.append(
                    AccountFinding(
                        name=account.name,
                        db=db.name,
                        privilege_set=account.privilege_set,
                    )
                )

        for ep in db.extended_privileges:
            if not ep.privilege_sets:
                report.unassigned_extended_privileges.append(
                    AccountFinding(name=ep.name, db=db.name)
                )
    return report
