"""DDR entity model - one Database record per source document.

Entities are plain dataclasses created once by the mapper. Links between
entities (TO -> base table, relationship -> TO, calc -> field) are name
strings resolved by lookup, never object references, so each document
can be mapped on its own and related later by the index builder.

``to_dict`` on every record produces the camelCase JSON shape consumed
by display layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union


def qualified_name(table: str, field_name: str) -> str:
    """Build the `Table::Field` key used by every field index."""
    return f"{table}::{field_name}"


# ---------------------------------------------------------------------------
# Lexical findings
# ---------------------------------------------------------------------------


@dataclass
class IndirectionFinding:
    """An indirection keyword found in calculation text."""

    type: str  # ExecuteSQL, Evaluate, GetValue, DynamicReference
    description: str
    step: int | None = None  # script step index, when found in a script

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            **({"step": self.step} if self.step is not None else {}),
        }


# ---------------------------------------------------------------------------
# Tables and fields
# ---------------------------------------------------------------------------


@dataclass
class FieldStorage:
    global_: bool = False
    indexed: bool = False
    index_type: str | None = None
    repetitions: int | None = None  # only set when > 1
    stored_calculation: bool | None = None


@dataclass
class LookupInfo:
    table: str | None = None
    field: str | None = None


@dataclass
class SummaryInfo:
    operation: str | None = None  # Total, Average, Count, ...
    field: str | None = None


@dataclass
class Field:
    """A field in a base table."""

    id: str | None
    name: str
    data_type: str = "Text"
    field_type: str = "Normal"  # Normal, Calculated, Summary
    comment: str = ""
    storage: FieldStorage | None = None
    auto_enter: str | None = None  # summary, e.g. "Serial, Calc"
    auto_enter_calc: str | None = None
    auto_enter_indirection: list[IndirectionFinding] = field(
        default_factory=list
    )
    lookup: LookupInfo | None = None
    validation: str | None = None  # summary, e.g. "Required, Unique"
    validation_calc: str | None = None
    summary: SummaryInfo | None = None
    # only populated for Calculated fields
    calc_text: str | None = None
    calc_field_refs: list[str] = field(default_factory=list)
    indirection: list[IndirectionFinding] = field(default_factory=list)

    @property
    def is_calculated(self) -> bool:
        return self.field_type == "Calculated"

    @property
    def is_global(self) -> bool:
        return bool(self.storage and self.storage.global_)

    def qualified_name(self, table: str) -> str:
        return qualified_name(table, self.name)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "dataType": self.data_type,
            "fieldType": self.field_type,
            "comment": self.comment,
        }
        if self.storage is not None:
            d["global"] = self.storage.global_
            d["indexed"] = self.storage.indexed
            d["indexType"] = self.storage.index_type
            if self.storage.repetitions:
                d["repetitions"] = self.storage.repetitions
            if self.storage.stored_calculation is not None:
                d["storedCalculation"] = self.storage.stored_calculation
        if self.auto_enter is not None:
            d["autoEnter"] = self.auto_enter
        if self.auto_enter_calc is not None:
            d["autoEnterCalc"] = self.auto_enter_calc
            d["autoEnterIndirection"] = [
                i.to_dict() for i in self.auto_enter_indirection
            ]
        if self.lookup is not None:
            d["lookup"] = {
                "table": self.lookup.table,
                "field": self.lookup.field,
            }
        if self.validation is not None:
            d["validation"] = self.validation
        if self.validation_calc is not None:
            d["validationCalc"] = self.validation_calc
        if self.summary is not None:
            d["summary"] = {
                "operation": self.summary.operation,
                "field": self.summary.field,
            }
        if self.calc_text is not None:
            d["calcText"] = self.calc_text
            d["calcFieldRefs"] = list(self.calc_field_refs)
            d["indirection"] = [i.to_dict() for i in self.indirection]
        return d


@dataclass
class Table:
    """A base table and its ordered fields."""

    id: str | None
    name: str
    record_count: str = "0"
    comment: str = ""
    fields: list[Field] = field(default_factory=list)

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "records": self.record_count,
            "comment": self.comment,
            "fieldCount": self.field_count,
            "fields": [f.to_dict() for f in self.fields],
        }


# ---------------------------------------------------------------------------
# Relationship graph
# ---------------------------------------------------------------------------


@dataclass
class TableOccurrence:
    id: str | None
    name: str
    base_table: str | None
    external_file: str | None = None  # set for shadow TOs

    @property
    def is_shadow(self) -> bool:
        return self.external_file is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "baseTable": self.base_table,
            **(
                {"externalFile": self.external_file}
                if self.external_file
                else {}
            ),
        }


@dataclass
class Predicate:
    type: str = "Equal"
    left_field: str | None = None
    right_field: str | None = None
    cascade_create: bool = False
    cascade_delete: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "leftField": self.left_field,
            "rightField": self.right_field,
            "cascadeCreate": self.cascade_create,
            "cascadeDelete": self.cascade_delete,
        }


@dataclass
class Relationship:
    id: str | None
    left_table: str | None
    right_table: str | None
    left_cascade_create: bool = False
    left_cascade_delete: bool = False
    right_cascade_create: bool = False
    right_cascade_delete: bool = False
    left_sort: list[str] = field(default_factory=list)
    right_sort: list[str] = field(default_factory=list)
    predicates: list[Predicate] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "leftTable": self.left_table,
            "rightTable": self.right_table,
            "leftCascadeCreate": self.left_cascade_create,
            "leftCascadeDelete": self.left_cascade_delete,
            "rightCascadeCreate": self.right_cascade_create,
            "rightCascadeDelete": self.right_cascade_delete,
            "leftSort": list(self.left_sort),
            "rightSort": list(self.right_sort),
            "predicates": [p.to_dict() for p in self.predicates],
        }


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------


@dataclass
class ScriptTrigger:
    type: str | None
    script: str
    level: str = "layout"  # layout or field
    field: str | None = None  # qualified name for field-level triggers

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "script": self.script,
            "level": self.level,
            **({"field": self.field} if self.field else {}),
        }


@dataclass
class Layout:
    id: str | None
    name: str
    base_table: str | None  # TO name
    triggers: list[ScriptTrigger] = field(default_factory=list)
    button_scripts: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)  # qualified names

    @property
    def script_names(self) -> list[str]:
        """Trigger scripts followed by button scripts, in that order."""
        return [t.script for t in self.triggers] + list(self.button_scripts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "baseTable": self.base_table,
            "triggers": [t.to_dict() for t in self.triggers],
            "buttonScripts": list(self.button_scripts),
            "fields": list(self.fields),
        }


# ---------------------------------------------------------------------------
# Script steps (tagged union, one class per verb family)
# ---------------------------------------------------------------------------


@dataclass
class BaseStep:
    kind: ClassVar[str] = "generic"

    index: int
    name: str
    enabled: bool = True
    id: str | None = None
    text: str = ""
    calculation: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind,
            "index": self.index,
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "text": self.text,
        }
        if self.calculation is not None:
            d["calculation"] = self.calculation
        d.update(
            {k: v for k, v in self._extra().items() if v not in (None, [])}
        )
        return d


@dataclass
class GenericStep(BaseStep):
    kind: ClassVar[str] = "generic"

    target_field: str | None = None
    table: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {"targetField": self.target_field, "table": self.table}


@dataclass
class ConditionStep(BaseStep):
    """If, Else If and Exit Loop If."""

    kind: ClassVar[str] = "condition"

    condition: str = ""

    def _extra(self) -> dict[str, Any]:
        return {"condition": self.condition}


@dataclass
class SetFieldStep(BaseStep):
    kind: ClassVar[str] = "set_field"

    target_field: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {"targetField": self.target_field}


@dataclass
class SetVariableStep(BaseStep):
    kind: ClassVar[str] = "set_variable"

    variable_name: str | None = None
    value: str | None = None
    repetition: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {
            "variableName": self.variable_name,
            "value": self.value,
            "repetition": self.repetition,
        }


@dataclass
class PerformScriptStep(BaseStep):
    kind: ClassVar[str] = "perform_script"

    script_ref: str | None = None
    external_file: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {
            "scriptRef": self.script_ref,
            "externalFile": self.external_file,
        }


@dataclass
class GoToLayoutStep(BaseStep):
    kind: ClassVar[str] = "go_to_layout"

    layout_ref: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {"layoutRef": self.layout_ref}


@dataclass
class GoToRecordStep(BaseStep):
    kind: ClassVar[str] = "go_to_record"

    # First, Last, Next, Previous or By Calculation
    record_action: str = "Unknown"

    def _extra(self) -> dict[str, Any]:
        return {"recordAction": self.record_action}


@dataclass
class LoopStep(BaseStep):
    kind: ClassVar[str] = "loop"

    flush_after: bool = False

    def _extra(self) -> dict[str, Any]:
        return {"flushAfter": self.flush_after}


@dataclass
class CommitStep(BaseStep):
    """Commit Records / Revert Record."""

    kind: ClassVar[str] = "commit"

    skip_validation: bool = False

    def _extra(self) -> dict[str, Any]:
        return {"skipValidation": self.skip_validation}


@dataclass
class NewWindowStep(BaseStep):
    kind: ClassVar[str] = "new_window"

    window_name: str | None = None
    window_style: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {
            "windowName": self.window_name,
            "windowStyle": self.window_style,
        }


@dataclass
class CustomDialogStep(BaseStep):
    kind: ClassVar[str] = "custom_dialog"

    title: str | None = None
    message: str | None = None
    input_field_count: int | None = None
    button_count: int | None = None

    def _extra(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "inputFieldCount": self.input_field_count,
            "buttonCount": self.button_count,
        }


@dataclass
class URLStep(BaseStep):
    """Insert from URL, Open URL and Send Event."""

    kind: ClassVar[str] = "url"

    url: str | None = None

    def _extra(self) -> dict[str, Any]:
        return {"url": self.url}


@dataclass
class SortRecordsStep(BaseStep):
    kind: ClassVar[str] = "sort_records"

    sort_fields: list[str] = field(default_factory=list)

    def _extra(self) -> dict[str, Any]:
        return {"sortFields": list(self.sort_fields)}


Step = Union[
    GenericStep,
    ConditionStep,
    SetFieldStep,
    SetVariableStep,
    PerformScriptStep,
    GoToLayoutStep,
    GoToRecordStep,
    LoopStep,
    CommitStep,
    NewWindowStep,
    CustomDialogStep,
    URLStep,
    SortRecordsStep,
]


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------


@dataclass
class ScriptCall:
    name: str
    external_file: str | None = None

    @property
    def external(self) -> bool:
        return self.external_file is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "external": self.external,
            **({"file": self.external_file} if self.external_file else {}),
        }


@dataclass
class Script:
    id: str | None
    name: str
    folder: str | None = None  # "/"-joined group path
    include_in_menu: bool = False
    run_full_access: bool = False
    steps: list[Step] = field(default_factory=list)
    calls_scripts: list[ScriptCall] = field(default_factory=list)
    goes_to_layouts: list[str] = field(default_factory=list)
    field_refs: list[str] = field(default_factory=list)
    variables: list[str] = field(default_factory=list)
    indirection: list[IndirectionFinding] = field(default_factory=list)

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "folder": self.folder,
            "includeInMenu": self.include_in_menu,
            "runFullAccess": self.run_full_access,
            "stepCount": self.step_count,
            "steps": [s.to_dict() for s in self.steps],
            "callsScripts": [c.to_dict() for c in self.calls_scripts],
            "goesToLayouts": list(self.goes_to_layouts),
            "fieldRefs": list(self.field_refs),
            "variables": list(self.variables),
            "indirection": [i.to_dict() for i in self.indirection],
        }


# ---------------------------------------------------------------------------
# Value lists, custom functions, security
# ---------------------------------------------------------------------------


@dataclass
class ValueList:
    id: str | None
    name: str
    type: str = "custom"  # custom, field, external
    values: list[str] = field(default_factory=list)
    source_field: str | None = None
    second_field: str | None = None
    external_file: str | None = None
    external_value_list: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "values": list(self.values),
            "sourceField": self.source_field,
            **(
                {"secondField": self.second_field} if self.second_field else {}
            ),
            **(
                {
                    "externalFile": self.external_file,
                    "externalValueList": self.external_value_list,
                }
                if self.type == "external"
                else {}
            ),
        }


@dataclass
class CustomFunction:
    id: str | None
    name: str
    parameters: list[str] = field(default_factory=list)
    calculation: str = ""
    visibility: str | None = None

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "parameters": list(self.parameters),
            "calculation": self.calculation,
            "visibility": self.visibility,
            "arity": self.arity,
        }


@dataclass
class Account:
    id: str | None
    name: str | None
    status: str = "Active"
    privilege_set: str | None = None
    managed_by: str = "FileMaker"
    empty_password: bool = False
    change_password_on_next_login: bool = False
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "privilegeSet": self.privilege_set,
            "managedBy": self.managed_by,
            "emptyPassword": self.empty_password,
            "changePasswordOnNextLogin": self.change_password_on_next_login,
            "description": self.description,
        }


@dataclass
class PrivilegeSet:
    id: str | None
    name: str | None
    comment: str = ""
    printing: bool = False
    exporting: bool = False
    manage_accounts: bool = False
    allow_modify_password: bool = False
    override_validation_warning: bool = False
    idle_disconnect: bool = False
    menu: str = "All"
    password_expiry: str = ""
    password_min_length: str = ""
    records: str = "NoAccess"
    layouts: str = "NoAccess"
    layout_creation: bool = False
    scripts: str = "NoAccess"
    script_creation: bool = False
    value_lists: str = "NoAccess"
    value_list_creation: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "comment": self.comment,
            "printing": self.printing,
            "exporting": self.exporting,
            "manageAccounts": self.manage_accounts,
            "allowModifyPassword": self.allow_modify_password,
            "overrideValidationWarning": self.override_validation_warning,
            "idleDisconnect": self.idle_disconnect,
            "menu": self.menu,
            "passwordExpiry": self.password_expiry,
            "passwordMinLength": self.password_min_length,
            "records": self.records,
            "layouts": self.layouts,
            "layoutCreation": self.layout_creation,
            "scripts": self.scripts,
            "scriptCreation": self.script_creation,
            "valueLists": self.value_lists,
            "valueListCreation": self.value_list_creation,
        }


@dataclass
class ExtendedPrivilege:
    id: str | None
    name: str | None
    comment: str = ""
    privilege_sets: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "comment": self.comment,
            "privilegeSets": list(self.privilege_sets),
        }


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass
class Database:
    """Everything mapped out of one DDR document."""

    name: str
    tables: list[Table] = field(default_factory=list)
    table_occurrences: list[TableOccurrence] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    layouts: list[Layout] = field(default_factory=list)
    scripts: list[Script] = field(default_factory=list)
    value_lists: list[ValueList] = field(default_factory=list)
    custom_functions: list[CustomFunction] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    privilege_sets: list[PrivilegeSet] = field(default_factory=list)
    extended_privileges: list[ExtendedPrivilege] = field(default_factory=list)
    source: str | None = None  # file the document was read from

    def iter_fields(self):
        """Yield (table, field) pairs in catalog order."""
        for table in self.tables:
            for f in table.fields:
                yield table, f

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tables": [t.to_dict() for t in self.tables],
            "tableOccurrences": [t.to_dict() for t in self.table_occurrences],
            "relationships": [r.to_dict() for r in self.relationships],
            "layouts": [lo.to_dict() for lo in self.layouts],
            "scripts": [s.to_dict() for s in self.scripts],
            "valueLists": [v.to_dict() for v in self.value_lists],
            "customFunctions": [c.to_dict() for c in self.custom_functions],
            "accounts": [a.to_dict() for a in self.accounts],
            "privilegeSets": [p.to_dict() for p in self.privilege_sets],
            "extendedPrivileges": [
                e.to_dict() for e in self.extended_privileges
            ],
        }
