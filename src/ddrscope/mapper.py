"""DDR XML -> Database mapping.

Walks one parsed ``FMPReport`` tree and emits the typed entity lists.
Optional sub-elements that are missing are simply left out of the
result; only a missing ``FMPReport > File`` descriptor (or XML that does
not parse at all) is an error.
"""

from __future__ import annotations

import structlog
from lxml import etree

from ddrscope.config import DDR_FILE_EXTENSIONS
from ddrscope.lexical import detect_indirection, extract_field_references
from ddrscope.models import (
    Account,
    CommitStep,
    ConditionStep,
    CustomDialogStep,
    CustomFunction,
    Database,
    ExtendedPrivilege,
    Field,
    FieldStorage,
    GenericStep,
    GoToLayoutStep,
    GoToRecordStep,
    Layout,
    LookupInfo,
    LoopStep,
    NewWindowStep,
    PerformScriptStep,
    Predicate,
    PrivilegeSet,
    Relationship,
    Script,
    ScriptCall,
    ScriptTrigger,
    SetFieldStep,
    SetVariableStep,
    SortRecordsStep,
    Step,
    SummaryInfo,
    Table,
    TableOccurrence,
    URLStep,
    ValueList,
)

logger = structlog.get_logger(__name__)


class DocumentError(ValueError):
    """A document could not be mapped into a Database."""

    def __init__(self, source: str | None, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"{source or '<document>'}: {reason}")


# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------


def _text(el: etree._Element | None) -> str:
    """textContent of el ("" when el is None)."""
    if el is None:
        return ""
    return "".join(el.itertext())


def _flag(el: etree._Element | None, attr: str) -> bool:
    """True only when the attribute is exactly "True"."""
    return el is not None and el.get(attr) == "True"


def _attr(el: etree._Element | None, attr: str) -> str | None:
    return el.get(attr) if el is not None else None


def _state(el: etree._Element, path: str) -> bool:
    return _flag(el.find(path), "state")


def _qualified(el: etree._Element | None) -> str | None:
    if el is None:
        return None
    table, name = el.get("table"), el.get("name")
    if not table or not name:
        return None
    return f"{table}::{name}"


def strip_extension(name: str) -> str:
    for ext in DDR_FILE_EXTENSIONS:
        if name.lower().endswith(ext):
            return name[: -len(ext)]
    return name


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def parse_document(text: str | bytes, source: str | None = None) -> Database:
    """Parse DDR XML text and map it into a Database.

    Raises DocumentError when the text is not well-formed XML or lacks
    the ``FMPReport > File`` descriptor.
    """
    if isinstance(text, str):
        # already decoded; ignore whatever encoding the prolog declares
        data = text.encode("utf-8")
        parser = etree.XMLParser(
            encoding="utf-8",
            huge_tree=True,
            remove_comments=True,
            resolve_entities=False,
            no_network=True,
        )
    else:
        data = text
        parser = etree.XMLParser(
            huge_tree=True,
            remove_comments=True,
            resolve_entities=False,
            no_network=True,
        )

    if not data.strip():
        raise DocumentError(source, "empty document")

    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as e:
        raise DocumentError(source, f"XML parse error: {e}") from e

    db = map_document(root, source=source)
    logger.debug(
        "mapped ddr",
        source=source,
        database=db.name,
        tables=len(db.tables),
        scripts=len(db.scripts),
        layouts=len(db.layouts),
    )
    return db


def map_document(
    root: etree._Element, source: str | None = None
) -> Database:
    """Map an already-parsed FMPReport tree into a Database."""
    if root.tag == "FMPReport":
        file_el = root.find("File")
    else:
        file_el = root.find(".//FMPReport/File")
    if file_el is None:
        raise DocumentError(source, "invalid DDR XML: missing File element")

    name = file_el.get("name")
    return Database(
        name=strip_extension(name) if name else "Unknown",
        tables=map_tables(root),
        table_occurrences=map_table_occurrences(root),
        relationships=map_relationships(root),
        layouts=map_layouts(root),
        scripts=map_scripts(root),
        value_lists=map_value_lists(root),
        custom_functions=map_custom_functions(root),
        accounts=map_accounts(root),
        privilege_sets=map_privilege_sets(root),
        extended_privileges=map_extended_privileges(root),
        source=source,
    )


# ---------------------------------------------------------------------------
# Tables and fields
# ---------------------------------------------------------------------------


def map_tables(root: etree._Element) -> list[Table]:
    tables: list[Table] = []
    for table_el in root.iterfind(".//BaseTableCatalog/BaseTable"):
        tables.append(
            Table(
                id=table_el.get("id"),
                name=table_el.get("name") or "",
                record_count=table_el.get("records") or "0",
                comment=_text(table_el.find("Comment")),
                fields=[
                    map_field(f)
                    for f in table_el.iterfind(".//FieldCatalog/Field")
                ],
            )
        )
    return tables


def map_field(field_el: etree._Element) -> Field:
    field = Field(
        id=field_el.get("id"),
        name=field_el.get("name") or "",
        data_type=field_el.get("dataType") or "Text",
        field_type=field_el.get("fieldType") or "Normal",
        comment=_text(field_el.find("Comment")),
    )

    storage_el = field_el.find(".//Storage")
    if storage_el is not None:
        index_attr = storage_el.get("index")
        try:
            reps = int(storage_el.get("maxRepetition") or "1")
        except ValueError:
            reps = 1
        stored = storage_el.get("storeCalculationResults")
        field.storage = FieldStorage(
            global_=_flag(storage_el, "global"),
            indexed=bool(index_attr) and index_attr != "None",
            index_type=index_attr,
            repetitions=reps if reps > 1 else None,
            stored_calculation=(stored == "True") if stored else None,
        )

    auto_enter_el = field_el.find(".//AutoEnter")
    if auto_enter_el is not None:
        field.auto_enter = summarize_auto_enter(auto_enter_el)
        calc_el = auto_enter_el.find(".//Calculation")
        if calc_el is not None:
            field.auto_enter_calc = _text(calc_el)
            field.auto_enter_indirection = detect_indirection(
                field.auto_enter_calc
            )
        lookup_el = auto_enter_el.find(".//Lookup")
        if lookup_el is not None:
            lookup_field = lookup_el.find(".//Field")
            field.lookup = LookupInfo(
                table=lookup_field.get("table")
                if lookup_field is not None
                else None,
                field=lookup_field.get("name")
                if lookup_field is not None
                else None,
            )

    validation_el = field_el.find(".//Validation")
    if validation_el is not None:
        field.validation = summarize_validation(validation_el)
        calc_el = validation_el.find(".//Calculation")
        if calc_el is not None:
            field.validation_calc = _text(calc_el)

    summary_el = field_el.find(".//SummaryInfo")
    if summary_el is not None:
        summarized = summary_el.find(".//Field")
        field.summary = SummaryInfo(
            operation=summary_el.get("operation"),
            field=_attr(summarized, "name"),
        )

    if field.is_calculated:
        calc_el = field_el.find("Calculation")
        if calc_el is not None:
            field.calc_text = _text(calc_el)
            field.calc_field_refs = extract_field_references(field.calc_text)
            field.indirection = detect_indirection(field.calc_text)

    return field


def summarize_auto_enter(el: etree._Element) -> str | None:
    """Collapse auto-enter options into e.g. "Serial, Calc"."""
    parts: list[str] = []
    if el.find(".//Serial") is not None:
        parts.append("Serial")
    for tag, label in (
        ("CreationTimestamp", "CreationTS"),
        ("CreationAccountName", "CreationAcct"),
        ("ModificationTimestamp", "ModificationTS"),
        ("ModificationAccountName", "ModificationAcct"),
    ):
        if el.find(f".//{tag}[@value='True']") is not None:
            parts.append(label)
    if _flag(el, "calculation"):
        parts.append("Calc")
    if _flag(el, "lookup"):
        parts.append("Lookup")
    if el.find(".//ConstantData") is not None:
        parts.append("Constant")
    return ", ".join(parts) if parts else None


def summarize_validation(el: etree._Element) -> str | None:
    """Collapse validation options into e.g. "Required, MaxLen:10"."""
    parts: list[str] = []
    if _flag(el, "notEmpty"):
        parts.append("Required")
    if _flag(el, "unique"):
        parts.append("Unique")
    if _flag(el, "existing"):
        parts.append("Existing")

    vl_el = el.find(".//ValueList")
    if vl_el is not None:
        parts.append(f"VL:{vl_el.get('name')}")

    range_el = el.find(".//Range")
    if range_el is not None:
        lower_el = range_el.find(".//LowerBound")
        upper_el = range_el.find(".//UpperBound")
        lower = _attr(lower_el, "value")
        upper = _attr(upper_el, "value")
        if lower or upper:
            parts.append(f"Range:{lower or ''}-{upper or ''}")

    max_len = el.get("maxLength")
    if max_len:
        parts.append(f"MaxLen:{max_len}")
    if el.find(".//Calculation") is not None:
        parts.append("CalcValidation")
    return ", ".join(parts) if parts else None


# ---------------------------------------------------------------------------
# Relationship graph
# ---------------------------------------------------------------------------


def map_table_occurrences(root: etree._Element) -> list[TableOccurrence]:
    # TOs live in RelationshipGraph/TableList/Table, not TableOccurrence
    tos: list[TableOccurrence] = []
    for to_el in root.iterfind(".//RelationshipGraph/TableList/Table"):
        file_ref = to_el.find(".//FileReference")
        tos.append(
            TableOccurrence(
                id=to_el.get("id"),
                name=to_el.get("name") or "",
                base_table=to_el.get("basetable"),
                external_file=file_ref.get("name")
                if file_ref is not None
                else None,
            )
        )
    return tos


def _sort_fields(side_el: etree._Element | None) -> list[str]:
    if side_el is None:
        return []
    refs = []
    for f in side_el.iterfind(".//SortList/Sort//Field"):
        ref = _qualified(f)
        if ref:
            refs.append(ref)
    return refs


def _predicate_field(side_el: etree._Element | None) -> str | None:
    # name sits on the side element in older exports, on a nested Field in newer
    if side_el is None:
        return None
    name = side_el.get("name")
    if name:
        return name
    field_el = side_el.find(".//Field")
    return _attr(field_el, "name")


def map_relationships(root: etree._Element) -> list[Relationship]:
    rels: list[Relationship] = []
    for rel_el in root.iterfind(
        ".//RelationshipGraph/RelationshipList/Relationship"
    ):
        left_el = rel_el.find(".//LeftTable")
        right_el = rel_el.find(".//RightTable")
        rel = Relationship(
            id=rel_el.get("id"),
            left_table=_attr(left_el, "name"),
            right_table=_attr(right_el, "name"),
            left_cascade_create=_flag(left_el, "cascadeCreate"),
            left_cascade_delete=_flag(left_el, "cascadeDelete"),
            right_cascade_create=_flag(right_el, "cascadeCreate"),
            right_cascade_delete=_flag(right_el, "cascadeDelete"),
            left_sort=_sort_fields(left_el),
            right_sort=_sort_fields(right_el),
        )
        for pred_el in rel_el.iterfind(".//JoinPredicateList/JoinPredicate"):
            lf = pred_el.find(".//LeftField")
            rf = pred_el.find(".//RightField")
            rel.predicates.append(
                Predicate(
                    type=pred_el.get("type") or "Equal",
                    left_field=_predicate_field(lf),
                    right_field=_predicate_field(rf),
                    cascade_create=_flag(pred_el, "cascade_create"),
                    cascade_delete=_flag(pred_el, "cascade_delete"),
                )
            )
        rels.append(rel)
    return rels


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------


def _owning_object(
    el: etree._Element, layout_el: etree._Element
) -> etree._Element | None:
    parent = el.getparent()
    while parent is not None and parent is not layout_el:
        if parent.tag == "Object":
            return parent
        parent = parent.getparent()
    return None


def map_layouts(root: etree._Element) -> list[Layout]:
    layouts: list[Layout] = []
    for layout_el in root.iterfind(".//LayoutCatalog/Layout"):
        table_el = layout_el.find("Table")
        layout = Layout(
            id=layout_el.get("id"),
            name=layout_el.get("name") or "",
            base_table=_attr(table_el, "name"),
        )

        for trigger_el in layout_el.iterfind(".//ScriptTriggers/Trigger"):
            script_el = trigger_el.find(".//Script")
            if script_el is None or not script_el.get("name"):
                continue
            obj = _owning_object(trigger_el, layout_el)
            field_ref = None
            if obj is not None:
                field_ref = _qualified(obj.find(".//FieldObj//Field"))
            layout.triggers.append(
                ScriptTrigger(
                    type=trigger_el.get("type"),
                    script=script_el.get("name"),
                    level="field" if obj is not None else "layout",
                    field=field_ref,
                )
            )

        for script_el in layout_el.xpath(
            ".//Object[@type='Button']//ButtonObj//Step//Script"
        ):
            script_name = script_el.get("name")
            if script_name and script_name not in layout.button_scripts:
                layout.button_scripts.append(script_name)

        for field_el in layout_el.xpath(
            ".//Object[@type='Field']//FieldObj//DDRInfo//Field"
        ):
            ref = _qualified(field_el)
            if ref and ref not in layout.fields:
                layout.fields.append(ref)

        layouts.append(layout)
    return layouts


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------


def map_scripts(root: etree._Element) -> list[Script]:
    """Map the script catalog, reconstructing folder paths.

    Groups nest arbitrarily deep, so the walk uses an explicit stack of
    (children iterator, folder path) rather than recursion.
    """
    catalog = root.find(".//ScriptCatalog")
    if catalog is None:
        return []

    scripts: list[Script] = []
    stack = [(iter(catalog), None)]
    while stack:
        children, folder = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            continue
        if child.tag == "Group":
            group_name = child.get("name") or ""
            path = f"{folder}/{group_name}" if folder else group_name
            stack.append((iter(child), path))
        elif child.tag == "Script":
            scripts.append(map_script(child, folder))
    return scripts


def map_script(script_el: etree._Element, folder: str | None = None) -> Script:
    script = Script(
        id=script_el.get("id"),
        name=script_el.get("name") or "",
        folder=folder or None,
        include_in_menu=_flag(script_el, "includeInMenu"),
        run_full_access=_flag(script_el, "runFullAccessPrivileges"),
    )
    seen_indirection: set[str] = set()

    for position, step_el in enumerate(
        script_el.iterfind(".//StepList/Step"), start=1
    ):
        step = map_step(step_el, position)

        if isinstance(step, PerformScriptStep) and step.script_ref:
            script.calls_scripts.append(
                ScriptCall(
                    name=step.script_ref, external_file=step.external_file
                )
            )
        if isinstance(step, GoToLayoutStep) and step.layout_ref:
            if step.layout_ref not in script.goes_to_layouts:
                script.goes_to_layouts.append(step.layout_ref)
        if isinstance(step, SetVariableStep) and step.variable_name:
            if step.variable_name not in script.variables:
                script.variables.append(step.variable_name)

        for field_el in step_el.iterfind(".//Field[@table]"):
            ref = _qualified(field_el)
            if ref and ref not in script.field_refs:
                script.field_refs.append(ref)

        calc_el = step_el.find(".//Calculation")
        if calc_el is not None:
            calc_text = _text(calc_el)
            for ref in extract_field_references(calc_text):
                if ref not in script.field_refs:
                    script.field_refs.append(ref)
            for finding in detect_indirection(calc_text):
                if finding.type not in seen_indirection:
                    seen_indirection.add(finding.type)
                    finding.step = step.index
                    script.indirection.append(finding)

        script.steps.append(step)

    return script


def _record_action(step_el: etree._Element) -> str:
    if step_el.find(".//Calculation") is not None:
        return "By Calculation"
    for option in ("First", "Last", "Next", "Previous"):
        if _state(step_el, f".//{option}"):
            return option
    return "Unknown"


def _calc_of(step_el: etree._Element, path: str) -> str | None:
    el = step_el.find(path)
    if el is None:
        return None
    return _text(el).strip()


def map_step(step_el: etree._Element, position: int) -> Step:
    """Map one script step into its verb-family variant."""
    name = step_el.get("name") or ""
    index_attr = step_el.get("index")
    calc_el = step_el.find(".//Calculation")
    if index_attr and index_attr.isdigit():
        position = int(index_attr)
    common = {
        "index": position,
        "name": name,
        "enabled": step_el.get("enable") != "False",
        "id": step_el.get("id"),
        "text": _text(step_el.find(".//StepText")),
        "calculation": _text(calc_el).strip() if calc_el is not None else None,
    }
    script_el = step_el.find(".//Script")
    layout_el = step_el.find(".//Layout")

    if name in ("If", "Else If", "Exit Loop If"):
        return ConditionStep(condition=common["calculation"] or "", **common)

    if name == "Set Variable":
        var_name = _calc_of(step_el, ".//Name/Calculation")
        if not var_name:
            var_name = _calc_of(step_el, ".//Text")
        return SetVariableStep(
            variable_name=var_name or None,
            value=_calc_of(step_el, ".//Value/Calculation"),
            repetition=_calc_of(step_el, ".//Repetition/Calculation"),
            **common,
        )

    if name.startswith("Set Field") or name == "Insert Calculated Result":
        return SetFieldStep(
            target_field=_qualified(step_el.find(".//Field[@table]")),
            **common,
        )

    if script_el is not None and "Script" in name and script_el.get("name"):
        file_ref = step_el.find(".//FileReference")
        return PerformScriptStep(
            script_ref=script_el.get("name"),
            external_file=_attr(file_ref, "name"),
            **common,
        )

    if layout_el is not None and "Layout" in name:
        return GoToLayoutStep(layout_ref=layout_el.get("name"), **common)

    if "Go to Record" in name:
        return GoToRecordStep(record_action=_record_action(step_el), **common)

    if name == "Loop":
        return LoopStep(flush_after=_state(step_el, ".//Flush"), **common)

    if "Commit" in name or "Revert" in name:
        return CommitStep(
            skip_validation=_state(step_el, ".//NoDialog")
            or _state(step_el, ".//SkipValidation"),
            **common,
        )

    if name == "New Window":
        style_el = step_el.find(".//Style")
        return NewWindowStep(
            window_name=_calc_of(step_el, ".//Name/Calculation"),
            window_style=_text(style_el) if style_el is not None else None,
            **common,
        )

    if name == "Show Custom Dialog":
        inputs = len(step_el.findall(".//InputField"))
        buttons = len(step_el.findall(".//Button"))
        return CustomDialogStep(
            title=_calc_of(step_el, ".//Title/Calculation"),
            message=_calc_of(step_el, ".//Message/Calculation"),
            input_field_count=inputs or None,
            button_count=buttons or None,
            **common,
        )

    if "URL" in name or name == "Send Event":
        url = _calc_of(step_el, ".//URL/Calculation")
        return URLStep(url=url or common["calculation"], **common)

    if name == "Sort Records":
        sort_fields = []
        for sort_el in step_el.iterfind(".//SortList/Sort"):
            sort_fields.append(
                _qualified(sort_el.find(".//Field")) or "Unknown"
            )
        return SortRecordsStep(sort_fields=sort_fields, **common)

    table_el = step_el.find(".//Table")
    return GenericStep(
        target_field=_qualified(step_el.find(".//Field[@table]")),
        table=_attr(table_el, "name"),
        **common,
    )


# ---------------------------------------------------------------------------
# Value lists, custom functions, security
# ---------------------------------------------------------------------------


def _value_list_type(vl_el: etree._Element) -> str:
    source_el = vl_el.find("Source")
    declared = (_attr(source_el, "value") or "").lower()
    if declared in ("custom", "field", "external"):
        return declared
    if vl_el.find(".//ExternalSource") is not None:
        return "external"
    if vl_el.find(".//Source//Field") is not None:
        return "field"
    return "custom"


def map_value_lists(root: etree._Element) -> list[ValueList]:
    vls: list[ValueList] = []
    for vl_el in root.iterfind(".//ValueListCatalog/ValueList"):
        vl = ValueList(
            id=vl_el.get("id"),
            name=vl_el.get("name") or "",
            type=_value_list_type(vl_el),
            values=[_text(v) for v in vl_el.iterfind(".//CustomValues/Value")],
        )
        if vl.type == "field":
            primary = vl_el.find(".//PrimaryField/Field")
            if primary is None:
                primary = vl_el.find(".//Source/Field")
            vl.source_field = _qualified(primary)
            vl.second_field = _qualified(vl_el.find(".//SecondaryField/Field"))
        elif vl.type == "external":
            file_ref = vl_el.find(".//FileReference")
            ext_vl = vl_el.find(".//ValueListReference")
            vl.external_file = _attr(file_ref, "name")
            vl.external_value_list = _attr(ext_vl, "name")
        vls.append(vl)
    return vls


def map_custom_functions(root: etree._Element) -> list[CustomFunction]:
    cfs: list[CustomFunction] = []
    for cf_el in root.iterfind(".//CustomFunctionCatalog/CustomFunction"):
        raw_params = cf_el.get("parameters")
        if raw_params is None:
            raw_params = _text(cf_el.find("Parameters"))
        visible = cf_el.get("visible")
        cfs.append(
            CustomFunction(
                id=cf_el.get("id"),
                name=cf_el.get("name") or "",
                parameters=[
                    p.strip() for p in raw_params.split(";") if p.strip()
                ],
                calculation=_text(cf_el.find(".//Calculation")),
                visibility=None
                if visible is None
                else ("Visible" if visible == "True" else "Hidden"),
            )
        )
    return cfs


def map_accounts(root: etree._Element) -> list[Account]:
    return [
        Account(
            id=el.get("id"),
            name=el.get("name"),
            status=el.get("status") or "Active",
            privilege_set=el.get("privilegeSet"),
            managed_by=el.get("managedBy") or "FileMaker",
            empty_password=_flag(el, "emptyPassword"),
            change_password_on_next_login=_flag(
                el, "changePasswordOnNextLogin"
            ),
            description=_text(el.find(".//Description")),
        )
        for el in root.iterfind(".//AccountCatalog/Account")
    ]


def map_privilege_sets(root: etree._Element) -> list[PrivilegeSet]:
    # two element names across DDR versions
    sets: list[PrivilegeSet] = []
    for ps_el in root.xpath(
        ".//PrivilegesCatalog/PrivilegeSet"
        " | .//PrivilegeSetCatalog/PrivilegeSet"
    ):
        records_el = ps_el.find(".//Records")
        layouts_el = ps_el.find(".//Layouts")
        scripts_el = ps_el.find(".//Scripts")
        vls_el = ps_el.find(".//ValueLists")
        sets.append(
            PrivilegeSet(
                id=ps_el.get("id"),
                name=ps_el.get("name"),
                comment=ps_el.get("comment") or "",
                printing=_flag(ps_el, "printing"),
                exporting=_flag(ps_el, "exporting"),
                manage_accounts=_flag(ps_el, "manageAccounts"),
                allow_modify_password=_flag(ps_el, "allowModifyPassword"),
                override_validation_warning=_flag(
                    ps_el, "overrideValidationWarning"
                ),
                idle_disconnect=_flag(ps_el, "idleDisconnect"),
                menu=ps_el.get("menu") or "All",
                password_expiry=ps_el.get("passwordExpiry") or "",
                password_min_length=ps_el.get("passwordMinLength") or "",
                records=_attr(records_el, "value") or "NoAccess",
                layouts=_attr(layouts_el, "value") or "NoAccess",
                layout_creation=_flag(layouts_el, "allowCreation"),
                scripts=_attr(scripts_el, "value") or "NoAccess",
                script_creation=_flag(scripts_el, "allowCreation"),
                value_lists=_attr(vls_el, "value") or "NoAccess",
                value_list_creation=_flag(vls_el, "allowCreation"),
            )
        )
    return sets


def map_extended_privileges(root: etree._Element) -> list[ExtendedPrivilege]:
    return [
        ExtendedPrivilege(
            id=el.get("id"),
            name=el.get("name"),
            comment=el.get("comment") or "",
            privilege_sets=[
                ps.get("name")
                for ps in el.iterfind(".//PrivilegeSetList/PrivilegeSet")
                if ps.get("name")
            ],
        )
        for el in root.iterfind(".//ExtendedPrivilegeCatalog/ExtendedPrivilege")
    ]
