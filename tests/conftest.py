"""Shared DDR XML fixtures.

``CONTACTS_DDR`` is a small but complete solution file; ``ORDERS_DDR``
is a second file that calls back into it so the pair forms a
multi-file corpus.
"""

from textwrap import dedent

import pytest
import structlog

from ddrscope.corpus import Corpus, build_corpus
from ddrscope.mapper import parse_document
from ddrscope.models import Database

CONTACTS_DDR = dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <FMPReport link="Summary.xml" type="Report" version="21.0.1">
      <File name="Contacts.fmp12" path="/Shared/Contacts.fmp12">
        <BaseTableCatalog>
          <BaseTable id="130" name="Contacts" records="42">
            <Comment>People we talk to</Comment>
            <FieldCatalog>
              <Field id="1" name="ContactID" dataType="Number" fieldType="Normal">
                <AutoEnter calculation="False" lookup="False">
                  <Serial generate="OnCreation" increment="1" nextValue="43"/>
                </AutoEnter>
                <Validation notEmpty="True" unique="True" existing="False"/>
                <Storage global="False" index="Minimal" maxRepetition="1"/>
              </Field>
              <Field id="2" name="First Name" dataType="Text" fieldType="Normal">
                <Storage global="False" index="All" maxRepetition="1"/>
              </Field>
              <Field id="3" name="Last Name" dataType="Text" fieldType="Normal"/>
              <Field id="4" name="Full Name" dataType="Text" fieldType="Calculated">
                <Calculation table="Contacts"><![CDATA[Contacts::"First Name" & " " & Contacts::"Last Name"]]></Calculation>
                <Storage global="False" storeCalculationResults="True" maxRepetition="1"/>
              </Field>
              <Field id="5" name="Notes" dataType="Text" fieldType="Normal"/>
              <Field id="6" name="Photo" dataType="Container" fieldType="Normal"/>
              <Field id="7" name="gCounter" dataType="Number" fieldType="Normal">
                <Storage global="True" maxRepetition="3"/>
              </Field>
              <Field id="8" name="Open Balance" dataType="Number" fieldType="Calculated">
                <Calculation table="Contacts"><![CDATA[ExecuteSQL ( "SELECT SUM(Total) FROM Invoices" ; "" ; "" )]]></Calculation>
              </Field>
              <Field id="9" name="Welcome" dataType="Text" fieldType="Calculated">
                <Calculation table="Contacts"><![CDATA[Greeting ( Contacts::"First Name" )]]></Calculation>
              </Field>
              <Field id="10" name="Status" dataType="Text" fieldType="Normal">
                <AutoEnter calculation="True" lookup="False">
                  <Calculation><![CDATA[Evaluate("1 + 1")]]></Calculation>
                </AutoEnter>
                <Validation notEmpty="False" unique="False" existing="False" maxLength="20">
                  <ValueList id="1" name="Statuses"/>
                </Validation>
              </Field>
            </FieldCatalog>
          </BaseTable>
          <BaseTable id="131" name="Invoices" records="7">
            <FieldCatalog>
              <Field id="1" name="Total" dataType="Number" fieldType="Normal">
                <Validation notEmpty="False" unique="False" existing="False">
                  <Range><LowerBound value="0"/><UpperBound value="10000"/></Range>
                </Validation>
              </Field>
              <Field id="2" name="Line Count" dataType="Number" fieldType="Summary">
                <SummaryInfo operation="Count"><Field table="Invoices" name="Total"/></SummaryInfo>
              </Field>
              <Field id="3" name="Items" dataType="Text" fieldType="Calculated">
                <Calculation table="Invoices"><![CDATA[List(Invoices::Total)]]></Calculation>
              </Field>
            </FieldCatalog>
          </BaseTable>
        </BaseTableCatalog>
        <RelationshipGraph>
          <TableList>
            <Table id="1065089" name="Contacts" basetable="Contacts" baseTableId="130"/>
            <Table id="1065090" name="Invoices" basetable="Invoices" baseTableId="131"/>
            <Table id="1065091" name="Spare TO" basetable="Contacts" baseTableId="130"/>
            <Table id="1065092" name="Remote Orders" basetable="Orders">
              <FileReference id="1" name="Orders.fmp12"/>
            </Table>
          </TableList>
          <RelationshipList>
            <Relationship id="1">
              <LeftTable cascadeCreate="False" cascadeDelete="False" name="Contacts">
                <SortList><Sort type="Ascending"><PrimaryField><Field table="Contacts" name="Last Name"/></PrimaryField></Sort></SortList>
              </LeftTable>
              <RightTable cascadeCreate="True" cascadeDelete="True" name="Invoices"/>
              <JoinPredicateList>
                <JoinPredicate type="Equal">
                  <LeftField><Field table="Contacts" name="ContactID"/></LeftField>
                  <RightField><Field table="Invoices" name="ContactID"/></RightField>
                </JoinPredicate>
              </JoinPredicateList>
            </Relationship>
          </RelationshipList>
        </RelationshipGraph>
        <LayoutCatalog>
          <Layout id="1" name="Contacts Detail">
            <Table id="1065089" name="Contacts"/>
            <ScriptTriggers>
              <Trigger type="OnRecordLoad"><Script id="3" name="Load Contact"/></Trigger>
            </ScriptTriggers>
            <Object type="Field" key="1">
              <FieldObj>
                <DDRInfo><Field table="Contacts" name="First Name" id="2"/></DDRInfo>
              </FieldObj>
              <ScriptTriggers>
                <Trigger type="OnObjectExit"><Script id="3" name="Load Contact"/></Trigger>
              </ScriptTriggers>
            </Object>
            <Object type="Field" key="2">
              <FieldObj>
                <DDRInfo><Field table="Contacts" name="First Name" id="2"/></DDRInfo>
              </FieldObj>
            </Object>
            <Object type="Button" key="3">
              <ButtonObj>
                <Step enable="True" id="1" name="Perform Script"><Script id="4" name="Print Invoice"/></Step>
              </ButtonObj>
            </Object>
          </Layout>
          <Layout id="2" name="Invoice List">
            <Table id="1065090" name="Invoices"/>
          </Layout>
          <Layout id="3" name="Old Layout">
            <Table id="1065089" name="Contacts"/>
          </Layout>
          <Layout id="4" name="-- Utility --">
            <Table id="1065089" name="Contacts"/>
          </Layout>
        </LayoutCatalog>
        <ScriptCatalog>
          <Group id="10" name="Navigation">
            <Script id="1" name="Go Invoices" includeInMenu="True" runFullAccessPrivileges="False">
              <StepList>
                <Step enable="True" id="6" name="Go to Layout" index="1">
                  <StepText>Go to Layout [ "Invoice List" ]</StepText>
                  <Layout id="2" name="Invoice List"/>
                </Step>
                <Step enable="True" id="76" name="Set Field" index="2">
                  <Field table="Invoices" id="1" name="Total"/>
                  <Calculation><![CDATA[Contacts::"First Name"]]></Calculation>
                </Step>
                <Step enable="True" id="1" name="Perform Script" index="3">
                  <Script id="3" name="Load Contact"/>
                </Step>
                <Step enable="True" id="1" name="Perform Script" index="4">
                  <Script id="3" name="Load Contact"/>
                </Step>
              </StepList>
            </Script>
          </Group>
          <Group id="11" name="Admin">
            <Group id="12" name="Maintenance">
              <Script id="2" name="Reset All" includeInMenu="True" runFullAccessPrivileges="True">
                <StepList>
                  <Step enable="True" id="141" name="Set Variable" index="1">
                    <Value><Calculation><![CDATA[ExecuteSQL ( "DELETE FROM Contacts" ; "" ; "" )]]></Calculation></Value>
                    <Repetition><Calculation><![CDATA[1]]></Calculation></Repetition>
                    <Name><Calculation><![CDATA[$sql]]></Calculation></Name>
                  </Step>
                  <Step enable="False" id="68" name="If" index="2">
                    <Calculation><![CDATA[Evaluate($sql)]]></Calculation>
                  </Step>
                  <Step enable="True" id="70" name="End If" index="3"/>
                </StepList>
              </Script>
            </Group>
            <Script id="5" name="Archive" includeInMenu="False" runFullAccessPrivileges="True">
              <StepList>
                <Step enable="True" id="16" name="Go to Record/Request/Page" index="1">
                  <NoInteract state="False"/>
                  <RowPageLocation value="Next"/>
                  <Next state="True"/>
                </Step>
              </StepList>
            </Script>
          </Group>
          <Script id="3" name="Load Contact" includeInMenu="False" runFullAccessPrivileges="False">
            <StepList>
              <Step enable="True" id="75" name="Commit Records/Requests" index="1">
                <NoDialog state="True"/>
              </Step>
            </StepList>
          </Script>
          <Script id="4" name="Print Invoice" includeInMenu="False" runFullAccessPrivileges="False">
            <StepList/>
          </Script>
          <Script id="6" name="Sync Orders" includeInMenu="False" runFullAccessPrivileges="False">
            <StepList>
              <Step enable="True" id="1" name="Perform Script" index="1">
                <FileReference id="1" name="Orders.fmp12"/>
                <Script id="9" name="Pull Orders"/>
              </Step>
            </StepList>
          </Script>
        </ScriptCatalog>
        <ValueListCatalog>
          <ValueList id="1" name="Statuses">
            <Source value="Custom"/>
            <CustomValues><Value>Open</Value><Value>Closed</Value></CustomValues>
          </ValueList>
          <ValueList id="2" name="Contact Names">
            <Source value="Field"/>
            <PrimaryField><Field table="Contacts" name="Full Name"/></PrimaryField>
            <SecondaryField><Field table="Contacts" name="Last Name"/></SecondaryField>
          </ValueList>
        </ValueListCatalog>
        <CustomFunctionCatalog>
          <CustomFunction id="1" name="Greeting" parameters="name" visible="True">
            <Calculation><![CDATA["Hello " & name]]></Calculation>
          </CustomFunction>
          <CustomFunction id="2" name="Clamp" parameters="value;lo;hi" visible="False">
            <Calculation><![CDATA[Min ( Max ( value ; lo ) ; hi )]]></Calculation>
          </CustomFunction>
        </CustomFunctionCatalog>
        <AccountCatalog>
          <Account id="1" name="Admin" status="Active" privilegeSet="[Full Access]" managedBy="FileMaker" emptyPassword="False"/>
          <Account id="2" name="Guest" status="Active" privilegeSet="[Read-Only Access]" managedBy="FileMaker" emptyPassword="True"/>
          <Account id="3" name="Former" status="Inactive" privilegeSet="[Data Entry Only]" managedBy="FileMaker" emptyPassword="True"/>
        </AccountCatalog>
        <PrivilegesCatalog>
          <PrivilegeSet id="1" name="[Full Access]" comment="access to everything" printing="True" exporting="True" manageAccounts="True" menu="All">
            <Records value="CreateEditDelete"/>
            <Layouts value="Modifiable" allowCreation="True"/>
            <Scripts value="Modifiable" allowCreation="True"/>
            <ValueLists value="Modifiable" allowCreation="True"/>
          </PrivilegeSet>
        </PrivilegesCatalog>
        <ExtendedPrivilegeCatalog>
          <ExtendedPrivilege id="1" name="fmapp" comment="Access via FileMaker Network">
            <PrivilegeSetList><PrivilegeSet id="1" name="[Full Access]"/></PrivilegeSetList>
          </ExtendedPrivilege>
          <ExtendedPrivilege id="2" name="fmwebdirect" comment="Access via FileMaker WebDirect"/>
        </ExtendedPrivilegeCatalog>
      </File>
    </FMPReport>
    """
)

ORDERS_DDR = dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <FMPReport type="Report" version="21.0.1">
      <File name="Orders.fmp12">
        <BaseTableCatalog>
          <BaseTable id="130" name="Orders" records="3">
            <FieldCatalog>
              <Field id="1" name="Amount" dataType="Number" fieldType="Normal"/>
            </FieldCatalog>
          </BaseTable>
        </BaseTableCatalog>
        <RelationshipGraph>
          <TableList>
            <Table id="1" name="Orders" basetable="Orders"/>
          </TableList>
        </RelationshipGraph>
        <LayoutCatalog>
          <Layout id="1" name="Orders">
            <Table id="1" name="Orders"/>
            <Object type="Field">
              <FieldObj><DDRInfo><Field table="Orders" name="Amount"/></DDRInfo></FieldObj>
            </Object>
          </Layout>
        </LayoutCatalog>
        <ScriptCatalog>
          <Script id="9" name="Pull Orders" includeInMenu="False" runFullAccessPrivileges="False">
            <StepList>
              <Step enable="True" id="1" name="Perform Script" index="1">
                <FileReference id="1" name="Contacts.fmp12"/>
                <Script id="3" name="Load Contact"/>
              </Step>
            </StepList>
          </Script>
        </ScriptCatalog>
      </File>
    </FMPReport>
    """
)


def ddr_document(file_name: str, body: str = "") -> str:
    """Minimal DDR wrapper around catalog XML."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<FMPReport type="Report"><File name="{file_name}">{body}</File>'
        "</FMPReport>"
    )


def table_with_fields(table: str, count: int, prefix: str = "Col") -> str:
    fields = "".join(
        f'<Field id="{i}" name="{prefix}{i}" dataType="Text" fieldType="Normal"/>'
        for i in range(1, count + 1)
    )
    return (
        "<BaseTableCatalog>"
        f'<BaseTable id="1" name="{table}"><FieldCatalog>{fields}</FieldCatalog>'
        "</BaseTable></BaseTableCatalog>"
    )


def script_with_steps(name: str, count: int) -> str:
    steps = "".join(
        f'<Step enable="True" id="89" name="# (comment)" index="{i}"/>'
        for i in range(1, count + 1)
    )
    return (
        "<ScriptCatalog>"
        f'<Script id="1" name="{name}"><StepList>{steps}</StepList></Script>'
        "</ScriptCatalog>"
    )


@pytest.fixture(autouse=True)
def _reset_structlog():
    # the CLI binds log output to whatever stderr is current
    yield
    structlog.reset_defaults()


@pytest.fixture
def contacts_db() -> Database:
    return parse_document(CONTACTS_DDR, source="Contacts.xml")


@pytest.fixture
def orders_db() -> Database:
    return parse_document(ORDERS_DDR, source="Orders.xml")


@pytest.fixture
def corpus(contacts_db: Database, orders_db: Database) -> Corpus:
    return build_corpus([contacts_db, orders_db])


@pytest.fixture
def ddr_dir(tmp_path):
    """Directory holding both fixture documents on disk."""
    (tmp_path / "Contacts.xml").write_text(CONTACTS_DDR, encoding="utf-8")
    (tmp_path / "Orders.xml").write_text(ORDERS_DDR, encoding="utf-8")
    return tmp_path
