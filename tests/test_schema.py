from __future__ import annotations

import pytest

from packagerctl.schema.reader import (
    describe_schema,
    load_schema,
    parse_schema,
    unknown_type_references,
)


@pytest.fixture(scope="module")
def schema():
    return load_schema()


def test_bundled_schema_declares_expected_types(schema):
    assert list(schema) == ["User", "Company", "Employee", "Query"]


def test_query_root_operations(schema):
    fields = {f.name: f for f in schema["Query"].fields}

    assert set(fields) == {"user", "employee", "company", "allCompanies"}
    assert fields["user"].args == "id: ID"
    assert fields["employee"].type == "Employee"
    assert fields["allCompanies"].args is None
    assert fields["allCompanies"].named_type == "Company"


def test_every_data_field_has_a_generator_directive(schema):
    for name in ("User", "Company", "Employee"):
        for schema_field in schema[name].fields:
            if schema_field.named_type in ("ID", "Company", "Employee"):
                continue
            assert schema_field.directive in ("fake", "examples"), f"{name}.{schema_field.name}"


def test_directive_arguments_are_kept_verbatim(schema):
    employee = {f.name: f for f in schema["Employee"].fields}
    company = {f.name: f for f in schema["Company"].fields}

    assert employee["firstName"].directive_args == "type: firstName, locale: en_CA"
    assert "useFullAddress: true" in employee["address"].directive_args
    assert company["industry"].directive == "examples"


def test_bundled_schema_has_no_dangling_references(schema):
    assert unknown_type_references(schema) == []


def test_unknown_reference_is_reported():
    types = parse_schema("type Query {\n  pet(id: ID): Pet\n}\n")

    assert unknown_type_references(types) == ["Query.pet -> Pet"]


def test_unclosed_type_is_rejected():
    with pytest.raises(ValueError):
        parse_schema("type User {\n  id: ID\n")


def test_unreadable_field_is_rejected():
    with pytest.raises(ValueError):
        parse_schema("type User {\n  id ID\n}\n")


def test_describe_schema_lists_fields():
    types = parse_schema(
        "# comment\n"
        "type User {\n"
        "  name: String @fake(type: fullName)\n"
        "}\n"
    )

    assert describe_schema(types) == [
        "type User",
        "  name: String  @fake(type: fullName)",
    ]
