"""
Lightweight reader for the fake-data schema descriptor.

This is not a GraphQL parser. It understands exactly the subset the
descriptor uses (object types, one field per line with optional
arguments, and at most one @fake / @examples directive per field) which
is enough to summarize the file and catch references to undeclared types.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..utils.paths import schema_path

BUILTIN_SCALARS = {"ID", "String", "Int", "Float", "Boolean"}

TYPE_OPEN_PATTERN = re.compile(r"^type\s+(?P<name>\w+)\s*\{$")

FIELD_PATTERN = re.compile(
    r"^(?P<name>\w+)"
    r"(?:\((?P<args>[^)]*)\))?"
    r"\s*:\s*(?P<type>[\[\]\w!]+)"
    r"\s*(?:@(?P<directive>\w+)\((?P<directive_args>.*)\))?$"
)


@dataclass
class SchemaField:
    name: str
    type: str
    args: Optional[str] = None
    directive: Optional[str] = None
    directive_args: Optional[str] = None

    @property
    def named_type(self) -> str:
        """The type name with list and non-null markers removed."""
        return self.type.strip("[]!")


@dataclass
class SchemaType:
    name: str
    fields: List[SchemaField] = field(default_factory=list)


def parse_schema(text: str) -> Dict[str, SchemaType]:
    """
    Read object types from schema text.

    Returns:
        Dict mapping type name to SchemaType, in declaration order.

    Raises:
        ValueError: A line could not be read, or a type is left open.
    """
    types: Dict[str, SchemaType] = {}
    current: Optional[SchemaType] = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        # Comments never appear inside directive arguments in this file
        line = line.split("#", 1)[0].strip()
        if not line:
            continue

        if current is None:
            match = TYPE_OPEN_PATTERN.match(line)
            if match is None:
                raise ValueError(f"line {lineno}: expected a type declaration, got {line!r}")
            current = SchemaType(match.group("name"))
            continue

        if line == "}":
            types[current.name] = current
            current = None
            continue

        match = FIELD_PATTERN.match(line)
        if match is None:
            raise ValueError(f"line {lineno}: unreadable field in type {current.name}: {line!r}")
        current.fields.append(SchemaField(
            name=match.group("name"),
            type=match.group("type"),
            args=match.group("args"),
            directive=match.group("directive"),
            directive_args=match.group("directive_args"),
        ))

    if current is not None:
        raise ValueError(f"type {current.name} is never closed")

    return types


def load_schema(path: Optional[Path] = None) -> Dict[str, SchemaType]:
    """Read and parse the schema descriptor (the bundled one by default)."""
    path = path or schema_path()
    return parse_schema(path.read_text(encoding="utf-8"))


def unknown_type_references(types: Dict[str, SchemaType]) -> List[str]:
    """
    List "Type.field -> Name" for every field whose type is not declared.

    An empty list means every reference resolves to a declared type or a
    built-in scalar.
    """
    problems = []
    for schema_type in types.values():
        for schema_field in schema_type.fields:
            named = schema_field.named_type
            if named not in types and named not in BUILTIN_SCALARS:
                problems.append(f"{schema_type.name}.{schema_field.name} -> {named}")
    return problems


def describe_schema(types: Dict[str, SchemaType]) -> List[str]:
    """Render a short human-readable summary, one line per field."""
    lines = []
    for schema_type in types.values():
        lines.append(f"type {schema_type.name}")
        for schema_field in schema_type.fields:
            signature = schema_field.name
            if schema_field.args is not None:
                signature += f"({schema_field.args})"
            line = f"  {signature}: {schema_field.type}"
            if schema_field.directive:
                line += f"  @{schema_field.directive}({schema_field.directive_args})"
            lines.append(line)
    return lines
