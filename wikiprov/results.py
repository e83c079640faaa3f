"""Typed SPARQL result sets, validated once at decode time."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

import jsonschema

from .errors import DecodeError, SchemaMismatchError

URI = "uri"
LITERAL = "literal"

# SPARQL 1.1 JSON results, restricted to SELECT queries
SPARQL_RESULTS_SCHEMA = {
    "type": "object",
    "required": ["head", "results"],
    "properties": {
        "head": {
            "type": "object",
            "required": ["vars"],
            "properties": {"vars": {"type": "array", "items": {"type": "string"}}},
        },
        "results": {
            "type": "object",
            "required": ["bindings"],
            "properties": {
                "bindings": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "additionalProperties": {
                            "type": "object",
                            "required": ["type", "value"],
                            "properties": {
                                "type": {"enum": ["uri", "literal", "typed-literal", "bnode"]},
                                "value": {"type": "string"},
                                "xml:lang": {"type": "string"},
                                "datatype": {"type": "string"},
                            },
                        },
                    },
                }
            },
        },
    },
}

_VALIDATOR = jsonschema.Draft202012Validator(SPARQL_RESULTS_SCHEMA)


@dataclass(frozen=True)
class BoundValue:
    value: str
    type: str = LITERAL
    lang: Optional[str] = None
    datatype: Optional[str] = None

    @property
    def is_uri(self) -> bool:
        return self.type == URI


@dataclass(frozen=True)
class ResultSet:
    """Ordered variable names plus rows mapping variable -> BoundValue.

    Unbound (OPTIONAL) variables are simply absent from a row.
    """

    variables: tuple[str, ...]
    rows: tuple[Mapping[str, BoundValue], ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def require(self, *names: str) -> None:
        """Raise SchemaMismatchError unless every name is a declared variable."""
        for name in names:
            if name not in self.variables:
                raise SchemaMismatchError(name, self.variables)

    def values(self, variable: str) -> list[str]:
        """Bound values of one variable in row order, skipping unbound rows."""
        self.require(variable)
        return [row[variable].value for row in self.rows if variable in row]

    @classmethod
    def from_rows(cls, variables, rows) -> "ResultSet":
        """Build from plain `{var: value}` dicts; handy for fixtures and tests."""
        built = []
        for row in rows:
            built.append(
                MappingProxyType(
                    {
                        name: value if isinstance(value, BoundValue) else _guess_bound(value)
                        for name, value in row.items()
                        if value is not None
                    }
                )
            )
        return cls(variables=tuple(variables), rows=tuple(built))


def _guess_bound(value):
    text = str(value)
    kind = URI if text.startswith(("http://", "https://")) else LITERAL
    return BoundValue(value=text, type=kind)


def _bound_from_json(raw: Mapping[str, Any]) -> BoundValue:
    kind = URI if raw["type"] == "uri" else LITERAL
    return BoundValue(
        value=raw["value"],
        type=kind,
        lang=raw.get("xml:lang"),
        datatype=raw.get("datatype"),
    )


def decode_sparql_json(payload: Any) -> ResultSet:
    """Validate a decoded SPARQL JSON document and convert it to a ResultSet."""
    errors = sorted(_VALIDATOR.iter_errors(payload), key=lambda e: len(list(e.absolute_path)))
    if errors:
        error = errors[0]
        details = {
            "path": list(error.absolute_path),
            "schema_path": list(error.absolute_schema_path),
            "message": error.message,
        }
        raise DecodeError("SPARQL response does not match the results schema.", details)

    variables = tuple(payload["head"]["vars"])
    rows = []
    for binding in payload["results"]["bindings"]:
        rows.append(MappingProxyType({name: _bound_from_json(raw) for name, raw in binding.items()}))
    return ResultSet(variables=variables, rows=tuple(rows))
