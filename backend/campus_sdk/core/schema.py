# campus_sdk/core/schema.py
"""
Collection schema definitions and the registry that validates records
against them.

A schema declares, per collection:
- required: fields that must be present (and not None) after defaults
- types: field -> FieldType tag, checked on every non-null value
- defaults: field -> value, or a zero-argument callable evaluated per record
- unique: fields whose values may not repeat within the collection

Fields without a declared type are stored as-is.
"""
from __future__ import annotations

import copy
import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping

from .errors import SchemaNotFound, ValidationError
from .timeutil import parse_iso


class FieldType(str, Enum):
    """Closed set of declarable field types."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"

    def accepts(self, value: Any) -> bool:
        """Check a non-null value against this tag."""
        if self is FieldType.STRING:
            return isinstance(value, str)
        if self is FieldType.NUMBER:
            # bool is an int subclass; never a number here
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self is FieldType.BOOLEAN:
            return isinstance(value, bool)
        if self is FieldType.DATE:
            if isinstance(value, (dt.datetime, dt.date)):
                return True
            if isinstance(value, str):
                try:
                    parse_iso(value)
                except ValueError:
                    return False
                return True
            return False
        if self is FieldType.ARRAY:
            return isinstance(value, (list, tuple))
        return isinstance(value, dict)


@dataclass(frozen=True)
class SchemaDefinition:
    required: FrozenSet[str] = frozenset()
    types: Mapping[str, FieldType] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    unique: FrozenSet[str] = frozenset()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SchemaDefinition":
        """
        Build a definition from the plain-dict form used in configuration:
        {"required": [...], "types": {field: "string", ...}, "defaults": {...}, "unique": [...]}
        """
        return cls(
            required=frozenset(raw.get("required", ())),
            types={f: FieldType(t) for f, t in (raw.get("types") or {}).items()},
            defaults=dict(raw.get("defaults") or {}),
            unique=frozenset(raw.get("unique", ())),
        )

    def default_for(self, name: str) -> Any:
        value = self.defaults[name]
        if callable(value):
            return value()
        # lists/dicts must never be shared between records
        return copy.deepcopy(value)


class SchemaRegistry:
    """
    Registry of collection schemas, injected into the RecordStore at
    construction. Each instance is independent, so tests can build
    isolated registries.
    """

    def __init__(self, definitions: Mapping[str, SchemaDefinition] | None = None):
        self._schemas: Dict[str, SchemaDefinition] = {}
        for name, definition in (definitions or {}).items():
            self.register(name, definition)

    @classmethod
    def from_definitions(cls, raw: Mapping[str, Mapping[str, Any]]) -> "SchemaRegistry":
        return cls({name: SchemaDefinition.from_dict(d) for name, d in raw.items()})

    def register(self, name: str, definition: SchemaDefinition | Mapping[str, Any]) -> None:
        """Store a schema; registering an existing name replaces it."""
        if not isinstance(definition, SchemaDefinition):
            definition = SchemaDefinition.from_dict(definition)
        self._schemas[name] = definition

    def get(self, name: str) -> SchemaDefinition:
        try:
            return self._schemas[name]
        except KeyError:
            raise SchemaNotFound(f"No schema registered for collection '{name}'") from None

    def names(self) -> list[str]:
        return sorted(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def validate(self, name: str, candidate: Mapping[str, Any]) -> None:
        """
        Validate a full candidate record.

        Raises:
            SchemaNotFound: If the collection is not registered
            ValidationError: Listing every missing required field and every
                non-null value whose type does not match its declaration
        """
        schema = self.get(name)
        missing = [f for f in schema.required if candidate.get(f) is None]
        type_errors = {
            f: ftype.value
            for f, ftype in schema.types.items()
            if candidate.get(f) is not None and not ftype.accepts(candidate[f])
        }
        if missing or type_errors:
            raise ValidationError(name, missing=missing, type_errors=type_errors)

    def apply_defaults(self, name: str, partial: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Return a copy of `partial` with every absent field filled from the
        schema defaults. Supplied values win, including falsy ones.
        """
        schema = self.get(name)
        filled = dict(partial)
        for f in schema.defaults:
            if f not in filled:
                filled[f] = schema.default_for(f)
        return filled

    def normalize(self, name: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Return a copy of `record` with date objects in DATE fields turned
        into ISO-8601 strings, the form every record is stored in.
        Naive datetimes are taken as UTC.
        """
        schema = self.get(name)
        normalized = dict(record)
        for f, ftype in schema.types.items():
            if ftype is FieldType.DATE and f in normalized:
                normalized[f] = _iso(normalized[f])
        return normalized

    def unique_fields(self, name: str) -> Iterable[str]:
        return self.get(name).unique


def _iso(value: Any) -> Any:
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc).isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    return value
