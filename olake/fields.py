"""Column type tracking across records, with widening of types as new values appear."""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, Any, Iterable

from olake.datatypes import DataType
from olake.hashed_set import HashedSet
from olake.reformat import NullValueError, reformat_value
from olake.type_detect import type_from_value
from olake.type_schema import Property, TypeSchema

if TYPE_CHECKING:
    from olake.stream import Stream


@dataclass
class _TypeNode:
    type: DataType
    left: "_TypeNode | None" = None
    right: "_TypeNode | None" = None


# Search tree ordered by the text of the type names; the lowest common
# ancestor of two types is the narrowest type both can be cast to.
_TYPECAST_TREE = _TypeNode(
    DataType.STRING,
    left=_TypeNode(
        DataType.FLOAT64,
        left=_TypeNode(DataType.INT64, left=_TypeNode(DataType.BOOL)),
    ),
    right=_TypeNode(
        DataType.TIMESTAMP_NANO,
        left=_TypeNode(
            DataType.TIMESTAMP_MICRO,
            left=_TypeNode(DataType.TIMESTAMP_MILLI, left=_TypeNode(DataType.TIMESTAMP)),
        ),
    ),
)


def get_common_ancestor_type(t1: DataType | str, t2: DataType | str) -> DataType | str:
    """Return the narrowest type that both ``t1`` and ``t2`` can be cast to."""
    a, b = str(t1), str(t2)
    node = _TYPECAST_TREE
    while node is not None:
        pivot = str(node.type)
        if a > pivot and b > pivot:
            node = node.right
        elif a < pivot and b < pivot:
            node = node.left
        else:
            return node.type
    return DataType.UNKNOWN


class Field:
    """The types seen for one column and the type they resolve to."""

    def __init__(self, data_type: DataType | str) -> None:
        self._data_type: DataType | str | None = data_type
        self.is_null = False
        self.occurrences: dict[DataType | str, None] = {data_type: None}

    def __repr__(self) -> str:
        return f"Field({list(self.occurrences)!r}, nullable={self.nullable})"

    @property
    def data_type(self) -> DataType | str:
        """The common type of every occurrence, computed lazily."""
        if self._data_type is None:
            if not self.occurrences:
                raise ValueError("field type occurrences can't be empty")
            self._data_type = reduce(get_common_ancestor_type, self.occurrences)
        return self._data_type

    @property
    def nullable(self) -> bool:
        """Whether the column was missing somewhere or held null."""
        return self.is_null or DataType.NULL in self.occurrences

    def mark_nullable(self) -> None:
        self.is_null = True

    def merge(self, other: "Field") -> None:
        """Add the other field's type occurrences; a new one resets the resolved type."""
        for typ in other.occurrences:
            if typ not in self.occurrences:
                self.occurrences[typ] = None
                self._data_type = None

    def types(self) -> list[DataType | str]:
        """Return the resolved type, preceded by null when the field is nullable."""
        if self.nullable:
            return [DataType.NULL, self.data_type]
        return [self.data_type]


class Fields(dict):
    """Column name to :class:`Field` mapping."""

    def merge(self, other: "Fields") -> None:
        """Merge every field of ``other`` into this mapping, adding new ones."""
        for name, other_field in other.items():
            if name in self:
                self[name].merge(other_field)
            else:
                self[name] = other_field

    def clone(self) -> "Fields":
        """Return a copy whose fields can change independently."""
        clone = Fields()
        for name, original in self.items():
            copied = Field(original.data_type)
            copied._data_type = original._data_type
            copied.occurrences = dict(original.occurrences)
            copied.is_null = original.is_null
            clone[name] = copied
        return clone

    def override_types(self, other: "Fields") -> None:
        """Take the types of ``other`` for columns present in both."""
        for name, other_field in other.items():
            current = self.get(name)
            if current is not None:
                current.occurrences = other_field.occurrences
                current._data_type = other_field._data_type

    def add(self, other: "Fields") -> None:
        """Add the fields of ``other`` whose names are not present yet."""
        for name, other_field in other.items():
            self.setdefault(name, other_field)

    def header(self) -> list[str]:
        """Return the column names, sorted."""
        return sorted(self)

    def process(self, record: dict[str, Any]) -> tuple[bool, bool, "Fields"]:
        """Update the fields from a record.

        Returns whether a new column appeared, whether a column's type
        changed, and the fields that changed.
        """
        change = False
        type_change = False
        mutations = Fields()
        for key, value in record.items():
            detected = type_from_value(value)
            existing = self.get(key)
            if existing is None:
                change = True
                mutations[key] = Field(detected)
                continue
            current = existing.data_type
            if detected != DataType.NULL and current != detected:
                existing.merge(Field(detected))
                if existing.data_type != current:
                    type_change = True
                    mutations[key] = Field(detected)
        self.merge(mutations)
        return change, type_change, mutations

    def to_properties(self) -> dict[str, Property]:
        """Return schema properties for every field."""
        return {name: Property(type=HashedSet(*f.types())) for name, f in self.items()}

    def from_schema(self, schema: TypeSchema) -> None:
        """Add a field for every column of ``schema``."""
        for name, prop in schema.properties.items():
            self[name] = Field(prop.data_type())

    def to_type_schema(self) -> TypeSchema:
        """Build a type schema holding each field's resolved type."""
        schema = TypeSchema()
        for name, f in self.items():
            schema.add_types(name, f.data_type)
        return schema


def reformat_record(fields: Fields, record: dict[str, Any]) -> None:
    """Coerce every value of ``record`` in place to its field's type."""
    for key, value in list(record.items()):
        field = fields.get(key)
        if field is None:
            raise ValueError(f"missing field [{key}]")
        try:
            updated = reformat_value(field.data_type, value)
        except NullValueError:
            updated = None
        except ValueError as exc:
            raise ValueError(
                f"failed to reformat value[{value}] to datatype[{field.data_type}] for key[{key}]: {exc}"
            ) from exc
        record[key] = updated


def resolve(stream: "Stream", *objects: dict[str, Any]) -> None:
    """Derive column types from sample objects and add them to the stream's schema.

    A column missing from an object after it was first seen is nullable.
    """
    all_fields = Fields()
    for obj in objects:
        fields = Fields({key: Field(type_from_value(value)) for key, value in obj.items()})
        for name, existing in all_fields.items():
            if name not in obj:
                existing.mark_nullable()
        all_fields.merge(fields)

    for column, field in all_fields.items():
        stream.upsert_field(column, field.data_type, field.nullable)


def _names(fields: Iterable[str]) -> list[str]:
    return sorted(fields)