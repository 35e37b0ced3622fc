"""Column type schema of a stream."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Iterable

from olake.datatypes import DataType
from olake.hashed_set import HashedSet


def _to_data_type(value: Any) -> DataType | str:
    try:
        return DataType(value)
    except ValueError:
        return value


@dataclass
class Property:
    """The set of types observed for one column."""

    type: HashedSet | None = field(default_factory=HashedSet)

    def data_type(self) -> DataType | str:
        """Return the first non-null type, or NULL if there is none."""
        for typ in self.type or ():
            if typ != DataType.NULL:
                return typ
        return DataType.NULL

    def nullable(self) -> bool:
        """Tell whether the column may hold null."""
        return self.type is not None and DataType.NULL in self.type

    def to_dict(self) -> dict[str, Any]:
        if self.type is None:
            return {}
        return {"type": [str(typ) for typ in self.type]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Property":
        if not isinstance(data, dict):
            raise ValueError(f"property must be an object, got {type(data).__name__}")
        raw = data.get("type")
        if raw is None:
            return cls(type=HashedSet())
        if not isinstance(raw, list):
            raise ValueError("property type must be an array")
        return cls(type=HashedSet(*(_to_data_type(item) for item in raw)))


class TypeSchema:
    """Thread-safe mapping of column names to :class:`Property`."""

    def __init__(self, properties: dict[str, Property] | None = None) -> None:
        self._lock = threading.RLock()
        self._properties: dict[str, Property] = dict(properties or {})

    @property
    def properties(self) -> dict[str, Property]:
        """A snapshot of the column properties."""
        with self._lock:
            return dict(self._properties)

    def __contains__(self, column: object) -> bool:
        with self._lock:
            return column in self._properties

    def __len__(self) -> int:
        with self._lock:
            return len(self._properties)

    def override(self, fields: dict[str, Property]) -> None:
        """Replace column properties, keeping columns that were nullable nullable."""
        with self._lock:
            for key, value in fields.items():
                stored = self._properties.pop(key, None)
                if stored is not None and stored.nullable():
                    if value.type is None:
                        value.type = HashedSet()
                    value.type.insert(DataType.NULL)
                self._properties[key] = value

    def get_type(self, column: str) -> DataType | str:
        """Return the column's data type; raise KeyError if it is unknown."""
        with self._lock:
            prop = self._properties.get(column)
        if prop is None:
            raise KeyError(f"column [{column}] missing from type schema")
        return prop.data_type()

    def add_types(self, column: str, *types: DataType) -> None:
        """Add types to a column, creating it if needed."""
        with self._lock:
            prop = self._properties.get(column)
            if prop is None:
                self._properties[column] = Property(type=HashedSet(*types))
                return
            if prop.type is None:
                prop.type = HashedSet()
            prop.type.insert(*types)

    def get_property(self, column: str) -> Property | None:
        """Return the column's property, or None if it is unknown."""
        with self._lock:
            return self._properties.get(column)

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            if not self._properties:
                return {}
            return {"properties": {k: v.to_dict() for k, v in self._properties.items()}}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TypeSchema":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"type schema must be an object, got {type(data).__name__}")
        raw: dict[str, Any] = data.get("properties") or {}
        if not isinstance(raw, dict):
            raise ValueError("type schema properties must be an object")
        return cls({key: Property.from_dict(value) for key, value in raw.items()})

    def columns(self) -> Iterable[str]:
        """Return the column names."""
        with self._lock:
            return list(self._properties)