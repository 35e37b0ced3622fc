"""A set whose members are identified by a string key rather than by Python hashing."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")


def _plain(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, HashedSet):
        return value.to_list()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return repr(value)


def _structural_key(elem: Any) -> str:
    if isinstance(elem, str):
        return f"str:{str(elem)}"
    if dataclasses.is_dataclass(elem) or isinstance(elem, (dict, list, tuple)):
        body = json.dumps(
            elem if not dataclasses.is_dataclass(elem) else dataclasses.asdict(elem),
            sort_keys=True,
            default=_plain,
        )
    else:
        body = repr(elem)
    return f"{type(elem).__qualname__}:{body}"


class HashedSet(Generic[T]):
    """An insertion-ordered set keyed by a string derived from each element.

    The key is taken, in order of preference, from the element's ``hash_key()``
    method, its ``id`` (attribute or method), a hasher set with
    :meth:`with_hasher`, or finally from the element's type and contents.
    Elements therefore need not be hashable.
    """

    def __init__(self, *initial: T) -> None:
        self._storage: dict[str, T] = {}
        self._hasher: Callable[[T], str] | None = None
        self.insert(*initial)

    def _empty(self) -> "HashedSet[T]":
        result: HashedSet[T] = type(self)()
        result._hasher = self._hasher
        return result

    def with_hasher(self, func: Callable[[T], str]) -> "HashedSet[T]":
        """Use ``func`` to key elements that carry no key of their own."""
        self._hasher = func
        return self

    def key(self, elem: T) -> str:
        """Return the string key identifying ``elem`` in this set."""
        hash_key = getattr(elem, "hash_key", None)
        if callable(hash_key):
            return str(hash_key())
        ident = getattr(elem, "id", None)
        if ident is not None:
            return str(ident() if callable(ident) else ident)
        if self._hasher is not None:
            return self._hasher(elem)
        return _structural_key(elem)

    def __contains__(self, elem: object) -> bool:
        return self.key(elem) in self._storage  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._storage)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._storage.values()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashedSet):
            return NotImplemented
        return self._storage.keys() == other._storage.keys()

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return "[" + ", ".join(str(value) for value in self._storage.values()) + "]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(v) for v in self._storage.values())})"

    def insert(self, *elements: T) -> None:
        """Add elements, ignoring any whose key is already present."""
        for elem in elements:
            self._storage.setdefault(self.key(elem), elem)

    def remove(self, element: T) -> None:
        """Remove ``element`` if present."""
        self._storage.pop(self.key(element), None)

    def difference(self, other: "HashedSet[T]") -> "HashedSet[T]":
        """Return the elements of this set whose keys are not in ``other``."""
        result = self._empty()
        result.insert(*(v for k, v in self._storage.items() if k not in other._storage))
        return result

    def intersection(self, other: "HashedSet[T]") -> "HashedSet[T]":
        """Return the elements of ``other`` whose keys are also in this set."""
        result = self._empty()
        result.insert(*(other._storage[k] for k in self._storage if k in other._storage))
        return result

    def union(self, other: "HashedSet[T]") -> "HashedSet[T]":
        """Return the elements of both sets, this set's first."""
        result = self._empty()
        result.insert(*self._storage.values())
        result.insert(*other._storage.values())
        return result

    def subset_of(self, other: "HashedSet[T]") -> bool:
        """Tell whether every key of this set is in ``other``."""
        if len(self) > len(other):
            return False
        return all(k in other._storage for k in self._storage)

    def proper_subset_of(self, other: "HashedSet[T]") -> bool:
        """Tell whether this set is a subset of ``other`` and smaller than it."""
        return self.subset_of(other) and len(self) < len(other)

    def to_list(self) -> list[T]:
        """Return the elements in insertion order."""
        return list(self._storage.values())

    def to_json(self) -> str:
        """Encode the elements as a JSON array."""
        return json.dumps(self.to_list(), default=_plain)

    @classmethod
    def from_json(cls, data: str | bytes | Iterable[Any]) -> "HashedSet[Any]":
        """Build a set from a JSON array (text or bytes) or an already decoded list."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON array, got {type(data).__name__}")
        return cls(*data)