"""General helpers: JSON round trips, identifiers, hashing, comparison and validation."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import os
import secrets
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Sequence

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_RANDOM_BITS = 80
_ulid_lock = threading.Lock()
_last_ms = -1
_last_random = 0


class ValidationError(ValueError):
    """Raised when a configuration object fails its declared constraints."""


def absolute(value):
    """Return the absolute value of a number."""
    return -value if value < 0 else value


def is_valid_subcommand(available: Iterable[Any], sub: str) -> bool:
    """Tell whether ``sub`` names one of the available commands.

    Commands may be given as plain names or as objects with a ``name`` attribute.
    """
    return any(getattr(command, "name", command) == sub for command in available)


def exist_in_array(items: Iterable[Any], value: Any) -> bool:
    """Tell whether ``value`` is one of ``items``."""
    return array_contains(items, lambda elem: elem == value) is not None


def array_contains(items: Iterable[Any], match: Callable[[Any], bool]) -> int | None:
    """Return the index of the first element matching ``match``, or None."""
    return next((index for index, elem in enumerate(items) if match(elem)), None)


def _go_sprint(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode(errors="replace")
    return str(value)


def _reformat_inner_maps(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key if isinstance(key, str) else _go_sprint(key): _reformat_inner_maps(sub)
            for key, sub in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_reformat_inner_maps(sub) for sub in value]
    return value


def _to_plain(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


def _apply(data: Any, into: Any) -> Any:
    if into is None:
        return data
    if isinstance(into, dict):
        if not isinstance(data, dict):
            raise ValueError(f"cannot decode {type(data).__name__} into a mapping")
        into.update(data)
        return into
    if isinstance(into, list):
        if not isinstance(data, list):
            raise ValueError(f"cannot decode {type(data).__name__} into a list")
        into.extend(data)
        return into
    from_dict = getattr(into, "from_dict", None)
    if callable(from_dict):
        return from_dict(data)
    if callable(into):
        return into(data)
    raise TypeError(f"unsupported decode target {into!r}")


def unmarshal(source: Any, into: Any = None) -> Any:
    """Serialise ``source`` to JSON and decode it again into ``into``.

    ``into`` may be a dict or list (updated in place), a class with a
    ``from_dict`` constructor, any other callable taking the decoded data,
    or None to get the plain decoded value.
    """
    try:
        encoded = json.dumps(_reformat_inner_maps(_to_plain(source)))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"error marshaling object: {exc}") from exc
    try:
        return _apply(json.loads(encoded), into)
    except (TypeError, ValueError, KeyError) as exc:
        raise ValueError(f"error unmarshalling from object: {exc}") from exc


def check_if_files_exist(*paths: str) -> None:
    """Raise unless every path exists and can be read."""
    for path in paths:
        if not os.path.exists(path):
            raise FileNotFoundError(f"{path} does not exist")
        try:
            with open(path, "rb") as handle:
                handle.read()
        except OSError as exc:
            raise OSError(f"failed to read {path}: {exc}") from exc


def unmarshal_file(path: str, into: Any = None) -> Any:
    """Read a JSON file and decode it into ``into`` (see :func:`unmarshal`)."""
    check_if_files_exist(path)
    with open(path, "rb") as handle:
        raw = handle.read()
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ValueError(f"failed to unmarshal file[{path}]: {exc}") from exc
    try:
        return _apply(data, into)
    except (TypeError, ValueError, KeyError) as exc:
        raise ValueError(f"failed to unmarshal file[{path}]: {exc}") from exc


def is_of_type(obj: Any, deciding_key: str) -> bool:
    """Tell whether the JSON form of ``obj`` has the top-level key ``deciding_key``."""
    decoded = unmarshal(obj)
    return isinstance(decoded, dict) and deciding_key in decoded


def stream_identifier(name: str, namespace: str) -> str:
    """Return ``namespace.name``, or just ``name`` without a namespace."""
    return f"{namespace}.{name}" if namespace else name


def is_subset(items: Iterable[Any], subset: Iterable[Any]) -> bool:
    """Tell whether every element of ``subset`` is in ``items``."""
    return set(subset) <= set(items)


def max_date(a: datetime, b: datetime) -> datetime:
    """Return the later of two datetimes, ``b`` on a tie."""
    return a if a > b else b


def _generate_ulid(ms: int) -> str:
    global _last_ms, _last_random
    with _ulid_lock:
        if ms == _last_ms:
            randomness = _last_random + secrets.randbelow(1 << 32) + 1
            if randomness >= 1 << _RANDOM_BITS:
                raise OverflowError("ulid entropy exhausted for this millisecond")
        else:
            randomness = secrets.randbits(_RANDOM_BITS)
        _last_ms, _last_random = ms, randomness
    value = (ms << _RANDOM_BITS) | randomness
    return "".join(_CROCKFORD[(value >> (5 * shift)) & 31] for shift in reversed(range(26)))


def ulid() -> str:
    """Return a new monotonic ULID string."""
    return _generate_ulid(time.time_ns() // 1_000_000)


def timestamped_file_name(extension: str) -> str:
    """Return a unique file name prefixed with the current UTC date and time."""
    now = datetime.now(timezone.utc)
    stamp = f"{now.year}-{now.month}-{now.day}_{now.hour}-{now.minute}-{now.second}"
    return f"{stamp}_{_generate_ulid(int(now.timestamp() * 1000))}.{extension}"


def is_json(text: str) -> bool:
    """Tell whether ``text`` is valid JSON."""
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def get_keys_hash(mapping: dict, *keys: str) -> str:
    """Return the md5 hex digest of the values of ``keys`` taken in sorted order."""
    joined = "".join(f"{_go_sprint(mapping.get(key))}|" for key in sorted(keys))
    return hashlib.md5(joined.encode(), usedforsecurity=False).hexdigest()


def get_hash(mapping: dict) -> str:
    """Return :func:`get_keys_hash` over every key of ``mapping``."""
    return get_keys_hash(mapping, *mapping)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def add_constant(value: Any, increment: int) -> Any:
    """Add ``increment`` to a numeric value."""
    if not _is_number(value):
        raise TypeError(
            f"failed to add contant values to interface, unsupported type {type(value).__name__}"
        )
    return value + increment


def compare_values(a: Any, b: Any) -> int:
    """Return -1, 0 or 1 as ``a`` is less than, equal to or greater than ``b``.

    Numbers compare numerically with a missing ``b`` counted as zero; strings
    compare lexically with a missing ``b`` counted as smaller. Anything else is 0.
    """
    if _is_number(a):
        left = float(a)
        right = 0.0 if b is None else float(b)
        return (left > right) - (left < right)
    if isinstance(a, str):
        if b is None:
            return 1
        return (a > b) - (a < b)
    return 0


def convert_to_string(value: Any) -> str:
    """Return a text form of ``value``, decoding bytes."""
    if isinstance(value, str):
        return value
    return _go_sprint(value)


def map_row(cursor: Any, row: Sequence[Any]) -> dict[str, Any]:
    """Map a DB-API row to a dict keyed by column names, decoding bytes to text."""
    columns = [column[0] for column in cursor.description]
    return {
        column: bytes(value).decode() if isinstance(value, (bytes, bytearray, memoryview)) else value
        for column, value in zip(columns, row)
    }


def validate(obj: Any) -> None:
    """Check a dataclass against the constraints in its field metadata.

    Supported metadata keys: ``required`` (value must be non-empty),
    ``oneof`` (value, when set, must be one of the options) and ``json``
    (the name used in messages). All failures are reported together.
    """
    if not dataclasses.is_dataclass(obj) or isinstance(obj, type):
        raise TypeError(f"validate expects a dataclass instance, got {type(obj).__name__}")
    errors = []
    for field in dataclasses.fields(obj):
        meta = field.metadata
        name = meta.get("json") or field.name
        value = getattr(obj, field.name)
        if meta.get("required") and not value:
            errors.append(f"{name} is a required field")
            continue
        options = meta.get("oneof")
        if options and value and value not in options:
            errors.append(f"{name} must be one of [{' '.join(map(str, options))}]")
    if errors:
        raise ValidationError("; ".join(errors))