"""Flattening records into one level with normalised column names."""

from __future__ import annotations

import base64
import dataclasses
import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from olake.utils import convert_to_string


def is_letter_or_number(symbol: str | int) -> bool:
    """Tell whether a character (or code point) is an ASCII letter or digit."""
    if isinstance(symbol, int):
        symbol = chr(symbol) if 0 <= symbol <= 0x10FFFF else ""
    return len(symbol) == 1 and symbol.isascii() and symbol.isalnum()


def reformat_key(key: str) -> str:
    """Lower-case ``key`` and replace every character other than a letter or digit with '_'."""
    return "".join(ch if is_letter_or_number(ch) else "_" for ch in key.lower())


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode()
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"value of type {type(value).__name__} is not JSON serialisable")


def _encode(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=_json_default)


@dataclass
class Flattener:
    """Flattens one level of a record.

    Lists and nested mappings become JSON text; booleans, numbers and strings
    are kept. Other values are turned into text when ``stringify_other`` is
    set and kept as they are otherwise. Nulls are dropped when
    ``omit_nil_values`` is set.
    """

    omit_nil_values: bool = True
    stringify_other: bool = True

    def flatten(self, record: dict[str, Any]) -> dict[str, Any]:
        """Return a new record with normalised keys and flattened values."""
        destination: dict[str, Any] = {}
        for key, value in record.items():
            self._flatten_one(key, value, destination)
        return destination

    def _flatten_one(self, key: str, value: Any, destination: dict[str, Any]) -> None:
        key = reformat_key(key)
        if isinstance(value, (list, tuple, bytes, bytearray)):
            try:
                destination[key] = _encode(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"error marshaling array with key {key}: {exc}") from exc
        elif isinstance(value, dict):
            try:
                destination[key] = _encode(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(
                    f"error marshaling array with key[{key}] and value {value!r}: {exc}"
                ) from exc
        elif isinstance(value, (bool, int, float, str)):
            destination[key] = value
        elif value is not None or not self.omit_nil_values:
            destination[key] = convert_to_string(value) if self.stringify_other else value