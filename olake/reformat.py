"""Coercion of source values to the column types of a schema."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable

from olake.datatypes import DataType
from olake.utils import convert_to_string


class NullValueError(ValueError):
    """Raised when a value is reformatted to the null type."""

    def __init__(self, message: str = "null value") -> None:
        super().__init__(message)


_DATE = r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
_TIME = r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})(?:[.,](?P<fraction>\d+))?"
_COLON_ZONE = r"(?P<zone>[+-]\d{2}:\d{2})"

_LAYOUTS = [
    re.compile(rf"{_DATE}"),
    re.compile(rf"{_DATE} {_TIME}"),
    re.compile(rf"{_DATE} {_TIME} {_COLON_ZONE}"),
    re.compile(rf"{_DATE} {_TIME}{_COLON_ZONE}"),
    re.compile(rf"{_DATE}T{_TIME}"),
    re.compile(rf"{_DATE}T{_TIME}(?P<zone>Z|[+-]\d{{2}}:\d{{2}})"),
    re.compile(rf"{_DATE}T{_TIME}\+0000"),
    re.compile(rf"{_DATE} {_TIME}(?P<zone>[+-]\d{{2}})"),
]

_TRUE_WORDS = {"1", "t", "T", "true", "TRUE", "True", "YES", "Yes", "yes"}
_FALSE_WORDS = {"0", "f", "F", "false", "FALSE", "False", "NO", "No", "no"}

_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()
_MAX_ORDINAL = date.max.toordinal()
_DAYS_PER_400_YEARS = 146097
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _zone(text: str | None) -> timezone:
    if not text or text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    hours = int(text[1:3])
    minutes = int(text[4:6]) if len(text) > 3 else 0
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _build(match: re.Match) -> datetime:
    parts = match.groupdict()
    fraction = (parts.get("fraction") or "")[:6].ljust(6, "0")
    return datetime(
        int(parts["year"]),
        int(parts["month"]),
        int(parts["day"]),
        int(parts.get("hour") or 0),
        int(parts.get("minute") or 0),
        int(parts.get("second") or 0),
        int(fraction),
        tzinfo=_zone(parts.get("zone")),
    )


def parse_timestamp(value: str) -> datetime:
    """Parse a date or date-time string in one of the accepted layouts.

    Values without a zone are taken as UTC. Fractions finer than a
    microsecond are truncated.
    """
    error: Exception | None = None
    for layout in _LAYOUTS:
        match = layout.fullmatch(value)
        if match is None:
            continue
        try:
            return _build(match)
        except ValueError as exc:
            error = exc
    reason = error or f"no layout matches {value!r}"
    raise ValueError(f"failed to parse datetime from available formats: {reason}")


def _clamped_date(year: int, month: int, day: int) -> date:
    if month == 2 and day == 29:
        return date(year, 3, 1)
    return date(year, month, day)


def _from_unix(seconds: int) -> datetime:
    days, rest = divmod(seconds, 86400)
    ordinal = _EPOCH_ORDINAL + days
    clock = timedelta(seconds=rest)
    if ordinal > _MAX_ORDINAL:
        # Keep month and day, pull the year back to the last representable one.
        cycles = (ordinal - _MAX_ORDINAL) // _DAYS_PER_400_YEARS + 1
        shifted = date.fromordinal(ordinal - cycles * _DAYS_PER_400_YEARS)
        day = _clamped_date(date.max.year, shifted.month, shifted.day)
    elif ordinal < 1:
        cycles = (1 - ordinal) // _DAYS_PER_400_YEARS + 1
        shifted = date.fromordinal(ordinal + cycles * _DAYS_PER_400_YEARS)
        day = _clamped_date(date.min.year, shifted.month, shifted.day)
    else:
        day = date.fromordinal(ordinal)
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc) + clock


def reformat_date(value: Any) -> datetime:
    """Convert a value to a datetime.

    Integers are Unix seconds; None gives the zero time; strings are parsed
    with :func:`parse_timestamp`. Years past 9999 are clamped to 9999.
    """
    if value is None:
        return _ZERO_TIME
    if isinstance(value, datetime):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return _from_unix(value)
    if isinstance(value, str):
        return parse_timestamp(value)
    raise ValueError(f"unhandled type[{type(value).__name__}] passed: unable to parse into time")


def reformat_int64(value: Any) -> int:
    """Convert a number to an integer, truncating floats; booleans give 1."""
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"failed to change {value} (type:float) to int64")
        return int(value)
    raise ValueError(f"failed to change {value!r} (type:{type(value).__name__}) to int64")


def reformat_float64(value: Any) -> float:
    """Convert a number or numeric string to a float; booleans give 1.0."""
    if isinstance(value, bool):
        return 1.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        if value != value.strip() or "_" in value:
            raise ValueError(f"failed to change string {value} to float64: invalid syntax")
        try:
            return float(value)
        except ValueError as exc:
            raise ValueError(f"failed to change string {value} to float64: {exc}") from exc
    raise ValueError(f"failed to change {value!r} (type:{type(value).__name__}) to float64")


def _reformat_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE_WORDS:
            return True
        if value in _FALSE_WORDS:
            return False
    elif isinstance(value, int) and value in (0, 1):
        # Zero is reported as true here as well, matching the established behaviour.
        return True
    raise ValueError(f"found to be boolean, but value is not boolean : {value!r}")


def reformat_value(data_type: DataType | str, value: Any) -> Any:
    """Coerce ``value`` to ``data_type``; raise NullValueError for the null type."""
    if data_type == DataType.NULL:
        raise NullValueError()
    if data_type == DataType.BOOL:
        return _reformat_bool(value)
    if data_type == DataType.INT64:
        return reformat_int64(value)
    if data_type == DataType.TIMESTAMP:
        return reformat_date(value)
    if data_type == DataType.STRING:
        return convert_to_string(value)
    if data_type == DataType.FLOAT64:
        return reformat_float64(value)
    if data_type == DataType.ARRAY:
        return value if isinstance(value, list) else [value]
    return value


def reformat_value_on_data_types(data_types: Iterable[DataType | str], value: Any) -> Any:
    """Coerce ``value`` to the first non-null type of ``data_types``."""
    target = next((typ for typ in data_types if typ != DataType.NULL), DataType.NULL)
    return reformat_value(target, value)


def _decode(value: bytes | bytearray) -> str:
    return bytes(value).decode("utf-8", errors="replace")


def reformat_byte_arrays_to_string(data: dict[str, Any]) -> dict[str, Any]:
    """Decode bytes to text throughout nested mappings and their lists, in place."""
    for key, value in data.items():
        if isinstance(value, dict):
            data[key] = reformat_byte_arrays_to_string(value)
        elif isinstance(value, (bytes, bytearray)):
            data[key] = _decode(value)
        elif isinstance(value, list):
            data[key] = [
                reformat_byte_arrays_to_string(element)
                if isinstance(element, dict)
                else _decode(element)
                if isinstance(element, (bytes, bytearray))
                else element
                for element in value
            ]
    return data