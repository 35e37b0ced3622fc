"""Detecting the data type of a value and comparing values by type."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from olake.datatypes import DataType
from olake.reformat import reformat_date, reformat_int64
from olake.utils import max_date


def _timestamp_precision(value: datetime) -> DataType:
    nanos = value.microsecond * 1000 + int(getattr(value, "nanosecond", 0) or 0)
    if nanos == 0:
        return DataType.TIMESTAMP
    if nanos % 1_000_000 == 0:
        return DataType.TIMESTAMP_MILLI
    if nanos % 1_000 == 0:
        return DataType.TIMESTAMP_MICRO
    return DataType.TIMESTAMP_NANO


def type_from_value(value: Any) -> DataType:
    """Return the data type that describes ``value``."""
    if value is None:
        return DataType.NULL
    if isinstance(value, bool):
        return DataType.BOOL
    if isinstance(value, int):
        return DataType.INT64
    if isinstance(value, float):
        return DataType.FLOAT64
    if isinstance(value, str):
        return DataType.STRING
    if isinstance(value, (list, tuple, bytes, bytearray)):
        return DataType.ARRAY
    if isinstance(value, dict):
        return DataType.OBJECT
    if isinstance(value, datetime):
        return _timestamp_precision(value)
    return DataType.UNKNOWN


def maximum_on_data_type(data_type: DataType | str, a: Any, b: Any) -> Any:
    """Return the greater of ``a`` and ``b`` compared as ``data_type``.

    Only timestamps and integers can be compared; ties go to ``a`` for
    timestamps and to ``b`` for integers.
    """
    if data_type == DataType.TIMESTAMP:
        converter = reformat_date
    elif data_type == DataType.INT64:
        converter = reformat_int64
    else:
        raise ValueError(f"comparison not available for data types {data_type} now")

    converted = []
    for value in (a, b):
        try:
            converted.append(converter(value))
        except ValueError as exc:
            raise ValueError(f"failed to reformat[{value}] while comparing: {exc}") from exc
    left, right = converted

    if data_type == DataType.TIMESTAMP:
        return a if max_date(left, right) == left else b
    return a if left > right else b