from datetime import datetime, timezone

import pytest

from olake.datatypes import DataType
from olake.type_detect import maximum_on_data_type, type_from_value


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, DataType.NULL),
        (True, DataType.BOOL),
        (False, DataType.BOOL),
        (3, DataType.INT64),
        (2.5, DataType.FLOAT64),
        ("x", DataType.STRING),
        ([1, 2], DataType.ARRAY),
        ((1,), DataType.ARRAY),
        ({"a": 1}, DataType.OBJECT),
        (object(), DataType.UNKNOWN),
    ],
)
def test_type_from_value(value, expected):
    assert type_from_value(value) == expected


@pytest.mark.parametrize(
    "microsecond, expected",
    [
        (0, DataType.TIMESTAMP),
        (123000, DataType.TIMESTAMP_MILLI),
        (123456, DataType.TIMESTAMP_MICRO),
    ],
)
def test_timestamp_precision(microsecond, expected):
    value = datetime(2024, 1, 2, 3, 4, 5, microsecond, tzinfo=timezone.utc)
    assert type_from_value(value) == expected


def test_maximum_int_picks_greater():
    assert maximum_on_data_type(DataType.INT64, 3, 7) == 7
    assert maximum_on_data_type(DataType.INT64, 9.0, 2) == 9.0


def test_maximum_int_tie_returns_second():
    second = 5.0
    assert maximum_on_data_type(DataType.INT64, 5, second) is second


def test_maximum_timestamp_strings():
    later = "2024-01-02"
    earlier = "2023-05-05"
    assert maximum_on_data_type(DataType.TIMESTAMP, later, earlier) is later
    assert maximum_on_data_type(DataType.TIMESTAMP, earlier, later) is later


def test_maximum_timestamp_unix_seconds():
    assert maximum_on_data_type(DataType.TIMESTAMP, 100, 50) == 100
    assert maximum_on_data_type(DataType.TIMESTAMP, 50, 100) == 100


def test_maximum_timestamp_tie_returns_first():
    first = "2024-01-02"
    assert maximum_on_data_type(DataType.TIMESTAMP, first, "2024-01-02") is first


def test_maximum_reformat_failure():
    with pytest.raises(ValueError, match="failed to reformat"):
        maximum_on_data_type(DataType.INT64, "x", 1)
    with pytest.raises(ValueError, match="failed to reformat"):
        maximum_on_data_type(DataType.TIMESTAMP, "2024-01-02", "not a date")


def test_maximum_unsupported_type():
    with pytest.raises(ValueError, match="comparison not available"):
        maximum_on_data_type(DataType.STRING, "a", "b")