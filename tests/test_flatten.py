import json
import string
from datetime import datetime, timezone

import pytest

from olake.flatten import Flattener, is_letter_or_number, reformat_key
from olake.utils import convert_to_string


def test_nested_mapping_becomes_json():
    result = Flattener().flatten({"nested": {"b": 1, "a": [1, 2]}})
    assert json.loads(result["nested"]) == {"b": 1, "a": [1, 2]}


def test_list_becomes_json():
    result = Flattener().flatten({"tags": ["x", {"y": None}]})
    assert json.loads(result["tags"]) == ["x", {"y": None}]


def test_primitives_are_kept():
    record = {"a": 1, "b": 1.5, "c": True, "d": "text"}
    assert Flattener().flatten(record) == record


def test_none_is_omitted_by_default():
    assert Flattener().flatten({"a": None, "b": 2}) == {"b": 2}


def test_none_kept_as_text_when_not_omitted():
    result = Flattener(omit_nil_values=False).flatten({"a": None})
    assert result == {"a": "<nil>"}


def test_other_values_are_stringified():
    moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
    result = Flattener().flatten({"when": moment})
    assert result["when"] == convert_to_string(moment)


def test_other_values_kept_without_stringify():
    moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
    result = Flattener(stringify_other=False).flatten({"when": moment})
    assert result["when"] is moment


def test_keys_are_reformatted():
    result = Flattener().flatten({"User Name!": 1})
    assert result == {reformat_key("User Name!"): 1}


def test_unserialisable_nested_value_raises():
    with pytest.raises(ValueError, match="error marshaling"):
        Flattener().flatten({"bad": {"x": object()}})


def test_input_is_not_modified():
    record = {"Key": {"a": 1}}
    Flattener().flatten(record)
    assert record == {"Key": {"a": 1}}


def test_reformat_key_example():
    assert reformat_key("User Name!") == "user_name_"


@pytest.mark.parametrize("key", ["Hello World", "a.b-c", "ABC123", "__x__", "x y\tz"])
def test_reformat_key_invariants(key):
    result = reformat_key(key)
    assert len(result) == len(key)
    assert all(ch in string.ascii_lowercase + string.digits + "_" for ch in result)
    assert reformat_key(result) == result


@pytest.mark.parametrize("symbol", ["a", "z", "A", "Z", "0", "9", ord("q")])
def test_is_letter_or_number_true(symbol):
    assert is_letter_or_number(symbol) is True


@pytest.mark.parametrize("symbol", ["_", "-", " ", "é", "٣", ord("!")])
def test_is_letter_or_number_false(symbol):
    assert is_letter_or_number(symbol) is False