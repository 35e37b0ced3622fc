import pytest

from olake.datatypes import DataType
from olake.fields import (
    Field,
    Fields,
    get_common_ancestor_type,
    reformat_record,
    resolve,
)
from olake.stream import Stream
from olake.type_schema import TypeSchema


@pytest.mark.parametrize(
    "t1,t2,expected",
    [
        (DataType.INT64, DataType.FLOAT64, DataType.FLOAT64),
        (DataType.BOOL, DataType.INT64, DataType.INT64),
        (DataType.INT64, DataType.STRING, DataType.STRING),
        (DataType.TIMESTAMP, DataType.TIMESTAMP_NANO, DataType.TIMESTAMP_NANO),
        (DataType.INT64, DataType.INT64, DataType.INT64),
        (DataType.NULL, DataType.INT64, DataType.INT64),
        (DataType.UNKNOWN, DataType.UNKNOWN, DataType.UNKNOWN),
    ],
)
def test_common_ancestor(t1, t2, expected):
    assert get_common_ancestor_type(t1, t2) == expected
    assert get_common_ancestor_type(t2, t1) == expected


def test_field_merge_widens_type():
    field = Field(DataType.INT64)
    assert field.data_type == DataType.INT64
    field.merge(Field(DataType.FLOAT64))
    assert field.data_type == DataType.FLOAT64
    assert field.types() == [DataType.FLOAT64]


def test_field_nullable_types():
    field = Field(DataType.STRING)
    field.merge(Field(DataType.NULL))
    assert field.nullable
    assert field.types() == [DataType.NULL, DataType.STRING]


def test_process_new_column():
    fields = Fields()
    change, type_change, mutations = fields.process({"a": 1})
    assert change is True
    assert type_change is False
    assert list(mutations) == ["a"]
    assert fields["a"].data_type == DataType.INT64


def test_process_same_type_no_change():
    fields = Fields({"a": Field(DataType.INT64)})
    change, type_change, mutations = fields.process({"a": 5})
    assert (change, type_change) == (False, False)
    assert len(mutations) == 0


def test_process_type_change():
    fields = Fields({"a": Field(DataType.INT64)})
    change, type_change, mutations = fields.process({"a": 2.5})
    assert change is False
    assert type_change is True
    assert list(mutations) == ["a"]
    assert fields["a"].data_type == DataType.FLOAT64


def test_process_null_value_keeps_type():
    fields = Fields({"a": Field(DataType.INT64)})
    change, type_change, mutations = fields.process({"a": None})
    assert (change, type_change) == (False, False)
    assert fields["a"].data_type == DataType.INT64


def test_header_sorted():
    fields = Fields({"b": Field(DataType.INT64), "a": Field(DataType.STRING)})
    assert fields.header() == ["a", "b"]


def test_clone_is_independent():
    fields = Fields({"a": Field(DataType.INT64)})
    clone = fields.clone()
    clone["a"].merge(Field(DataType.STRING))
    assert fields["a"].data_type == DataType.INT64
    assert clone["a"].data_type == DataType.STRING


def test_override_types_only_existing():
    fields = Fields({"a": Field(DataType.INT64)})
    fields.override_types(Fields({"a": Field(DataType.STRING), "b": Field(DataType.BOOL)}))
    assert fields["a"].data_type == DataType.STRING
    assert "b" not in fields


def test_add_keeps_existing():
    fields = Fields({"a": Field(DataType.INT64)})
    fields.add(Fields({"a": Field(DataType.STRING), "b": Field(DataType.BOOL)}))
    assert fields["a"].data_type == DataType.INT64
    assert fields["b"].data_type == DataType.BOOL


def test_merge_combines():
    fields = Fields({"a": Field(DataType.INT64)})
    fields.merge(Fields({"a": Field(DataType.FLOAT64), "b": Field(DataType.BOOL)}))
    assert fields["a"].data_type == DataType.FLOAT64
    assert fields.header() == ["a", "b"]


def test_schema_round_trip():
    schema = TypeSchema()
    schema.add_types("a", DataType.INT64)
    schema.add_types("b", DataType.STRING)
    fields = Fields()
    fields.from_schema(schema)
    rebuilt = fields.to_type_schema()
    assert rebuilt.get_type("a") == DataType.INT64
    assert rebuilt.get_type("b") == DataType.STRING


def test_to_properties_nullable():
    field = Field(DataType.INT64)
    field.mark_nullable()
    props = Fields({"a": field}).to_properties()
    assert props["a"].nullable()
    assert props["a"].data_type() == DataType.INT64


def test_reformat_record_coerces():
    fields = Fields({"a": Field(DataType.FLOAT64), "n": Field(DataType.NULL)})
    record = {"a": 3, "n": "x"}
    reformat_record(fields, record)
    assert record == {"a": 3.0, "n": None}
    assert isinstance(record["a"], float)


def test_reformat_record_missing_field():
    with pytest.raises(ValueError, match="missing field"):
        reformat_record(Fields(), {"a": 1})


def test_reformat_record_bad_value():
    fields = Fields({"a": Field(DataType.BOOL)})
    with pytest.raises(ValueError, match="failed to reformat"):
        reformat_record(fields, {"a": "maybe"})


def test_resolve_marks_missing_nullable():
    stream = Stream(name="users", namespace="db")
    resolve(stream, {"a": 1, "b": "x"}, {"a": 2})
    assert stream.schema.get_type("a") == DataType.INT64
    assert not stream.schema.get_property("a").nullable()
    assert stream.schema.get_type("b") == DataType.STRING
    assert stream.schema.get_property("b").nullable()


def test_resolve_widens():
    stream = Stream(name="users")
    resolve(stream, {"a": 1}, {"a": 2.5})
    assert stream.schema.get_type("a") == DataType.FLOAT64