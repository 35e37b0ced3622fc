import pytest

from olake.datatypes import DataType
from olake.hashed_set import HashedSet
from olake.type_schema import Property, TypeSchema


def test_add_types_and_get_type():
    schema = TypeSchema()
    schema.add_types("col", DataType.INT64, DataType.NULL)
    assert schema.get_type("col") == DataType.INT64
    assert schema.get_property("col").nullable()


def test_add_types_extends_existing():
    schema = TypeSchema()
    schema.add_types("col", DataType.STRING)
    assert not schema.get_property("col").nullable()
    schema.add_types("col", DataType.NULL)
    assert schema.get_property("col").nullable()


def test_missing_column():
    schema = TypeSchema()
    with pytest.raises(KeyError):
        schema.get_type("nope")
    assert schema.get_property("nope") is None


def test_property_only_null():
    assert Property(type=HashedSet(DataType.NULL)).data_type() == DataType.NULL


def test_override_preserves_nullability():
    schema = TypeSchema()
    schema.add_types("col", DataType.INT64, DataType.NULL)
    schema.override({"col": Property(type=HashedSet(DataType.STRING)), "new": Property(type=HashedSet(DataType.BOOL))})
    assert schema.get_type("col") == DataType.STRING
    assert schema.get_property("col").nullable()
    assert not schema.get_property("new").nullable()


def test_dict_round_trip():
    schema = TypeSchema()
    schema.add_types("a", DataType.TIMESTAMP, DataType.NULL)
    schema.add_types("b", DataType.FLOAT64)
    data = schema.to_dict()
    assert data["properties"]["b"] == {"type": ["number"]}
    restored = TypeSchema.from_dict(data)
    assert restored.to_dict() == data
    assert restored.get_type("a") == DataType.TIMESTAMP


def test_empty_schema_serialises_empty():
    assert TypeSchema().to_dict() == {}
    assert len(TypeSchema.from_dict({})) == 0


def test_from_dict_rejects_bad_input():
    with pytest.raises(ValueError):
        TypeSchema.from_dict({"properties": {"a": {"type": "integer"}}})