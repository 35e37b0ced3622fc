"""Core enumerations and record types shared by drivers and writers."""

from __future__ import annotations

import base64
import dataclasses
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class DataType(StrEnum):
    NULL = "null"
    INT64 = "integer"
    FLOAT64 = "number"
    STRING = "string"
    BOOL = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    UNKNOWN = "unknown"
    TIMESTAMP = "timestamp"
    TIMESTAMP_MILLI = "timestamp_milli"
    TIMESTAMP_MICRO = "timestamp_micro"
    TIMESTAMP_NANO = "timestamp_nano"


class MessageType(StrEnum):
    LOG = "LOG"
    CONNECTION_STATUS = "CONNECTION_STATUS"
    STATE = "STATE"
    RECORD = "RECORD"
    CATALOG = "CATALOG"
    SPEC = "SPEC"
    ACTION = "ACTION"


class ConnectionStatus(StrEnum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class SyncMode(StrEnum):
    FULL_REFRESH = "full_refresh"
    INCREMENTAL = "incremental"
    CDC = "cdc"


class Action(StrEnum):
    TRUNCATE = "TRUNCATE"
    CREATE = "CREATE"
    DROP = "DROP"
    ALTER = "ALTER"


class AdapterType(StrEnum):
    PARQUET = "PARQUET"
    S3_ICEBERG = "S3_ICEBERG"
    ICEBERG = "ICEBERG"


@dataclass
class WriterConfig:
    """Destination type and its writer-specific settings."""

    type: AdapterType | str = ""
    writer: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WriterConfig":
        if not isinstance(data, dict):
            raise ValueError(f"writer config must be an object, got {type(data).__name__}")
        raw_type = data.get("type", "")
        try:
            adapter_type: AdapterType | str = AdapterType(raw_type)
        except ValueError:
            adapter_type = raw_type
        return cls(type=adapter_type, writer=data.get("writer"))

    def to_dict(self) -> dict[str, Any]:
        return {"type": str(self.type), "writer": self.writer}


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
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"value of type {type(value).__name__} is not JSON serialisable")


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=_json_default)


def _debezium_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "int64"
    if isinstance(value, float):
        return "float64"
    return "string"


def _optional_field(name: str, type_name: str) -> dict[str, Any]:
    return {"type": type_name, "optional": True, "field": name}


@dataclass
class RawRecord:
    """A record as read from a source, with its bookkeeping columns.

    ``operation_type`` is "r" for read/backfill, "c" create, "u" update, "d" delete.
    """

    data: dict[str, Any] = field(default_factory=dict)
    olake_id: str = ""
    olake_timestamp: int = 0
    operation_type: str = ""
    cdc_timestamp: int = 0

    def _debezium_schema(self, db: str, stream: str, normalization: bool) -> dict[str, Any]:
        fields = [_optional_field("olake_id", "string")]
        if normalization:
            fields.extend(
                _optional_field(key, _debezium_type(value))
                for key, value in self.data.items()
                if key != "olake_id"
            )
        else:
            fields.append(_optional_field("data", "string"))
        fields.extend(
            [
                _optional_field("__deleted", "boolean"),
                _optional_field("__op", "string"),
                _optional_field("__db", "string"),
                _optional_field("__source_ts_ms", "int64"),
            ]
        )
        return {"type": "struct", "fields": fields, "optional": False, "name": f"{db}.{stream}"}

    def to_debezium_format(self, db: str, stream: str, normalization: bool) -> str:
        """Encode the record as a Debezium change event in JSON."""
        schema = self._debezium_schema(db, stream, normalization)
        payload: dict[str, Any] = {"olake_id": self.olake_id}
        if normalization:
            payload.update((k, v) for k, v in self.data.items() if k != "olake_id")
        else:
            payload["data"] = _dumps(self.data)
        payload["__deleted"] = self.operation_type == "delete"
        payload["__op"] = self.operation_type
        payload["__db"] = db
        payload["__source_ts_ms"] = self.cdc_timestamp

        event = {
            "destination_table": stream,
            "key": {
                "schema": {
                    "type": "struct",
                    "fields": [_optional_field("olake_id", "string")],
                    "optional": False,
                },
                "payload": {"olake_id": self.olake_id},
            },
            "value": {"schema": schema, "payload": payload},
        }
        return _dumps(event)


def create_raw_record(
    olake_id: str, data: dict[str, Any], operation_type: str, cdc_timestamp: int
) -> RawRecord:
    """Build a :class:`RawRecord` whose insert time is not yet set."""
    return RawRecord(
        data=data,
        olake_id=olake_id,
        operation_type=operation_type,
        cdc_timestamp=cdc_timestamp,
    )