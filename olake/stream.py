"""Streams as discovered from a source, as configured by a user, and catalogs of them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from olake.datatypes import ConnectionStatus, DataType, MessageType, SyncMode
from olake.hashed_set import HashedSet
from olake.type_schema import TypeSchema
from olake.utils import stream_identifier


def _to_sync_mode(value: Any) -> SyncMode | str:
    try:
        return SyncMode(value)
    except ValueError:
        return value


def _string_set(data: dict[str, Any], key: str, convert=lambda item: item) -> HashedSet:
    raw = data.get(key)
    if raw is None:
        return HashedSet()
    if not isinstance(raw, list):
        raise ValueError(f"stream field {key} must be an array")
    return HashedSet(*(convert(item) for item in raw))


@dataclass
class Stream:
    """A table or collection offered by a source, with its schema and capabilities."""

    name: str = ""
    namespace: str = ""
    schema: TypeSchema | None = field(default_factory=TypeSchema)
    supported_sync_modes: HashedSet = field(default_factory=HashedSet)
    source_defined_primary_key: HashedSet = field(default_factory=HashedSet)
    available_cursor_fields: HashedSet = field(default_factory=HashedSet)
    additional_properties: str = ""
    additional_properties_schema: Any = None
    sync_mode: SyncMode | str = ""

    @property
    def id(self) -> str:
        """``namespace.name``, or ``name`` when there is no namespace."""
        return stream_identifier(self.name, self.namespace)

    def with_sync_mode(self, *modes: SyncMode) -> "Stream":
        """Add supported sync modes and return the stream."""
        self.supported_sync_modes.insert(*modes)
        return self

    def with_primary_key(self, *keys: str) -> "Stream":
        """Add primary key columns and return the stream."""
        self.source_defined_primary_key.insert(*keys)
        return self

    def with_cursor_field(self, *columns: str) -> "Stream":
        """Add columns usable as cursors and return the stream."""
        self.available_cursor_fields.insert(*columns)
        return self

    def with_schema(self, schema: TypeSchema) -> "Stream":
        """Replace the type schema and return the stream."""
        self.schema = schema
        return self

    def upsert_field(self, column: str, data_type: DataType, nullable: bool) -> None:
        """Add a column's type to the schema, and null if it is nullable."""
        if self.schema is None:
            self.schema = TypeSchema()
        types = [data_type, DataType.NULL] if nullable else [data_type]
        self.schema.add_types(column, *types)

    def wrap(self) -> "ConfiguredStream":
        """Return a configured stream around this stream."""
        return ConfiguredStream(stream=self)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.name:
            result["name"] = self.name
        if self.namespace:
            result["namespace"] = self.namespace
        if self.schema is not None:
            result["type_schema"] = self.schema.to_dict()
        result["supported_sync_modes"] = [str(mode) for mode in self.supported_sync_modes]
        result["source_defined_primary_key"] = [str(key) for key in self.source_defined_primary_key]
        result["available_cursor_fields"] = [str(col) for col in self.available_cursor_fields]
        if self.additional_properties:
            result["additional_properties"] = self.additional_properties
        if self.additional_properties_schema:
            result["additional_properties_schema"] = self.additional_properties_schema
        if self.sync_mode:
            result["sync_mode"] = str(self.sync_mode)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Stream":
        if not isinstance(data, dict):
            raise ValueError(f"stream must be an object, got {type(data).__name__}")
        return cls(
            name=data.get("name") or "",
            namespace=data.get("namespace") or "",
            schema=TypeSchema.from_dict(data.get("type_schema")),
            supported_sync_modes=_string_set(data, "supported_sync_modes", _to_sync_mode),
            source_defined_primary_key=_string_set(data, "source_defined_primary_key"),
            available_cursor_fields=_string_set(data, "available_cursor_fields"),
            additional_properties=data.get("additional_properties") or "",
            additional_properties_schema=data.get("additional_properties_schema"),
            sync_mode=_to_sync_mode(data.get("sync_mode") or ""),
        )


@dataclass
class StreamMetadata:
    """Per-stream settings chosen alongside the catalog."""

    split_column: str = ""
    partition_regex: str = ""
    stream_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "split_column": self.split_column,
            "partition_regex": self.partition_regex,
            "stream_name": self.stream_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StreamMetadata":
        if not isinstance(data, dict):
            raise ValueError(f"stream metadata must be an object, got {type(data).__name__}")
        return cls(
            split_column=data.get("split_column") or "",
            partition_regex=data.get("partition_regex") or "",
            stream_name=data.get("stream_name") or "",
        )


@dataclass
class ConfiguredStream:
    """A stream as selected and configured for a sync."""

    stream: Stream | None = None
    cursor_field: str = ""
    exclude_columns: list[str] = field(default_factory=list)
    stream_metadata: StreamMetadata = field(default_factory=StreamMetadata)
    initial_cursor_state_value: Any = None

    @property
    def id(self) -> str:
        return self.stream.id

    @property
    def name(self) -> str:
        return self.stream.name

    @property
    def namespace(self) -> str:
        return self.stream.namespace

    @property
    def schema(self) -> TypeSchema | None:
        return self.stream.schema

    @property
    def supported_sync_modes(self) -> HashedSet:
        return self.stream.supported_sync_modes

    @property
    def sync_mode(self) -> SyncMode | str:
        return self.stream.sync_mode

    @property
    def cursor(self) -> str:
        return self.cursor_field

    def validate(self, source: Stream) -> None:
        """Raise ValueError if this configuration does not fit the source stream."""
        if self.stream.sync_mode not in source.supported_sync_modes:
            raise ValueError(
                f"invalid sync mode[{self.stream.sync_mode}]; valid are {source.supported_sync_modes}"
            )
        if (
            self.stream.sync_mode == SyncMode.INCREMENTAL
            and self.cursor_field not in source.available_cursor_fields
        ):
            raise ValueError(
                f"invalid cursor field [{self.cursor_field}]; valid are {source.available_cursor_fields}"
            )
        source_keys = source.source_defined_primary_key
        own_keys = self.stream.source_defined_primary_key
        if source_keys.proper_subset_of(own_keys):
            missing = " ".join(str(key) for key in source_keys.difference(own_keys))
            raise ValueError(f"difference found with primary keys: [{missing}]")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.stream is not None:
            result["stream"] = self.stream.to_dict()
        if self.cursor_field:
            result["cursor_field"] = self.cursor_field
        if self.exclude_columns:
            result["exclude_columns"] = list(self.exclude_columns)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfiguredStream":
        if not isinstance(data, dict):
            raise ValueError(f"configured stream must be an object, got {type(data).__name__}")
        raw_stream = data.get("stream")
        return cls(
            stream=Stream.from_dict(raw_stream) if raw_stream is not None else None,
            cursor_field=data.get("cursor_field") or "",
            exclude_columns=list(data.get("exclude_columns") or []),
        )


@dataclass
class Catalog:
    """The configured streams of a sync and the selection made among them."""

    selected_streams: dict[str, list[StreamMetadata]] | None = None
    streams: list[ConfiguredStream] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.selected_streams:
            result["selected_streams"] = {
                namespace: [meta.to_dict() for meta in metas]
                for namespace, metas in self.selected_streams.items()
            }
        if self.streams:
            result["streams"] = [stream.to_dict() for stream in self.streams]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Catalog":
        if not isinstance(data, dict):
            raise ValueError(f"catalog must be an object, got {type(data).__name__}")
        raw_selected = data.get("selected_streams")
        selected = None
        if raw_selected is not None:
            if not isinstance(raw_selected, dict):
                raise ValueError("selected_streams must be an object")
            selected = {
                namespace: [StreamMetadata.from_dict(meta) for meta in metas or []]
                for namespace, metas in raw_selected.items()
            }
        streams = [ConfiguredStream.from_dict(item) for item in data.get("streams") or []]
        return cls(selected_streams=selected, streams=streams)


@dataclass
class StatusRow:
    """Outcome of a connection check."""

    status: ConnectionStatus | str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.status:
            result["status"] = str(self.status)
        if self.message:
            result["message"] = self.message
        return result


@dataclass
class Log:
    """A log line in the output protocol."""

    level: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.level:
            result["level"] = self.level
        if self.message:
            result["message"] = self.message
        return result


def _plain(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    return to_dict() if callable(to_dict) else value


@dataclass
class Message:
    """One row of the output protocol."""

    type: MessageType | str
    log: Log | None = None
    connection_status: StatusRow | None = None
    state: Any = None
    catalog: Catalog | None = None
    action: Any = None
    spec: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": str(self.type)}
        for key, value in (
            ("log", self.log),
            ("connectionStatus", self.connection_status),
            ("state", self.state),
            ("catalog", self.catalog),
            ("action", self.action),
        ):
            if value is not None:
                result[key] = _plain(value)
        if self.spec:
            result["spec"] = self.spec
        return result


def streams_to_map(*streams: Stream) -> dict[str, Stream]:
    """Index streams by their identifier."""
    return {stream.id: stream for stream in streams}


def get_wrapped_catalog(streams: Iterable[Stream]) -> Catalog:
    """Build a catalog that configures and selects every given stream."""
    catalog = Catalog(selected_streams={}, streams=[])
    for stream in streams:
        catalog.streams.append(ConfiguredStream(stream=stream))
        catalog.selected_streams.setdefault(stream.namespace, []).append(
            StreamMetadata(stream_name=stream.name, partition_regex="")
        )
    return catalog