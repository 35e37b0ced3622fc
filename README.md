# olake

`olake` provides the data model and type handling for a database replication
connector. A connector reads streams (tables or collections) from a source and
passes the records on to a destination. `olake` describes those streams,
records what has been synced, and brings values into a consistent shape. It
needs only the standard library.

## Modules

- **`olake.stream`**: `Stream` describes a source table. It holds the name,
  the namespace, the supported sync modes, the primary keys, the cursor fields
  and a `TypeSchema`. `ConfiguredStream` is a stream that has been chosen for
  a sync. `ConfiguredStream.validate(source)` raises `ValueError` in three
  cases: the sync mode is not supported, an incremental cursor field is not
  available, or the primary keys differ. The module also has `Catalog`,
  `StreamMetadata`, `get_wrapped_catalog`, `streams_to_map`, and the
  protocol rows `Message`, `StatusRow` and `Log`. Each of these has
  `to_dict`, and most have `from_dict`.
- **`olake.type_schema`**: `TypeSchema` is a thread-safe mapping from column
  name to `Property`, where a `Property` is the set of `DataType`s seen for a
  column. `override` keeps a column nullable if it was nullable before.
- **`olake.state`**: `State` holds per-stream cursors (`set_cursor`,
  `get_cursor`), pending chunks (`set_chunks`, `get_chunks`, `remove_chunk`)
  and a global state (`set_global_state`). It is guarded by a lock. If
  `output_dir` is set, every change rewrites `state.json` in that folder.
  `to_dict` returns `None` for an empty state and leaves out streams that
  hold no value. `Global` pairs a shared state with the streams it covers.
- **`olake.datatypes`**: contains the enumerations `DataType`, `SyncMode`,
  `MessageType`, `ConnectionStatus`, `Action` and `AdapterType`. It also
  defines `WriterConfig` and `RawRecord`. `RawRecord.to_debezium_format`
  encodes a record as a Debezium-style change event in JSON.
- **`olake.type_detect`**: `type_from_value` maps a Python value to a
  `DataType`. Datetimes map to a timestamp type whose precision depends on
  the sub-second part. `maximum_on_data_type` compares two values as
  timestamps or as integers.
- **`olake.fields`**: `Fields` and `Field` track the column types across
  records. `Fields.process(record)` returns `(new_column, type_changed,
  mutations)`. `get_common_ancestor_type` returns the narrowest type that can
  hold two given types. `reformat_record` coerces a record in place.
  `resolve(stream, *objects)` infers a stream's schema from sample objects.
- **`olake.reformat`**: `reformat_value`, `reformat_value_on_data_types`,
  `reformat_date`, `reformat_int64`, `reformat_float64`, `parse_timestamp`
  and `reformat_byte_arrays_to_string`. `reformat_value(DataType.NULL, ...)`
  raises `NullValueError`.
- **`olake.flatten`**: `Flattener` rewrites keys as lower-case identifiers.
  It turns lists and nested mappings into JSON text and drops `None` values.
  `reformat_key` and `is_letter_or_number` can also be used on their own.
- **`olake.hashed_set`**: `HashedSet` is an insertion-ordered set that keys
  each element by a string. It can therefore hold unhashable values such as
  dicts. It supports union, intersection, difference and subset tests, and
  JSON round trips.
- **`olake.ssl_config`**: `SSLConfig.validate` checks the SSL mode. For the
  `verify-ca` and `verify-full` modes it also checks the certificates.
- **`olake.utils`**: small helpers:
  - JSON round trips: `unmarshal` and `unmarshal_file`.
  - `stream_identifier`, `ulid` and `timestamped_file_name`.
  - Key hashes: `get_keys_hash` and `get_hash`.
  - Comparison: `compare_values`.
  - `map_row`, which maps a DB-API row to a dict.
  - `validate`, which checks dataclass fields against `required`/`oneof` metadata.

## Examples

Flattening a record:

```python
from olake.flatten import Flattener

flat = Flattener().flatten({"User Name": "ada", "tags": [1, 2], "meta": None})
# {"user_name": "ada", "tags": "[1,2]"}
```

Describing a stream and validating a configuration against it:

```python
from olake.datatypes import SyncMode
from olake.stream import Stream

source = (
    Stream(name="users", namespace="public")
    .with_sync_mode(SyncMode.FULL_REFRESH, SyncMode.INCREMENTAL)
    .with_cursor_field("updated_at")
)
assert source.id == "public.users"

configured = Stream(name="users", namespace="public", sync_mode=SyncMode.INCREMENTAL).wrap()
configured.cursor_field = "updated_at"
configured.validate(source)  # raises ValueError on a mismatch
```

Following schema evolution:

```python
from olake.datatypes import DataType
from olake.fields import Fields

fields = Fields()
fields.process({"id": 1})                 # (True, False, ...): new column
change, type_change, _ = fields.process({"id": 1.5})
assert type_change and fields["id"].data_type == DataType.FLOAT64
```

Keeping values in a hashed set:

```python
from olake.hashed_set import HashedSet

chunks = HashedSet()
chunks.insert({"min": 0, "max": 100}, {"min": 100, "max": 200})
chunks.insert({"min": 0, "max": 100})   # already present, ignored
assert len(chunks.to_list()) == 2
```

## What this package does not do

`olake` is a library of building blocks and nothing more. It does not contain:

- a command-line program;
- source drivers or destination writers;
- a pool that runs writers;
- any code that connects to a database or moves records.

You write those parts yourself and use these types and helpers in them.