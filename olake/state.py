"""Sync state: per-stream cursors and chunks, and state shared across streams."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Generic, Protocol, TypeVar

from olake.hashed_set import HashedSet

if TYPE_CHECKING:
    from olake.stream import ConfiguredStream

_log = logging.getLogger(__name__)

CHUNKS_KEY = "chunks"
STATE_FILE_NAME = "state.json"


class StateType(StrEnum):
    """How a connector keeps its state."""

    GLOBAL = "GLOBAL"
    STREAM = "STREAM"
    MIXED = "MIXED"


class StateMissingError(LookupError):
    """Raised when a stream has no entry in the state."""

    def __init__(self, message: str = "stream missing from state") -> None:
        super().__init__(message)


class CursorMissingError(LookupError):
    """Raised when a stream's state has no cursor value."""

    def __init__(self, message: str = "cursor field missing from state") -> None:
        super().__init__(message)


def _plain(value: Any) -> Any:
    if isinstance(value, HashedSet):
        return [_plain(item) for item in value]
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


@dataclass(frozen=True)
class Chunk:
    """A range of a stream still to be read, bounded by ``min`` and ``max``."""

    min: Any = None
    max: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chunk":
        if not isinstance(data, dict):
            raise ValueError(f"chunk must be an object, got {type(data).__name__}")
        return cls(min=data.get("min"), max=data.get("max"))


@dataclass
class StreamState:
    """The saved values of one stream."""

    stream: str = ""
    namespace: str = ""
    sync_mode: str = ""
    state: dict[str, Any] = field(default_factory=dict)
    holds_value: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "stream": self.stream,
            "namespace": self.namespace,
            "sync_mode": self.sync_mode,
            "state": {key: _plain(value) for key, value in self.state.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StreamState":
        if not isinstance(data, dict):
            raise ValueError(f"stream state must be an object, got {type(data).__name__}")
        raw = data.get("state") or {}
        if not isinstance(raw, dict):
            raise ValueError("stream state values must be an object")
        values = dict(raw)
        chunks = values.get(CHUNKS_KEY)
        if isinstance(chunks, list):
            values[CHUNKS_KEY] = HashedSet(*(Chunk.from_dict(item) for item in chunks))
        return cls(
            stream=data.get("stream") or "",
            namespace=data.get("namespace") or "",
            sync_mode=data.get("sync_mode") or "",
            state=values,
            holds_value=bool(values),
        )


class State:
    """Thread-safe state of a sync, saved to ``state.json`` whenever it changes.

    The file is written into ``output_dir`` when that is set.
    """

    def __init__(
        self,
        state_type: StateType | str = StateType.STREAM,
        global_state: Any = None,
        streams: list[StreamState] | None = None,
        output_dir: str | Path | None = None,
    ) -> None:
        self.type = state_type
        self.global_state = global_state
        self.streams: list[StreamState] = list(streams or [])
        self.output_dir = output_dir
        self._lock = threading.RLock()

    def _find(self, stream: "ConfiguredStream") -> StreamState | None:
        return next(
            (
                entry
                for entry in self.streams
                if entry.namespace == stream.namespace and entry.stream == stream.name
            ),
            None,
        )

    def _entry_for(self, stream: "ConfiguredStream") -> StreamState:
        entry = self._find(stream)
        if entry is None:
            entry = StreamState(stream=stream.name, namespace=stream.namespace)
            self.streams.append(entry)
        return entry

    def set_type(self, state_type: StateType | str) -> None:
        """Set how the state is kept."""
        self.type = state_type

    def reset_streams(self) -> None:
        """Drop every stream's state."""
        with self._lock:
            self.streams = []
            self.log_state()

    def set_cursor(self, stream: "ConfiguredStream", key: str, value: Any) -> None:
        """Store a cursor value for a stream."""
        with self._lock:
            entry = self._entry_for(stream)
            entry.state[key] = value
            entry.holds_value = True
            self.log_state()

    def get_cursor(self, stream: "ConfiguredStream", key: str) -> Any:
        """Return a stream's cursor value, or None if it has none."""
        with self._lock:
            entry = self._find(stream)
            return entry.state.get(key) if entry is not None else None

    def get_chunks(self, stream: "ConfiguredStream") -> HashedSet | None:
        """Return the chunks saved for a stream, or None."""
        with self._lock:
            entry = self._find(stream)
            if entry is None:
                return None
            chunks = entry.state.get(CHUNKS_KEY)
            return chunks if isinstance(chunks, HashedSet) else None

    def set_chunks(self, stream: "ConfiguredStream", chunks: HashedSet) -> None:
        """Store the chunks still to be read for a stream."""
        with self._lock:
            entry = self._entry_for(stream)
            entry.state[CHUNKS_KEY] = chunks
            entry.holds_value = True
            self.log_state()

    def remove_chunk(self, stream: "ConfiguredStream", chunk: Chunk) -> None:
        """Remove one finished chunk of a stream."""
        with self._lock:
            entry = self._find(stream)
            if entry is not None:
                chunks = entry.state.get(CHUNKS_KEY)
                if isinstance(chunks, HashedSet):
                    chunks.remove(chunk)
            self.log_state()

    def set_global_state(self, global_state: Any) -> None:
        """Replace the state shared by all streams."""
        with self._lock:
            self.global_state = global_state
            self.log_state()

    def is_empty(self) -> bool:
        """Tell whether there is neither global nor stream state."""
        with self._lock:
            return self.global_state is None and not self.streams

    def to_dict(self) -> dict[str, Any] | None:
        """Return the JSON form, or None when the state is empty.

        Streams holding no value are left out.
        """
        with self._lock:
            if self.is_empty():
                return None
            result: dict[str, Any] = {"type": str(self.type)}
            global_plain = _plain(self.global_state)
            if global_plain is not None:
                result["global"] = global_plain
            populated = [entry.to_dict() for entry in self.streams if entry.holds_value]
            if populated:
                result["streams"] = populated
            return result

    def to_json(self) -> str:
        """Encode the state as JSON text."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "State":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"state must be an object, got {type(data).__name__}")
        state_type: StateType | str = StateType.STREAM
        if "type" in data:
            try:
                state_type = StateType(data["type"])
            except ValueError:
                state_type = data["type"]
        raw_streams = data.get("streams") or []
        if not isinstance(raw_streams, list):
            raise ValueError("state streams must be an array")
        return cls(
            state_type=state_type,
            global_state=data.get("global"),
            streams=[StreamState.from_dict(item) for item in raw_streams],
        )

    def log_state(self) -> None:
        """Save the state to the state file, if an output folder is set."""
        with self._lock:
            if self.is_empty():
                _log.info("state is empty")
                return
            encoded = self.to_json()
            if self.output_dir is None:
                _log.debug("state: %s", encoded)
                return
            folder = Path(self.output_dir)
            folder.mkdir(parents=True, exist_ok=True)
            (folder / STATE_FILE_NAME).write_text(encoded, encoding="utf-8")


class GlobalState(Protocol):
    def is_empty(self) -> bool: ...


T = TypeVar("T", bound=GlobalState)


@dataclass
class Global(Generic[T]):
    """State shared by streams, and the streams it belongs to."""

    state: T
    streams: HashedSet = field(default_factory=HashedSet)

    def to_dict(self) -> dict[str, Any] | None:
        """Return the JSON form, or None when the shared state is empty."""
        if self.state.is_empty():
            return None
        return {"state": _plain(self.state), "streams": [str(name) for name in self.streams]}

    @classmethod
    def from_dict(cls, data: dict[str, Any], state_factory: Callable[[Any], T]) -> "Global[T]":
        """Decode a global state, building the shared part with ``state_factory``."""
        if not isinstance(data, dict):
            raise ValueError(f"global state must be an object, got {type(data).__name__}")
        raw_streams = data.get("streams") or []
        if not isinstance(raw_streams, list):
            raise ValueError("global state streams must be an array")
        return cls(state=state_factory(data.get("state")), streams=HashedSet(*raw_streams))