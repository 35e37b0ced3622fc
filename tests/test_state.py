import json
import threading
from dataclasses import dataclass

import pytest

from olake.hashed_set import HashedSet
from olake.state import (
    CHUNKS_KEY,
    Chunk,
    Global,
    State,
    StateType,
    StreamState,
)
from olake.stream import Stream


def _configured(name="users", namespace="public"):
    return Stream(name=name, namespace=namespace).wrap()


@dataclass
class _Position:
    lsn: str = ""

    def is_empty(self):
        return not self.lsn

    def to_dict(self):
        return {"lsn": self.lsn}

    @classmethod
    def from_dict(cls, data):
        return cls(lsn=(data or {}).get("lsn", ""))


def test_new_state_is_empty_and_encodes_as_null():
    state = State()
    assert state.type == StateType.STREAM
    assert state.is_empty()
    assert state.to_dict() is None
    assert state.to_json() == "null"


def test_set_and_get_cursor():
    state = State()
    stream = _configured()
    state.set_cursor(stream, "updated_at", 42)
    assert state.get_cursor(stream, "updated_at") == 42
    assert state.get_cursor(stream, "other") is None
    assert state.get_cursor(_configured("orders"), "updated_at") is None


def test_set_cursor_twice_keeps_one_entry():
    state = State()
    stream = _configured()
    state.set_cursor(stream, "a", 1)
    state.set_cursor(stream, "a", 2)
    assert len(state.streams) == 1
    assert state.get_cursor(stream, "a") == 2


def test_streams_differ_by_namespace():
    state = State()
    state.set_cursor(_configured("users", "one"), "a", 1)
    state.set_cursor(_configured("users", "two"), "a", 2)
    assert len(state.streams) == 2
    assert state.get_cursor(_configured("users", "one"), "a") == 1


def test_chunks_set_get_remove():
    state = State()
    stream = _configured()
    assert state.get_chunks(stream) is None
    state.set_chunks(stream, HashedSet(Chunk(1, 10), Chunk(10, 20)))
    state.remove_chunk(stream, Chunk(1, 10))
    chunks = state.get_chunks(stream)
    assert len(chunks) == 1
    assert Chunk(10, 20) in chunks
    assert Chunk(1, 10) not in chunks


def test_remove_chunk_without_stream_is_harmless():
    state = State()
    state.remove_chunk(_configured(), Chunk(1, 2))
    assert state.is_empty()


def test_reset_streams():
    state = State()
    state.set_cursor(_configured(), "a", 1)
    state.reset_streams()
    assert state.streams == []
    assert state.is_empty()


def test_set_type():
    state = State()
    state.set_type(StateType.GLOBAL)
    state.set_global_state({"lsn": "0/1"})
    assert state.to_dict()["type"] == str(StateType.GLOBAL)


def test_global_state_in_dict():
    state = State()
    state.set_global_state({"lsn": "0/1"})
    assert not state.is_empty()
    assert state.to_dict()["global"] == {"lsn": "0/1"}


def test_round_trip_through_dict():
    state = State()
    stream = _configured()
    state.set_cursor(stream, "id", 7)
    state.set_chunks(stream, HashedSet(Chunk(1, 5)))
    encoded = json.loads(state.to_json())
    restored = State.from_dict(encoded)
    assert restored.get_cursor(stream, "id") == 7
    assert Chunk(1, 5) in restored.get_chunks(stream)
    assert restored.to_dict() == state.to_dict()


def test_streams_without_values_are_left_out():
    state = State(streams=[StreamState(stream="users", namespace="public")])
    assert not state.is_empty()
    assert "streams" not in state.to_dict()


def test_stream_state_from_dict_flags_values():
    empty = StreamState.from_dict({"stream": "users", "namespace": "public", "state": {}})
    full = StreamState.from_dict({"stream": "users", "state": {CHUNKS_KEY: [{"min": 1, "max": 2}]}})
    assert empty.holds_value is False
    assert full.holds_value is True
    assert Chunk(1, 2) in full.state[CHUNKS_KEY]


def test_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        State.from_dict([1, 2])
    with pytest.raises(ValueError):
        StreamState.from_dict("nope")


def test_from_dict_none_gives_default_state():
    restored = State.from_dict(None)
    assert restored.is_empty()
    assert restored.type == StateType.STREAM


def test_log_state_writes_file(tmp_path):
    state = State(output_dir=tmp_path)
    state.set_cursor(_configured(), "id", 3)
    written = json.loads((tmp_path / "state.json").read_text())
    assert written == state.to_dict()


def test_log_state_skips_empty_state(tmp_path):
    state = State(output_dir=tmp_path)
    state.log_state()
    assert not (tmp_path / "state.json").exists()


def test_concurrent_cursor_updates():
    state = State()
    threads = [
        threading.Thread(target=state.set_cursor, args=(_configured(f"s{n}"), "id", n))
        for n in range(20)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(state.streams) == 20
    assert state.get_cursor(_configured("s7"), "id") == 7


def test_global_empty_encodes_as_none():
    shared = Global(state=_Position())
    assert shared.to_dict() is None


def test_global_round_trip():
    shared = Global(state=_Position("0/16"), streams=HashedSet("public.users"))
    restored = Global.from_dict(shared.to_dict(), _Position.from_dict)
    assert restored.state == shared.state
    assert restored.streams.to_list() == ["public.users"]


def test_global_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        Global.from_dict(None, _Position.from_dict)