"""
Tests for the StreamMultiplexer state machine
"""

import json

import pytest

from beacon.common.schemas import EventType, Reference, Source, StreamEvent
from beacon.retriever.stream import StreamMultiplexer, StreamState, StreamStateError


@pytest.fixture
def mux():
    return StreamMultiplexer()


def refs():
    return [Reference(title="Deploy guide", url="https://wiki/deploy", source=Source.WIKI)]


class TestHappyPath:
    def test_full_sequence(self, mux):
        events = [mux.start()]
        events.append(mux.references(refs()))
        events.append(mux.begin_generation())
        events.append(mux.content("Hello"))
        events.append(mux.content(" world"))
        events.append(mux.done())

        assert [e.type for e in events] == [
            EventType.STATUS,
            EventType.REFERENCES,
            EventType.STATUS,
            EventType.CONTENT,
            EventType.CONTENT,
            EventType.DONE,
        ]
        assert events[0].message == "Searching your sources..."
        assert events[2].message == "Generating response..."
        assert events[1].references[0].title == "Deploy guide"
        assert mux.state == StreamState.DONE
        assert mux.is_terminal

    def test_empty_references_emit_nothing_but_advance(self, mux):
        mux.start()

        assert mux.references([]) is None
        assert mux.state == StreamState.REFERENCES_SENT

    def test_states_along_the_way(self, mux):
        assert mux.state == StreamState.IDLE
        mux.start()
        assert mux.state == StreamState.SEARCHING
        mux.references(refs())
        mux.begin_generation()
        assert mux.state == StreamState.GENERATING
        assert not mux.is_terminal


class TestErrors:
    def test_fail_while_searching(self, mux):
        mux.start()
        event = mux.fail("search broke")

        assert event.type == EventType.ERROR
        assert event.message == "search broke"
        assert mux.state == StreamState.ERROR

    def test_fail_while_generating(self, mux):
        mux.start()
        mux.references([])
        mux.begin_generation()
        mux.content("partial")

        assert mux.fail("Failed").is_terminal
        assert mux.is_terminal


class TestIllegalTransitions:
    def test_content_before_start(self, mux):
        with pytest.raises(StreamStateError):
            mux.content("too early")

    def test_content_before_generation(self, mux):
        mux.start()
        mux.references(refs())
        with pytest.raises(StreamStateError):
            mux.content("too early")

    def test_done_before_generation(self, mux):
        mux.start()
        with pytest.raises(StreamStateError):
            mux.done()

    def test_start_twice(self, mux):
        mux.start()
        with pytest.raises(StreamStateError):
            mux.start()

    def test_fail_from_idle(self, mux):
        with pytest.raises(StreamStateError):
            mux.fail("nope")

    def test_fail_after_references(self, mux):
        mux.start()
        mux.references([])
        with pytest.raises(StreamStateError):
            mux.fail("nope")

    def test_nothing_after_done(self, mux):
        mux.start()
        mux.references([])
        mux.begin_generation()
        mux.done()

        for action in (lambda: mux.content("x"), mux.done, lambda: mux.fail("x"), mux.start):
            with pytest.raises(StreamStateError):
                action()

    def test_nothing_after_error(self, mux):
        mux.start()
        mux.fail("broken")

        with pytest.raises(StreamStateError):
            mux.references([])

    def test_state_error_is_runtime_error(self):
        assert issubclass(StreamStateError, RuntimeError)


class TestWireFormat:
    def test_sse_frame(self):
        frame = StreamEvent.delta("Hi").to_sse()

        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"type": "content", "content": "Hi"}

    def test_done_payload_has_only_type(self):
        assert StreamEvent.done().to_payload() == {"type": "done"}

    def test_references_payload(self):
        payload = StreamEvent.with_references(refs()).to_payload()

        assert payload == {
            "type": "references",
            "references": [{"title": "Deploy guide", "url": "https://wiki/deploy", "source": "confluence"}],
        }
