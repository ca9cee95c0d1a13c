"""
Stream Multiplexer

Sequences the events of a streaming chat response:

    IDLE -> SEARCHING -> REFERENCES_SENT -> GENERATING -> DONE
                 |                               |
                 +------------> ERROR <----------+

Every method checks the transition first, so an out-of-order event
(content before the search started, anything after done) raises instead of
reaching the client.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from ..common.schemas import Reference, StreamEvent

SEARCHING_MESSAGE = "Searching your sources..."
GENERATING_MESSAGE = "Generating response..."


class StreamState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    REFERENCES_SENT = "references_sent"
    GENERATING = "generating"
    DONE = "done"
    ERROR = "error"


# Allowed transitions; GENERATING -> GENERATING is a content delta
TRANSITIONS: Dict[StreamState, FrozenSet[StreamState]] = {
    StreamState.IDLE: frozenset({StreamState.SEARCHING}),
    StreamState.SEARCHING: frozenset({StreamState.REFERENCES_SENT, StreamState.ERROR}),
    StreamState.REFERENCES_SENT: frozenset({StreamState.GENERATING}),
    StreamState.GENERATING: frozenset({
        StreamState.GENERATING, StreamState.DONE, StreamState.ERROR,
    }),
    StreamState.DONE: frozenset(),
    StreamState.ERROR: frozenset(),
}


class StreamStateError(RuntimeError):
    """Event emitted out of order"""
    pass


class StreamMultiplexer:
    """
    Explicit state machine for one streaming response.

    One instance per request; not reusable after a terminal state.
    """

    def __init__(self):
        self._state = StreamState.IDLE

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in (StreamState.DONE, StreamState.ERROR)

    def _advance(self, target: StreamState) -> None:
        if target not in TRANSITIONS[self._state]:
            raise StreamStateError(
                f"Illegal stream transition: {self._state.value} -> {target.value}"
            )
        self._state = target

    def start(self) -> StreamEvent:
        self._advance(StreamState.SEARCHING)
        return StreamEvent.status(SEARCHING_MESSAGE)

    def references(self, refs: List[Reference]) -> Optional[StreamEvent]:
        """Advance past the search; no event when nothing was found"""
        self._advance(StreamState.REFERENCES_SENT)
        if not refs:
            return None
        return StreamEvent.with_references(refs)

    def begin_generation(self) -> StreamEvent:
        self._advance(StreamState.GENERATING)
        return StreamEvent.status(GENERATING_MESSAGE)

    def content(self, delta: str) -> StreamEvent:
        if self._state is not StreamState.GENERATING:
            raise StreamStateError(
                f"Content is only allowed while generating (state: {self._state.value})"
            )
        return StreamEvent.delta(delta)

    def done(self) -> StreamEvent:
        self._advance(StreamState.DONE)
        return StreamEvent.done()

    def fail(self, message: str) -> StreamEvent:
        self._advance(StreamState.ERROR)
        return StreamEvent.error(message)
