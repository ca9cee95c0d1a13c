"""
Stream Events

Wire shape of the chat stream. Each event is sent as one server-sent event
frame: ``data: {"type": ..., ...}`` followed by a blank line.
"""

import json
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from .retrieval import Reference


class EventType(str, Enum):
    """Stream event variants"""
    STATUS = "status"
    REFERENCES = "references"
    CONTENT = "content"
    ERROR = "error"
    DONE = "done"


class StreamEvent(BaseModel):
    """One event of the chat stream"""
    type: EventType
    message: Optional[str] = None  # status, error
    references: Optional[List[Reference]] = None  # references
    content: Optional[str] = None  # content delta

    @classmethod
    def status(cls, message: str) -> "StreamEvent":
        return cls(type=EventType.STATUS, message=message)

    @classmethod
    def with_references(cls, references: List[Reference]) -> "StreamEvent":
        return cls(type=EventType.REFERENCES, references=list(references))

    @classmethod
    def delta(cls, content: str) -> "StreamEvent":
        return cls(type=EventType.CONTENT, content=content)

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(type=EventType.ERROR, message=message)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(type=EventType.DONE)

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.DONE, EventType.ERROR)

    def to_payload(self) -> dict:
        """JSON-ready dict without the fields this variant does not carry"""
        return self.model_dump(mode="json", exclude_none=True)

    def to_sse(self) -> str:
        """Server-sent event frame"""
        return f"data: {json.dumps(self.to_payload())}\n\n"
