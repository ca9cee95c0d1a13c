"""
Beacon Schemas

Retrieval data model and the chat stream wire format.
"""

from .retrieval import (
    Source,
    SOURCE_ORDER,
    Candidate,
    ScoredCandidate,
    Reference,
    ContextBlock,
    AggregationResult,
)
from .events import EventType, StreamEvent

__all__ = [
    "Source",
    "SOURCE_ORDER",
    "Candidate",
    "ScoredCandidate",
    "Reference",
    "ContextBlock",
    "AggregationResult",
    "EventType",
    "StreamEvent",
]
