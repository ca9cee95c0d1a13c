"""
Retrieval Data Model

Candidates flow from the source adapters through the ranker; references and
context blocks are derived from the ranked candidates.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

from pydantic import BaseModel


class Source(str, Enum):
    """Connected source tags (wiki, mailbox, chat)"""
    WIKI = "confluence"
    MAILBOX = "gmail"
    CHAT = "slack"


# Fixed processing and merge order
SOURCE_ORDER = (Source.WIKI, Source.MAILBOX, Source.CHAT)


class Reference(BaseModel):
    """Citation metadata shown to the user"""
    title: str
    url: str
    source: Source


@dataclass(frozen=True)
class ContextBlock:
    """A ranked candidate's content packaged for grounding"""
    source: Source
    title: str
    content: str


@dataclass(frozen=True)
class Candidate:
    """One retrievable unit from a source, content already condensed"""
    title: str
    content: str
    source: Source
    url: str

    def to_reference(self) -> Reference:
        return Reference(title=self.title, url=self.url, source=self.source)

    def to_context_block(self) -> ContextBlock:
        return ContextBlock(source=self.source, title=self.title, content=self.content)


@dataclass
class ScoredCandidate:
    """Candidate paired with its relevance score (ranking only)"""
    candidate: Candidate
    score: float


@dataclass
class AggregationResult:
    """Merged output of all queried sources, in source order"""
    references: List[Reference]
    context: List[ContextBlock]

    @property
    def is_empty(self) -> bool:
        return not self.context

    @classmethod
    def empty(cls) -> "AggregationResult":
        return cls(references=[], context=[])
