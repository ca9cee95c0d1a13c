"""
Retriever - Multi-source Context Retrieval

Searches the user's connected sources and grounds LLM answers in them.

Key Components:
- text / query_processor: Markup normalization, keyword and sentence extraction
- ranker: Keyword relevance scoring, per-source top-k
- Aggregator: Concurrent fan-out over source adapters, fixed-order merge
- Synthesizer: LLM answer generation from the merged context
- StreamMultiplexer: Event sequencing for streamed answers

Pipeline:
1. Query every source the user has a token for
2. Condense each result to its most relevant sentences
3. Keep the top 3 results per source
4. Generate the answer (whole, or streamed as status/references/content/done)
"""

from .query_processor import extract_keywords
from .text import extract_relevant, normalize, truncate_text
from .ranker import rerank
from .aggregator import Aggregator
from .synthesizer import Answer, Synthesizer
from .stream import StreamMultiplexer, StreamState, StreamStateError
from .pipeline import ChatAnswer, ChatPipeline

__all__ = [
    "extract_keywords",
    "extract_relevant",
    "normalize",
    "truncate_text",
    "rerank",
    "Aggregator",
    "Answer",
    "Synthesizer",
    "StreamMultiplexer",
    "StreamState",
    "StreamStateError",
    "ChatAnswer",
    "ChatPipeline",
]
