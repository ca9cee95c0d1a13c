"""
Chat Pipeline

Glue between aggregation, generation and the stream multiplexer. Both entry
points always produce an answer for the client: failures degrade to fixed
messages instead of propagating.
"""

import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Mapping

from ..common.errors import GenerationError
from ..common.schemas import AggregationResult, Reference, Source, StreamEvent
from .aggregator import Aggregator
from .stream import StreamMultiplexer
from .synthesizer import Synthesizer

logger = logging.getLogger("beacon.retriever.pipeline")

NO_RESULTS_MESSAGE = (
    "I couldn't find any relevant information in your connected sources. "
    "Please make sure you've connected your data sources and try a different query."
)
DEGRADED_MESSAGE = (
    "Found {count} relevant results from your sources, but couldn't generate "
    "a detailed response. Please try again."
)
EMPTY_RESPONSE_MESSAGE = "No response generated from AI service."
GENERATION_FAILED_MESSAGE = "Failed to generate response. Please try again."
SEARCH_FAILED_MESSAGE = "Failed to search your sources. Please try again."


@dataclass
class ChatAnswer:
    """Non-streaming chat result"""
    response: str
    references: List[Reference] = field(default_factory=list)


class ChatPipeline:
    """
    Query -> aggregate -> generate.

    Usage:
        pipeline = ChatPipeline(aggregator, synthesizer)
        answer = await pipeline.answer("deployment process", {Source.WIKI: token})
    """

    def __init__(self, aggregator: Aggregator, synthesizer: Synthesizer):
        self.aggregator = aggregator
        self.synthesizer = synthesizer

    async def _aggregate(self, query: str, tokens: Mapping[Source, str]) -> AggregationResult:
        result = await self.aggregator.aggregate(query, tokens)
        logger.info(
            "Aggregated %d references for query: %s",
            len(result.references), query[:50],
        )
        return result

    async def answer(self, query: str, tokens: Mapping[Source, str]) -> ChatAnswer:
        """Answer a query in one piece"""
        try:
            result = await self._aggregate(query, tokens)
        except Exception as e:
            logger.error("Aggregation failed: %s", e, exc_info=True)
            result = AggregationResult.empty()

        if result.is_empty:
            return ChatAnswer(response=NO_RESULTS_MESSAGE, references=result.references)

        try:
            generated = await self.synthesizer.generate(query, result.context)
        except GenerationError as e:
            logger.error("Generation failed: %s", e)
            return ChatAnswer(
                response=DEGRADED_MESSAGE.format(count=len(result.context)),
                references=result.references,
            )

        text = generated.text or EMPTY_RESPONSE_MESSAGE
        return ChatAnswer(response=text, references=result.references)

    async def stream(self, query: str, tokens: Mapping[Source, str]) -> AsyncIterator[StreamEvent]:
        """
        Answer a query as a sequence of stream events.

        The sequence ends with exactly one terminal event (done or error).
        Closing this iterator early also closes the LLM stream.
        """
        mux = StreamMultiplexer()
        yield mux.start()

        try:
            result = await self._aggregate(query, tokens)
        except Exception as e:
            logger.error("Aggregation failed: %s", e, exc_info=True)
            yield mux.fail(SEARCH_FAILED_MESSAGE)
            return

        event = mux.references(result.references)
        if event is not None:
            yield event

        yield mux.begin_generation()

        if result.is_empty:
            yield mux.content(NO_RESULTS_MESSAGE)
            yield mux.done()
            return

        deltas = self.synthesizer.generate_stream(query, result.context)
        try:
            async with aclosing(deltas):
                async for delta in deltas:
                    if delta:
                        yield mux.content(delta)
        except GenerationError as e:
            logger.error("Streaming generation failed: %s", e)
            yield mux.fail(GENERATION_FAILED_MESSAGE)
            return

        yield mux.done()
