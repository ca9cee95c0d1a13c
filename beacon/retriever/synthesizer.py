"""
Synthesizer

LLM-based answer generation grounded in the aggregated context.

Key principle: answer only from the user's own documents, and say so when
they do not contain the answer.
"""

import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, List, Sequence

from ..common.errors import GenerationError
from ..common.llm_client import LLMClient
from ..common.schemas import ContextBlock

logger = logging.getLogger("beacon.retriever.synthesizer")


@dataclass
class Answer:
    """Generated answer text"""
    text: str


# System prompt template; the user's query is sent as the user message
SYSTEM_PROMPT = """You are a helpful AI assistant that answers questions based on the provided context from the user's work documents.

Instructions:
1. Answer the user's question using ONLY the information provided in the context
2. If the context doesn't contain relevant information, say so clearly
3. Be concise but thorough in your response
4. Reference which sources you're drawing from when relevant
5. If you're unsure about something, acknowledge the uncertainty

Context from user's documents:
{context}"""


def format_context(context: Sequence[ContextBlock]) -> str:
    """Render context blocks in order, one paragraph per block"""
    return "\n\n".join(
        f"From {block.title} ({block.source.value}): {block.content}"
        for block in context
    )


def build_system_prompt(context: Sequence[ContextBlock]) -> str:
    return SYSTEM_PROMPT.format(context=format_context(context))


class Synthesizer:
    """
    Generates grounded answers with an LLM.

    Both entry points raise GenerationError on any failure; callers decide
    how to degrade.
    """

    def __init__(
        self,
        llm: LLMClient,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ):
        """
        Initialize synthesizer.

        Args:
            llm: LLM client used for generation
            max_tokens: Completion token limit
            temperature: Sampling temperature (low keeps answers focused)
            timeout: Per-call timeout in seconds
        """
        self._llm = llm
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout

    @property
    def has_llm(self) -> bool:
        """Check if LLM is available"""
        return self._llm.is_available

    def _check_available(self) -> None:
        if not self.has_llm:
            raise GenerationError("LLM client is not configured")

    async def generate(self, query: str, context: List[ContextBlock]) -> Answer:
        """
        Generate a complete answer.

        Args:
            query: Raw user query
            context: Ordered grounding context

        Returns:
            Answer with the generated text (may be empty)
        """
        self._check_available()
        try:
            text = await self._llm.generate(
                query,
                system=build_system_prompt(context),
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                timeout=self._timeout,
            )
        except Exception as e:
            raise GenerationError(f"LLM generation failed: {e}") from e
        return Answer(text=text)

    async def generate_stream(self, query: str, context: List[ContextBlock]) -> AsyncIterator[str]:
        """
        Generate an answer incrementally.

        Yields text deltas in arrival order. Closing the iterator early
        closes the upstream LLM stream.
        """
        self._check_available()
        stream = self._llm.stream(
            query,
            system=build_system_prompt(context),
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            timeout=self._timeout,
        )
        try:
            async with aclosing(stream):
                async for delta in stream:
                    yield delta
        except GeneratorExit:
            raise
        except Exception as e:
            raise GenerationError(f"LLM streaming failed: {e}") from e
