"""
Aggregator

Fans a query out to the connected sources, reranks each source's results
independently and merges references and grounding context in a fixed
source order (wiki, mailbox, chat).
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from ..common.errors import AdapterError
from ..common.schemas import SOURCE_ORDER, AggregationResult, Candidate, Source
from .ranker import rerank

if TYPE_CHECKING:
    from ..sources.base import SourceAdapter

logger = logging.getLogger("beacon.retriever.aggregator")


class Aggregator:
    """
    Aggregates search results across sources.

    Features:
    - Only sources with a token are queried
    - Concurrent fan-out, merged in source order regardless of completion order
    - Per-call timeout; a failed or slow source is logged and skipped
    - Per-source top-k, no cross-source re-sorting (keeps source diversity)
    """

    def __init__(
        self,
        adapters: Mapping[Source, "SourceAdapter"],
        top_k: int = 3,
        search_limit: int = 10,
        timeout: float = 15.0,
        concurrent: bool = True,
    ):
        """
        Initialize aggregator.

        Args:
            adapters: Adapter instance per source
            top_k: Results kept per source after reranking
            search_limit: Native results requested from each source
            timeout: Seconds allowed for one source search
            concurrent: Query sources in parallel (False: one after another)
        """
        self._adapters = dict(adapters)
        self._top_k = top_k
        self._search_limit = search_limit
        self._timeout = timeout
        self._concurrent = concurrent

    @property
    def sources(self) -> List[Source]:
        """Configured sources in processing order"""
        return [s for s in SOURCE_ORDER if s in self._adapters]

    async def aggregate(self, query: str, source_tokens: Mapping[Source, str]) -> AggregationResult:
        """
        Search every connected source and merge the top results.

        Args:
            query: Raw user query
            source_tokens: Access token per source; empty or missing means
                the source is not connected

        Returns:
            AggregationResult with references and context in source order
        """
        active = [s for s in self.sources if source_tokens.get(s)]
        if not active:
            logger.info("No sources connected, skipping search")
            return AggregationResult.empty()

        if self._concurrent:
            outcomes = await asyncio.gather(
                *(self._search_source(s, source_tokens[s], query) for s in active)
            )
            per_source = dict(zip(active, outcomes))
        else:
            per_source = {}
            for source in active:
                per_source[source] = await self._search_source(source, source_tokens[source], query)

        result = AggregationResult.empty()
        for source in active:
            candidates = per_source.get(source) or []
            top = rerank(query, candidates, self._top_k)
            logger.info(
                "[%s] %d candidates, kept %d",
                source.value, len(candidates), len(top),
            )
            for candidate in top:
                result.references.append(candidate.to_reference())
                result.context.append(candidate.to_context_block())

        return result

    async def _search_source(self, source: Source, token: str, query: str) -> Optional[List[Candidate]]:
        """Search one source; any failure yields None"""
        adapter = self._adapters[source]
        try:
            return await asyncio.wait_for(
                adapter.search(token, query, self._search_limit),
                timeout=self._timeout,
            )
        except AdapterError as e:
            logger.warning("[%s] search failed: %s", source.value, e)
        except asyncio.TimeoutError:
            logger.warning("[%s] search timed out after %.1fs", source.value, self._timeout)
        except Exception as e:
            logger.error("[%s] search error: %s", source.value, e, exc_info=True)
        return None

    async def aclose(self) -> None:
        """Close all adapters"""
        for adapter in self._adapters.values():
            await adapter.aclose()
