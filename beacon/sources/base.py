"""
Base Source Adapter

Abstract base class for source-specific search adapters.
Provides a common interface for turning a provider's search API into
Candidates the retriever can rank.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..common.errors import AdapterError
from ..common.schemas import Candidate, Source
from ..retriever.text import extract_relevant, normalize

logger = logging.getLogger("beacon.sources")


class SourceAdapter(ABC):
    """
    Abstract base class for source adapters.

    Each adapter must implement:
    - search: Query the provider and map native results to Candidates

    Adapters are constructed once at startup and shared across requests;
    they hold no per-request state.
    """

    source: Source
    max_chars: int = 1000

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        max_chars: Optional[int] = None,
        timeout: float = 15.0,
    ):
        """
        Initialize adapter.

        Args:
            base_url: Provider API base URL
            http_client: Shared async HTTP client (created if omitted)
            max_chars: Content budget per candidate (class default if omitted)
            timeout: HTTP timeout in seconds for a client created here
        """
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        if max_chars is not None:
            self.max_chars = max_chars

    @abstractmethod
    async def search(self, access_token: str, query: str, limit: int = 10) -> List[Candidate]:
        """
        Search the source.

        Args:
            access_token: User's OAuth access token for this source
            query: Raw user query
            limit: Maximum number of native results to fetch

        Returns:
            Candidates with condensed content

        Raises:
            AdapterError: On auth, quota, network or payload failure
        """
        pass

    def condense(self, raw: str, query: str) -> str:
        """Strip markup and cut content down to the most relevant sentences"""
        return extract_relevant(normalize(raw), query, self.max_chars)

    async def _get_json(
        self,
        url: str,
        access_token: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """GET a provider endpoint with bearer auth and decode the JSON body"""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        logger.debug("[%s] GET %s", self.source.value, url)
        try:
            response = await self._http.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise AdapterError(f"network failure: {e}", source=self.source) from e

        if response.status_code in (401, 403):
            raise AdapterError(
                f"authorization rejected ({response.status_code})",
                source=self.source,
                status_code=response.status_code,
            )
        if response.status_code == 429:
            raise AdapterError("rate limited", source=self.source, status_code=429)
        if response.status_code >= 400:
            raise AdapterError(
                f"HTTP {response.status_code} from {url}",
                source=self.source,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise AdapterError(f"malformed JSON from {url}", source=self.source) from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client"""
        await self._http.aclose()
