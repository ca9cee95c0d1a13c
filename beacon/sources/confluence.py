"""
Confluence Adapter

Searches Confluence Cloud pages through the Atlassian API gateway.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..common.schemas import Candidate, Source
from .base import AdapterError, SourceAdapter

logger = logging.getLogger("beacon.sources.confluence")


class ConfluenceAdapter(SourceAdapter):
    """
    Adapter for Confluence Cloud content search.

    Flow:
    1. Resolve the user's accessible sites (first site is used)
    2. CQL full-text search with rendered page bodies expanded
    3. Page body HTML → plain text → relevant sections
    """

    source = Source.WIKI
    max_chars = 1500

    def __init__(self, base_url: str = "https://api.atlassian.com", **kwargs):
        super().__init__(base_url, **kwargs)

    async def search(self, access_token: str, query: str, limit: int = 10) -> List[Candidate]:
        cloud_id, site_url = await self._resolve_site(access_token)

        data = await self._get_json(
            f"{self.base_url}/ex/confluence/{cloud_id}/rest/api/content/search",
            access_token,
            params={
                "cql": self._build_cql(query),
                "limit": limit,
                "expand": "space,body.view",
            },
        )
        if not isinstance(data, dict):
            raise AdapterError("unexpected search response", source=self.source)

        # Search responses carry the wiki base (".../wiki") that webui links are relative to
        links = data.get("_links") or {}
        base = (links.get("base") or site_url).rstrip("/")

        candidates = []
        for item in data.get("results") or []:
            try:
                candidate = self._to_candidate(item, query, base)
            except (AttributeError, TypeError, ValueError, KeyError) as e:
                logger.warning("Skipping malformed Confluence result: %s", e)
                continue
            if candidate:
                candidates.append(candidate)

        logger.info("Confluence returned %d results for query", len(candidates))
        return candidates

    async def _resolve_site(self, access_token: str) -> Tuple[str, str]:
        """Return (cloud_id, site_url) of the first accessible site"""
        resources = await self._get_json(
            f"{self.base_url}/oauth/token/accessible-resources",
            access_token,
        )
        if not isinstance(resources, list) or not resources:
            raise AdapterError("no accessible Confluence sites found", source=self.source)

        site = resources[0]
        cloud_id = site.get("id") if isinstance(site, dict) else None
        if not cloud_id:
            raise AdapterError("accessible resource has no id", source=self.source)
        return cloud_id, site.get("url", "")

    @staticmethod
    def _build_cql(query: str) -> str:
        escaped = query.replace("\\", "\\\\").replace('"', '\\"')
        return f'text ~ "{escaped}"'

    def _to_candidate(self, item: Dict[str, Any], query: str, base: str) -> Optional[Candidate]:
        if not isinstance(item, dict):
            return None
        title = item.get("title")
        webui = (item.get("_links") or {}).get("webui")
        if not isinstance(title, str) or not isinstance(webui, str) or not title or not webui:
            logger.debug("Skipping Confluence result without title or link: %s", item.get("id"))
            return None

        body = ((item.get("body") or {}).get("view") or {}).get("value", "")
        # Fall back to title if no content
        content = self.condense(body, query) if body else title

        return Candidate(
            title=title,
            content=content or title,
            source=self.source,
            url=base + webui,
        )
