"""
Slack Adapter

Searches workspace messages with the Slack Web API (search.messages).
Requires a user token with the search:read scope.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..common.errors import AdapterError
from ..common.schemas import Candidate, Source
from .base import SourceAdapter

logger = logging.getLogger("beacon.sources.slack")

# Slack mrkdwn entities: <@U123|name>, <#C123|channel>, <!here>, <https://x|label>
_USER_RE = re.compile(r"<@([A-Z0-9]+)(?:\|([^>]*))?>")
_CHANNEL_RE = re.compile(r"<#([A-Z0-9]+)(?:\|([^>]*))?>")
_SPECIAL_RE = re.compile(r"<!([a-z]+)(?:\^[^|>]*)?(?:\|([^>]*))?>")
_LINK_RE = re.compile(r"<((?:https?|mailto):[^|>]+)(?:\|([^>]*))?>")


def clean_slack_text(text: str) -> str:
    """Replace Slack markup with readable text"""
    text = _USER_RE.sub(lambda m: "@" + (m.group(2) or m.group(1)), text)
    text = _CHANNEL_RE.sub(lambda m: "#" + (m.group(2) or m.group(1)), text)
    text = _SPECIAL_RE.sub(lambda m: m.group(2) or "@" + m.group(1), text)
    text = _LINK_RE.sub(
        lambda m: f"{m.group(2)} ({m.group(1)})" if m.group(2) else m.group(1),
        text,
    )
    return text


class SlackAdapter(SourceAdapter):
    """
    Adapter for Slack message search.

    Results are requested newest first; relevance ordering is left to the
    ranker.
    """

    source = Source.CHAT
    max_chars = 1000  # Smaller for Slack messages

    def __init__(self, base_url: str = "https://slack.com/api", **kwargs):
        super().__init__(base_url, **kwargs)

    async def search(self, access_token: str, query: str, limit: int = 10) -> List[Candidate]:
        data = await self._get_json(
            f"{self.base_url}/search.messages",
            access_token,
            params={
                "query": query,
                "count": limit or 10,
                "sort": "timestamp",
                "sort_dir": "desc",
            },
        )
        if not isinstance(data, dict):
            raise AdapterError("unexpected search response", source=self.source)

        # Slack reports API errors in the body with HTTP 200
        if not data.get("ok"):
            raise AdapterError(
                f"slack search failed: {data.get('error', 'unknown error')}",
                source=self.source,
            )

        matches = (data.get("messages") or {}).get("matches") or []
        logger.info("Slack API returned %d messages", len(matches))

        candidates = []
        for match in matches:
            try:
                candidate = self._to_candidate(match, query)
            except (AttributeError, TypeError, ValueError, KeyError) as e:
                logger.warning("Skipping malformed Slack match: %s", e)
                continue
            if candidate:
                candidates.append(candidate)
        return candidates

    def format_channel_name(self, channel: Dict[str, Any]) -> str:
        """Channel name for display, "Direct Message" when unnamed"""
        return channel.get("name") or "Direct Message"

    def _to_candidate(self, match: Dict[str, Any], query: str) -> Optional[Candidate]:
        if not isinstance(match, dict) or not isinstance(match.get("text"), str) or not match["text"]:
            logger.debug("Skipping Slack match without text")
            return None

        channel = match.get("channel") or {}
        channel_name = self.format_channel_name(channel)
        relevant = self.condense(clean_slack_text(match["text"]), query)
        username = match.get("username") or match.get("user", "")

        # Use permalink as URL, or construct one if not available
        permalink = match.get("permalink")
        url = permalink if isinstance(permalink, str) and permalink else f"https://slack.com/app_redirect?channel={channel.get('id', '')}"

        return Candidate(
            title=f"Message in #{channel_name}",
            content=f"Channel: #{channel_name}\nUser: {username}\n\n{relevant}",
            source=self.source,
            url=url,
        )
