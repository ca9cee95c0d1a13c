"""
Gmail Adapter

Searches the user's mailbox through the Gmail REST API.
"""

import asyncio
import base64
import binascii
import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

from ..common.errors import AdapterError
from ..common.schemas import Candidate, Source
from .base import SourceAdapter

logger = logging.getLogger("beacon.sources.gmail")

GMAIL_WEB_URL = "https://mail.google.com/mail/u/0/#inbox/{message_id}"


def decode_base64url(data: str) -> str:
    """Decode Gmail's unpadded base64url body data to text"""
    padded = data + "=" * (-len(data) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError):
        return ""
    return raw.decode("utf-8", errors="replace")


def find_body(payload: Dict[str, Any], mime_type: str) -> str:
    """Depth-first search for the first non-empty part of the given MIME type"""
    if payload.get("mimeType") == mime_type:
        data = (payload.get("body") or {}).get("data")
        if data:
            text = decode_base64url(data)
            if text:
                return text
    for part in payload.get("parts") or []:
        text = find_body(part, mime_type)
        if text:
            return text
    return ""


def parse_date(value: str) -> Optional[datetime]:
    """Parse an RFC 2822 Date header"""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


class GmailAdapter(SourceAdapter):
    """
    Adapter for Gmail message search.

    Flow:
    1. List message ids matching the query (Gmail search syntax)
    2. Fetch message details concurrently; failed details are skipped
    3. Headers + decoded body → relevant sections
    """

    source = Source.MAILBOX
    max_chars = 1200  # Slightly smaller for emails

    def __init__(self, base_url: str = "https://gmail.googleapis.com", **kwargs):
        super().__init__(base_url, **kwargs)

    async def search(self, access_token: str, query: str, limit: int = 10) -> List[Candidate]:
        listing = await self._get_json(
            f"{self.base_url}/gmail/v1/users/me/messages",
            access_token,
            params={"q": query, "maxResults": limit or 10},
        )
        if not isinstance(listing, dict):
            raise AdapterError("unexpected message list response", source=self.source)

        message_ids = [
            m["id"] for m in listing.get("messages") or []
            if isinstance(m, dict) and m.get("id")
        ]
        logger.info("Gmail API returned %d messages", len(message_ids))
        if not message_ids:
            return []

        details = await asyncio.gather(
            *(self._fetch_detail(access_token, message_id) for message_id in message_ids)
        )

        candidates = []
        for message_id, detail in zip(message_ids, details):
            if detail is None:
                continue
            try:
                candidates.append(self._to_candidate(message_id, detail, query))
            except (AttributeError, TypeError, ValueError, KeyError) as e:
                logger.warning("Skipping malformed Gmail message %s: %s", message_id, e)
        return candidates

    async def _fetch_detail(self, access_token: str, message_id: str) -> Optional[Dict[str, Any]]:
        try:
            detail = await self._get_json(
                f"{self.base_url}/gmail/v1/users/me/messages/{message_id}",
                access_token,
            )
        except AdapterError as e:
            logger.warning("Failed to get Gmail message detail for %s: %s", message_id, e)
            return None
        if not isinstance(detail, dict):
            logger.warning("Skipping malformed Gmail message %s", message_id)
            return None
        return detail

    def extract_email_info(self, detail: Dict[str, Any]) -> Dict[str, Any]:
        """Subject, sender, date and body text of a message detail"""
        payload = detail.get("payload") or {}
        headers = {
            h["name"].lower(): h["value"] if isinstance(h.get("value"), str) else ""
            for h in payload.get("headers") or []
            if isinstance(h, dict) and isinstance(h.get("name"), str)
        }

        body = find_body(payload, "text/plain")
        if not body:
            body = find_body(payload, "text/html")
        if not body:
            body = detail.get("snippet", "")  # Fall back to snippet

        return {
            "subject": headers.get("subject", ""),
            "sender": headers.get("from", ""),
            "date": parse_date(headers.get("date", "")),
            "body": body,
        }

    def _to_candidate(self, message_id: str, detail: Dict[str, Any], query: str) -> Candidate:
        info = self.extract_email_info(detail)
        subject = info["subject"] or "(no subject)"
        date = info["date"].strftime("%Y-%m-%d %H:%M") if info["date"] else "unknown"
        relevant = self.condense(info["body"], query)

        # Headers go with the body for better context
        content = f"Subject: {subject}\nFrom: {info['sender']}\nDate: {date}\n\n{relevant}"

        return Candidate(
            title=subject,
            content=content,
            source=self.source,
            url=GMAIL_WEB_URL.format(message_id=message_id),
        )
