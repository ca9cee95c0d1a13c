"""
Source Adapters

One adapter per connected source. Each adapter turns the provider's search
API into Candidates with condensed plain-text content.

Available Adapters:
- ConfluenceAdapter: wiki pages (Confluence Cloud)
- GmailAdapter: mailbox messages (Gmail API)
- SlackAdapter: chat messages (Slack search.messages)
"""

from ..common.errors import AdapterError
from .base import SourceAdapter
from .confluence import ConfluenceAdapter
from .gmail import GmailAdapter
from .slack import SlackAdapter

__all__ = [
    "AdapterError",
    "SourceAdapter",
    "ConfluenceAdapter",
    "GmailAdapter",
    "SlackAdapter",
]
