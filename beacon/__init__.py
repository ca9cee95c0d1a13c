"""
Beacon

Answers questions from a user's own work sources (Confluence, Gmail, Slack)
with a language model grounded in the most relevant few results.

Philosophy:
- Sources are queried only when the user connected them (token present)
- One broken source never breaks the answer
- Relevance is a transparent keyword heuristic, reproducible and testable
- Grounding context order is deterministic (wiki, mailbox, chat)

Usage:
    from beacon.common import load_config, LLMClient
    from beacon.sources import ConfluenceAdapter, GmailAdapter, SlackAdapter
    from beacon.retriever import Aggregator, Synthesizer, ChatPipeline
"""

__version__ = "0.1.0"
