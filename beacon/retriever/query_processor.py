"""
Query Processor

Turns a raw user query into the keyword list shared by the sentence
extractor and the ranker.
"""

import re
from typing import List

# Stop words to filter from keywords
STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but",
    "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were",
    "be", "been", "have", "has", "had", "do",
    "does", "did", "will", "would", "could", "should",
    "what", "when", "where", "who", "why", "how",
})

MIN_KEYWORD_LENGTH = 3

_NON_WORD_RE = re.compile(r"[^\w]")


def extract_keywords(query: str) -> List[str]:
    """
    Extract meaningful search terms from a query.

    Lower-cases, splits on whitespace, strips punctuation from each token and
    drops stop words and tokens shorter than three characters. Duplicates and
    order are kept as they appear in the query.

    Args:
        query: Raw user query

    Returns:
        List of keywords
    """
    keywords = []
    for word in query.lower().split():
        cleaned = _NON_WORD_RE.sub("", word)
        if len(cleaned) >= MIN_KEYWORD_LENGTH and cleaned not in STOP_WORDS:
            keywords.append(cleaned)
    return keywords
