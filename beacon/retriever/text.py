"""
Text Utilities

Markup normalization and query-aware condensing of long documents into a
character budget.
"""

import re
from typing import List

from .query_processor import extract_keywords

ELLIPSIS = "..."

# Fragments this short after splitting are noise (initials, list markers)
MIN_SENTENCE_LENGTH = 11

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_END_RE = re.compile(r"[.!?]+\s+")

_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES))


def _decode_entities(text: str) -> str:
    # Repeat until stable so double-escaped input ("&amp;lt;") is fully decoded
    previous = None
    while previous != text:
        previous = text
        text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)
    return text


def normalize(raw: str) -> str:
    """
    Extract plain text from markup.

    Decodes the common named entities, replaces every tag with a space,
    collapses whitespace and trims. Entities are decoded before tags are
    stripped, so the result contains neither and a second pass is a no-op.
    """
    if not raw:
        return ""
    # Decoding first loses escaped comparisons ("x &lt; 5 and y &gt; 3" -> "x 3")
    # but keeps the function idempotent; stripping tags first would not be.
    text = _decode_entities(raw)
    text = _TAG_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def truncate_text(text: str, max_chars: int) -> str:
    """
    Truncate text to at most max_chars characters, ellipsis included.

    Breaks at the last space when it is past the middle of the cut so words
    are not split; otherwise cuts mid-word.
    """
    if len(text) <= max_chars:
        return text
    if max_chars <= len(ELLIPSIS):
        return text[:max(max_chars, 0)]

    limit = max_chars - len(ELLIPSIS)
    truncated = text[:limit]
    last_space = truncated.rfind(" ")
    if last_space > limit // 2:
        truncated = truncated[:last_space]
    return truncated + ELLIPSIS


def split_sentences(text: str) -> List[str]:
    """Split text on sentence punctuation, dropping very short fragments"""
    sentences = []
    for sentence in _SENTENCE_END_RE.split(text):
        trimmed = sentence.strip()
        if len(trimmed) >= MIN_SENTENCE_LENGTH:
            sentences.append(trimmed)
    return sentences


def score_sentence(sentence: str, keywords: List[str]) -> float:
    """Keyword density score: occurrences plus a presence bonus, per 100 chars"""
    lowered = sentence.lower()
    score = 0.0
    for keyword in keywords:
        count = lowered.count(keyword)
        score += count
        if count:
            score += 0.5

    # Normalize by length to avoid bias toward long sentences
    if len(sentence) > 0:
        score = score / (len(sentence) / 100.0)
    return score


def extract_relevant(text: str, query: str, max_chars: int) -> str:
    """
    Condense text to the sentences most relevant to the query.

    Sentences are taken greedily by descending score (ties in document order)
    while they fit the budget; sentences that do not fit are skipped whole.
    Falls back to plain truncation when the query has no keywords or when
    the selection recovers less than a third of the budget.

    Args:
        text: Plain text (already normalized)
        query: Raw user query
        max_chars: Character budget

    Returns:
        Text of at most max_chars characters
    """
    if len(text) <= max_chars:
        return text

    keywords = extract_keywords(query)
    if not keywords:
        return truncate_text(text, max_chars)

    sentences = split_sentences(text)
    ranked = sorted(sentences, key=lambda s: score_sentence(s, keywords), reverse=True)

    selected = []
    total_chars = 0
    for sentence in ranked:
        if total_chars + len(sentence) + 2 <= max_chars:  # +2 for spacing
            selected.append(sentence)
            total_chars += len(sentence) + 1

    extracted = " ".join(selected)

    # Too little recovered, fall back to the beginning of the document
    if len(extracted) < max_chars // 3:
        return truncate_text(text, max_chars)

    return extracted
