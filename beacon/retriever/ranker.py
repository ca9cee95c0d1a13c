"""
Ranker

Keyword-based relevance scoring of candidates against a query.
Title matches weigh twice as much as content matches; scores are
normalized per 100 characters so long documents are not favoured.
"""

from typing import List, Sequence

from ..common.schemas import Candidate, ScoredCandidate
from .query_processor import extract_keywords

TITLE_WEIGHT = 2.0
CONTENT_WEIGHT = 1.0
PRESENCE_BONUS = 0.5


def score_candidate(keywords: List[str], candidate: Candidate) -> float:
    """Relevance score of one candidate for the given keywords"""
    title = candidate.title.lower()
    content = candidate.content.lower()
    text = f"{title} {content}"

    score = 0.0
    for keyword in keywords:
        score += title.count(keyword) * TITLE_WEIGHT
        score += content.count(keyword) * CONTENT_WEIGHT
        if keyword in text:
            score += PRESENCE_BONUS

    if len(text) > 0:
        score = score / (len(text) / 100.0)
    return score


def score_candidates(query: str, candidates: Sequence[Candidate]) -> List[ScoredCandidate]:
    """Score candidates, sorted by descending score (ties keep input order)"""
    keywords = extract_keywords(query)
    scored = [ScoredCandidate(candidate=c, score=score_candidate(keywords, c)) for c in candidates]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def rerank(query: str, candidates: Sequence[Candidate], top_k: int) -> List[Candidate]:
    """
    Return the top_k candidates most relevant to the query.

    Args:
        query: Raw user query
        candidates: Candidates from a single source
        top_k: Maximum number of results

    Returns:
        At most top_k candidates, best first
    """
    if not candidates or top_k <= 0:
        return []
    return [s.candidate for s in score_candidates(query, candidates)[:top_k]]
