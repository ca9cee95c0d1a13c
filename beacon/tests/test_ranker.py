"""
Tests for the relevance ranker
"""

import pytest

from beacon.common.schemas import Candidate, Source
from beacon.retriever.ranker import rerank, score_candidate, score_candidates


def make_candidate(title, content, source=Source.WIKI):
    return Candidate(
        title=title,
        content=content,
        source=source,
        url=f"https://example.com/{title.replace(' ', '-').lower()}",
    )


@pytest.fixture
def wiki_candidates():
    return [
        make_candidate("Team lunch menu", "Pizza on Fridays, salad on Mondays."),
        make_candidate("Deployment checklist", "Tag the release and run the smoke tests."),
        make_candidate("Office wifi", "The guest network password rotates every month."),
        make_candidate("Deployment process", "How the deployment process works for every service."),
        make_candidate("Onboarding", "Read the handbook and set up your laptop."),
    ]


class TestScoring:
    def test_title_weighs_double(self):
        in_title = make_candidate("deploy", "xxxxxx")
        in_content = make_candidate("xxxxxx", "deploy")

        assert score_candidate(["deploy"], in_title) > score_candidate(["deploy"], in_content)

    def test_known_score(self):
        # title "abc" + " " + content "x" * 96 = 100 chars
        candidate = make_candidate("abc", "x" * 96)
        assert score_candidate(["abc"], candidate) == pytest.approx(2.5)

    def test_no_keywords_scores_zero(self):
        assert score_candidate([], make_candidate("a", "b")) == 0.0

    def test_ties_keep_input_order(self):
        candidates = [make_candidate(f"doc {i}", "same text") for i in range(4)]

        scored = score_candidates("unrelated", candidates)

        assert [s.candidate for s in scored] == candidates


class TestRerank:
    def test_deployment_titles_rank_first(self, wiki_candidates):
        result = rerank("deployment process", wiki_candidates, 3)

        assert len(result) == 3
        assert {c.title for c in result[:2]} == {"Deployment process", "Deployment checklist"}
        assert result[0].title == "Deployment process"
        assert all(c.source == Source.WIKI for c in result)

    @pytest.mark.parametrize("top_k", [1, 3, 5, 8])
    def test_returns_min_of_k_and_n(self, wiki_candidates, top_k):
        result = rerank("deployment", wiki_candidates, top_k)

        assert len(result) == min(top_k, len(wiki_candidates))
        assert all(c in wiki_candidates for c in result)

    def test_empty_input(self):
        assert rerank("anything", [], 3) == []

    def test_non_positive_top_k(self, wiki_candidates):
        assert rerank("deployment", wiki_candidates, 0) == []
