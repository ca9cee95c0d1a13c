"""
Tests for text utilities

Markup normalization, truncation and relevant-sentence extraction.
"""

import pytest

from beacon.retriever.text import (
    extract_relevant,
    normalize,
    score_sentence,
    split_sentences,
    truncate_text,
)


class TestNormalize:
    """Tests for normalize"""

    def test_strips_tags_and_collapses_whitespace(self):
        assert normalize("<p>Hello&nbsp;<b>world</b></p>\n\n  again") == "Hello world again"

    def test_decodes_entities(self):
        assert normalize("Tom &amp; Jerry &quot;say&quot; it&#39;s fine") == 'Tom & Jerry "say" it\'s fine'

    def test_tags_become_word_boundaries(self):
        assert normalize("one<br/>two") == "one two"

    def test_empty_input(self):
        assert normalize("") == ""
        assert normalize("   ") == ""

    @pytest.mark.parametrize("raw", [
        "<div>plain</div>",
        "a &lt;b&gt; c",
        "&amp;lt;script&amp;gt;alert(1)&amp;lt;/script&amp;gt;",
        "unclosed <tag text",
        "x &lt; y &gt; z",
        "&amp;amp;nbsp;",
        "<<p>>nested<</p>>",
    ])
    def test_idempotent(self, raw):
        once = normalize(raw)
        assert normalize(once) == once

    def test_escaped_comparison_is_decoded_then_stripped(self):
        result = normalize("x &lt; 5 and y &gt; 3")

        assert result == "x 3"
        assert normalize(result) == result

    def test_malformed_markup_does_not_fail(self):
        result = normalize("<p>broken <b>markup")
        assert "broken" in result
        assert "markup" in result


class TestTruncateText:
    """Tests for truncate_text"""

    def test_short_text_unchanged(self):
        assert truncate_text("hello world", 20) == "hello world"

    def test_breaks_at_word_boundary(self):
        result = truncate_text("The quick brown fox jumps over the lazy dog", 20)

        assert result == "The quick brown..."
        assert len(result) <= 20

    def test_cuts_mid_word_without_early_space(self):
        result = truncate_text("a" * 50, 20)

        assert result == "a" * 17 + "..."

    def test_tiny_budget(self):
        assert truncate_text("abcdef", 2) == "ab"

    @pytest.mark.parametrize("max_chars", [4, 10, 33, 100, 499])
    def test_never_exceeds_budget(self, max_chars):
        text = "word " * 200
        assert len(truncate_text(text, max_chars)) <= max_chars


class TestSentences:
    """Tests for sentence splitting and scoring"""

    def test_split_drops_short_fragments(self):
        sentences = split_sentences("Ok. This sentence is long enough! Why? Another proper sentence here.")

        assert sentences == [
            "This sentence is long enough",
            "Another proper sentence here.",
        ]

    def test_score_counts_and_bonus(self):
        sentence = "x" * 100
        assert score_sentence(sentence, ["zzz"]) == 0.0

        sentence = "deploy " + "x" * 93  # 100 chars
        assert score_sentence(sentence, ["deploy"]) == pytest.approx(1.5)

    def test_score_is_length_normalized(self):
        short = "deploy now please"
        long = "deploy now please " + "filler " * 20
        assert score_sentence(short, ["deploy"]) > score_sentence(long, ["deploy"])


class TestExtractRelevant:
    """Tests for extract_relevant"""

    FILLER = ("Lorem ipsum dolor sit amet " * 10).strip()
    K1 = "The kubernetes deployment uses kubernetes rolling updates for every deployment"
    K2 = "Each deployment is reviewed by the platform team before release to production hosts"
    K3 = "Rollback of a kubernetes release is handled by the on call engineer in the team"

    def test_fits_returns_unchanged(self):
        text = "Short text. Nothing to do."
        assert extract_relevant(text, "anything", 500) is text

    def test_no_keywords_falls_back_to_truncation(self):
        text = "word " * 300
        result = extract_relevant(text, "what is the", 100)

        assert len(result) <= 100
        assert result.endswith("...")

    def test_keyword_sentences_first_by_score(self):
        from beacon.retriever.query_processor import extract_keywords

        f = self.FILLER
        sentences = [f, self.K2, f, f, self.K1, f, f, self.K3, f, f]
        text = ". ".join(sentences) + "."
        assert len(text) >= 2000

        result = extract_relevant(text, "kubernetes deployment", 500)

        keywords = extract_keywords("kubernetes deployment")
        expected = sorted(
            [self.K2, self.K1, self.K3],
            key=lambda s: score_sentence(s, keywords),
            reverse=True,
        )
        assert len(result) <= 500
        assert result == " ".join(expected)

    def test_low_recovery_falls_back_to_truncation(self):
        # The only keyword sentence is far below a third of the budget
        text = "Deploy it now. " + ("x" * 400) + " end"
        result = extract_relevant(text, "deploy", 300)

        assert result.startswith("Deploy it now.")
        assert len(result) <= 300
