"""
Tests for the browsing insight analyzer.

The Anthropic client is always mocked; no network calls are made.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from cloudsync.sync.insights import (
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    MAX_HISTORY_ENTRIES,
    BrowsingInsights,
    TrendAnalyzer,
)


def llm_response(text):
    """Build a mock messages.create response carrying text."""
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    return response


@pytest.fixture
def history():
    return [
        {"id": str(i), "url": f"https://site{i}.example", "title": f"Page {i}"}
        for i in range(60)
    ]


@pytest.fixture
def analyzer():
    """Analyzer with a mocked client already attached."""
    instance = TrendAnalyzer(api_key="test-key")
    instance._client = MagicMock()
    return instance


class TestTrendAnalyzerInit:
    """Tests for TrendAnalyzer initialization."""

    def test_defaults(self):
        """Explicit key is kept; model settings default."""
        analyzer = TrendAnalyzer(api_key="test-key")

        assert analyzer.api_key == "test-key"
        assert analyzer.model == DEFAULT_LLM_MODEL
        assert analyzer.max_tokens == DEFAULT_LLM_MAX_TOKENS
        assert analyzer._client is None

    @patch.dict("os.environ", {"ANTHROPIC_API_KEY": "env-key"})
    def test_key_from_env(self):
        """ANTHROPIC_API_KEY is used when no key is passed."""
        assert TrendAnalyzer().api_key == "env-key"

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_key_raises_on_client(self):
        """Creating the client without a key is an error."""
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY not set"):
            TrendAnalyzer()._get_client()

    @patch("anthropic.Anthropic")
    def test_client_created_lazily_once(self, mock_anthropic):
        """The Anthropic client is built on first use and reused."""
        analyzer = TrendAnalyzer(api_key="k")

        first = analyzer._get_client()
        second = analyzer._get_client()

        assert first is second
        mock_anthropic.assert_called_once_with(api_key="k")


class TestAnalyze:
    """Tests for TrendAnalyzer.analyze."""

    def test_empty_history(self, analyzer):
        """No history means no call and no insights."""
        assert analyzer.analyze([]) is None
        analyzer._client.messages.create.assert_not_called()

    def test_returns_insights(self, analyzer, history):
        """A well-formed reply becomes BrowsingInsights."""
        analyzer._client.messages.create.return_value = llm_response(
            json.dumps(
                {"summary": "Into web dev.", "recommendations": ["CSS", "HTTP/3", "Rust"]}
            )
        )

        insights = analyzer.analyze(history)

        assert insights == BrowsingInsights(
            summary="Into web dev.", recommendations=["CSS", "HTTP/3", "Rust"]
        )

    def test_prompt_uses_recent_titles_and_urls(self, analyzer, history):
        """Only the most recent entries are sent, as title and URL."""
        analyzer._client.messages.create.return_value = llm_response('{"summary": "x"}')

        analyzer.analyze(history)

        kwargs = analyzer._client.messages.create.call_args.kwargs
        assert kwargs["model"] == DEFAULT_LLM_MODEL
        assert kwargs["max_tokens"] == DEFAULT_LLM_MAX_TOKENS
        prompt = kwargs["messages"][0]["content"]
        assert "- Page 0 (https://site0.example)" in prompt
        assert f"Page {MAX_HISTORY_ENTRIES - 1} " in prompt
        assert f"Page {MAX_HISTORY_ENTRIES} " not in prompt

    def test_code_fences_stripped(self, analyzer, history):
        """Replies wrapped in Markdown fences still parse."""
        analyzer._client.messages.create.return_value = llm_response(
            '```json\n{"summary": "Cooking", "recommendations": ["Knives"]}\n```'
        )

        insights = analyzer.analyze(history)

        assert insights is not None
        assert insights.summary == "Cooking"
        assert insights.recommendations == ["Knives"]

    def test_recommendations_coerced(self, analyzer, history):
        """A single recommendation string becomes a one-element list."""
        analyzer._client.messages.create.return_value = llm_response(
            '{"summary": "S", "recommendations": "Gardening"}'
        )
        assert analyzer.analyze(history).recommendations == ["Gardening"]

    @pytest.mark.parametrize(
        "text", ["not json", '{"recommendations": ["a"]}', "[1, 2]", '{"summary": ""}']
    )
    def test_unusable_reply(self, analyzer, history, text):
        """Replies without a usable summary yield None."""
        analyzer._client.messages.create.return_value = llm_response(text)
        assert analyzer.analyze(history) is None

    def test_api_error_yields_none(self, analyzer, history):
        """Client exceptions are logged, not raised."""
        analyzer._client.messages.create.side_effect = RuntimeError("overloaded")
        assert analyzer.analyze(history) is None

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_key_yields_none(self, history):
        """Without a key, analysis fails quietly."""
        assert TrendAnalyzer().analyze(history) is None
