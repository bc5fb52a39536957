"""
Advisory browsing-trend insights derived from history.

Sends the titles and URLs of recent history entries to an LLM and asks for
a short interest summary plus a few recommended topics. The result is purely
advisory: any failure yields None and never affects a sync.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Default LLM configuration
DEFAULT_LLM_MODEL = "claude-haiku-4-5"
DEFAULT_LLM_MAX_TOKENS = 500

# Most recent history entries included in the prompt
MAX_HISTORY_ENTRIES = 50


@dataclass(frozen=True)
class BrowsingInsights:
    """Summary of current interests and recommended topics."""

    summary: str
    recommendations: list[str] = field(default_factory=list)


class TrendAnalyzer:
    """
    LLM-backed analysis of browsing history.

    Usage:
        analyzer = TrendAnalyzer()
        insights = analyzer.analyze(history)
        if insights:
            print(insights.summary)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_LLM_MODEL,
        max_tokens: int = DEFAULT_LLM_MAX_TOKENS,
    ):
        """
        Initialize the analyzer.

        Args:
            api_key: Anthropic API key. If not provided, uses ANTHROPIC_API_KEY env var.
            model: Claude model to use
            max_tokens: Max tokens for the response
        """
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._client = None
        self.model = model
        self.max_tokens = max_tokens

    def _get_client(self):  # type: ignore[no-untyped-def]
        """Lazy-load the Anthropic client. Returns anthropic.Anthropic instance."""
        if self._client is None:
            if not self.api_key:
                raise ValueError(
                    "ANTHROPIC_API_KEY not set. "
                    "Please set it in your environment or pass api_key to TrendAnalyzer."
                )
            import anthropic

            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def analyze(self, history: list[Any]) -> Optional[BrowsingInsights]:
        """
        Summarize interests from history entries.

        Args:
            history: History records, newest first

        Returns:
            BrowsingInsights, or None if history is empty or analysis failed
        """
        if not history:
            return None

        prompt = self._build_prompt(history)

        try:
            client = self._get_client()
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
            return self._parse_response(response.content[0].text)
        except Exception as e:
            logger.error(f"Browsing trend analysis failed: {e}")
            return None

    def _build_prompt(self, history: list[Any]) -> str:
        """Build the prompt from titles and URLs of the most recent entries."""
        lines = []
        for entry in history[:MAX_HISTORY_ENTRIES]:
            if isinstance(entry, dict):
                lines.append(f"- {entry.get('title', '')} ({entry.get('url', '')})")

        snippet = "\n".join(lines)
        return f"""Analyze this browser history and provide a short summary of the user's current interests and 3 recommended topics they might find interesting.

Respond with ONLY a JSON object in this format:
{{"summary": "<one or two sentences>", "recommendations": ["<topic>", "<topic>", "<topic>"]}}

History:
{snippet}"""

    def _parse_response(self, response_text: str) -> Optional[BrowsingInsights]:
        """Parse the LLM response into BrowsingInsights."""
        text = response_text.strip()
        # Strip Markdown code fences
        if text.startswith("```"):
            text = text.split("```")[1]
            if text.startswith("json"):
                text = text[4:]
        text = text.strip()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Could not parse insight response: {e}")
            return None

        if not isinstance(data, dict) or not data.get("summary"):
            logger.warning("Insight response is missing a summary")
            return None

        recommendations = data.get("recommendations") or []
        if not isinstance(recommendations, list):
            recommendations = [recommendations]

        return BrowsingInsights(
            summary=str(data["summary"]),
            recommendations=[str(r) for r in recommendations],
        )
