"""Generate artifacts directly with the Claude API instead of the explorer backend."""

import json
import logging
import re
from typing import Any

from ..errors import FetchFailure
from ..models import CompatibilityAnalysis, EntityKind, LocationEvaluation, SearchResult
from .base import GeneratorBase
from .prompts import (
    COMPATIBILITY_PROMPT,
    DESCRIPTION_PROMPT,
    EVALUATION_PROMPT,
    INSIGHTS_PROMPT,
)

logger = logging.getLogger(__name__)


class ClaudeGenerator(GeneratorBase):
    """Produces descriptions, insights, evaluations and analyses with Claude."""

    def __init__(self, config: dict[str, Any], client: Any = None):
        self.config = config
        self.model = config.get("claude_model", "claude-sonnet-4-20250514")
        if client is None:
            api_key = config.get("claude_api_key")
            if not api_key:
                raise ValueError("Claude API key required for generator: claude. Set ANTHROPIC_API_KEY or claude_api_key in config.")

            import anthropic
            client = anthropic.AsyncAnthropic(api_key=api_key, timeout=config.get("request_timeout", 60.0))
        self.client = client

    async def _complete(self, prompt: str, what: str, max_tokens: int = 1000) -> str:
        import anthropic

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(f"Claude request for {what} failed: {e}")
            raise FetchFailure(f"Failed to fetch {what}") from e
        text = "".join(getattr(block, "text", "") for block in response.content).strip()
        if not text:
            raise FetchFailure(f"Failed to fetch {what}: empty response")
        return text

    async def describe(self, entity_kind: EntityKind, entity_id: str) -> str:
        prompt = DESCRIPTION_PROMPT.format(entity_kind=EntityKind(entity_kind).value, entity_id=entity_id)
        return await self._complete(prompt, "description")

    async def insights(self, character_id: str) -> list[str]:
        text = await self._complete(INSIGHTS_PROMPT.format(character_id=character_id), "insights")
        result = self._parse_json_response(text)
        items = result.get("insights")
        if not isinstance(items, list):
            raise FetchFailure("Failed to fetch insights: invalid response")
        return [item.strip() for item in items if isinstance(item, str) and item.strip()]

    async def evaluate(self, location_id: str, description: str) -> LocationEvaluation:
        prompt = EVALUATION_PROMPT.format(location_id=location_id, description=description)
        text = await self._complete(prompt, "evaluation")
        try:
            return LocationEvaluation.from_dict(self._parse_json_response(text))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FetchFailure(f"Failed to fetch evaluation: {e}") from e

    async def compatibility(
        self, character1_id: str, character2_id: str, location_id: str
    ) -> CompatibilityAnalysis:
        prompt = COMPATIBILITY_PROMPT.format(
            character1_id=character1_id, character2_id=character2_id, location_id=location_id
        )
        text = await self._complete(prompt, "compatibility analysis", max_tokens=2000)
        result = self._parse_json_response(text)
        return CompatibilityAnalysis(
            team_work=str(result.get("teamWork") or ""),
            conflicts=str(result.get("conflicts") or ""),
            breaks_first=str(result.get("breaksFirst") or ""),
        )

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        raise FetchFailure("Search needs the explorer backend (generator: backend)")

    async def aclose(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    @staticmethod
    def _parse_json_response(text: str) -> dict:
        """Extract JSON from Claude's response, handling markdown code blocks."""
        text = text.strip()
        candidates = [text]
        match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", text, re.DOTALL)
        if match:
            candidates.append(match.group(1).strip())
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if match:
            candidates.append(match.group(0))

        for candidate in candidates:
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed

        raise FetchFailure("Could not parse generated response")
