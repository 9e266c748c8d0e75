"""
HTTP client for the explorer backend's generation endpoints.

All endpoints are POSTs returning JSON. Any transport error, non-2xx status
or malformed body becomes a FetchFailure carrying a message fit for display.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import FetchFailure
from ..models import CompatibilityAnalysis, EntityKind, LocationEvaluation, SearchResult
from .base import GeneratorBase

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class BackendGenerator(GeneratorBase):
    """Talks to ``/api/...`` on the explorer backend."""

    def __init__(
        self,
        backend_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._backend_url = backend_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._backend_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def _post(self, path: str, what: str, payload: dict | None = None) -> dict[str, Any]:
        try:
            resp = await self._client.post(path, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"POST {path} returned {e.response.status_code}")
            raise FetchFailure(f"Failed to fetch {what}") from e
        except httpx.HTTPError as e:
            logger.error(f"POST {path} failed: {e}")
            raise FetchFailure(f"Failed to fetch {what}") from e
        except ValueError as e:
            logger.error(f"POST {path} returned invalid JSON: {e}")
            raise FetchFailure(f"Failed to fetch {what}: invalid response") from e
        if not isinstance(data, dict):
            raise FetchFailure(f"Failed to fetch {what}: invalid response")
        return data

    async def describe(self, entity_kind: EntityKind, entity_id: str) -> str:
        kind = EntityKind(entity_kind).value
        data = await self._post(f"/api/{kind}/{entity_id}/description", "description")
        description = data.get("description")
        if not isinstance(description, str):
            raise FetchFailure("Failed to fetch description: invalid response")
        return description

    async def insights(self, character_id: str) -> list[str]:
        data = await self._post(f"/api/character/{character_id}/insights", "insights")
        insights = data.get("insights") or []
        if not isinstance(insights, list):
            raise FetchFailure("Failed to fetch insights: invalid response")
        return [item for item in insights if isinstance(item, str) and item.strip()]

    async def evaluate(self, location_id: str, description: str) -> LocationEvaluation:
        data = await self._post(
            f"/api/location/{location_id}/evaluate", "evaluation", {"description": description}
        )
        try:
            return LocationEvaluation.from_dict(data["evaluation"])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FetchFailure(f"Failed to fetch evaluation: {e}") from e

    async def compatibility(
        self, character1_id: str, character2_id: str, location_id: str
    ) -> CompatibilityAnalysis:
        data = await self._post(
            "/api/compatibility",
            "compatibility analysis",
            {
                "character1Id": character1_id,
                "character2Id": character2_id,
                "locationId": location_id,
            },
        )
        analysis = data.get("analysis")
        if not isinstance(analysis, dict):
            raise FetchFailure("Failed to generate compatibility analysis")
        return CompatibilityAnalysis(
            team_work=str(analysis.get("teamWork") or ""),
            conflicts=str(analysis.get("conflicts") or ""),
            breaks_first=str(analysis.get("breaksFirst") or ""),
        )

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        data = await self._post("/api/search", "search results", {"query": query, "limit": limit})
        results = []
        for row in data.get("results") or []:
            if not isinstance(row, dict) or "id" not in row:
                continue
            extra = {k: v for k, v in row.items() if k not in ("id", "name", "type", "distance")}
            try:
                distance = float(row.get("distance", 1.0))
            except (TypeError, ValueError):
                distance = 1.0
            results.append(SearchResult(
                id=str(row["id"]),
                name=str(row.get("name", "")),
                type=str(row.get("type", "")),
                distance=distance,
                fields=extra,
            ))
        return results

    async def aclose(self) -> None:
        await self._client.aclose()
