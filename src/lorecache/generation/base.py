"""Abstract base class for text-generation collaborators and factory function."""

from abc import ABC, abstractmethod
from typing import Any

from ..models import CompatibilityAnalysis, EntityKind, LocationEvaluation, SearchResult


class GeneratorBase(ABC):
    """Produces the generated artifacts shown next to an entity.

    Every method raises FetchFailure with a user-readable message when the
    artifact cannot be produced.
    """

    @abstractmethod
    async def describe(self, entity_kind: EntityKind, entity_id: str) -> str:
        """Description text for a character or location."""

    @abstractmethod
    async def insights(self, character_id: str) -> list[str]:
        """Ordered list of suggested notes for a character."""

    @abstractmethod
    async def evaluate(self, location_id: str, description: str) -> LocationEvaluation:
        """Score a location description (0-10) with a breakdown of checks."""

    @abstractmethod
    async def compatibility(
        self, character1_id: str, character2_id: str, location_id: str
    ) -> CompatibilityAnalysis:
        """How two characters would fare together at a location."""

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        """Semantic search over characters and locations."""

    async def aclose(self) -> None:
        """Release network resources."""


def get_generator(config: dict[str, Any]) -> GeneratorBase:
    """Factory: return the right generator based on config."""
    backend = config.get("generator", "backend")

    if backend == "backend":
        from .backend import BackendGenerator
        return BackendGenerator(
            config["backend_url"],
            timeout=config.get("request_timeout", 60.0),
        )
    elif backend == "claude":
        from .claude import ClaudeGenerator
        return ClaudeGenerator(config)
    else:
        raise ValueError(f"Unknown generator: {backend}")
