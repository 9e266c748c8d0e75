"""
Shared pytest fixtures for lorecache tests.

FakeGenerator stands in for the explorer backend: it records every call,
can be told to fail, and can hold a response until a test releases it.
"""

import asyncio

import pytest

from lorecache.errors import FetchFailure
from lorecache.generation.base import GeneratorBase
from lorecache.models import (
    CompatibilityAnalysis,
    EntityKind,
    EvaluationChecks,
    LocationEvaluation,
    SearchResult,
)
from lorecache.storage.cache import CacheStore
from lorecache.storage.memory import MemoryStore


class FakeGenerator(GeneratorBase):
    """Deterministic generator. Keys look like ``description:1``."""

    def __init__(self):
        self.descriptions: dict[str, str] = {}
        self.insight_lists: dict[str, list[str]] = {}
        self.evaluations: dict[str, LocationEvaluation] = {}
        self.analysis = CompatibilityAnalysis(
            team_work="They share a lab. They both hate Jerry.",
            conflicts="Rick mocks Morty constantly.",
            breaks_first="Morty, after the second portal mishap.",
        )
        self.search_results: dict[str, list[SearchResult]] = {}
        self.fail: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple] = []
        self.closed = False

    def hold(self, key: str) -> asyncio.Event:
        """Make the call for ``key`` wait until the returned event is set."""
        gate = asyncio.Event()
        self.gates[key] = gate
        return gate

    async def _respond(self, key: str) -> None:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.fail:
            raise FetchFailure(f"Failed to fetch {key.split(':')[0]}")

    async def describe(self, entity_kind, entity_id):
        self.calls.append(("describe", EntityKind(entity_kind).value, entity_id))
        await self._respond(f"description:{entity_id}")
        return self.descriptions.get(entity_id, f"Description of {entity_id}.")

    async def insights(self, character_id):
        self.calls.append(("insights", character_id))
        await self._respond(f"insights:{character_id}")
        return list(self.insight_lists.get(character_id, []))

    async def evaluate(self, location_id, description):
        self.calls.append(("evaluate", location_id, description))
        await self._respond(f"evaluate:{location_id}")
        return self.evaluations.get(location_id, make_evaluation(5))

    async def compatibility(self, character1_id, character2_id, location_id):
        self.calls.append(("compatibility", character1_id, character2_id, location_id))
        await self._respond("compatibility")
        return self.analysis

    async def search(self, query, limit=10):
        self.calls.append(("search", query, limit))
        await self._respond(f"search:{query}")
        return list(self.search_results.get(query, []))[:limit]

    async def aclose(self):
        self.closed = True

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


def make_evaluation(score, explanation=None) -> LocationEvaluation:
    return LocationEvaluation(
        auto_score=score,
        checks=EvaluationChecks(name_mentioned=True, type_mentioned=True, dimension_mentioned=False),
        location_data={"type": "Planet", "dimension": "Dimension C-137"},
        explanation=explanation,
    )


@pytest.fixture
def backend():
    return MemoryStore()


@pytest.fixture
def store(backend):
    return CacheStore(backend)


@pytest.fixture
def generator():
    return FakeGenerator()
