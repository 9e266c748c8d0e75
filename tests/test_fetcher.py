"""Tests for cache-first artifact fetching."""

import json

import pytest

from lorecache.annotations.fetcher import AnnotationFetcher
from lorecache.models import ArtifactKind, ArtifactState, EntityKind
from lorecache.storage.cache import CacheStore
from lorecache.storage.memory import MemoryStore


@pytest.mark.asyncio
async def test_miss_fetches_and_writes_through(store, backend, generator):
    generator.descriptions["1"] = "Rick is a genius scientist."
    fetcher = AnnotationFetcher(store, generator)
    state = ArtifactState()

    artifact = await fetcher.fetch_artifact(EntityKind.CHARACTER, "1", ArtifactKind.DESCRIPTION, state=state)

    assert artifact.payload == "Rick is a genius scientist."
    assert backend.get("character_description_1") == "Rick is a genius scientist."
    assert state.loading is False
    assert state.error is None
    assert state.payload == "Rick is a genius scientist."


@pytest.mark.asyncio
async def test_revisit_reads_cache_without_network(store, generator):
    generator.descriptions["1"] = "Rick is a genius scientist."
    await AnnotationFetcher(store, generator).fetch_artifact(
        EntityKind.CHARACTER, 1, ArtifactKind.DESCRIPTION
    )

    # A new fetcher, as on a later page visit
    fetcher = AnnotationFetcher(store, generator)
    state = ArtifactState()
    artifact = await fetcher.fetch_artifact(EntityKind.CHARACTER, 1, ArtifactKind.DESCRIPTION, state=state)

    assert artifact.payload == "Rick is a genius scientist."
    assert generator.count("describe") == 1
    assert fetcher.network_calls == 0


@pytest.mark.asyncio
async def test_cache_hit_never_raises_loading(backend, store, generator):
    backend.set("character_description_1", "cached")
    fetcher = AnnotationFetcher(store, generator)
    seen = []

    class Spy(ArtifactState):
        def __setattr__(self, name, value):
            if name == "loading":
                seen.append(value)
            super().__setattr__(name, value)

    await fetcher.fetch_artifact(EntityKind.CHARACTER, "1", ArtifactKind.DESCRIPTION, state=Spy())
    assert True not in seen


@pytest.mark.asyncio
async def test_insights_cached_as_json_list(store, backend, generator):
    generator.insight_lists["2"] = ["Morty is anxious.", "Morty loves Jessica."]
    fetcher = AnnotationFetcher(store, generator)

    artifact = await fetcher.fetch_artifact(EntityKind.CHARACTER, "2", ArtifactKind.INSIGHTS)

    assert artifact.payload == ["Morty is anxious.", "Morty loves Jessica."]
    assert json.loads(backend.get("character_insights_2")) == artifact.payload


@pytest.mark.asyncio
async def test_corrupt_insights_cache_refetches(store, backend, generator):
    backend.set("character_insights_2", "not json")
    generator.insight_lists["2"] = ["fresh"]
    artifact = await AnnotationFetcher(store, generator).fetch_artifact(
        EntityKind.CHARACTER, "2", ArtifactKind.INSIGHTS
    )
    assert artifact.payload == ["fresh"]
    assert generator.count("insights") == 1


@pytest.mark.asyncio
async def test_failure_sets_error_and_leaves_artifact_absent(store, backend, generator):
    generator.fail.add("description:9")
    state = ArtifactState()

    artifact = await AnnotationFetcher(store, generator).fetch_artifact(
        EntityKind.CHARACTER, "9", ArtifactKind.DESCRIPTION, state=state
    )

    assert artifact is None
    assert state.error == "Failed to fetch description"
    assert state.loading is False
    assert state.artifact is None
    assert backend.get("character_description_9") is None


@pytest.mark.asyncio
async def test_no_automatic_retry_after_failure(store, generator):
    generator.fail.add("description:9")
    fetcher = AnnotationFetcher(store, generator)
    await fetcher.fetch_artifact(EntityKind.CHARACTER, "9", ArtifactKind.DESCRIPTION)
    assert generator.count("describe") == 1

    # Revisiting retries
    generator.fail.clear()
    artifact = await fetcher.fetch_artifact(EntityKind.CHARACTER, "9", ArtifactKind.DESCRIPTION)
    assert artifact.payload == "Description of 9."
    assert generator.count("describe") == 2


@pytest.mark.asyncio
async def test_write_failure_still_returns_and_memoises(generator):
    store = CacheStore(MemoryStore(quota=1))
    fetcher = AnnotationFetcher(store, generator)

    first = await fetcher.fetch_artifact(EntityKind.LOCATION, "3", ArtifactKind.DESCRIPTION)
    second = await fetcher.fetch_artifact(EntityKind.LOCATION, "3", ArtifactKind.DESCRIPTION)

    assert first.payload == second.payload == "Description of 3."
    assert generator.count("describe") == 1


@pytest.mark.asyncio
async def test_read_failure_degrades_to_fetch(generator):
    store = CacheStore(MemoryStore(disabled=True))
    artifact = await AnnotationFetcher(store, generator).fetch_artifact(
        EntityKind.CHARACTER, "1", ArtifactKind.DESCRIPTION
    )
    assert artifact.payload == "Description of 1."


@pytest.mark.asyncio
async def test_evaluation_needs_description(store, generator):
    state = ArtifactState()
    artifact = await AnnotationFetcher(store, generator).fetch_artifact(
        EntityKind.LOCATION, "3", ArtifactKind.EVALUATION, state=state
    )
    assert artifact is None
    assert "description is required" in state.error


@pytest.mark.asyncio
async def test_insights_for_location_is_an_error(store, generator):
    state = ArtifactState()
    await AnnotationFetcher(store, generator).fetch_artifact(
        EntityKind.LOCATION, "3", ArtifactKind.INSIGHTS, state=state
    )
    assert state.error == "Insights are only available for characters"
