"""Cache-first retrieval of generated artifacts."""

import logging

from ..errors import FetchFailure
from ..generation.base import GeneratorBase
from ..models import ArtifactKind, ArtifactState, EntityKind, GeneratedArtifact
from ..storage.cache import CacheStore
from ..storage.keys import cache_key

logger = logging.getLogger(__name__)

# Kinds written through to the local store
CACHED_KINDS = (ArtifactKind.DESCRIPTION, ArtifactKind.INSIGHTS)


class AnnotationFetcher:
    """Fetches artifacts for one entity at a time, store first.

    Results are memoised for the session, so an artifact whose cache write
    failed is still not requested twice.
    """

    def __init__(self, store: CacheStore, generator: GeneratorBase):
        self.store = store
        self.generator = generator
        self._session: dict[tuple[str, str, str], GeneratedArtifact] = {}
        self.network_calls = 0

    def cached(self, entity_kind: EntityKind, entity_id: str, kind: ArtifactKind) -> GeneratedArtifact | None:
        """Session memo, then the store. Never touches the network."""
        entity_kind = EntityKind(entity_kind)
        kind = ArtifactKind(kind)
        entity_id = str(entity_id)
        memo = self._session.get((entity_kind.value, entity_id, kind.value))
        if memo is not None:
            return memo
        if kind not in CACHED_KINDS:
            return None

        key = cache_key(entity_kind, entity_id, kind)
        if kind is ArtifactKind.DESCRIPTION:
            text = self.store.read(key)
            if not text:
                return None
            return GeneratedArtifact(kind, entity_id, text)

        items = self.store.read_json(key)
        if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
            if items is not None:
                logger.warning(f"Ignoring corrupt insights cache {key}")
            return None
        return GeneratedArtifact(kind, entity_id, items)

    async def fetch_artifact(
        self,
        entity_kind: EntityKind,
        entity_id: str,
        kind: ArtifactKind,
        *,
        state: ArtifactState | None = None,
        description: str | None = None,
    ) -> GeneratedArtifact | None:
        """Return the artifact, or None if it could not be fetched.

        On a cache hit ``state.loading`` is never raised. On failure the
        message lands in ``state.error``; there is no automatic retry.
        ``description`` is the input for evaluations.
        """
        entity_kind = EntityKind(entity_kind)
        kind = ArtifactKind(kind)
        entity_id = str(entity_id)
        state = state if state is not None else ArtifactState()

        hit = self.cached(entity_kind, entity_id, kind)
        if hit is not None:
            self._session[(entity_kind.value, entity_id, kind.value)] = hit
            state.artifact = hit
            state.error = None
            state.loading = False
            return hit

        state.loading = True
        state.error = None
        try:
            payload = await self._generate(entity_kind, entity_id, kind, description)
        except FetchFailure as e:
            logger.error(f"Error fetching {kind.value} for {entity_kind.value} {entity_id}: {e}")
            state.error = str(e) or f"Failed to load {kind.value}"
            state.artifact = None
            return None
        finally:
            state.loading = False

        artifact = GeneratedArtifact(kind, entity_id, payload)
        self._session[(entity_kind.value, entity_id, kind.value)] = artifact
        self._write_through(entity_kind, entity_id, artifact)
        state.artifact = artifact
        return artifact

    async def _generate(self, entity_kind: EntityKind, entity_id: str, kind: ArtifactKind, description: str | None):
        self.network_calls += 1
        if kind is ArtifactKind.DESCRIPTION:
            return await self.generator.describe(entity_kind, entity_id)
        if kind is ArtifactKind.INSIGHTS:
            if entity_kind is not EntityKind.CHARACTER:
                raise FetchFailure("Insights are only available for characters")
            return await self.generator.insights(entity_id)
        if kind is ArtifactKind.EVALUATION:
            if entity_kind is not EntityKind.LOCATION:
                raise FetchFailure("Evaluations are only available for locations")
            if not description:
                raise FetchFailure("A description is required before evaluating")
            return await self.generator.evaluate(entity_id, description)
        raise FetchFailure(f"{kind.value} is not fetched per entity")

    def _write_through(self, entity_kind: EntityKind, entity_id: str, artifact: GeneratedArtifact) -> None:
        if artifact.kind not in CACHED_KINDS:
            return
        key = cache_key(entity_kind, entity_id, artifact.kind)
        if artifact.kind is ArtifactKind.DESCRIPTION:
            saved = self.store.write(key, artifact.payload)
        else:
            saved = self.store.write_json(key, artifact.payload)
        if not saved:
            logger.warning(f"{key} is shown for this session only")
