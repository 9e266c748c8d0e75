"""Location evaluation and the saved user score."""

import asyncio
import logging
from collections.abc import Callable

from ..errors import ValidationFailure
from ..models import (
    ArtifactKind,
    ArtifactState,
    EntityKind,
    GeneratedArtifact,
    LocationEvaluation,
    UserScore,
    utc_now,
)
from ..storage.cache import CacheStore
from ..storage.keys import SCORE, cache_key
from .fetcher import AnnotationFetcher

logger = logging.getLogger(__name__)


class LocationEvaluator:
    """Evaluates a location's description once per session.

    The evaluation waits for the description and is skipped when the
    description failed. The first successful evaluation seeds the saved
    score; later evaluations never replace it. Callers that arrive while
    a location's evaluation is running share its outcome instead of
    sending another request.
    """

    def __init__(
        self,
        fetcher: AnnotationFetcher,
        store: CacheStore,
        *,
        clock: Callable[[], str] | None = None,
    ):
        self.fetcher = fetcher
        self.store = store
        self._clock = clock or (lambda: utc_now().isoformat())
        self._runs: dict[str, asyncio.Task] = {}

    def requested(self, location_id: str) -> bool:
        return str(location_id) in self._runs

    async def evaluate(
        self,
        location_id: str,
        description: ArtifactState,
        *,
        state: ArtifactState | None = None,
    ) -> GeneratedArtifact | None:
        location_id = str(location_id)
        state = state if state is not None else ArtifactState()

        if description.loading or description.error or not description.payload:
            logger.debug(f"Skipping evaluation for location {location_id}: no description")
            return None

        run = self._runs.get(location_id)
        if run is None:
            run = asyncio.ensure_future(self._run(location_id, description.payload))
            self._runs[location_id] = run
        else:
            logger.debug(f"Evaluation for location {location_id} already requested")

        if not run.done():
            state.loading = True
            state.error = None
        try:
            # One viewer going away must not cancel the shared request
            outcome = await asyncio.shield(run)
        finally:
            state.loading = False
        state.artifact = outcome.artifact
        state.error = outcome.error
        return outcome.artifact

    async def _run(self, location_id: str, description: str) -> ArtifactState:
        outcome = ArtifactState()
        artifact = await self.fetcher.fetch_artifact(
            EntityKind.LOCATION,
            location_id,
            ArtifactKind.EVALUATION,
            state=outcome,
            description=description,
        )
        if artifact is not None:
            self._seed_score(location_id, artifact.payload)
        return outcome

    def _seed_score(self, location_id: str, evaluation: LocationEvaluation) -> None:
        if self.saved_score(location_id) is not None:
            return
        score = UserScore(
            score=evaluation.auto_score,
            timestamp=self._clock(),
            evaluation=evaluation.to_dict(),
        )
        self.store.write_json(cache_key(EntityKind.LOCATION, location_id, SCORE), score.to_dict())

    def saved_score(self, location_id: str) -> UserScore | None:
        raw = self.store.read_json(cache_key(EntityKind.LOCATION, location_id, SCORE))
        if raw is None:
            return None
        try:
            return UserScore.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning(f"Ignoring corrupt saved score for location {location_id}")
            return None

    def set_user_score(self, location_id: str, score: float) -> UserScore:
        """Explicitly replace the saved score with the user's own rating."""
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0 <= score <= 10:
            raise ValidationFailure("Score must be a number from 0 to 10")
        previous = self.saved_score(location_id)
        user_score = UserScore(
            score=score,
            timestamp=self._clock(),
            evaluation=previous.evaluation if previous else {},
        )
        self.store.write_json(cache_key(EntityKind.LOCATION, location_id, SCORE), user_score.to_dict())
        return user_score
