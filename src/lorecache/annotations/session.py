"""The reusable view surface for one entity at a time.

Navigating to another entity reuses the same session object: in-memory
state is thrown away and rehydrated from the store, and any fetch still
running for the previous entity has its result dropped.
"""

import asyncio
import logging
from collections.abc import Callable

from ..errors import ValidationFailure
from ..models import ArtifactKind, ArtifactState, EntityKind, Note, UserScore
from ..storage.cache import CacheStore
from .evaluation import LocationEvaluator
from .fetcher import AnnotationFetcher
from .ledger import NoteIdFactory, NoteLedger
from .reconciler import SuggestionReconciler

logger = logging.getLogger(__name__)

NOTE_ADDED = "Note added successfully!"
NOTICE_SECONDS = 3.0


def _fresh_states() -> dict[ArtifactKind, ArtifactState]:
    return {
        ArtifactKind.DESCRIPTION: ArtifactState(),
        ArtifactKind.INSIGHTS: ArtifactState(),
        ArtifactKind.EVALUATION: ArtifactState(),
    }


class EntitySession:
    """Artifacts, notes and suggestions for the entity currently shown."""

    def __init__(
        self,
        entity_kind: EntityKind,
        fetcher: AnnotationFetcher,
        store: CacheStore,
        *,
        evaluator: LocationEvaluator | None = None,
        clock: Callable[[], str] | None = None,
        id_factory: NoteIdFactory | None = None,
        notice_seconds: float = NOTICE_SECONDS,
    ):
        self.entity_kind = EntityKind(entity_kind)
        self.fetcher = fetcher
        self.store = store
        if evaluator is None and self.entity_kind is EntityKind.LOCATION:
            evaluator = LocationEvaluator(fetcher, store, clock=clock)
        self.evaluator = evaluator
        self._clock = clock
        self._ids = id_factory or NoteIdFactory()
        self._token = 0
        self._notice_seconds = notice_seconds
        self._dismiss: asyncio.TimerHandle | None = None

        self.entity_id: str | None = None
        self.states = _fresh_states()
        self.ledger: NoteLedger | None = None
        self.reconciler: SuggestionReconciler | None = None
        self.notification: str | None = None
        self.validation_error: str | None = None

    # -- navigation ---------------------------------------------------------

    def _is_current(self, token: int, entity_id: str) -> bool:
        return token == self._token and entity_id == self.entity_id

    async def open(self, entity_id: str | int) -> None:
        """Show an entity: rehydrate notes and load its artifacts."""
        entity_id = str(entity_id)
        self._token += 1
        token = self._token
        self.entity_id = entity_id
        self.states = states = _fresh_states()
        self._notify(None)
        self.validation_error = None

        self.ledger = NoteLedger(
            self.store, self.entity_kind, entity_id, clock=self._clock, id_factory=self._ids
        )
        self.ledger.load()
        self.reconciler = SuggestionReconciler(self.ledger)

        # States are bound here; a later open() swaps in new ones before these run
        jobs = [self._load(token, entity_id, ArtifactKind.DESCRIPTION, states)]
        if self.entity_kind is EntityKind.CHARACTER:
            jobs.append(self._load(token, entity_id, ArtifactKind.INSIGHTS, states))
        await asyncio.gather(*jobs)

        if self.entity_kind is EntityKind.LOCATION and self._is_current(token, entity_id):
            await self._evaluate(token, entity_id, states)

    def close(self) -> None:
        """Navigate away. Outstanding fetches will be discarded."""
        self._token += 1
        self.entity_id = None
        self.states = _fresh_states()
        self.ledger = None
        self.reconciler = None
        self._notify(None)
        self.validation_error = None

    async def _load(self, token: int, entity_id: str, kind: ArtifactKind, states) -> None:
        artifact = await self.fetcher.fetch_artifact(self.entity_kind, entity_id, kind, state=states[kind])
        if not self._is_current(token, entity_id):
            logger.debug(f"Discarding stale {kind.value} for {self.entity_kind.value} {entity_id}")
            return
        if kind is ArtifactKind.INSIGHTS and artifact is not None:
            self.reconciler.insights = list(artifact.payload)

    async def _evaluate(self, token: int, entity_id: str, states) -> None:
        await self.evaluator.evaluate(
            entity_id, states[ArtifactKind.DESCRIPTION], state=states[ArtifactKind.EVALUATION]
        )
        if not self._is_current(token, entity_id):
            logger.debug(f"Discarding stale evaluation for location {entity_id}")

    # -- derived view -------------------------------------------------------

    @property
    def description(self) -> str | None:
        return self.states[ArtifactKind.DESCRIPTION].payload

    @property
    def insights(self) -> list[str]:
        return list(self.reconciler.insights) if self.reconciler else []

    @property
    def available_suggestions(self) -> list[str]:
        return self.reconciler.available() if self.reconciler else []

    @property
    def notes(self) -> list[Note]:
        return self.ledger.notes if self.ledger else []

    @property
    def evaluation(self):
        return self.states[ArtifactKind.EVALUATION].payload

    @property
    def saved_score(self) -> UserScore | None:
        if self.evaluator is None or self.entity_id is None:
            return None
        return self.evaluator.saved_score(self.entity_id)

    # -- user actions -------------------------------------------------------

    def _notify(self, message: str | None) -> None:
        """Show a transient notice; it is dismissed after a few seconds."""
        if self._dismiss is not None:
            self._dismiss.cancel()
            self._dismiss = None
        self.notification = message
        if message is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside a loop the notice stays until the next action
            return
        self._dismiss = loop.call_later(self._notice_seconds, self._notify, None)

    def _require_entity(self) -> bool:
        self._notify(None)
        if self.ledger is None:
            self.validation_error = "No entity selected"
            return False
        self.validation_error = None
        return True

    def select_suggestion(self, text: str) -> Note | None:
        if not self._require_entity():
            return None
        try:
            note = self.reconciler.on_suggestion_selected(text)
        except ValidationFailure as e:
            self.validation_error = str(e)
            return None
        self._notify(NOTE_ADDED)
        return note

    def add_note(self, content: str) -> Note | None:
        if not self._require_entity():
            return None
        try:
            note = self.ledger.add_user(content)
        except ValidationFailure as e:
            self.validation_error = str(e)
            return None
        self._notify(NOTE_ADDED)
        return note

    def delete_note(self, note_id: str) -> Note | None:
        if not self._require_entity():
            return None
        note = self.ledger.delete(note_id)
        if note is None:
            logger.debug(f"No note {note_id} on {self.entity_kind.value} {self.entity_id}")
            return None
        self.reconciler.on_note_deleted(note)
        return note

    def rate(self, score: float) -> UserScore | None:
        """Save the user's own score for the current location."""
        if not self._require_entity():
            return None
        if self.evaluator is None:
            self.validation_error = "Only locations can be scored"
            return None
        try:
            return self.evaluator.set_user_score(self.entity_id, score)
        except ValidationFailure as e:
            self.validation_error = str(e)
            return None
