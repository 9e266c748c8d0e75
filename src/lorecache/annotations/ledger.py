"""The ordered collection of notes for one entity."""

import logging
import time
from collections.abc import Callable

from ..errors import ValidationFailure
from ..models import EntityKind, Note, NoteSource, utc_now
from ..storage.cache import CacheStore
from ..storage.keys import NOTES, cache_key

logger = logging.getLogger(__name__)


class NoteIdFactory:
    """Millisecond-timestamp ids that strictly increase.

    Two notes created in the same millisecond, or after the clock stepped
    back, still get distinct ids. ``observe`` raises the floor above ids
    already held in a ledger so deleted ids are never handed out again.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def observe(self, note_id: str) -> None:
        if note_id.isdigit():
            self._last = max(self._last, int(note_id))

    def __call__(self) -> str:
        candidate = int(self._clock() * 1000)
        self._last = candidate if candidate > self._last else self._last + 1
        return str(self._last)


class NoteLedger:
    """Notes for one entity, persisted as one JSON list.

    Every mutation rewrites the whole serialized ledger. A failed write
    keeps the change for this session and logs a warning.
    """

    def __init__(
        self,
        store: CacheStore,
        entity_kind: EntityKind,
        entity_id: str,
        *,
        clock: Callable[[], str] | None = None,
        id_factory: NoteIdFactory | None = None,
    ):
        self.store = store
        self.entity_kind = EntityKind(entity_kind)
        self.entity_id = str(entity_id)
        self.key = cache_key(self.entity_kind, self.entity_id, NOTES)
        self._clock = clock or (lambda: utc_now().isoformat())
        self._ids = id_factory or NoteIdFactory()
        self._notes: list[Note] = []
        self.persisted = True

    @property
    def notes(self) -> list[Note]:
        return list(self._notes)

    def load(self) -> list[Note]:
        """Rehydrate from the store. Absent or corrupt data gives an empty ledger."""
        raw = self.store.read_json(self.key)
        notes: list[Note] = []
        if isinstance(raw, list):
            for entry in raw:
                try:
                    note = Note.from_dict(entry)
                except (KeyError, TypeError, ValueError, AttributeError):
                    logger.warning(f"Skipping malformed note in {self.key}: {entry!r}")
                    continue
                notes.append(note)
        elif raw is not None:
            logger.warning(f"Ignoring corrupt note ledger {self.key}")

        for note in notes:
            self._ids.observe(note.id)
        self._notes = notes
        return self.notes

    def _save(self) -> bool:
        self.persisted = self.store.write_json(self.key, [n.to_dict() for n in self._notes])
        return self.persisted

    def _append(self, content: str, source: NoteSource) -> Note:
        note = Note(id=self._ids(), content=content, created_at=self._clock(), source=source)
        self._notes.append(note)
        self._save()
        return note

    def add_user(self, content: str) -> Note:
        """Append a user-authored note with trimmed content."""
        text = (content or "").strip()
        if not text:
            raise ValidationFailure("Note content cannot be empty")
        return self._append(text, NoteSource.USER)

    def add_from_suggestion(self, content: str) -> Note:
        """Promote a suggestion. Content is kept verbatim as the join key."""
        if not content or not content.strip():
            raise ValidationFailure("Suggestion text cannot be empty")
        return self._append(content, NoteSource.SUGGESTION)

    def delete(self, note_id: str) -> Note | None:
        """Remove a note by id and return it, or None if no such note."""
        for i, note in enumerate(self._notes):
            if note.id == note_id:
                del self._notes[i]
                self._save()
                return note
        return None

    def suggestion_contents(self) -> set[str]:
        return {n.content for n in self._notes if n.source is NoteSource.SUGGESTION}
