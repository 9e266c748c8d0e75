"""Tests for the note ledger."""

import json

import pytest

from lorecache.annotations.ledger import NoteIdFactory, NoteLedger
from lorecache.errors import ValidationFailure
from lorecache.models import EntityKind, NoteSource
from lorecache.storage.cache import CacheStore
from lorecache.storage.memory import MemoryStore


def _ledger(store, entity_id="1", clock=None):
    ledger = NoteLedger(store, EntityKind.CHARACTER, entity_id, id_factory=NoteIdFactory(clock or (lambda: 1000.0)))
    ledger.load()
    return ledger


def test_load_absent_is_empty(store):
    assert _ledger(store).notes == []


@pytest.mark.parametrize("content", ["Wubba lubba dub dub", "  padded note  ", "multi\nline"])
def test_add_user_then_load(store, content):
    _ledger(store).add_user(content)

    reloaded = _ledger(store).notes
    assert len(reloaded) == 1
    assert reloaded[0].content == content.strip()
    assert reloaded[0].source is NoteSource.USER


@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
def test_add_user_rejects_blank(store, backend, content):
    ledger = _ledger(store)
    with pytest.raises(ValidationFailure):
        ledger.add_user(content)
    assert ledger.notes == []
    assert backend.get("character_notes_1") is None


def test_add_from_suggestion_keeps_exact_text(store):
    ledger = _ledger(store)
    note = ledger.add_from_suggestion(" Rick built a portal gun. ")
    assert note.content == " Rick built a portal gun. "
    assert note.source is NoteSource.SUGGESTION


def test_insertion_order_and_serialized_form(store, backend):
    ledger = _ledger(store)
    ledger.add_user("first")
    ledger.add_from_suggestion("second")

    stored = json.loads(backend.get("character_notes_1"))
    assert [n["content"] for n in stored] == ["first", "second"]
    assert set(stored[0]) == {"id", "content", "createdAt", "source"}
    assert stored[1]["source"] == "suggestion"


def test_delete_returns_removed_note(store):
    ledger = _ledger(store)
    keep = ledger.add_user("keep me")
    gone = ledger.add_user("delete me")

    assert ledger.delete(gone.id) == gone
    assert ledger.delete(gone.id) is None
    assert [n.id for n in _ledger(store).notes] == [keep.id]


def test_ids_unique_within_same_millisecond(store):
    ledger = _ledger(store)
    ids = [ledger.add_user(f"note {i}").id for i in range(5)]
    assert len(set(ids)) == 5
    assert ids == sorted(ids, key=int)


def test_ids_never_reused_after_delete(store):
    ledger = _ledger(store)
    first = ledger.add_user("a")
    second = ledger.add_user("b")
    ledger.delete(second.id)

    third = ledger.add_user("c")
    assert third.id not in {first.id, second.id}
    assert int(third.id) > int(second.id)


def test_reloaded_ledger_ids_move_past_stored_ones(store):
    first = _ledger(store, clock=lambda: 5000.0).add_user("a")

    # Clock went backwards since the note was written
    reopened = _ledger(store, clock=lambda: 1.0)
    second = reopened.add_user("b")
    assert int(second.id) > int(first.id)


def test_ledgers_are_entity_scoped(store):
    _ledger(store, "1").add_user("about Rick")
    assert _ledger(store, "2").notes == []


def test_corrupt_ledger_loads_empty(backend, store):
    backend.set("character_notes_1", "{oops")
    assert _ledger(store).notes == []


def test_malformed_entries_skipped(backend, store):
    backend.set("character_notes_1", json.dumps([
        {"id": "1", "content": "ok", "createdAt": "t", "source": "user"},
        {"id": "2", "content": "", "source": "user"},
        {"id": "3", "content": "bad source", "source": "robot"},
        "not a dict",
    ]))
    assert [n.id for n in _ledger(store).notes] == ["1"]


def test_write_failure_keeps_note_for_session():
    store = CacheStore(MemoryStore(disabled=True))
    ledger = _ledger(store)
    note = ledger.add_user("only in memory")
    assert ledger.notes == [note]
    assert ledger.persisted is False
