"""Suggestions still available after subtracting promoted notes."""

from collections.abc import Iterable

from ..models import Note, NoteSource
from .ledger import NoteLedger


def available_suggestions(insights: Iterable[str], notes: Iterable[Note]) -> list[str]:
    """Insights with no suggestion-sourced note of the same text.

    Keeps insight order; repeated insight texts collapse to one entry.
    """
    taken = {n.content for n in notes if n.source is NoteSource.SUGGESTION}
    seen: set[str] = set()
    available = []
    for item in insights:
        if item in taken or item in seen:
            continue
        seen.add(item)
        available.append(item)
    return available


class SuggestionReconciler:
    """Derives visible suggestions from an insight list and a note ledger.

    Nothing here is persisted: restoring a suggestion after its note is
    deleted falls out of recomputing the filter.
    """

    def __init__(self, ledger: NoteLedger, insights: Iterable[str] = ()):
        self.ledger = ledger
        self.insights: list[str] = list(insights)

    def available(self) -> list[str]:
        return available_suggestions(self.insights, self.ledger.notes)

    def on_suggestion_selected(self, text: str) -> Note:
        return self.ledger.add_from_suggestion(text)

    def on_note_deleted(self, note: Note | None) -> bool:
        """Whether the deleted note's text is offered as a suggestion again."""
        if note is None or note.source is not NoteSource.SUGGESTION:
            return False
        if note.content in self.ledger.suggestion_contents():
            return False
        return note.content in self.available()
