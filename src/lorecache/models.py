"""Data models used throughout lorecache."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EntityKind(str, Enum):
    CHARACTER = "character"
    LOCATION = "location"


class ArtifactKind(str, Enum):
    DESCRIPTION = "description"
    INSIGHTS = "insights"
    COMPATIBILITY = "compatibility"
    EVALUATION = "evaluation"


class NoteSource(str, Enum):
    USER = "user"
    SUGGESTION = "suggestion"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Note:
    """A persisted annotation attached to one entity."""
    id: str
    content: str
    created_at: str
    source: NoteSource

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "content": self.content,
            "createdAt": self.created_at,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        """Build a note from its stored form. Raises ValueError/KeyError on bad input."""
        content = data["content"]
        if not isinstance(content, str) or not content:
            raise ValueError("note content must be a non-empty string")
        return cls(
            id=str(data["id"]),
            content=content,
            created_at=str(data.get("createdAt", "")),
            source=NoteSource(data.get("source", NoteSource.USER.value)),
        )


@dataclass(frozen=True)
class EvaluationChecks:
    name_mentioned: bool = False
    type_mentioned: bool = False
    dimension_mentioned: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "nameMentioned": self.name_mentioned,
            "typeMentioned": self.type_mentioned,
            "dimensionMentioned": self.dimension_mentioned,
        }


@dataclass(frozen=True)
class LocationEvaluation:
    """Auto-evaluation of a location description."""
    auto_score: float
    checks: EvaluationChecks = field(default_factory=EvaluationChecks)
    location_data: dict[str, Any] = field(default_factory=dict)
    explanation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "autoScore": self.auto_score,
            "checks": self.checks.to_dict(),
            "locationData": dict(self.location_data),
        }
        if self.explanation:
            data["explanation"] = self.explanation
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LocationEvaluation":
        score = data["autoScore"]
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValueError(f"autoScore must be a number, got {score!r}")
        if not 0 <= score <= 10:
            raise ValueError(f"autoScore out of range: {score}")
        checks = data.get("checks") or {}
        explanation = data.get("explanation")
        return cls(
            auto_score=score,
            checks=EvaluationChecks(
                name_mentioned=bool(checks.get("nameMentioned", False)),
                type_mentioned=bool(checks.get("typeMentioned", False)),
                dimension_mentioned=bool(checks.get("dimensionMentioned", False)),
            ),
            location_data=dict(data.get("locationData") or {}),
            explanation=explanation if isinstance(explanation, str) and explanation else None,
        )


@dataclass(frozen=True)
class CompatibilityAnalysis:
    """Three free-text blocks describing how two characters get along."""
    team_work: str
    conflicts: str
    breaks_first: str

    def items(self) -> dict[str, list[str]]:
        """Each block segmented into display line items."""
        from .annotations.compatibility import text_to_list_items

        return {
            "teamWork": text_to_list_items(self.team_work),
            "conflicts": text_to_list_items(self.conflicts),
            "breaksFirst": text_to_list_items(self.breaks_first),
        }


@dataclass(frozen=True)
class GeneratedArtifact:
    """A piece of generated text tied to one entity."""
    kind: ArtifactKind
    entity_id: str
    payload: Any


@dataclass(frozen=True)
class UserScore:
    """Saved score for a location. Written once, never replaced by auto-evaluations."""
    score: float
    timestamp: str
    evaluation: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserScore":
        score = data["score"]
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValueError(f"score must be a number, got {score!r}")
        return cls(
            score=score,
            timestamp=str(data.get("timestamp", "")),
            evaluation=dict(data.get("evaluation") or {}),
        )


@dataclass
class SearchResult:
    """One hit from the semantic search endpoint."""
    id: str
    name: str
    type: str
    distance: float
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class ArtifactState:
    """View state of one artifact kind for the current entity."""
    loading: bool = False
    error: str | None = None
    artifact: GeneratedArtifact | None = None

    @property
    def payload(self) -> Any:
        return self.artifact.payload if self.artifact else None

    def reset(self) -> None:
        self.loading = False
        self.error = None
        self.artifact = None
