"""Typed builder for store keys."""

from ..models import ArtifactKind, EntityKind

NOTES = "notes"
SCORE = "score"

_ARTIFACTS = {ArtifactKind.DESCRIPTION.value, ArtifactKind.INSIGHTS.value, NOTES, SCORE}


def cache_key(entity_kind: EntityKind | str, entity_id: str | int, artifact: ArtifactKind | str) -> str:
    """Build the store key for one entity's artifact, ledger or score.

    >>> cache_key(EntityKind.CHARACTER, 1, ArtifactKind.DESCRIPTION)
    'character_description_1'
    """
    kind = EntityKind(entity_kind).value
    name = artifact.value if isinstance(artifact, ArtifactKind) else str(artifact)
    if name not in _ARTIFACTS:
        raise ValueError(f"Artifact {name!r} is not stored locally")
    if name == SCORE and kind != EntityKind.LOCATION.value:
        raise ValueError("Only locations carry a saved score")
    entity = str(entity_id).strip()
    if not entity:
        raise ValueError("entity id must not be empty")
    return f"{kind}_{name}_{entity}"
