"""Cross-character compatibility: request validation and display segmentation."""

import logging
import re

from ..errors import FetchFailure, ValidationFailure
from ..generation.base import GeneratorBase
from ..models import CompatibilityAnalysis

logger = logging.getLogger(__name__)

# Newlines, sentence ends, bullets, dashes, "1. " style markers
_ITEM_SPLIT = re.compile(r"(?:\n|\.\s+|•\s+|-\s+|\d+\.\s+)")
_CONNECTIVES = re.compile(
    r"^(and|or|but|however|therefore|thus|so|also|furthermore|moreover|in addition|additionally)$",
    re.IGNORECASE,
)


def text_to_list_items(text: str) -> list[str]:
    """Split a free-text block into display line items.

    Best effort, not lossless: separators are dropped, lone connective
    words are discarded, and a text that yields fewer than two items is
    retried on commas and semicolons (keeping pieces longer than 10 chars).
    """
    items = [item.strip() for item in _ITEM_SPLIT.split(text)]
    items = [item for item in items if item and not _CONNECTIVES.match(item)]

    if len(items) < 2:
        comma_split = [item.strip() for item in re.split(r"[,;]", text)]
        comma_split = [item for item in comma_split if len(item) > 10]
        return comma_split if len(comma_split) > 1 else items

    return items


def validate_request(character1_id: str | None, character2_id: str | None, location_id: str | None) -> None:
    """Reject incomplete or degenerate selections before any request is made."""
    if not character1_id or not character2_id or not location_id:
        raise ValidationFailure("Please select both characters and a location")
    if str(character1_id) == str(character2_id):
        raise ValidationFailure("Please select two different characters")


class CompatibilityAnalyzer:
    """Requests a compatibility analysis for two characters at a location."""

    def __init__(self, generator: GeneratorBase):
        self.generator = generator

    async def analyze(
        self, character1_id: str | None, character2_id: str | None, location_id: str | None
    ) -> CompatibilityAnalysis:
        validate_request(character1_id, character2_id, location_id)
        logger.debug(f"Generating compatibility for {character1_id}/{character2_id} at {location_id}")
        return await self.generator.compatibility(str(character1_id), str(character2_id), str(location_id))


class CompatibilityPanel:
    """Loading, error and result state for the compatibility generator.

    A newer request supersedes an older one still in flight.
    """

    def __init__(self, analyzer: CompatibilityAnalyzer):
        self.analyzer = analyzer
        self.loading = False
        self.error: str | None = None
        self.analysis: CompatibilityAnalysis | None = None
        self._token = 0

    async def generate(
        self, character1_id: str | None, character2_id: str | None, location_id: str | None
    ) -> CompatibilityAnalysis | None:
        self._token += 1
        token = self._token
        try:
            validate_request(character1_id, character2_id, location_id)
        except ValidationFailure as e:
            self.loading = False
            self.analysis = None
            self.error = str(e)
            return None

        self.loading = True
        self.error = None
        self.analysis = None
        try:
            analysis = await self.analyzer.analyze(character1_id, character2_id, location_id)
        except FetchFailure as e:
            if token == self._token:
                logger.error(f"Error generating compatibility: {e}")
                self.error = str(e) or "Failed to generate analysis"
                self.loading = False
            return None

        if token != self._token:
            return None
        self.analysis = analysis
        self.loading = False
        return analysis

    def reset(self) -> None:
        self._token += 1
        self.loading = False
        self.error = None
        self.analysis = None
