"""Prompt templates for direct Claude generation."""

DESCRIPTION_PROMPT = """Write a short description of the {entity_kind} with id {entity_id} from the Rick and Morty multiverse.

Keep it to one or two paragraphs of plain prose. Do not use markdown."""

INSIGHTS_PROMPT = """List interesting, concise observations about the Rick and Morty character with id {character_id}.
Each observation should work on its own as a note a fan might keep.

Respond in this exact JSON format:
{{
  "insights": ["observation one", "observation two", "observation three"]
}}"""

EVALUATION_PROMPT = """Evaluate this description of the Rick and Morty location with id {location_id}.

Description:
{description}

Score it from 0 to 10 and check whether it mentions the location's name, its type and its dimension.

Respond in this exact JSON format:
{{
  "autoScore": 7,
  "checks": {{"nameMentioned": true, "typeMentioned": true, "dimensionMentioned": false}},
  "locationData": {{"type": "Planet", "dimension": "Dimension C-137"}},
  "explanation": "one or two sentences"
}}"""

COMPATIBILITY_PROMPT = """Two Rick and Morty characters (ids {character1_id} and {character2_id}) are stuck together at the location with id {location_id}.

Describe:
1. **teamWork**: how they would work together
2. **conflicts**: where they would clash
3. **breaksFirst**: who breaks first and why

Respond in this exact JSON format:
{{
  "teamWork": "text",
  "conflicts": "text",
  "breaksFirst": "text"
}}"""
