"""Tests for the Claude-backed generator with a stubbed client."""

from types import SimpleNamespace

import anthropic
import httpx
import pytest

from lorecache.errors import FetchFailure
from lorecache.generation.base import get_generator
from lorecache.generation.claude import ClaudeGenerator


class StubMessages:
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=reply)])


class StubClient:
    def __init__(self, *replies):
        self.messages = StubMessages(replies)
        self.closed = False

    async def close(self):
        self.closed = True


def _generator(*replies):
    client = StubClient(*replies)
    return ClaudeGenerator({"claude_model": "test-model"}, client=client), client


def test_missing_api_key():
    with pytest.raises(ValueError, match="API key"):
        ClaudeGenerator({})


def test_factory_selects_claude():
    gen = get_generator({"generator": "claude", "claude_api_key": "sk-test"})
    assert isinstance(gen, ClaudeGenerator)


def test_factory_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown generator"):
        get_generator({"generator": "carrier-pigeon"})


@pytest.mark.asyncio
async def test_describe_returns_text():
    gen, client = _generator("  Rick is a genius scientist.  ")
    assert await gen.describe("character", "1") == "Rick is a genius scientist."
    request = client.messages.requests[0]
    assert request["model"] == "test-model"
    assert "character" in request["messages"][0]["content"]


@pytest.mark.asyncio
async def test_insights_from_fenced_json():
    gen, _ = _generator('Here you go:\n```json\n{"insights": ["Rick hates Jerry.", " ", 3]}\n```')
    assert await gen.insights("1") == ["Rick hates Jerry."]


@pytest.mark.asyncio
async def test_evaluation_from_embedded_object():
    gen, _ = _generator('Result: {"autoScore": 8, "checks": {"nameMentioned": true}} done')
    evaluation = await gen.evaluate("3", "Earth.")
    assert evaluation.auto_score == 8
    assert evaluation.checks.name_mentioned is True


@pytest.mark.asyncio
async def test_evaluation_out_of_range_is_fetch_failure():
    gen, _ = _generator('{"autoScore": 11}')
    with pytest.raises(FetchFailure, match="Failed to fetch evaluation"):
        await gen.evaluate("3", "Earth.")


@pytest.mark.asyncio
async def test_compatibility_fields():
    gen, _ = _generator('{"teamWork": "Science.", "conflicts": "Ego.", "breaksFirst": "Morty."}')
    analysis = await gen.compatibility("1", "2", "3")
    assert (analysis.team_work, analysis.conflicts, analysis.breaks_first) == ("Science.", "Ego.", "Morty.")


@pytest.mark.asyncio
async def test_unparseable_reply():
    gen, _ = _generator("I'd rather not.")
    with pytest.raises(FetchFailure, match="Could not parse"):
        await gen.insights("1")


@pytest.mark.asyncio
async def test_list_reply_is_not_accepted():
    gen, _ = _generator('["a", "b"]')
    with pytest.raises(FetchFailure):
        await gen.insights("1")


@pytest.mark.asyncio
async def test_api_error_is_fetch_failure():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    gen, _ = _generator(anthropic.APIConnectionError(request=request))
    with pytest.raises(FetchFailure, match="^Failed to fetch description$"):
        await gen.describe("location", "3")


@pytest.mark.asyncio
async def test_search_is_unsupported():
    gen, _ = _generator()
    with pytest.raises(FetchFailure, match="explorer backend"):
        await gen.search("rick")


@pytest.mark.asyncio
async def test_aclose_closes_client():
    gen, client = _generator()
    await gen.aclose()
    assert client.closed is True
