"""Shared fixtures: in-memory store, scripted model client, no-op sleep."""

import pytest

from ancestree.agents.gateway import AIGateway
from ancestree.agents.retry import RetryPolicy
from ancestree.config import Settings
from ancestree.context import Services
from ancestree.graph.document_store import MemoryDocumentStore


class FakeClient:
    """Model client that replays canned replies.

    A reply is a string (success), None (failed call) or a callable taking
    the prompt and returning one of those. Once the scripted replies run out
    `fallback` answers every call.
    """

    def __init__(self, *replies, fallback=None):
        self.replies = list(replies)
        self.fallback = fallback
        self.prompts = []
        self.systems = []

    async def generate(self, prompt, system=None):
        self.prompts.append(prompt)
        self.systems.append(system)
        reply = self.replies.pop(0) if self.replies else self.fallback
        if callable(reply):
            reply = reply(prompt)
        if reply is None:
            return {"success": False, "error": "model unavailable"}
        return {"success": True, "text": reply}


@pytest.fixture
def sleeps():
    """Delays the retry policy asked to sleep for."""
    return []


@pytest.fixture
def policy(sleeps):
    async def record(delay):
        sleeps.append(delay)
    return RetryPolicy(max_attempts=2, base_delay=0.5, factor=2.0, sleep=record)


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def gateway(fake_client, policy):
    return AIGateway(fake_client, policy=policy)


@pytest.fixture
def services(store, gateway):
    return Services(store=store, gateway=gateway, settings=Settings())
