"""Tests for settings and the session context."""

import pytest

from ancestree.config import AISettings, RetrySettings, Settings, StoreSettings
from ancestree.context import Services, SessionContext
from ancestree.errors import InvalidRequestError
from ancestree.graph.document_store import MemoryDocumentStore
from ancestree.models import Member


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.retry.max_attempts == 2
        assert s.retry.base_delay == 0.5
        assert s.retry.factor == 2.0
        assert s.ai.max_dna_chars == 100_000
        assert s.ai.max_comparison_profiles == 50
        assert s.store.backend in ("sqlite", "memory")

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "4")
        monkeypatch.setenv("AI_PROVIDER", "openai")
        monkeypatch.setenv("STORE_BACKEND", "memory")
        assert RetrySettings().max_attempts == 4
        assert AISettings().provider == "openai"
        assert StoreSettings().backend == "memory"


class TestServices:
    def test_from_settings(self, monkeypatch):
        monkeypatch.setenv("AI_PROVIDER", "ollama")
        config = Settings(
            ai=AISettings(max_dna_chars=10),
            retry=RetrySettings(max_attempts=3),
            store=StoreSettings(backend="memory"),
        )
        services = Services.from_settings(config)
        assert isinstance(services.store, MemoryDocumentStore)
        assert services.gateway.max_dna_chars == 10
        assert services.gateway.policy.max_attempts == 3
        assert services.gateway.client.provider == "ollama"


class TestSessionContext:
    def test_lifecycle(self, services):
        ctx = services.session("u1")
        assert ctx.active and ctx.user_id == "u1"
        ctx.trees.add_member("u1", Member(id="m1", full_name="Ann"))

        ctx.sign_out()
        assert not ctx.active
        with pytest.raises(InvalidRequestError):
            ctx.trees

    def test_requires_user(self, services):
        with pytest.raises(InvalidRequestError):
            SessionContext.start(services, "  ")
        with pytest.raises(InvalidRequestError):
            services.session(None)

    def test_sessions_share_the_store(self, services):
        services.session("u1").profiles.save_profile("u1", "Asha")
        assert services.session("u2").profiles.get("u1").full_name == "Asha"
