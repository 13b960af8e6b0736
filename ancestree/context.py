"""Explicit service and session context.

`Services` is built once per process (store, gateway, settings). A
`SessionContext` binds it to one signed-in user: it starts when a request
names a user and is torn down by `sign_out()`, after which it refuses work.
Used as a context manager it signs out on exit.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ancestree.agents.assistant_agent import AssistantAgent
from ancestree.agents.dna_agent import DnaAgent
from ancestree.agents.gateway import AIGateway
from ancestree.agents.llm_client import LLMClient
from ancestree.agents.retry import RetryPolicy
from ancestree.config import Settings, settings as default_settings
from ancestree.errors import InvalidRequestError
from ancestree.graph.connections import ConnectionRegistry
from ancestree.graph.document_store import DocumentStore, create_store
from ancestree.graph.family_tree import FamilyTreeService
from ancestree.graph.profile_store import ProfileStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-wide collaborators, injected into every session."""
    store: DocumentStore
    gateway: AIGateway
    settings: Settings = field(default_factory=lambda: default_settings)

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "Services":
        config = config or default_settings
        gateway = AIGateway(
            LLMClient(ai_settings=config.ai),
            policy=RetryPolicy.from_settings(config.retry),
            max_dna_chars=config.ai.max_dna_chars,
            max_comparison_profiles=config.ai.max_comparison_profiles,
        )
        store = create_store(config.store.backend, config.store.sqlite_path)
        return cls(store=store, gateway=gateway, settings=config)

    @property
    def trees(self) -> FamilyTreeService:
        return FamilyTreeService(self.store)

    @property
    def profiles(self) -> ProfileStore:
        return ProfileStore(self.store)

    @property
    def connections(self) -> ConnectionRegistry:
        return ConnectionRegistry(self.store)

    @property
    def dna(self) -> DnaAgent:
        return DnaAgent(self.gateway, self.profiles, self.trees)

    @property
    def assistant(self) -> AssistantAgent:
        return AssistantAgent(self.gateway, self.profiles, self.trees)

    async def aclose(self) -> None:
        close = getattr(self.gateway.client, "close", None)
        if close is not None:
            await close()

    def session(self, user_id: Optional[str]) -> "SessionContext":
        return SessionContext.start(self, user_id)


@dataclass
class SessionContext:
    """Per-user view of the services."""
    services: Services
    user_id: str
    active: bool = True

    @classmethod
    def start(cls, services: Services, user_id: Optional[str]) -> "SessionContext":
        if not user_id or not str(user_id).strip():
            raise InvalidRequestError("Missing userId")
        logger.debug("Session started for %s", user_id)
        return cls(services=services, user_id=str(user_id).strip())

    def sign_out(self) -> None:
        self.active = False
        logger.debug("Session ended for %s", self.user_id)

    def __enter__(self) -> "SessionContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.sign_out()

    def _require_active(self) -> Services:
        if not self.active:
            raise InvalidRequestError("Session has ended")
        return self.services

    @property
    def trees(self) -> FamilyTreeService:
        return self._require_active().trees

    @property
    def profiles(self) -> ProfileStore:
        return self._require_active().profiles

    @property
    def connections(self) -> ConnectionRegistry:
        return self._require_active().connections

    @property
    def dna(self) -> DnaAgent:
        return self._require_active().dna

    @property
    def assistant(self) -> AssistantAgent:
        return self._require_active().assistant
