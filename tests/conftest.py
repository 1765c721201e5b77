"""
Shared test fixtures for the persona engine test suite.
"""

import random
from typing import Any, Dict, List, Optional

import pytest

from persona_engine.config.settings import StoreConfig, SystemConfig
from persona_engine.core.models import (
    ConversationState,
    MemoryFragment,
    Message,
    Role,
)
from persona_engine.engine import ConversationService, PersonaEngine
from persona_engine.pipeline.personality import generate_personality_vector
from persona_engine.store.base import MemoryQuery
from persona_engine.store.memory import InMemoryStore


class RecordingStore(InMemoryStore):
    """In-memory store that records every call made to it."""

    MUTATIONS = {
        "create_conversation",
        "update_conversation_state",
        "append_message",
        "insert_memory_fragment",
        "delete_conversation_and_messages",
    }

    def __init__(self):
        super().__init__()
        self.calls: List[str] = []

    @property
    def mutations(self) -> List[str]:
        return [call for call in self.calls if call in self.MUTATIONS]

    async def get_conversation(self, conversation_id: str):
        self.calls.append("get_conversation")
        return await super().get_conversation(conversation_id)

    async def create_conversation(self, state: ConversationState) -> None:
        self.calls.append("create_conversation")
        await super().create_conversation(state)

    async def update_conversation_state(
        self, conversation_id: str, state: ConversationState
    ) -> None:
        self.calls.append("update_conversation_state")
        await super().update_conversation_state(conversation_id, state)

    async def append_message(
        self,
        conversation_id: str,
        role: Role,
        content: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Message:
        self.calls.append("append_message")
        return await super().append_message(conversation_id, role, content, meta)

    async def list_recent_messages(self, conversation_id: str, limit: int = 50):
        self.calls.append("list_recent_messages")
        return await super().list_recent_messages(conversation_id, limit)

    async def query_memory_fragments(self, query: MemoryQuery):
        self.calls.append("query_memory_fragments")
        return await super().query_memory_fragments(query)

    async def insert_memory_fragment(self, fragment: MemoryFragment) -> None:
        self.calls.append("insert_memory_fragment")
        await super().insert_memory_fragment(fragment)

    async def delete_conversation_and_messages(self, conversation_id: str) -> bool:
        self.calls.append("delete_conversation_and_messages")
        return await super().delete_conversation_and_messages(conversation_id)


class FailingStore(InMemoryStore):
    """Store whose every operation fails as if the backend were down."""

    async def get_conversation(self, conversation_id: str):
        raise ConnectionError("store offline")

    async def create_conversation(self, state: ConversationState) -> None:
        raise ConnectionError("store offline")

    async def update_conversation_state(self, conversation_id, state) -> None:
        raise ConnectionError("store offline")

    async def append_message(self, conversation_id, role, content, meta=None):
        raise ConnectionError("store offline")

    async def list_recent_messages(self, conversation_id, limit=50):
        raise ConnectionError("store offline")

    async def query_memory_fragments(self, query: MemoryQuery):
        raise ConnectionError("store offline")

    async def insert_memory_fragment(self, fragment: MemoryFragment) -> None:
        raise ConnectionError("store offline")

    async def delete_conversation_and_messages(self, conversation_id: str) -> bool:
        raise ConnectionError("store offline")


@pytest.fixture
def base_config() -> SystemConfig:
    """Create a base system configuration for testing."""
    return SystemConfig(
        store=StoreConfig(backend="memory", timeout_seconds=0.5),
        random_seed=7,
        debug_mode=True,
        log_level="DEBUG",
    )


@pytest.fixture
def rng() -> random.Random:
    """Create a seeded random source."""
    return random.Random(1234)


@pytest.fixture
def store() -> RecordingStore:
    """Create an empty recording store."""
    return RecordingStore()


@pytest.fixture
def failing_store() -> FailingStore:
    """Create a store that is always unavailable."""
    return FailingStore()


@pytest.fixture
def engine(store: RecordingStore, base_config: SystemConfig) -> PersonaEngine:
    """Create an engine over the recording store."""
    return PersonaEngine(store, base_config, random.Random(base_config.random_seed))


@pytest.fixture
def service(engine: PersonaEngine) -> ConversationService:
    """Create a conversation service around the engine."""
    return ConversationService(engine)


@pytest.fixture
def conversation_state(base_config: SystemConfig, rng: random.Random) -> ConversationState:
    """Create a fresh conversation state with a drawn personality."""
    return ConversationState(
        conversation_id="user-1:chat-1",
        user_id="user-1",
        personality_vector=generate_personality_vector(base_config.personality, rng),
    )
