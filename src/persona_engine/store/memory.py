"""In-memory store backend.

Useful for tests and single-process deployments. Data is not persisted.
"""

from typing import Any, Dict, List, Optional

from ..core.models import ConversationState, MemoryFragment, Message, Role
from .base import MemoryQuery, MemoryStore


class InMemoryStore(MemoryStore):
    """Keeps conversations, messages and fragments in dictionaries.

    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self):
        self._conversations: Dict[str, ConversationState] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._fragments: Dict[str, MemoryFragment] = {}

    async def get_conversation(self, conversation_id: str) -> Optional[ConversationState]:
        state = self._conversations.get(conversation_id)
        return state.model_copy(deep=True) if state else None

    async def create_conversation(self, state: ConversationState) -> None:
        self._conversations[state.conversation_id] = state.model_copy(deep=True)
        self._messages.setdefault(state.conversation_id, [])

    async def update_conversation_state(
        self, conversation_id: str, state: ConversationState
    ) -> None:
        self._conversations[conversation_id] = state.model_copy(deep=True)

    async def append_message(
        self,
        conversation_id: str,
        role: Role,
        content: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Message:
        message = Message(role=role, content=content, meta=meta or {})
        self._messages.setdefault(conversation_id, []).append(message)
        return message.model_copy()

    async def list_recent_messages(
        self, conversation_id: str, limit: int = 50
    ) -> List[Message]:
        messages = self._messages.get(conversation_id, [])
        return [m.model_copy() for m in messages[-limit:]] if limit > 0 else []

    async def query_memory_fragments(self, query: MemoryQuery) -> List[MemoryFragment]:
        return [f.model_copy(deep=True) for f in query.apply(list(self._fragments.values()))]

    async def insert_memory_fragment(self, fragment: MemoryFragment) -> None:
        self._fragments[fragment.id] = fragment.model_copy(deep=True)

    async def delete_conversation_and_messages(self, conversation_id: str) -> bool:
        existed = self._conversations.pop(conversation_id, None) is not None
        self._messages.pop(conversation_id, None)
        for fragment_id in [
            f.id for f in self._fragments.values() if f.conversation_id == conversation_id
        ]:
            del self._fragments[fragment_id]
        return existed
