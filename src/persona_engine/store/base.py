"""Abstract memory store collaborator.

The engine never talks to a database directly: it receives a ``MemoryStore``
handle, which makes in-memory doubles and file-backed stores interchangeable.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

from ..core.errors import StoreUnavailable
from ..core.models import ConversationState, FragmentType, MemoryFragment, Message, Role

T = TypeVar("T")


class MemoryQuery(BaseModel):
    """Predicate over the memory fragments of one conversation.

    A fragment matches when it belongs to the conversation, passes the type
    filter and, if any textual criteria are given, carries one of ``tags_any``
    or contains one of ``content_any``.
    """

    conversation_id: str
    tags_any: List[str] = Field(default_factory=list)
    content_any: List[str] = Field(default_factory=list)
    types: List[FragmentType] = Field(default_factory=list)
    order_by: Literal["inserted", "weight", "last_accessed"] = "inserted"
    limit: Optional[int] = None

    def matches(self, fragment: MemoryFragment) -> bool:
        if fragment.conversation_id != self.conversation_id:
            return False
        if self.types and fragment.type not in self.types:
            return False
        if not self.tags_any and not self.content_any:
            return True

        if fragment.tags & set(self.tags_any):
            return True
        content = fragment.content.lower()
        return any(term.lower() in content for term in self.content_any)

    def apply(self, fragments: List[MemoryFragment]) -> List[MemoryFragment]:
        """Filter, order and limit fragments given in insertion order."""
        selected = [f for f in fragments if self.matches(f)]
        if self.order_by == "weight":
            selected.sort(key=lambda f: f.weight, reverse=True)
        elif self.order_by == "last_accessed":
            selected.sort(key=lambda f: f.last_accessed_at, reverse=True)
        if self.limit is not None:
            selected = selected[: self.limit]
        return selected


class MemoryStore(ABC):
    """Persistence operations the conversation pipeline relies on."""

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> Optional[ConversationState]:
        """Return the stored state of a conversation, or None."""
        pass

    @abstractmethod
    async def create_conversation(self, state: ConversationState) -> None:
        """Persist the initial state of a new conversation."""
        pass

    @abstractmethod
    async def update_conversation_state(
        self, conversation_id: str, state: ConversationState
    ) -> None:
        """Replace the stored state of a conversation."""
        pass

    @abstractmethod
    async def append_message(
        self,
        conversation_id: str,
        role: Role,
        content: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Message:
        """Append a message to the conversation log."""
        pass

    @abstractmethod
    async def list_recent_messages(
        self, conversation_id: str, limit: int = 50
    ) -> List[Message]:
        """Return the newest ``limit`` messages, oldest first."""
        pass

    @abstractmethod
    async def query_memory_fragments(self, query: MemoryQuery) -> List[MemoryFragment]:
        """Return the fragments matching a query."""
        pass

    @abstractmethod
    async def insert_memory_fragment(self, fragment: MemoryFragment) -> None:
        """Store a new memory fragment."""
        pass

    @abstractmethod
    async def delete_conversation_and_messages(self, conversation_id: str) -> bool:
        """Remove a conversation with its messages and fragments."""
        pass


async def call_store(operation: str, awaitable: Awaitable[T], timeout: float) -> T:
    """Await a store call, bounding it in time.

    Args:
        operation: Name of the store operation, used in errors
        awaitable: Pending store call
        timeout: Seconds to wait before giving up

    Returns:
        Result of the store call

    Raises:
        StoreUnavailable: If the call fails or times out
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        raise StoreUnavailable(operation, f"timed out after {timeout}s") from exc
    except StoreUnavailable:
        raise
    except Exception as exc:
        raise StoreUnavailable(operation, str(exc)) from exc
