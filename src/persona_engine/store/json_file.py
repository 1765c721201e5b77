"""JSON file store backend. One directory holds every conversation."""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.models import ConversationState, MemoryFragment, Message, Role
from .memory import InMemoryStore


class JsonFileStore(InMemoryStore):
    """In-memory store that writes itself to JSON documents after each change.

    Documents are written off the event loop and swapped into place, so a
    slow disk counts against the store call timeout and a crash mid-write
    leaves the previous documents intact.
    """

    def __init__(self, storage_path: str = "conversations"):
        super().__init__()
        self.storage_dir = Path(storage_path)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self._save_lock: Optional[asyncio.Lock] = None
        self._load()

    @property
    def _conversation_file(self) -> Path:
        return self.storage_dir / "conversations.json"

    @property
    def _message_file(self) -> Path:
        return self.storage_dir / "messages.json"

    @property
    def _fragment_file(self) -> Path:
        return self.storage_dir / "fragments.json"

    def _load(self) -> None:
        # Runs once from the constructor, before the store serves any call
        if self._conversation_file.exists():
            raw = json.loads(self._conversation_file.read_text())
            self._conversations = {
                cid: ConversationState.model_validate(state) for cid, state in raw.items()
            }
        if self._message_file.exists():
            raw = json.loads(self._message_file.read_text())
            self._messages = {
                cid: [Message.model_validate(m) for m in messages]
                for cid, messages in raw.items()
            }
        if self._fragment_file.exists():
            raw = json.loads(self._fragment_file.read_text())
            self._fragments = {f["id"]: MemoryFragment.model_validate(f) for f in raw}

    def _snapshot(self) -> Dict[Path, Any]:
        return {
            self._conversation_file: {
                cid: s.model_dump(mode="json") for cid, s in self._conversations.items()
            },
            self._message_file: {
                cid: [m.model_dump(mode="json") for m in messages]
                for cid, messages in self._messages.items()
            },
            self._fragment_file: [
                f.model_dump(mode="json") for f in self._fragments.values()
            ],
        }

    def _write_documents(self, documents: Dict[Path, Any]) -> None:
        for path, document in documents.items():
            temp_path = path.with_name(path.name + ".tmp")
            temp_path.write_text(json.dumps(document, indent=2))
            os.replace(temp_path, path)

    async def _save(self) -> None:
        if self._save_lock is None:
            self._save_lock = asyncio.Lock()
        # Saves run one at a time so an older snapshot never replaces a newer one
        async with self._save_lock:
            await asyncio.to_thread(self._write_documents, self._snapshot())

    async def create_conversation(self, state: ConversationState) -> None:
        await super().create_conversation(state)
        await self._save()

    async def update_conversation_state(
        self, conversation_id: str, state: ConversationState
    ) -> None:
        await super().update_conversation_state(conversation_id, state)
        await self._save()

    async def append_message(
        self,
        conversation_id: str,
        role: Role,
        content: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Message:
        message = await super().append_message(conversation_id, role, content, meta)
        await self._save()
        return message

    async def insert_memory_fragment(self, fragment: MemoryFragment) -> None:
        await super().insert_memory_fragment(fragment)
        await self._save()

    async def delete_conversation_and_messages(self, conversation_id: str) -> bool:
        existed = await super().delete_conversation_and_messages(conversation_id)
        await self._save()
        return existed
